import threading

import pytest

from sitesync.protocols import StoredObject
from sitesync.store import StoreError


class MemoryObjectStore:
    """In-memory object store recording every call."""

    def __init__(self, objects=None, fail_list=False, fail_put=()):
        self.objects = dict(objects or {})
        self.content_types = {}
        self.puts = []
        self.gets = []
        self.fail_list = fail_list
        self.fail_put = set(fail_put)
        self._lock = threading.Lock()

    def list_objects(self):
        if self.fail_list:
            raise StoreError("list", "access denied")
        return [StoredObject(key, key.endswith("/")) for key in sorted(self.objects)]

    def get_object(self, key):
        self.gets.append(key)
        return self.objects[key]

    def put_object(self, key, content_type, data):
        if key in self.fail_put:
            raise StoreError("put", "boom", key=key)
        with self._lock:
            self.puts.append(key)
            self.objects[key] = data
            self.content_types[key] = content_type


@pytest.fixture
def memory_store():
    return MemoryObjectStore()


@pytest.fixture
def store_factory():
    return MemoryObjectStore
