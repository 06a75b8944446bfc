import io
import logging

import pytest
from botocore.exceptions import ClientError

from sitesync.config import load_config
from sitesync.protocols import ObjectStore, StoredObject
from sitesync.store import (
    DryRunObjectStore,
    NullObjectStore,
    S3ObjectStore,
    StoreError,
    create_store,
)


class FakePaginator:
    def __init__(self, pages):
        self.pages = pages
        self.calls = []

    def paginate(self, **kwargs):
        self.calls.append(kwargs)
        return iter(self.pages)


class FakeS3Client:
    def __init__(self, objects=None, error=None):
        self.objects = dict(objects or {})
        self.error = error
        self.put_calls = []

    def _maybe_fail(self, operation):
        if self.error:
            raise ClientError({"Error": {"Code": self.error, "Message": "denied"}}, operation)

    def get_paginator(self, name):
        assert name == "list_objects_v2"
        self._maybe_fail("ListObjectsV2")
        keys = sorted(self.objects)
        return FakePaginator(
            [
                {"Contents": [{"Key": k} for k in keys[:1]]},
                {"Contents": [{"Key": k} for k in keys[1:]]},
                {},
            ]
        )

    def get_object(self, Bucket, Key):
        self._maybe_fail("GetObject")
        return {"Body": io.BytesIO(self.objects[Key])}

    def put_object(self, Bucket, Key, Body, ContentType):
        self._maybe_fail("PutObject")
        self.put_calls.append((Bucket, Key, Body, ContentType))


def test_s3_store_lists_every_page():
    client = FakeS3Client({"index.html": b"x", "css/": b"", "css/a.css": b"y"})
    store = S3ObjectStore("site", client=client)
    assert store.list_objects() == [
        StoredObject("css/", True),
        StoredObject("css/a.css", False),
        StoredObject("index.html", False),
    ]
    assert isinstance(store, ObjectStore)


def test_s3_store_get_and_put():
    client = FakeS3Client({"index.html": b"<html>"})
    store = S3ObjectStore("site", client=client)
    assert store.get_object("index.html") == b"<html>"
    store.put_object("a.css", "text/css", b"a{}")
    assert client.put_calls == [("site", "a.css", b"a{}", "text/css")]


@pytest.mark.parametrize("operation", ["list", "get", "put"])
def test_s3_store_wraps_client_errors(operation):
    store = S3ObjectStore("site", client=FakeS3Client({"k": b""}, error="AccessDenied"))
    with pytest.raises(StoreError) as excinfo:
        if operation == "list":
            store.list_objects()
        elif operation == "get":
            store.get_object("k")
        else:
            store.put_object("k", "text/html", b"")
    assert excinfo.value.operation == operation
    assert isinstance(excinfo.value.original_error, ClientError)


def test_s3_store_requires_bucket():
    with pytest.raises(ValueError):
        S3ObjectStore("", client=FakeS3Client())


def test_null_store(caplog):
    store = NullObjectStore()
    assert store.list_objects() == []
    with caplog.at_level(logging.INFO, logger="sitesync.store"):
        store.put_object("a.html", "text/html", b"abc")
    assert "upload disabled" in caplog.text
    with pytest.raises(StoreError):
        store.get_object("a.html")


def test_dry_run_store_reads_but_never_writes():
    client = FakeS3Client({"index.html": b"x"})
    store = DryRunObjectStore(S3ObjectStore("site", client=client))
    assert [o.key for o in store.list_objects()] == ["index.html"]
    assert store.get_object("index.html") == b"x"
    store.put_object("index.html", "text/html", b"new")
    assert client.put_calls == []


def test_create_store_selects_client(tmp_path, monkeypatch):
    created = {}

    def fake_client(service, **kwargs):
        created["service"] = service
        created["kwargs"] = kwargs
        return FakeS3Client()

    monkeypatch.setattr("sitesync.store.boto3.client", fake_client)

    assert isinstance(create_store(load_config(tmp_path, {"upload": False})), NullObjectStore)

    dry = create_store(load_config(tmp_path, {"upload": False, "bucket": "site"}))
    assert isinstance(dry, DryRunObjectStore)

    live = create_store(
        load_config(tmp_path, {"bucket": "site", "endpoint_url": "http://localhost:9000"})
    )
    assert isinstance(live, S3ObjectStore)
    assert created["service"] == "s3"
    assert created["kwargs"]["region_name"] == "us-east-2"
    assert created["kwargs"]["endpoint_url"] == "http://localhost:9000"

    with pytest.raises(ValueError):
        create_store(load_config(tmp_path))
