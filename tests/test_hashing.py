import io

import pytest

from sitesync.hashing import Hasher


def test_hexdigest_is_deterministic_and_content_sensitive():
    hasher = Hasher()
    assert hasher.hexdigest(b"body{}") == hasher.hexdigest(b"body{}")
    assert hasher.hexdigest(b"body{}") != hasher.hexdigest(b"body{ }")
    assert hasher.algorithm == "sha256"


def test_md5_matches_known_digest():
    assert Hasher("md5").hexdigest(b"") == "d41d8cd98f00b204e9800998ecf8427e"


def test_digest_stream_buffers_one_shot_stream():
    hasher = Hasher()
    stream = io.BytesIO(b"<html></html>")
    digest, data = hasher.digest_stream(stream)
    assert data == b"<html></html>"
    assert digest == hasher.hexdigest(b"<html></html>")
    assert stream.read() == b""


def test_unknown_algorithm_rejected():
    with pytest.raises(ValueError):
        Hasher("not-a-digest")


@pytest.mark.parametrize("algorithm", ["shake_128", "shake_256"])
def test_variable_length_algorithm_rejected(algorithm):
    with pytest.raises(ValueError, match="Variable-length"):
        Hasher(algorithm)
