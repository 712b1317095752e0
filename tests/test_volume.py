import io

import pytest

from s3fm.client.exceptions import BucketError, ConfigurationError, StoreError
from s3fm.volume import driver
from s3fm.volume.config import VolumeOptions
from s3fm.volume.driver import S3Volume
from s3fm.volume.results import OutcomeKind

def test_empty_bucket_scenario(volume, store):
    """mkdir, mkfile, save and list on an empty bucket."""
    outcome = volume.create_directory("/", "docs")
    assert outcome
    assert outcome.value == "/docs"
    assert volume.stat("/docs").is_directory

    outcome = volume.create_file("/docs", "a.txt")
    assert outcome.value == "/docs/a.txt"
    record = volume.stat("/docs/a.txt")
    assert record.size == 0
    assert not record.is_directory

    outcome = volume.save(io.BytesIO(b"hello"), "/docs", "a.txt", "text/plain")
    assert outcome.value == "/docs/a.txt"
    assert volume.stat("/docs/a.txt").size == 5

    assert volume.list("/") == ["/docs"]

    handle = volume.open_for_read("/docs/a.txt").value
    assert handle.read() == b"hello"
    volume.close(handle, "/docs/a.txt")

def test_create_directory_writes_marker(volume, store):
    volume.create_directory("/", "docs")
    data, content_type, _ = store.objects["docs/"]
    assert data == b""
    assert content_type == "binary/octet-stream"

def test_create_directory_twice_succeeds(volume):
    assert volume.create_directory("/", "docs")
    assert volume.create_directory("/", "docs")
    assert volume.list("/") == ["/docs"]

def test_create_file_is_empty_text(volume, store):
    volume.create_file("/", "notes.txt")
    assert store.objects["notes.txt"][:2] == (b"", "text/plain")
    assert volume.stat("/notes.txt").mime == "text/plain"

def test_save_replaces_content(volume, store):
    volume.save(io.BytesIO(b"first version"), "/", "f.bin", "application/octet-stream")
    volume.save(io.BytesIO(b"second"), "/", "f.bin", "application/octet-stream")
    assert store.objects["f.bin"][0] == b"second"

def test_save_large_stream(volume, store):
    payload = bytes(range(256)) * 100  # spans several read chunks
    volume.save(io.BytesIO(payload), "/", "big.bin", "application/octet-stream")
    assert volume.stat("/big.bin").size == len(payload)
    assert volume.open_for_read("/big.bin").value.read() == payload

def test_save_without_mime_is_not_a_directory(volume, store):
    volume.save(io.BytesIO(b"data"), "/", "raw", "")
    assert store.objects["raw"][1] == "application/octet-stream"
    assert not volume.stat("/raw").is_directory

def test_save_stream_error(volume, store):
    class BrokenStream:
        def read(self, size=-1):
            raise OSError("disk gone")

    outcome = volume.save(BrokenStream(), "/", "f.txt", "text/plain")
    assert outcome.kind is OutcomeKind.FAILED
    assert store.operations("put_object") == [], "Nothing may be stored from a broken stream"

def test_put_failure(volume, store):
    store.fail("put_object", StoreError("Access denied to object", code="ERR_OBJECT_PUT"))
    outcome = volume.create_directory("/", "docs")
    assert not outcome
    assert outcome.kind is OutcomeKind.FAILED
    assert outcome.error.code == "ERR_OBJECT_PUT"

def test_delete_file(volume, store):
    store.add("a.txt", b"hello", "text/plain")
    assert volume.delete("/a.txt")
    assert volume.stat("/a.txt") is None
    assert store.operations("delete_object") == ["a.txt"]

def test_delete_directory_leaves_children(volume, store):
    volume.create_directory("/", "docs")
    volume.save(io.BytesIO(b"a"), "/docs", "a.txt", "text/plain")

    outcome = volume.delete("/docs")
    assert outcome
    assert store.operations("delete_object") == ["docs/"]
    assert "docs/a.txt" in store.objects
    assert volume.list("/") == ["/docs"], "The directory still exists as a common prefix"
    assert volume.stat("/docs") is None
    assert volume.is_implied_directory("/docs")

def test_delete_missing(volume, store):
    outcome = volume.delete("/missing")
    assert outcome.is_not_found
    assert store.operations("delete_object") == []

def test_root_cannot_be_removed(volume, store):
    assert volume.delete("/").kind is OutcomeKind.FAILED
    assert volume.rmdir("/").kind is OutcomeKind.FAILED
    assert volume.rmdir("s3").kind is OutcomeKind.FAILED
    assert store.operations("delete_object") == []

def test_delete_failure(volume, store):
    store.add("a.txt", b"hello", "text/plain")
    store.fail("delete_object", StoreError("Internal server error", code="ERR_INTERNAL"))
    assert volume.unlink("/a.txt").kind is OutcomeKind.FAILED
    assert "a.txt" in store.objects

@pytest.mark.parametrize("operation, args", [
    ("symlink", ("/a.txt", "/", "link")),
    ("copy", ("/a.txt", "/docs", "a.txt")),
    ("move", ("/a.txt", "/docs", "a.txt")),
    ("get_contents", ("/a.txt",)),
    ("put_contents", ("/a.txt", "text")),
    ("extract", ("/a.zip",)),
    ("archive", ("/", ["/a.txt"], "a.zip")),
])
def test_unsupported_operations(volume, store, operation, args):
    store.add("a.txt", b"hello", "text/plain")
    store.calls.clear()

    outcome = getattr(volume, operation)(*args)
    assert not outcome
    assert outcome.is_unsupported
    assert outcome.operation == operation
    assert store.calls == [], f"{operation} must not touch the store"

def test_logical_paths(volume, store):
    volume.create_directory("s3", "docs")
    assert "docs/" in store.objects
    assert volume.to_logical("/docs") == "s3/docs"
    assert volume.dirname("/docs/a.txt") == "/docs"
    assert volume.basename("/docs/a.txt") == "a.txt"
    assert volume.join("/docs", "a.txt") == "/docs/a.txt"

def test_writes_through_logical_parent(volume, store):
    parent = volume.dirname("s3/docs")
    assert parent == "s3"
    assert volume.create_directory(parent, "x")
    assert volume.save(io.BytesIO(b"hi"), volume.dirname("s3/docs/a.txt"), "a.txt", "text/plain")
    assert sorted(store.objects) == ["docs/a.txt", "x/"]

def test_to_logical_outside_root(options, store):
    volume = S3Volume(options.with_overrides(path="/data"), client=store)
    assert volume.to_logical("/data/docs") == "s3/docs"
    assert volume.to_logical("/database/x") is None

def test_nested_root(options, store):
    volume = S3Volume(options.with_overrides(path="/data"), client=store)
    assert volume.root == "/data"
    volume.create_directory("/data", "x")
    assert "data/x/" in store.objects
    assert volume.list("/data") == ["/data/x"]

def test_missing_configuration(store):
    with pytest.raises(ConfigurationError) as exc_info:
        S3Volume(VolumeOptions(access_key="key"), client=store)
    assert "secret_key" in str(exc_info.value)
    assert "bucket" in str(exc_info.value)
    assert exc_info.value.code == "ERR_CONFIG"

def test_connect_checks_bucket(options, store, monkeypatch):
    monkeypatch.setattr(driver, "ObjectStoreClient", lambda session: store)
    volume = S3Volume.connect(options)
    assert volume.client is store
    assert store.operations("head_bucket") == [None]

def test_connect_failure_closes_client(options, store, monkeypatch):
    monkeypatch.setattr(driver, "ObjectStoreClient", lambda session: store)
    store.fail("head_bucket", BucketError("Bucket does not exist", operation="ACCESS"))

    with pytest.raises(BucketError):
        S3Volume.connect(options)
    assert store.closed

def test_volume_satisfies_interface(volume):
    from s3fm.volume.base import Volume
    for name in ("stat", "list", "has_subdirectories", "open_for_read", "close",
                 "create_directory", "create_file", "save", "delete"):
        assert callable(getattr(volume, name)), f"missing {name}"
    assert isinstance(volume.root, str) and volume.root_name == "s3"
    assert Volume.__doc__
