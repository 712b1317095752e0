import logging

import pytest

from s3fm.client.exceptions import StoreError

@pytest.fixture
def tree(store):
    """A small tree: marker directories, an implied directory and files."""
    store.add("docs/")
    store.add("docs/a.txt", b"a", "text/plain")
    store.add("docs/sub/")
    store.add("docs/sub/deep.txt", b"deep", "text/plain")
    store.add("implied/only/child.txt", b"c", "text/plain")
    store.add("top.txt", b"top", "text/plain")
    return store

def test_list_root(volume, tree):
    assert volume.list("/") == ["/docs", "/implied", "/top.txt"]
    assert tree.operations("list_objects") == [None], "The bucket root is listed without a prefix"

def test_list_directory_excludes_own_marker_and_descendants(volume, tree):
    assert volume.list("/docs") == ["/docs/a.txt", "/docs/sub"]
    assert volume.list("/docs/") == ["/docs/a.txt", "/docs/sub"]

def test_list_when_store_ignores_delimiter(volume, tree):
    tree.ignore_delimiter = True
    assert volume.list("/") == ["/docs", "/implied", "/top.txt"]
    assert volume.list("/docs") == ["/docs/a.txt", "/docs/sub"]

def test_list_keys_returns_marker_form(volume, tree):
    assert volume.enumerator.list_keys("/") == ["docs/", "implied/", "top.txt"]
    assert volume.enumerator.list_keys("/implied") == ["implied/only/"]

def test_file_and_marker_with_same_name_collapse(volume, store):
    store.add("x", b"file", "text/plain")
    store.add("x/")
    assert volume.list("/") == ["/x"]

def test_list_empty_and_missing(volume, store):
    store.add("empty/")
    assert volume.list("/empty") == []
    assert volume.list("/missing") == []

def test_list_logical_path(volume, tree):
    assert volume.list("s3/docs") == ["/docs/a.txt", "/docs/sub"]

def test_list_under_nested_root(options, store):
    from s3fm.volume.driver import S3Volume
    store.add("data/one.txt", b"1", "text/plain")
    store.add("data/two/")
    store.add("other.txt", b"o", "text/plain")
    volume = S3Volume(options.with_overrides(path="/data"), client=store)
    assert volume.list("/data") == ["/data/one.txt", "/data/two"]

def test_list_failure_returns_empty(volume, tree, caplog):
    tree.fail("list_objects", StoreError("Service unavailable", code="ERR_UNAVAILABLE"))
    with caplog.at_level(logging.ERROR, logger="S3FM"):
        assert volume.list("/") == []
    assert "listing / failed" in caplog.text

def test_has_children(volume, tree):
    assert volume.enumerator.has_children("/docs")
    assert volume.enumerator.has_children("/implied")
    assert not volume.enumerator.has_children("/top.txt")

def test_marker_alone_has_no_children(volume, store):
    store.add("empty/")
    assert not volume.enumerator.has_children("/empty")

def test_has_subdirectories(volume, tree):
    assert volume.has_subdirectories("/"), "docs/ is a marker child"
    assert volume.has_subdirectories("/docs")
    assert volume.has_subdirectories("/implied"), "Implied directories have implied children"
    assert not volume.has_subdirectories("/docs/sub")
    assert not volume.has_subdirectories("/top.txt")
    assert not volume.has_subdirectories("/missing")

def test_has_subdirectories_stats_plain_children(volume, store):
    # A child object without a content type reads as a directory
    store.add("parent/")
    store.add("parent/blob", b"", "binary/octet-stream")
    assert volume.has_subdirectories("/parent")

def test_has_subdirectories_stops_at_first_directory(volume, store):
    store.add("p/")
    store.add("p/a/")
    store.add("p/b.txt", b"b", "text/plain")
    assert volume.has_subdirectories("/p")
    assert "p/b.txt" not in store.operations("head_object")
