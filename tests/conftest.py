import os
from datetime import datetime, timezone

import pytest

from s3fm.client.exceptions import BucketError, ObjectError
from s3fm.client.types import GetObjectOutput, HeadObjectOutput, ListedObject, ListObjectsOptions
from s3fm.volume.config import VolumeOptions
from s3fm.volume.driver import S3Volume

BUCKET = "test-bucket"

# What S3 reports for bodies stored without a content type
STORE_DEFAULT_CONTENT_TYPE = "binary/octet-stream"

class FakeObjectStore:
    """
    In-memory object store implementing the ObjectStoreClient contract.

    Every call is recorded in ``calls`` as ``(operation, key)``. ``fail``
    makes an operation raise, optionally for one key only.
    ``ignore_delimiter`` makes listings behave like stores that return every
    key under the prefix.
    """

    def __init__(self, bucket=BUCKET):
        self.bucket = bucket
        self.objects = {}
        self.calls = []
        self.failures = {}
        self.ignore_delimiter = False
        self.closed = False

    def add(self, key, data=b"", content_type=STORE_DEFAULT_CONTENT_TYPE, last_modified=None):
        self.objects[key] = (data, content_type, last_modified or datetime.now(timezone.utc))

    def fail(self, operation, error, key=None):
        self.failures[operation] = (error, key)

    def _record(self, operation, bucket, key=None):
        self.calls.append((operation, key))
        failure = self.failures.get(operation)
        if failure is not None:
            error, only_key = failure
            if only_key is None or only_key == key:
                raise error
        if bucket != self.bucket:
            raise BucketError("Bucket does not exist", operation="ACCESS")

    def _lookup(self, operation, key):
        if key not in self.objects:
            raise ObjectError("Object does not exist", operation=operation, not_found=True)
        return self.objects[key]

    def head_bucket(self, bucket):
        self._record("head_bucket", bucket)

    def head_object(self, bucket, key):
        self._record("head_object", bucket, key)
        data, content_type, last_modified = self._lookup("HEAD", key)
        return HeadObjectOutput(content_type=content_type, content_length=len(data), last_modified=last_modified)

    def get_object(self, bucket, key):
        self._record("get_object", bucket, key)
        data, content_type, last_modified = self._lookup("GET", key)
        return GetObjectOutput(body=data, content_type=content_type, content_length=len(data),
                               last_modified=last_modified)

    def put_object(self, bucket, key, data, content_type=None):
        self._record("put_object", bucket, key)
        self.add(key, bytes(data), content_type or STORE_DEFAULT_CONTENT_TYPE)

    def delete_object(self, bucket, key):
        self._record("delete_object", bucket, key)
        self.objects.pop(key, None)

    def list_objects(self, bucket, options=None):
        options = options or ListObjectsOptions()
        self._record("list_objects", bucket, options.prefix)
        prefix = options.prefix or ""
        delimiter = None if self.ignore_delimiter else options.delimiter

        contents, prefixes = [], set()
        for key in sorted(self.objects):
            if not key.startswith(prefix):
                continue
            rest = key[len(prefix):]
            if delimiter and delimiter in rest:
                prefixes.add(prefix + rest[:rest.index(delimiter) + len(delimiter)])
            else:
                contents.append(ListedObject(key=key, size=len(self.objects[key][0])))

        entries = contents + [ListedObject(key=p, is_prefix=True) for p in sorted(prefixes)]
        if options.max_keys:
            entries = entries[:options.max_keys]
        yield from entries

    def close(self):
        self.closed = True

    def operations(self, name):
        """Keys passed to one kind of call, in order."""
        return [key for op, key in self.calls if op == name]


@pytest.fixture
def store():
    """Fixture to provide an empty in-memory store."""
    return FakeObjectStore()

@pytest.fixture
def options():
    return VolumeOptions(access_key="test-access-key", secret_key="test-secret-key", bucket=BUCKET)

@pytest.fixture
def volume(options, store):
    """Fixture to provide a volume over the in-memory store."""
    return S3Volume(options, client=store)

@pytest.fixture
def scratch_volume(options, store, tmp_path):
    """Fixture to provide a volume that materializes reads as named files in tmp_path."""
    return S3Volume(options.with_overrides(tmp_path=str(tmp_path / "scratch")), client=store)

@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Keep the developer's S3FM_* settings out of the tests."""
    for name in list(os.environ):
        if name.startswith("S3FM_") and not name.startswith("S3FM_TEST_"):
            monkeypatch.delenv(name, raising=False)
