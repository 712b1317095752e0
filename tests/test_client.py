import io
from datetime import datetime, timezone
from unittest.mock import Mock, patch

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from s3fm.client.client import ObjectStoreClient, Session
from s3fm.client.exceptions import BucketError, ConfigurationError, ObjectError, StoreError
from s3fm.client.types import ListObjectsOptions

def client_error(code, status, operation="HeadObject"):
    return ClientError(
        {"Error": {"Code": code, "Message": f"{code} message"}, "ResponseMetadata": {"HTTPStatusCode": status}},
        operation,
    )

@pytest.fixture
def s3():
    """Fixture to provide a mocked boto3 S3 client."""
    return Mock()

@pytest.fixture
def client(s3):
    return ObjectStoreClient(s3=s3)

@pytest.fixture(autouse=True)
def no_backoff_sleep():
    with patch("s3fm.client.retry.time.sleep") as sleep:
        yield sleep

def test_requires_session_or_client():
    with pytest.raises(ConfigurationError):
        ObjectStoreClient()

def test_builds_boto3_client_from_session():
    session = Session(access_key="k", secret_key="s", region="us-east-1", endpoint="http://localhost:9000")
    with patch("s3fm.client.client.boto3.client") as factory:
        ObjectStoreClient(session)
    args, kwargs = factory.call_args
    assert args == ("s3",)
    assert kwargs["aws_access_key_id"] == "k"
    assert kwargs["aws_secret_access_key"] == "s"
    assert kwargs["endpoint_url"] == "http://localhost:9000"
    assert kwargs["region_name"] == "us-east-1"
    assert kwargs["config"].retries["max_attempts"] == 1, "Retries belong to the retry decorator"

def test_head_object(client, s3):
    modified = datetime(2024, 1, 2, tzinfo=timezone.utc)
    s3.head_object.return_value = {
        "ContentType": "text/plain",
        "ContentLength": 5,
        "LastModified": modified,
        "ETag": '"abc"',
    }
    meta = client.head_object("bucket", "docs/a.txt")
    s3.head_object.assert_called_once_with(Bucket="bucket", Key="docs/a.txt")
    assert meta.content_type == "text/plain"
    assert meta.content_length == 5
    assert meta.last_modified == modified
    assert meta.user_metadata == {}

def test_head_object_not_found(client, s3):
    s3.head_object.side_effect = client_error("404", 404)
    with pytest.raises(ObjectError) as exc_info:
        client.head_object("bucket", "missing")
    assert exc_info.value.not_found
    assert exc_info.value.code == "ERR_OBJECT_HEAD_NOT_FOUND"
    assert s3.head_object.call_count == 1, "Not-found must not be retried"

def test_get_object_reads_body(client, s3):
    s3.get_object.return_value = {"Body": io.BytesIO(b"hello"), "ContentType": "text/plain", "ContentLength": 5}
    obj = client.get_object("bucket", "a.txt")
    assert obj.body == b"hello"
    assert obj.content_length == 5

def test_get_object_no_such_key(client, s3):
    s3.get_object.side_effect = client_error("NoSuchKey", 404, "GetObject")
    with pytest.raises(ObjectError) as exc_info:
        client.get_object("bucket", "a.txt")
    assert exc_info.value.code == "ERR_OBJECT_GET_NOT_FOUND"

def test_put_object(client, s3):
    client.put_object("bucket", "docs/", b"", content_type="binary/octet-stream")
    s3.put_object.assert_called_once_with(
        Bucket="bucket", Key="docs/", Body=b"", ContentLength=0, ContentType="binary/octet-stream"
    )

def test_put_object_without_content_type(client, s3):
    client.put_object("bucket", "a.bin", b"abc")
    assert "ContentType" not in s3.put_object.call_args.kwargs
    assert s3.put_object.call_args.kwargs["ContentLength"] == 3

def test_delete_object(client, s3):
    client.delete_object("bucket", "a.txt")
    s3.delete_object.assert_called_once_with(Bucket="bucket", Key="a.txt")

def test_head_bucket_errors(client, s3):
    s3.head_bucket.side_effect = client_error("404", 404, "HeadBucket")
    with pytest.raises(BucketError) as exc_info:
        client.head_bucket("missing-bucket")
    assert exc_info.value.code == "ERR_BUCKET_ACCESS"

    s3.head_bucket.side_effect = client_error("403", 403, "HeadBucket")
    with pytest.raises(BucketError) as exc_info:
        client.head_bucket("private-bucket")
    assert exc_info.value.code == "ERR_BUCKET_AUTH"

def test_list_objects_with_prefixes_and_pages(client, s3):
    s3.list_objects_v2.side_effect = [
        {
            "Contents": [{"Key": "docs/a.txt", "Size": 1}],
            "CommonPrefixes": [{"Prefix": "docs/sub/"}],
            "IsTruncated": True,
            "NextContinuationToken": "token-1",
        },
        {
            "Contents": [{"Key": "docs/b.txt", "Size": 2}],
            "IsTruncated": False,
        },
    ]
    entries = list(client.list_objects("bucket", ListObjectsOptions(prefix="docs/", delimiter="/")))

    assert [(e.key, e.is_prefix) for e in entries] == [
        ("docs/a.txt", False),
        ("docs/sub/", True),
        ("docs/b.txt", False),
    ]
    first, second = s3.list_objects_v2.call_args_list
    assert first.kwargs == {"Bucket": "bucket", "Prefix": "docs/", "Delimiter": "/"}
    assert second.kwargs["ContinuationToken"] == "token-1"

def test_list_objects_respects_max_keys(client, s3):
    s3.list_objects_v2.return_value = {
        "Contents": [{"Key": "a"}, {"Key": "b"}],
        "IsTruncated": True,
        "NextContinuationToken": "more",
    }
    entries = list(client.list_objects("bucket", ListObjectsOptions(max_keys=2)))
    assert [e.key for e in entries] == ["a", "b"]
    assert s3.list_objects_v2.call_count == 1

def test_list_objects_bucket_root_has_no_prefix(client, s3):
    s3.list_objects_v2.return_value = {"IsTruncated": False}
    assert list(client.list_objects("bucket", ListObjectsOptions(delimiter="/"))) == []
    assert "Prefix" not in s3.list_objects_v2.call_args.kwargs

def test_transient_errors_are_retried(client, s3, no_backoff_sleep):
    s3.head_object.side_effect = [client_error("SlowDown", 503), {"ContentType": "text/plain", "ContentLength": 1}]
    assert client.head_object("bucket", "a.txt").content_length == 1
    assert s3.head_object.call_count == 2
    no_backoff_sleep.assert_called_once()

def test_connection_errors_exhaust_retries(client, s3):
    s3.get_object.side_effect = EndpointConnectionError(endpoint_url="http://localhost:9000")
    with pytest.raises(StoreError) as exc_info:
        client.get_object("bucket", "a.txt")
    assert exc_info.value.code == "ERR_UNAVAILABLE"
    assert s3.get_object.call_count == 5

def test_close(client, s3):
    client.close()
    s3.close.assert_called_once()
