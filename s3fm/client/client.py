# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Object-store client.

This module provides the boto3-backed client the volume talks to. It exposes
only the whole-object primitives the volume needs (head, get, put, delete,
list) and reports every failure as a StoreError.

Classes:
    Session: Credentials, region, endpoint and timeouts for a client.
    ObjectStoreClient: S3-compatible client used by the volume.
"""
from dataclasses import dataclass
from typing import Iterator, Optional

import boto3
from botocore.config import Config as BotoConfig

from ..utils import logger
from .exceptions import ConfigurationError
from .retry import retry
from .types import GetObjectOutput, HeadObjectOutput, ListedObject, ListObjectsOptions

@dataclass
class Session:
    """
    Connection settings for an ObjectStoreClient.

    Attributes:
        access_key (str): Access key id.
        secret_key (str): Secret access key.
        region (str, optional): Region name. Defaults to None.
        endpoint (str, optional): Custom endpoint URL for S3-compatible stores. Defaults to None.
        connect_timeout (float): Connect timeout in seconds. Defaults to 10.
        read_timeout (float): Read timeout in seconds. Defaults to 60.
    """
    access_key: str
    secret_key: str
    region: Optional[str] = None
    endpoint: Optional[str] = None
    connect_timeout: float = 10.0
    read_timeout: float = 60.0

class ObjectStoreClient:
    """
    Client for an S3-compatible object store.

    Retries are handled by the retry decorator; botocore's own retry loop is
    disabled so attempts are not multiplied.

    Attributes:
        session (Session): The session the client was built from.
    """

    def __init__(self, session: Session = None, s3=None):
        """
        Create a client.

        Args:
            session (Session, optional): Connection settings. Required unless an s3 client is given.
            s3 (optional): A pre-built boto3 S3 client, used as is.

        Raises:
            ConfigurationError: If neither a session nor an s3 client is given.
        """
        if s3 is None and session is None:
            raise ConfigurationError("A session or an s3 client is required")
        self.session = session
        if s3 is None:
            s3 = boto3.client(
                "s3",
                aws_access_key_id=session.access_key,
                aws_secret_access_key=session.secret_key,
                region_name=session.region,
                endpoint_url=session.endpoint,
                config=BotoConfig(
                    connect_timeout=session.connect_timeout,
                    read_timeout=session.read_timeout,
                    retries={"max_attempts": 1, "mode": "standard"},
                ),
            )
            logger.debug(f"Created S3 client for endpoint {session.endpoint or 'default'} region {session.region}")
        self._s3 = s3

    @retry()
    def head_bucket(self, bucket: str) -> None:
        """
        Check that a bucket exists and is accessible.

        Args:
            bucket (str): Bucket name.

        Raises:
            BucketError: If the bucket does not exist or is not accessible.
        """
        self._s3.head_bucket(Bucket=bucket)

    @retry()
    def head_object(self, bucket: str, key: str) -> HeadObjectOutput:
        """
        Fetch an object's metadata without its body.

        Args:
            bucket (str): Bucket name.
            key (str): Object key.

        Returns:
            HeadObjectOutput: The object's metadata.

        Raises:
            ObjectError: If the object does not exist (``not_found`` is set) or the request fails.
        """
        resp = self._s3.head_object(Bucket=bucket, Key=key)
        return HeadObjectOutput(
            content_type=resp.get("ContentType", ""),
            content_length=int(resp.get("ContentLength", 0)),
            last_modified=resp.get("LastModified"),
            etag=resp.get("ETag", ""),
            user_metadata=resp.get("Metadata", {}),
        )

    @retry()
    def get_object(self, bucket: str, key: str) -> GetObjectOutput:
        """
        Fetch a whole object.

        Args:
            bucket (str): Bucket name.
            key (str): Object key.

        Returns:
            GetObjectOutput: Body and metadata of the object.
        """
        resp = self._s3.get_object(Bucket=bucket, Key=key)
        body = resp["Body"].read()
        return GetObjectOutput(
            body=body,
            content_type=resp.get("ContentType", ""),
            content_length=int(resp.get("ContentLength", len(body))),
            last_modified=resp.get("LastModified"),
        )

    @retry()
    def put_object(self, bucket: str, key: str, data: bytes, content_type: str = None) -> None:
        """
        Store a whole object, replacing any previous content.

        Args:
            bucket (str): Bucket name.
            key (str): Object key.
            data (bytes): Object content.
            content_type (str, optional): Content type to store. Defaults to the store's default.
        """
        kwargs = {
            "Bucket": bucket,
            "Key": key,
            "Body": data,
            "ContentLength": len(data),
        }
        if content_type:
            kwargs["ContentType"] = content_type
        self._s3.put_object(**kwargs)

    @retry()
    def delete_object(self, bucket: str, key: str) -> None:
        """
        Delete an object. Deleting a missing key succeeds on S3.

        Args:
            bucket (str): Bucket name.
            key (str): Object key.
        """
        self._s3.delete_object(Bucket=bucket, Key=key)

    def list_objects(self, bucket: str, options: ListObjectsOptions = None) -> Iterator[ListedObject]:
        """
        List objects, following continuation tokens.

        When a delimiter is given, common prefixes are yielded as entries with
        ``is_prefix`` set, after the plain objects of the same page.

        Args:
            bucket (str): Bucket name.
            options (ListObjectsOptions, optional): Prefix, delimiter and paging options.

        Yields:
            ListedObject: Objects and common prefixes.
        """
        options = options or ListObjectsOptions()
        kwargs = {"Bucket": bucket}
        if options.prefix:
            kwargs["Prefix"] = options.prefix
        if options.delimiter:
            kwargs["Delimiter"] = options.delimiter
        if options.start_after:
            kwargs["StartAfter"] = options.start_after
        if options.max_keys:
            kwargs["MaxKeys"] = options.max_keys

        returned = 0
        while True:
            page = self.list_objects_page(dict(kwargs))
            for item in page.get("Contents", []):
                yield ListedObject(
                    key=item["Key"],
                    size=int(item.get("Size", 0)),
                    last_modified=item.get("LastModified"),
                )
                returned += 1
            for item in page.get("CommonPrefixes", []):
                yield ListedObject(key=item["Prefix"], is_prefix=True)
                returned += 1

            if options.max_keys and returned >= options.max_keys:
                return
            if not page.get("IsTruncated"):
                return
            kwargs["ContinuationToken"] = page["NextContinuationToken"]

    @retry()
    def list_objects_page(self, kwargs: dict) -> dict:
        """
        Fetch one ListObjectsV2 page.

        Args:
            kwargs (dict): Request parameters.

        Returns:
            dict: The raw response page.
        """
        return self._s3.list_objects_v2(**kwargs)

    def close(self) -> None:
        """
        Release the underlying HTTP connections.
        """
        close = getattr(self._s3, "close", None)
        if close is not None:
            close()
