# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
from .client import ObjectStoreClient, Session
from .exceptions import StoreError, AuthenticationError, BucketError, ObjectError, ConfigurationError
from .types import HeadObjectOutput, GetObjectOutput, ListedObject, ListObjectsOptions

__all__ = [
    "ObjectStoreClient",
    "Session",
    "StoreError",
    "AuthenticationError",
    "BucketError",
    "ObjectError",
    "ConfigurationError",
    "HeadObjectOutput",
    "GetObjectOutput",
    "ListedObject",
    "ListObjectsOptions",
]
