# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
s3fm presents an S3-compatible bucket as a directory tree to a file-manager core.
"""
from .client import ObjectStoreClient, Session
from .volume import S3Volume, VolumeOptions

__all__ = ["ObjectStoreClient", "Session", "S3Volume", "VolumeOptions"]
__version__ = "0.1.0"
