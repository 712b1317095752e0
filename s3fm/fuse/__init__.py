# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
FUSE mount adapter for s3fm volumes.

Importing this package needs fusepy and a libfuse installation.
"""
from .fuse_mount import VolumeFuse, mount, main

__all__ = ["VolumeFuse", "mount", "main"]
