# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
from .base import Volume
from .config import VolumeOptions
from .driver import S3Volume
from .paths import PathTranslator
from .results import Found, NotFound, Outcome, OutcomeKind, TransportError
from .stat import DIRECTORY_MIME, StatRecord

__all__ = [
    "Volume",
    "VolumeOptions",
    "S3Volume",
    "PathTranslator",
    "Found",
    "NotFound",
    "Outcome",
    "OutcomeKind",
    "TransportError",
    "DIRECTORY_MIME",
    "StatRecord",
]
