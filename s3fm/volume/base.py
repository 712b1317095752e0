# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Volume capability interface.

Any storage backend a file-manager core mounts (object store, local disk,
database) implements the same contract. S3Volume is one implementation.
"""

from typing import BinaryIO, List, Optional, Protocol

from .results import Outcome
from .stat import StatRecord


class Volume(Protocol):
    """Contract a file-manager core relies on."""

    root: str
    root_name: str

    def stat(self, path: str) -> Optional[StatRecord]:
        """Return the stat record, or None if the path does not exist."""
        ...

    def list(self, path: str) -> List[str]:
        """Return the direct children of a directory as absolute paths."""
        ...

    def has_subdirectories(self, path: str) -> bool:
        """Return True if the directory has at least one child directory."""
        ...

    def open_for_read(self, path: str) -> Outcome:
        """Open a file for reading; the stream is the outcome's value."""
        ...

    def close(self, handle: BinaryIO, path: str = "") -> None:
        """Release a stream returned by open_for_read."""
        ...

    def create_directory(self, parent: str, name: str) -> Outcome:
        ...

    def create_file(self, parent: str, name: str) -> Outcome:
        ...

    def save(self, stream: BinaryIO, directory: str, name: str, mime: str) -> Outcome:
        """Create or replace a file with the content of a stream."""
        ...

    def delete(self, path: str) -> Outcome:
        ...
