# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
S3 volume for a file-manager core.

This module presents a bucket as a directory tree. Directories are emulated
with zero-length marker objects whose key ends in the separator, or exist
implicitly as a common prefix of other keys. Operations the store cannot
support safely (rename, copy, symlinks, archives) report themselves as
unsupported instead of being approximated.

Usage:
    options = VolumeOptions(access_key="...", secret_key="...", bucket="my-bucket")
    volume = S3Volume.connect(options)

    volume.create_directory("/", "docs")
    volume.save(io.BytesIO(b"hello"), "/docs", "a.txt", "text/plain")
    volume.list("/")            # ['/docs']
    volume.stat("/docs/a.txt")  # StatRecord(size=5, ..., mime='text/plain')
"""

import time
from typing import BinaryIO, List, Optional

from ..client.client import ObjectStoreClient
from ..client.exceptions import StoreError
from ..utils import logger, time_function, trace_op
from .config import VolumeOptions
from .listing import DirectoryEnumerator
from .paths import PathTranslator
from .results import Outcome
from .stat import MARKER_CONTENT_TYPE, MetadataResolver, StatRecord
from .transfer import ContentTransfer

READ_CHUNK_SIZE = 8192

FILE_CONTENT_TYPE = "text/plain"

# Used for saves without a content type, so they never pick up the marker default
DEFAULT_SAVE_CONTENT_TYPE = "application/octet-stream"


class S3Volume:
    """
    Object-store backed volume.

    The client is injected, so any object implementing head_object,
    get_object, put_object, delete_object and list_objects can stand in for
    the boto3-backed ObjectStoreClient.

    Attributes:
        driver_id (str): Identifier of this driver kind
        options (VolumeOptions): The volume's configuration
        client: Object-store client
        bucket (str): Bucket name
        paths (PathTranslator): Path translator
        root (str): Absolute root path
        root_name (str): Root token of logical paths
    """

    driver_id = "s3s"

    def __init__(self, options: VolumeOptions, client=None):
        """
        Create a volume.

        Args:
            options (VolumeOptions): Configuration
            client (optional): Object-store client. Defaults to an ObjectStoreClient built from the options.

        Raises:
            ConfigurationError: If credentials or the bucket are missing
        """
        options.validate()
        self.options = options
        self.bucket = options.bucket
        self.client = client if client is not None else ObjectStoreClient(options.session())

        self.paths = PathTranslator(options.path, options.root_name, options.separator)
        self.root = self.paths.root
        self.root_name = self.paths.root_name

        self.resolver = MetadataResolver(self.client, self.bucket, self.paths)
        self.enumerator = DirectoryEnumerator(self.client, self.bucket, self.paths)
        self.transfer = ContentTransfer(self.client, self.bucket, self.paths, options.prepare_tmp_path())
        logger.info(f"Volume ready: bucket {self.bucket}, root {self.root}")

    @classmethod
    def connect(cls, options: VolumeOptions, verify: bool = True) -> "S3Volume":
        """
        Build a volume with a boto3-backed client, checking bucket access first.

        Args:
            options (VolumeOptions): Configuration
            verify (bool): Issue a HEAD on the bucket before returning. Defaults to True.

        Returns:
            S3Volume: The connected volume

        Raises:
            ConfigurationError: If credentials or the bucket are missing
            StoreError: If the bucket cannot be accessed
        """
        options.validate()
        client = ObjectStoreClient(options.session())
        if verify:
            start_time = time.time()
            try:
                client.head_bucket(options.bucket)
            except StoreError as e:
                logger.error(f"Failed to access bucket {options.bucket}: {e}")
                client.close()
                raise
            time_function("head_bucket", start_time)
        return cls(options, client)

    # --- Path helpers ---

    def to_logical(self, path: str) -> Optional[str]:
        return self.paths.to_logical(path)

    def dirname(self, path: str) -> str:
        return self.paths.dirname(path)

    def basename(self, path: str) -> str:
        return self.paths.basename(path)

    def join(self, directory: str, name: str) -> str:
        return self.paths.join(directory, name)

    # --- Stat and listing ---

    def stat(self, path: str) -> Optional[StatRecord]:
        """
        Return the stat record for a path, or None if it does not exist.

        Directories implied only by deeper keys are reported as missing;
        use is_implied_directory to detect them.
        """
        return self.resolver.stat(path)

    def exists(self, path: str) -> bool:
        return self.stat(path) is not None

    def is_directory(self, path: str) -> bool:
        record = self.stat(path)
        return record is not None and record.is_directory

    def is_implied_directory(self, path: str) -> bool:
        """True when keys exist under the path's prefix, marker or not."""
        try:
            return self.enumerator.has_children(path)
        except StoreError as e:
            logger.error(f"is_implied_directory: listing {path} failed: {e}")
            return False

    def list(self, path: str) -> List[str]:
        """
        Return the direct children of a directory as absolute paths.

        Args:
            path (str): Directory path

        Returns:
            list: Sorted absolute paths; empty when the listing fails
        """
        trace_op("list", path)
        try:
            return self.enumerator.list(path)
        except StoreError as e:
            logger.error(f"list: listing {path} failed: {e}")
            return []

    def has_subdirectories(self, path: str) -> bool:
        """
        Check whether a directory has at least one child directory.

        Child keys in marker form are directories by construction; other
        children are stat-ed. Stops at the first directory found.

        Args:
            path (str): Directory path

        Returns:
            bool: True if a child directory exists
        """
        trace_op("has_subdirectories", path)
        record = self.stat(path)
        if record is None:
            if not self.is_implied_directory(path):
                return False
        elif not record.is_directory:
            return False

        try:
            keys = self.enumerator.list_keys(path)
        except StoreError as e:
            logger.error(f"has_subdirectories: listing {path} failed: {e}")
            return False

        sep = self.paths.separator
        for key in keys:
            if key.endswith(sep):
                return True
            child = self.stat(self.paths.from_object_key(key))
            if child is not None and child.is_directory:
                return True
        return False

    # --- Content ---

    def open_for_read(self, path: str) -> Outcome:
        """
        Fetch a file into scratch storage.

        Args:
            path (str): File path

        Returns:
            Outcome: ``value`` is a readable binary handle positioned at the start
        """
        return self.transfer.open(path)

    def close(self, handle: BinaryIO, path: str = "") -> None:
        """Release a handle returned by open_for_read."""
        self.transfer.close(handle, path)

    def close_all(self) -> int:
        """Release every handle open_for_read returned that is still registered."""
        return self.transfer.close_all()

    # --- Mutations ---

    def _put(self, operation: str, key: str, data: bytes, content_type: str, path: str) -> Outcome:
        start_time = time.time()
        try:
            self.client.put_object(self.bucket, key, data, content_type=content_type)
        except StoreError as e:
            logger.error(f"{operation}: put_object for {key} failed: {e}")
            time_function(operation, start_time)
            return Outcome.failed(operation, e)
        logger.info(f"{operation}: stored {len(data)} bytes at {key}")
        time_function(operation, start_time)
        return Outcome.success(operation, path)

    def _delete(self, operation: str, key: str, path: str) -> Outcome:
        start_time = time.time()
        try:
            self.client.delete_object(self.bucket, key)
        except StoreError as e:
            logger.error(f"{operation}: delete_object for {key} failed: {e}")
            time_function(operation, start_time)
            return Outcome.failed(operation, e)
        logger.info(f"{operation}: deleted {key}")
        time_function(operation, start_time)
        return Outcome.success(operation, path)

    def create_directory(self, parent: str, name: str) -> Outcome:
        """
        Create a directory by writing its marker object.

        Re-creating an existing directory succeeds.

        Args:
            parent (str): Parent directory path
            name (str): Directory name

        Returns:
            Outcome: ``value`` is the new directory's path
        """
        trace_op("create_directory", parent, name=name)
        path = self.paths.join(parent, name)
        key = self.paths.marker_key(path)
        return self._put("create_directory", key, b"", MARKER_CONTENT_TYPE, path)

    def create_file(self, parent: str, name: str) -> Outcome:
        """
        Create an empty text file.

        Args:
            parent (str): Parent directory path
            name (str): File name

        Returns:
            Outcome: ``value`` is the new file's path
        """
        trace_op("create_file", parent, name=name)
        path = self.paths.join(parent, name)
        key = self.paths.to_object_key(path)
        return self._put("create_file", key, b"", FILE_CONTENT_TYPE, path)

    def save(self, stream: BinaryIO, directory: str, name: str, mime: str) -> Outcome:
        """
        Store the whole content of a stream as a file.

        The target's previous content is fully replaced; there is no append
        and no partial update.

        Args:
            stream: Readable binary stream, drained to the end
            directory (str): Target directory path
            name (str): File name
            mime (str): Content type to store

        Returns:
            Outcome: ``value`` is the saved file's path
        """
        trace_op("save", directory, name=name, mime=mime)
        path = self.paths.join(directory, name)
        key = self.paths.to_object_key(path)

        chunks = []
        try:
            while True:
                chunk = stream.read(READ_CHUNK_SIZE)
                if not chunk:
                    break
                chunks.append(chunk)
        except OSError as e:
            logger.error(f"save: reading the input stream for {key} failed: {e}")
            return Outcome.failed("save", e)

        return self._put("save", key, b"".join(chunks), mime or DEFAULT_SAVE_CONTENT_TYPE, path)

    def unlink(self, path: str) -> Outcome:
        """
        Delete the object stored at a path.

        Args:
            path (str): File path

        Returns:
            Outcome: ``value`` is the deleted path
        """
        trace_op("unlink", path)
        return self._delete("unlink", self.paths.to_object_key(path), path)

    def rmdir(self, path: str) -> Outcome:
        """
        Delete a directory's marker object.

        Keys below the directory are left in place, so a directory with
        children keeps existing as a common prefix.

        Args:
            path (str): Directory path

        Returns:
            Outcome: ``value`` is the directory path
        """
        trace_op("rmdir", path)
        if self.paths.is_root(path):
            return Outcome.failed("rmdir", message="the volume root cannot be removed")
        return self._delete("rmdir", self.paths.marker_key(path), path)

    def delete(self, path: str) -> Outcome:
        """
        Delete a file or a directory marker, depending on what the path is.

        Args:
            path (str): Path to delete

        Returns:
            Outcome: NOT_FOUND when the path does not exist
        """
        trace_op("delete", path)
        if self.paths.is_root(path):
            return Outcome.failed("delete", message="the volume root cannot be removed")

        record = self.stat(path)
        if record is None:
            return Outcome.not_found("delete", path)
        if record.is_directory:
            return self.rmdir(path)
        return self.unlink(path)

    # --- Unsupported operations ---

    def _unsupported(self, operation: str, path: str, **details) -> Outcome:
        trace_op(operation, path, **details)
        logger.info(f"{operation} requested for {path}: not supported by the S3 volume")
        return Outcome.unsupported(operation)

    def symlink(self, source: str, target_dir: str, name: str) -> Outcome:
        return self._unsupported("symlink", source, target_dir=target_dir, name=name)

    def copy(self, source: str, target_dir: str, name: str) -> Outcome:
        return self._unsupported("copy", source, target_dir=target_dir, name=name)

    def move(self, source: str, target_dir: str, name: str) -> Outcome:
        return self._unsupported("move", source, target_dir=target_dir, name=name)

    def get_contents(self, path: str) -> Outcome:
        return self._unsupported("get_contents", path)

    def put_contents(self, path: str, content) -> Outcome:
        return self._unsupported("put_contents", path)

    def extract(self, path: str, archiver=None) -> Outcome:
        return self._unsupported("extract", path)

    def archive(self, directory: str, files, name: str, archiver=None) -> Outcome:
        return self._unsupported("archive", directory, name=name)
