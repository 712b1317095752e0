# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Content transfer between the store and local scratch storage.

The store only offers whole-object GET, so a read fetches the complete body
into scratch storage before the caller sees the first byte. A handle is
returned only once the complete body has been written.
"""

import hashlib
import os
import tempfile
import time
from threading import Lock

from ..client.exceptions import ObjectError, StoreError
from ..utils import logger, time_function, trace_op
from .paths import PathTranslator
from .results import Outcome

# Anonymous scratch stays in memory up to this size, then spools to disk
DEFAULT_SPOOL_MAX_SIZE = 64 * 1024 * 1024  # 64MB


class ContentTransfer:
    """
    Materializes objects in scratch storage for reading.

    With a scratch directory configured, every open gets its own named file
    whose name starts with the md5 of the path; otherwise an anonymous
    SpooledTemporaryFile is used.

    Attributes:
        client: Object-store client
        bucket (str): Bucket name
        paths (PathTranslator): Path translator of the volume
        tmp_path (str, optional): Scratch directory for named scratch files
    """

    def __init__(self, client, bucket: str, paths: PathTranslator, tmp_path: str = None,
                 spool_max_size: int = DEFAULT_SPOOL_MAX_SIZE):
        self.client = client
        self.bucket = bucket
        self.paths = paths
        self.tmp_path = tmp_path
        self.spool_max_size = spool_max_size
        self._scratch = {}  # handle -> scratch file name
        self._lock = Lock()

    def scratch_prefix(self, path: str) -> str:
        return hashlib.md5(path.encode("utf-8")).hexdigest()

    def _allocate(self, path: str):
        if not self.tmp_path:
            return tempfile.SpooledTemporaryFile(max_size=self.spool_max_size, mode="w+b")

        handle = tempfile.NamedTemporaryFile(
            mode="w+b",
            dir=self.tmp_path,
            prefix=self.scratch_prefix(path) + ".",
            delete=False,
        )
        with self._lock:
            self._scratch[handle] = handle.name
        return handle

    def open(self, path: str) -> Outcome:
        """
        Fetch an object into scratch storage and return a readable handle.

        Args:
            path (str): Absolute or logical file path

        Returns:
            Outcome: ``value`` is the rewound handle on success
        """
        trace_op("open", path)
        start_time = time.time()
        key = self.paths.to_object_key(path)

        try:
            handle = self._allocate(path)
        except OSError as e:
            logger.error(f"open: failed to allocate scratch storage for {path}: {e}")
            return Outcome.failed("open", e)

        try:
            obj = self.client.get_object(self.bucket, key)
        except StoreError as e:
            self.close(handle, path)
            if isinstance(e, ObjectError) and e.not_found:
                logger.info(f"open: {key} does not exist")
                return Outcome.not_found("open", path)
            logger.error(f"open: get_object for {key} failed: {e}")
            return Outcome.failed("open", e)

        try:
            handle.write(obj.body)
            handle.flush()
        except OSError as e:
            self.close(handle, path)
            logger.error(f"open: failed to write {key} to scratch storage: {e}")
            return Outcome.failed("open", e)

        if len(obj.body) != obj.content_length:
            self.close(handle, path)
            message = f"received {len(obj.body)} of {obj.content_length} bytes for {key}"
            logger.error(f"open: incomplete body, {message}")
            return Outcome.failed("open", message=message)

        handle.seek(0)
        logger.debug(f"open: {key} materialized ({len(obj.body)} bytes)")
        time_function("open", start_time)
        return Outcome.success("open", handle)

    def close(self, handle, path: str = "") -> None:
        """
        Close a handle returned by open and remove its named scratch file.

        Args:
            handle: The handle to close
            path (str, optional): Path the handle was opened for, for logging
        """
        trace_op("close", path)
        with self._lock:
            name = self._scratch.pop(handle, None)

        try:
            handle.close()
        except OSError as e:
            logger.warning(f"close: error closing scratch handle for {path}: {e}")

        if name:
            try:
                os.unlink(name)
                logger.debug(f"close: removed scratch file {name}")
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.warning(f"close: failed to remove scratch file {name}: {e}")

    def close_all(self) -> int:
        """
        Close every registered handle and remove its named scratch file.

        Covers handles the caller closed directly or never closed.

        Returns:
            int: Number of scratch files released
        """
        with self._lock:
            handles = list(self._scratch)
        for handle in handles:
            self.close(handle)
        if handles:
            logger.info(f"close_all: released {len(handles)} scratch files")
        return len(handles)
