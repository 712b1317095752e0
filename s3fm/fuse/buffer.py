# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Write staging for the FUSE adapter.

The store only accepts whole objects, so writes through the mount are staged
in a SpooledTemporaryFile per path and saved as one object when the file is
flushed or released.
"""

import tempfile
from threading import RLock

from ..utils import logger

# Spool to disk after 256MB in RAM for write buffers
DEFAULT_SPOOL_MAX_SIZE = 256 * 1024 * 1024

class WriteBuffer:
    """
    Per-path write buffers backed by SpooledTemporaryFile.

    Attributes:
        buffers (dict): Dictionary mapping paths to spooled files
        lock (threading.RLock): Lock for thread-safe operations
    """

    def __init__(self, spool_max_size: int = DEFAULT_SPOOL_MAX_SIZE):
        self.buffers = {}
        self.lock = RLock()
        self.spool_max_size = spool_max_size

    def initialize_buffer(self, key: str, data: bytes = b"") -> None:
        """
        Initialize a buffer for a file.

        An existing buffer for the same key is kept as is, so two handles
        writing the same path share one buffer.

        Args:
            key (str): The key identifying the file
            data (bytes, optional): Initial data for the buffer. Defaults to empty.
        """
        with self.lock:
            if key in self.buffers:
                logger.debug(f"initialize_buffer called for existing key {key}. Keeping it.")
                return
            spooled_file = tempfile.SpooledTemporaryFile(max_size=self.spool_max_size, mode='w+b')
            if data:
                spooled_file.write(data)
                spooled_file.seek(0)
            self.buffers[key] = spooled_file
            logger.debug(f"Initialized buffer for {key} with {len(data)} bytes")

    def write(self, key: str, data: bytes, offset: int) -> int:
        """
        Write data at an offset. Writing past the end fills the gap with zeros.

        Args:
            key (str): The key identifying the file
            data (bytes): Data to write
            offset (int): Offset to write at

        Returns:
            int: Number of bytes written

        Raises:
            KeyError: If no buffer exists for the key
        """
        with self.lock:
            buffer = self.buffers[key]
            buffer.seek(offset)
            return buffer.write(data)

    def read(self, key: str, offset: int = 0, size: int = None) -> bytes:
        """
        Read from a buffer. With size None the whole content is returned.

        Args:
            key (str): The key identifying the file
            offset (int, optional): Starting offset. Defaults to 0.
            size (int, optional): Amount to read. Defaults to None (read all).

        Returns:
            bytes: The requested data, b"" past the end

        Raises:
            KeyError: If no buffer exists for the key
        """
        with self.lock:
            buffer = self.buffers[key]
            buffer.seek(offset)
            return buffer.read() if size is None else buffer.read(size)

    def truncate(self, key: str, length: int) -> None:
        with self.lock:
            buffer = self.buffers[key]
            buffer.truncate(length)
            logger.debug(f"Truncated buffer {key} to {length} bytes")

    def get_size(self, key: str) -> int:
        with self.lock:
            buffer = self.buffers[key]
            buffer.seek(0, 2) # os.SEEK_END
            return buffer.tell()

    def remove(self, key: str) -> None:
        """
        Remove a buffer and close its spooled file.

        Args:
            key (str): The key identifying the file to remove
        """
        with self.lock:
            buffer = self.buffers.pop(key, None)
        if buffer is not None:
            buffer.close()
            logger.debug(f"Removed buffer for {key}")

    def has_buffer(self, key: str) -> bool:
        with self.lock:
            return key in self.buffers

    def clear(self) -> None:
        with self.lock:
            keys = list(self.buffers)
        for key in keys:
            self.remove(key)
