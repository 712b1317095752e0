# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
FUSE adapter for S3 volumes.

This module mounts an S3Volume as a local filesystem. Every filesystem
operation is translated into a volume operation, so the mount sees exactly
the directory emulation the file-manager core sees: marker objects and
common prefixes are directories, everything else is a file.

Usage:
    # Create a mount point
    mkdir -p /mnt/s3fm

    # Mount the bucket
    python -m s3fm.fuse my-bucket /mnt/s3fm --profile default

    # Now you can work with the files as if they were local
    ls /mnt/s3fm
    cat /mnt/s3fm/docs/a.txt
"""

from fuse import FUSE, FuseOSError, Operations
import argparse
import errno
import itertools
import mimetypes
import os
import stat as stat_mode
import sys
import time
from io import BytesIO
from threading import Lock

from .. import utils
from ..client.exceptions import StoreError
from ..utils import logger, time_function, trace_op
from ..volume.config import DEFAULT_CREDENTIALS_FILE, VolumeOptions
from ..volume.driver import S3Volume
from ..volume.results import OutcomeKind
from .buffer import WriteBuffer
from .mount_utils import unmount, setup_signal_handlers, get_mount_options, prepare_mountpoint

# Content type for flushed files whose name has no known extension
DEFAULT_FILE_CONTENT_TYPE = "application/octet-stream"

OUTCOME_ERRNO = {
    OutcomeKind.NOT_FOUND: errno.ENOENT,
    OutcomeKind.UNSUPPORTED: errno.ENOTSUP,
    OutcomeKind.FAILED: errno.EIO,
}

def outcome_errno(outcome):
    return OUTCOME_ERRNO.get(outcome.kind, errno.EIO)

class VolumeFuse(Operations):
    """
    FUSE operations over an S3Volume.

    Read handles hold the scratch stream returned by open_for_read. Write
    handles share one WriteBuffer entry per path, which is saved as a whole
    object on flush, fsync and release.

    Attributes:
        volume (S3Volume): The mounted volume
        write_buffer (WriteBuffer): Staging area for writes
        handles (dict): Open file handles, fh -> (volume path, read stream or None)
    """

    def __init__(self, volume):
        """
        Initialize the filesystem over a volume.

        Args:
            volume (S3Volume): The volume to expose
        """
        logger.info(f"Initializing VolumeFuse over bucket {volume.bucket}, root {volume.root}")
        self.volume = volume
        self.write_buffer = WriteBuffer()
        self.handles = {}
        self.lock = Lock()
        self._next_fh = itertools.count(1)
        self._mount_time = time.time()

    def _volume_path(self, path):
        """Convert a path inside the mount into an absolute volume path."""
        return self.volume.paths.abspath(path)

    def _raise(self, operation, path, outcome):
        code = outcome_errno(outcome)
        logger.error(f"{operation}: {path} failed ({outcome.kind.value}): {outcome.error or outcome.message}")
        raise FuseOSError(code)

    # --- Attributes and directories ---

    def _base_stat(self, ts):
        return {
            'st_uid': os.getuid(),
            'st_gid': os.getgid(),
            'st_atime': ts,
            'st_mtime': ts,
            'st_ctime': ts,
            'st_blksize': 4096,
            'st_rdev': 0,
        }

    def _dir_stat(self, ts):
        return {**self._base_stat(ts), 'st_mode': stat_mode.S_IFDIR | 0o755, 'st_nlink': 2, 'st_size': 0}

    def getattr(self, path, fh=None):
        """
        Get file attributes.

        Files with an open write buffer report the buffer's size. A path that
        has no object and no marker but has keys under its prefix is reported
        as a directory.

        Args:
            path (str): Path inside the mount
            fh (int, optional): File handle

        Returns:
            dict: File attributes

        Raises:
            FuseOSError: ENOENT if the path does not exist
        """
        trace_op("getattr", path, fh=fh)
        start_time = time.time()
        vpath = self._volume_path(path)

        if self.write_buffer.has_buffer(vpath):
            size = self.write_buffer.get_size(vpath)
            time_function("getattr", start_time)
            return {**self._base_stat(time.time()), 'st_mode': stat_mode.S_IFREG | 0o644,
                    'st_nlink': 1, 'st_size': size, 'st_blocks': (size + 511) // 512}

        record = self.volume.stat(vpath)
        if record is None:
            if self.volume.is_implied_directory(vpath):
                logger.debug(f"getattr: {path} is an implied directory")
                time_function("getattr", start_time)
                return self._dir_stat(self._mount_time)
            logger.debug(f"getattr: {path} not found")
            time_function("getattr", start_time)
            raise FuseOSError(errno.ENOENT)

        time_function("getattr", start_time)
        if record.is_directory:
            return self._dir_stat(record.ts)

        mode = stat_mode.S_IFREG | (0o644 if record.write else 0o444)
        return {**self._base_stat(record.ts), 'st_mode': mode, 'st_nlink': 1,
                'st_size': record.size, 'st_blocks': (record.size + 511) // 512}

    def readdir(self, path, fh):
        """
        List directory contents.

        Args:
            path (str): Path to the directory
            fh (int): File handle

        Returns:
            list: '.', '..' and the names of the direct children
        """
        trace_op("readdir", path, fh=fh)
        start_time = time.time()
        vpath = self._volume_path(path)
        entries = ['.', '..'] + [self.volume.basename(child) for child in self.volume.list(vpath)]
        logger.debug(f"readdir: {len(entries) - 2} entries in {path}")
        time_function("readdir", start_time)
        return entries

    def mkdir(self, path, mode):
        """
        Create a directory marker.

        Raises:
            FuseOSError: EEXIST if the path exists, EIO if the store write fails
        """
        trace_op("mkdir", path, mode=mode)
        vpath = self._volume_path(path)
        if self.volume.exists(vpath):
            raise FuseOSError(errno.EEXIST)
        outcome = self.volume.create_directory(self.volume.dirname(vpath), self.volume.basename(vpath))
        if not outcome:
            self._raise("mkdir", path, outcome)
        return 0

    def rmdir(self, path):
        """
        Remove an empty directory.

        Raises:
            FuseOSError: ENOENT if missing, ENOTDIR for files, ENOTEMPTY if it has children
        """
        trace_op("rmdir", path)
        vpath = self._volume_path(path)
        record = self.volume.stat(vpath)
        if record is None and not self.volume.is_implied_directory(vpath):
            raise FuseOSError(errno.ENOENT)
        if record is not None and not record.is_directory:
            raise FuseOSError(errno.ENOTDIR)
        if self.volume.list(vpath):
            logger.info(f"rmdir: {path} is not empty")
            raise FuseOSError(errno.ENOTEMPTY)

        outcome = self.volume.rmdir(vpath)
        if not outcome:
            self._raise("rmdir", path, outcome)
        return 0

    def unlink(self, path):
        """
        Delete a file.

        Raises:
            FuseOSError: ENOENT if missing, EISDIR for directories, EIO on store failure
        """
        trace_op("unlink", path)
        vpath = self._volume_path(path)
        record = self.volume.stat(vpath)
        if record is None:
            raise FuseOSError(errno.ENOENT)
        if record.is_directory:
            raise FuseOSError(errno.EISDIR)

        outcome = self.volume.unlink(vpath)
        if not outcome:
            self._raise("unlink", path, outcome)
        self.write_buffer.remove(vpath)
        return 0

    # --- File handles ---

    def _register(self, vpath, stream=None):
        fh = next(self._next_fh)
        with self.lock:
            self.handles[fh] = (vpath, stream)
        return fh

    def _load_buffer(self, vpath):
        """Stage the current content of a file in the write buffer."""
        if self.write_buffer.has_buffer(vpath):
            return
        outcome = self.volume.open_for_read(vpath)
        if outcome.is_not_found:
            self.write_buffer.initialize_buffer(vpath)
            return
        if not outcome:
            self._raise("open", vpath, outcome)
        try:
            data = outcome.value.read()
        finally:
            self.volume.close(outcome.value, vpath)
        self.write_buffer.initialize_buffer(vpath, data)

    def open(self, path, flags):
        """
        Open a file.

        Read-only opens fetch the whole object into scratch storage. Opens
        for writing stage the current content in a write buffer, or start
        from an empty buffer with O_TRUNC.

        Args:
            path (str): Path to the file
            flags (int): Open flags (O_RDONLY, O_WRONLY, etc.)

        Returns:
            int: File handle
        """
        trace_op("open", path, flags=flags)
        start_time = time.time()
        vpath = self._volume_path(path)

        if (flags & os.O_ACCMODE) == os.O_RDONLY and not self.write_buffer.has_buffer(vpath):
            outcome = self.volume.open_for_read(vpath)
            if not outcome:
                time_function("open", start_time)
                self._raise("open", path, outcome)
            fh = self._register(vpath, outcome.value)
        else:
            if flags & os.O_TRUNC:
                self.write_buffer.remove(vpath)
                self.write_buffer.initialize_buffer(vpath)
            else:
                self._load_buffer(vpath)
            fh = self._register(vpath)

        time_function("open", start_time)
        return fh

    def create(self, path, mode, fi=None):
        """
        Create an empty file and open it for writing.

        The empty object is stored right away so the file is visible to
        other clients before the first flush.

        Returns:
            int: File handle
        """
        trace_op("create", path, mode=mode)
        vpath = self._volume_path(path)
        self.write_buffer.remove(vpath)
        self.write_buffer.initialize_buffer(vpath)
        try:
            self._flush_buffer(vpath)
        except FuseOSError:
            self.write_buffer.remove(vpath)
            raise
        return self._register(vpath)

    def read(self, path, size, offset, fh):
        """
        Read from a file.

        Args:
            path (str): Path to the file
            size (int): Number of bytes to read
            offset (int): Offset to start reading from
            fh (int): File handle

        Returns:
            bytes: The data read
        """
        trace_op("read", path, size=size, offset=offset, fh=fh)
        vpath = self._volume_path(path)
        if self.write_buffer.has_buffer(vpath):
            return self.write_buffer.read(vpath, offset, size)

        with self.lock:
            entry = self.handles.get(fh)
            if entry is None or entry[1] is None:
                logger.error(f"read: no read stream for {path} (fh={fh})")
                raise FuseOSError(errno.EBADF)
            stream = entry[1]
            stream.seek(offset)
            return stream.read(size)

    def write(self, path, data, offset, fh):
        """
        Write to the file's buffer. Nothing reaches the store before flush.

        Returns:
            int: Number of bytes written
        """
        trace_op("write", path, offset=offset, size=len(data), fh=fh)
        vpath = self._volume_path(path)
        self._load_buffer(vpath)
        return self.write_buffer.write(vpath, data, offset)

    def truncate(self, path, length, fh=None):
        """
        Truncate a file.

        Truncating to zero stores an empty object. Any other length needs an
        open write buffer, since the store offers no partial updates.

        Raises:
            FuseOSError: ENOTSUP for a non-zero length without a write buffer
        """
        trace_op("truncate", path, length=length, fh=fh)
        vpath = self._volume_path(path)

        if self.write_buffer.has_buffer(vpath):
            size = self.write_buffer.get_size(vpath)
            if length < size:
                self.write_buffer.truncate(vpath, length)
            elif length > size:
                self.write_buffer.write(vpath, b"\0" * (length - size), size)
            return 0

        if length != 0:
            logger.info(f"truncate: partial truncation of {path} to {length} bytes is not supported")
            raise FuseOSError(errno.ENOTSUP)

        outcome = self._save(vpath, b"")
        if not outcome:
            self._raise("truncate", path, outcome)
        return 0

    def _save(self, vpath, data):
        mime = mimetypes.guess_type(self.volume.basename(vpath))[0] or DEFAULT_FILE_CONTENT_TYPE
        return self.volume.save(BytesIO(data), self.volume.dirname(vpath), self.volume.basename(vpath), mime)

    def _flush_buffer(self, vpath):
        """
        Save the whole write buffer of a file as one object.

        Raises:
            FuseOSError: EIO if the save fails
        """
        trace_op("_flush_buffer", vpath)
        if not self.write_buffer.has_buffer(vpath):
            logger.debug(f"No active write buffer to flush for {vpath}")
            return
        start_time = time.time()
        data = self.write_buffer.read(vpath)
        outcome = self._save(vpath, data)
        time_function("_flush_buffer", start_time)
        if not outcome:
            self._raise("flush", vpath, outcome)
        logger.info(f"Flushed {len(data)} bytes to {vpath}")

    def flush(self, path, fh):
        trace_op("flush", path, fh=fh)
        self._flush_buffer(self._volume_path(path))
        return 0

    def fsync(self, path, datasync, fh):
        trace_op("fsync", path, datasync=datasync, fh=fh)
        self._flush_buffer(self._volume_path(path))
        return 0

    def release(self, path, fh):
        """
        Release a file handle.

        Read streams are closed. For write handles the buffer is saved, and
        dropped once no other handle writes the same path.

        Returns:
            int: 0
        """
        trace_op("release", path, fh=fh)
        with self.lock:
            vpath, stream = self.handles.pop(fh, (self._volume_path(path), None))
            writers = any(p == vpath and s is None for p, s in self.handles.values())

        if stream is not None:
            self.volume.close(stream, vpath)
            return 0

        try:
            self._flush_buffer(vpath)
        finally:
            if not writers:
                self.write_buffer.remove(vpath)
        return 0

    # --- Unsupported and no-op operations ---

    def rename(self, old, new):
        trace_op("rename", old, new=new)
        logger.info(f"rename: {old} -> {new} is not supported")
        raise FuseOSError(errno.ENOTSUP)

    def symlink(self, target, source):
        trace_op("symlink", target, source=source)
        raise FuseOSError(errno.ENOTSUP)

    def link(self, target, source):
        trace_op("link", target, source=source)
        raise FuseOSError(errno.ENOTSUP)

    def chmod(self, path, mode):
        # Object storage has no POSIX modes
        trace_op("chmod", path, mode=mode)
        return 0

    def chown(self, path, uid, gid):
        trace_op("chown", path, uid=uid, gid=gid)
        return 0

    def statfs(self, path):
        """Report fixed filesystem statistics; the store has no capacity limit."""
        block_size = 4096
        total_blocks = 1250000000                # ~5TB
        free_blocks = 1125000000
        return {
            'f_bsize': block_size,
            'f_frsize': block_size,
            'f_blocks': total_blocks,
            'f_bfree': free_blocks,
            'f_bavail': free_blocks,
            'f_files': 10000000,
            'f_ffree': 9000000,
            'f_favail': 9000000,
            'f_namemax': 255,
        }

    def destroy(self, path):
        """Close open read streams, drop write buffers and close the client on unmount."""
        logger.info("Filesystem unmounted, releasing resources")
        with self.lock:
            streams = [(vpath, s) for vpath, s in self.handles.values() if s is not None]
            self.handles.clear()
        for vpath, stream in streams:
            self.volume.close(stream, vpath)
        self.volume.close_all()
        self.write_buffer.clear()
        close = getattr(self.volume.client, "close", None)
        if close is not None:
            close()


def mount(volume, mountpoint, foreground=True, allow_other=False):
    """
    Mount a volume.

    Args:
        volume (S3Volume): Volume to mount
        mountpoint (str): Local directory to mount on
        foreground (bool, optional): Run in foreground. Defaults to True.
        allow_other (bool, optional): Allow other users to access the mount. Defaults to False.
    """
    logger.info(f"Mounting bucket {volume.bucket} at {mountpoint}")
    start_time = time.time()

    options = get_mount_options(foreground, allow_other)
    setup_signal_handlers(mountpoint, unmount)

    time_function("mount setup", start_time)
    try:
        FUSE(VolumeFuse(volume), mountpoint, **options)
    except RuntimeError as e:
        # fusepy raises RuntimeError when the mount itself fails
        logger.error(f"Error during mount: {e}")
        unmount(mountpoint)
        raise


def load_options(args):
    """
    Build volume options from command-line arguments.

    The profile file is used when it exists or a profile was named;
    otherwise options come from S3FM_* environment variables. Explicit
    arguments override both.
    """
    if args.profile or args.credentials or os.path.exists(os.path.expanduser(DEFAULT_CREDENTIALS_FILE)):
        options = VolumeOptions.from_profile(args.profile, args.credentials)
    else:
        options = VolumeOptions.from_env()
    return options.with_overrides(bucket=args.bucket, path=args.root, endpoint=args.endpoint, region=args.region)


def main():
    """
    CLI entry point for mounting a bucket.

    Usage: python -m s3fm.fuse <bucket> <mountpoint> [--profile P] [--root PATH] [--trace]
    """
    parser = argparse.ArgumentParser(description="Mount an S3 bucket as a local filesystem")
    parser.add_argument("bucket", help="Bucket to mount")
    parser.add_argument("mountpoint", help="Local directory to mount on")
    parser.add_argument("--profile", help="Profile in the credentials file")
    parser.add_argument("--credentials", help="Credentials file (default ~/.s3fm/credentials.yaml)")
    parser.add_argument("--root", help="Root path within the bucket")
    parser.add_argument("--endpoint", help="Endpoint URL of an S3-compatible store")
    parser.add_argument("--region", help="Region name")
    parser.add_argument("--allow-other", action="store_true", help="Allow other users to access the mount")
    parser.add_argument("--trace", action="store_true", help="Log every filesystem operation")
    args = parser.parse_args()

    if args.trace:
        utils.set_trace(True)

    if not prepare_mountpoint(args.mountpoint):
        sys.exit(1)

    try:
        volume = S3Volume.connect(load_options(args))
    except StoreError as e:
        logger.error(f"Cannot mount {args.bucket}: {e}")
        sys.exit(1)

    try:
        mount(volume, args.mountpoint, allow_other=args.allow_other)
    except RuntimeError:
        sys.exit(1)


if __name__ == "__main__":
    main()
