# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Mount utilities for the s3fm FUSE adapter.

This module provides functions for unmounting, signal handling and mount
options when a volume is mounted with FUSE.
"""

import os
import sys
import signal
import subprocess
import time
from .. import utils
from ..utils import logger, time_function

def unmount(mountpoint):
    """
    Unmount the filesystem using fusermount (Linux) or umount (macOS).

    Args:
        mountpoint (str): Path where the filesystem is mounted
    """
    logger.info(f"Unmounting filesystem at {mountpoint}")
    start_time = time.time()

    # Normalize mountpoint (remove trailing slash)
    mountpoint = mountpoint.rstrip('/') or '/'
    command = ["umount", mountpoint] if sys.platform == "darwin" else ["fusermount", "-u", mountpoint]
    try:
        cp = subprocess.run(["mountpoint", "-q", mountpoint], check=False)
        if cp.returncode != 0:
            logger.warning(f"{mountpoint} is not mounted, nothing to unmount.")
            time_function("unmount", start_time)
            return

        subprocess.run(command, check=True)
        logger.info(f"Unmounted {mountpoint} gracefully.")
    except (OSError, subprocess.CalledProcessError) as e:
        logger.error(f"Error during unmounting: {e}")
    time_function("unmount", start_time)

def setup_signal_handlers(mountpoint, unmount_func):
    """
    Set up signal handlers for graceful unmounting.

    Args:
        mountpoint (str): Path where the filesystem is mounted
        unmount_func (callable): Function to call for unmounting

    Returns:
        callable: The signal handler function
    """
    def signal_handler(sig, frame):
        logger.info(f"Signal {sig} received, unmounting...")
        unmount_func(mountpoint)
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    return signal_handler

def get_mount_options(foreground=True, allow_other=False):
    """
    Get mount options for FUSE.

    Attribute and entry caching is kept short: the store is the only source
    of truth and other clients may change it at any time.

    Args:
        foreground (bool, optional): Run in foreground. Defaults to True.
        allow_other (bool, optional): Allow other users to access the mount.
            Requires 'user_allow_other' in /etc/fuse.conf. Defaults to False.

    Returns:
        dict: Dictionary of mount options
    """
    options = {
        'foreground': foreground,
        'debug': utils.TRACE_OPERATIONS,
        'default_permissions': True,
        'rw': True,
        'big_writes': True,
        'atomic_o_trunc': True,  # O_TRUNC reaches open() instead of a separate truncate()
        'entry_timeout': 1,
        'attr_timeout': 1,
        'negative_timeout': 0,
        'fsname': 's3fm',
    }

    # Only add allow_other if explicitly requested
    if allow_other:
        options['allow_other'] = True

    return options

def prepare_mountpoint(mountpoint):
    """
    Create the mountpoint directory if needed and check it is usable.

    Args:
        mountpoint (str): Directory to mount on

    Returns:
        bool: True if the mountpoint can be used
    """
    if os.path.exists(mountpoint):
        if not os.path.isdir(mountpoint):
            logger.error(f"Mountpoint path exists but is not a directory: {mountpoint}")
            return False
        if not os.access(mountpoint, os.W_OK):
            logger.error(f"Mountpoint {mountpoint} exists but is not writable")
            return False
        return True

    logger.info(f"Mountpoint {mountpoint} does not exist, creating it...")
    try:
        os.makedirs(mountpoint, mode=0o755)
    except OSError as e:
        logger.error(f"Failed to create mountpoint {mountpoint}: {e}")
        return False
    return True
