# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Logging, timing and tracing shared by the client, the volume and the FUSE adapter.

Environment:
    S3FM_LOG_LEVEL: level name for the ``S3FM`` logger (default INFO)
    S3FM_STORE_LOG_LEVEL: level for the boto3, botocore and urllib3 loggers (default WARNING)
    S3FM_TRACE_OPS: log every volume operation at DEBUG when true
"""

import logging
import time
import os

DEFAULT_LOG_LEVEL = 'INFO'
DEFAULT_STORE_LOG_LEVEL = 'WARNING'

# Loggers of the S3 transport; their per-request output drowns the volume's own
STORE_LOGGERS = ('boto3', 'botocore', 's3transfer', 'urllib3')

def resolve_level(name, default=DEFAULT_LOG_LEVEL):
    """
    Turn a level name from the environment into a logging level.

    Unknown or empty names fall back to the default instead of failing at import.

    Args:
        name (str): Level name such as 'debug' or 'WARNING', or None
        default (str): Level name used when ``name`` is not a known level

    Returns:
        int: The logging level
    """
    level = logging.getLevelName((name or '').strip().upper())
    if isinstance(level, int):
        return level
    return logging.getLevelName(default)

def env_flag(name):
    return os.environ.get(name, '').lower() in ('true', '1', 'yes')

# Enable a debug trace for all volume operations if requested
TRACE_OPERATIONS = env_flag('S3FM_TRACE_OPS')

LOG_LEVEL = resolve_level(os.environ.get('S3FM_LOG_LEVEL'))

# Configure logging
logging.basicConfig(
    level=LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - [%(funcName)s] - %(message)s'
)
logger = logging.getLogger('S3FM')
logger.setLevel(LOG_LEVEL)

for _name in STORE_LOGGERS:
    logging.getLogger(_name).setLevel(
        resolve_level(os.environ.get('S3FM_STORE_LOG_LEVEL'), DEFAULT_STORE_LOG_LEVEL))

def set_trace(enabled):
    """
    Switch operation tracing on or off at runtime.

    Tracing logs at DEBUG, so enabling it also lowers the ``S3FM`` logger to DEBUG.

    Args:
        enabled (bool): Whether trace_op should log
    """
    global TRACE_OPERATIONS
    TRACE_OPERATIONS = bool(enabled)
    if TRACE_OPERATIONS:
        logger.setLevel(logging.DEBUG)

def time_function(func_name, start_time):
    """
    Log the elapsed time of a volume or client operation.

    Args:
        func_name (str): Name of the operation being timed
        start_time (float): Start time from time.time()

    Returns:
        float: Elapsed time in seconds
    """
    elapsed = time.time() - start_time
    logger.info(f"{func_name} completed in {elapsed:.4f} seconds")
    return elapsed

def trace_op(operation, path, **details):
    """
    Log an operation, its path and any details when tracing is enabled.

    Args:
        operation (str): The operation being performed
        path (str): The path the operation works on
        **details: Additional details to log
    """
    if TRACE_OPERATIONS:
        detail_str = ', '.join(f"{k}={v}" for k, v in details.items())
        logger.debug(f"TRACE: {operation} on {path} {detail_str}")
