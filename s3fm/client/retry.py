# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Retry Module.

This module provides a retry decorator with exponential backoff for object-store
client operations. It retries throttling, server-side and connection failures
with increasing delays between attempts, and converts every botocore failure
into the StoreError hierarchy.

Functions:
    retry: Decorator for retrying functions with exponential backoff.
    convert_client_error: Convert botocore errors to s3fm exceptions.
"""
import time
from functools import wraps
from typing import Type, Callable, Any, Tuple

from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectionError as BotoConnectionError,
    ConnectTimeoutError,
    NoCredentialsError,
    PartialCredentialsError,
    ReadTimeoutError,
)

from ..utils import logger
from .exceptions import StoreError, AuthenticationError, BucketError, ObjectError

NOT_FOUND_CODES = {"NoSuchKey", "404", "NotFound"}

AUTH_ERROR_CODES = {
    "InvalidAccessKeyId",
    "SignatureDoesNotMatch",
    "ExpiredToken",
    "InvalidToken",
}

RETRYABLE_ERROR_CODES = {
    "SlowDown",
    "Throttling",
    "ThrottlingException",
    "RequestTimeout",
    "RequestTimeTooSkewed",
    "InternalError",
    "ServiceUnavailable",
    "503",
    "500",
}

OBJECT_OPERATIONS = {"head_object", "get_object", "put_object", "delete_object", "list_objects_page"}

def _error_details(e: ClientError) -> Tuple[str, int, str]:
    error = e.response.get("Error", {})
    code = str(error.get("Code", ""))
    status = e.response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0) or 0
    message = error.get("Message") or str(e)
    return code, int(status), message

def is_retryable(e: Exception) -> bool:
    """
    Decide whether a botocore failure is worth another attempt.

    Args:
        e (Exception): The failure raised by botocore.

    Returns:
        bool: True for throttling, 5xx and connection-level failures.
    """
    if isinstance(e, ClientError):
        code, status, _ = _error_details(e)
        return code in RETRYABLE_ERROR_CODES or status >= 500
    return isinstance(e, (BotoConnectionError, ConnectTimeoutError, ReadTimeoutError))

def convert_client_error(e: Exception, operation: str = None) -> StoreError:
    """
    Convert botocore errors to appropriate s3fm errors.

    Args:
        e (Exception): The botocore error to convert.
        operation (str, optional): The operation being performed, e.g. "HEAD". Defaults to None.

    Returns:
        StoreError: The converted error.
    """
    if isinstance(e, StoreError):
        return e

    if isinstance(e, (NoCredentialsError, PartialCredentialsError)):
        return AuthenticationError(str(e))

    if isinstance(e, (ConnectTimeoutError, ReadTimeoutError)):
        return StoreError(f"Request timed out: {e}", code="ERR_TIMEOUT")

    if isinstance(e, BotoConnectionError):
        return StoreError(f"Service unavailable: {e}", code="ERR_UNAVAILABLE")

    if not isinstance(e, ClientError):
        return StoreError(str(e))

    code, status, message = _error_details(e)

    if code in AUTH_ERROR_CODES:
        return AuthenticationError(message)

    # Bucket-level errors
    if code == "NoSuchBucket":
        return BucketError("Bucket does not exist", operation="ACCESS")
    if operation == "BUCKET":
        if code in NOT_FOUND_CODES:
            return BucketError("Bucket does not exist", operation="ACCESS")
        if code in {"AccessDenied", "403", "Forbidden"}:
            return BucketError("Access denied to bucket", operation="AUTH")
        return BucketError(message)

    # Service-level errors
    if code in {"SlowDown", "Throttling", "ThrottlingException"}:
        return StoreError("Rate limit exceeded", code="ERR_RATE_LIMIT")
    if code == "RequestTimeout":
        return StoreError("Request timed out", code="ERR_TIMEOUT")
    if status >= 500:
        return StoreError(f"Internal server error: {message}", code="ERR_INTERNAL")

    # Object-level errors
    if code in NOT_FOUND_CODES or status == 404:
        return ObjectError("Object does not exist", operation=operation, not_found=True)
    if code in {"AccessDenied", "403", "Forbidden"}:
        return ObjectError("Access denied to object", operation=operation)
    if code == "EntityTooLarge":
        return ObjectError("Object size exceeds limits", operation=operation)
    if code in {"BadDigest", "InvalidDigest"}:
        return ObjectError("Object checksum mismatch", operation=operation)
    return ObjectError(message, operation=operation)

def retry(
    max_attempts: int = 5,
    initial_backoff: float = 0.1,
    max_backoff: float = 5.0,
    backoff_multiplier: float = 2.0,
    retryable_exceptions: Tuple[Type[Exception], ...] = (ClientError, BotoCoreError)
) -> Callable:
    """
    Decorator for retrying a function with exponential backoff.

    This decorator wraps a function to automatically retry it when specified
    exceptions occur, with an exponential backoff delay between attempts.
    Non-retryable failures are converted and raised immediately.

    Args:
        max_attempts (int): Maximum number of attempts. Defaults to 5.
        initial_backoff (float): Initial backoff time in seconds. Defaults to 0.1.
        max_backoff (float): Maximum backoff time in seconds. Defaults to 5.0.
        backoff_multiplier (float): Multiplier for exponential backoff. Defaults to 2.0.
        retryable_exceptions (Tuple[Type[Exception], ...]): Exceptions that are inspected
            for a retry. Defaults to (ClientError, BotoCoreError).

    Returns:
        Callable: A decorator that wraps the function.
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            """
            Executes the function with retry logic and exponential backoff.

            Returns:
                Any: Result of the function call.

            Raises:
                StoreError: If the failure is not retryable or all attempts fail.
            """
            last_exception = None
            backoff = initial_backoff

            # Extract operation from function name if possible
            operation = None
            if func.__name__ in OBJECT_OPERATIONS:
                operation = func.__name__.split("_")[0].upper()
            elif func.__name__ == "head_bucket":
                operation = "BUCKET"

            for attempt in range(max_attempts):
                try:
                    return func(*args, **kwargs)
                except retryable_exceptions as e:
                    last_exception = e
                    if not is_retryable(e):
                        raise convert_client_error(e, operation) from e

                    if attempt < max_attempts - 1:
                        logger.warning(
                            f"Caught retryable error during {func.__name__}: {e}. "
                            f"Attempt {attempt + 1}/{max_attempts}. Retrying after {backoff:.2f}s..."
                        )
                        time.sleep(backoff)
                        backoff = min(backoff * backoff_multiplier, max_backoff)

            # If we get here, we've exhausted all retries
            logger.error(f"{func.__name__} failed after {max_attempts} attempts: {last_exception}")
            raise convert_client_error(last_exception, operation) from last_exception

        return wrapper
    return decorator
