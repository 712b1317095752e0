# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Result types for volume operations.

Probe results describe a single metadata lookup against the store. Outcomes
describe the result of a public volume operation; they are truthy only on
success, and keep "unsupported" distinct from "failed".
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

from ..client.types import HeadObjectOutput


@dataclass(frozen=True)
class Found:
    """The probed key exists."""
    key: str
    meta: HeadObjectOutput


@dataclass(frozen=True)
class NotFound:
    """The store reported the probed key as absent."""
    key: str


@dataclass(frozen=True)
class TransportError:
    """The probe itself failed (network, auth or service error)."""
    key: str
    cause: Exception


ProbeResult = Union[Found, NotFound, TransportError]


class OutcomeKind(Enum):
    OK = "ok"
    FAILED = "failed"
    NOT_FOUND = "not_found"
    UNSUPPORTED = "unsupported"


@dataclass(frozen=True)
class Outcome:
    """
    Tagged result of a volume operation.

    Attributes:
        kind (OutcomeKind): What happened.
        operation (str): Name of the operation that produced the outcome.
        value (Any): The operation's result on success, e.g. the new path or an open stream.
        error (Exception, optional): The store error behind a failure.
        message (str): Human-readable detail for failures.
    """
    kind: OutcomeKind
    operation: str
    value: Any = None
    error: Optional[Exception] = None
    message: str = ""

    def __bool__(self) -> bool:
        return self.kind is OutcomeKind.OK

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.OK

    @property
    def is_unsupported(self) -> bool:
        return self.kind is OutcomeKind.UNSUPPORTED

    @property
    def is_not_found(self) -> bool:
        return self.kind is OutcomeKind.NOT_FOUND

    @classmethod
    def success(cls, operation: str, value: Any = None) -> "Outcome":
        return cls(OutcomeKind.OK, operation, value=value)

    @classmethod
    def failed(cls, operation: str, error: Exception = None, message: str = "") -> "Outcome":
        return cls(OutcomeKind.FAILED, operation, error=error, message=message or str(error or ""))

    @classmethod
    def not_found(cls, operation: str, path: str) -> "Outcome":
        return cls(OutcomeKind.NOT_FOUND, operation, message=f"{path} does not exist")

    @classmethod
    def unsupported(cls, operation: str) -> "Outcome":
        return cls(OutcomeKind.UNSUPPORTED, operation, message=f"{operation} is not supported by this volume")
