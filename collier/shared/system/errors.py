"""
Collier Error Taxonomy
======================
Closed set of failure kinds raised across the pipeline.

    NETWORK     transient remote failure (retried at the fetch boundary)
    DECODE      payload does not match the expected binary schema
    VALIDATION  structural precondition on a decoded record failed
    CREDENTIAL  signing key file missing or unreadable
    STORE       local SQLite persistence failure

Callers branch on the exception type (or on ``error.kind``), never on
message text.
"""

from enum import Enum


class ErrorKind(Enum):
    NETWORK = "network"
    DECODE = "decode"
    VALIDATION = "validation"
    CREDENTIAL = "credential"
    STORE = "store"


class CollierError(Exception):
    """Base class for all pipeline errors."""

    kind: ErrorKind = None

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class NetworkError(CollierError):
    kind = ErrorKind.NETWORK

    def __init__(self, message: str = "", status_code: int = None, retryable: bool = True):
        super().__init__(message)
        self.status_code = status_code
        self.retryable = retryable


class DecodeError(CollierError):
    kind = ErrorKind.DECODE


class ValidationError(CollierError):
    kind = ErrorKind.VALIDATION


class CredentialError(CollierError):
    kind = ErrorKind.CREDENTIAL


class StoreError(CollierError):
    kind = ErrorKind.STORE
