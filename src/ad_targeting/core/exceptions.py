"""Application-wide exception hierarchy for the ad targeting service.

All custom exceptions subclass ``AdTargetingError``, enabling consistent
error handling and structured logging across the application.

Hierarchy::

    AdTargetingError
    ├── FilterValidationError        (param: str)
    ├── TargetingEncodingError       (value: str)
    └── StorageError
        ├── GraphWriteError          (stage: WriteStage)
        └── AdvertisementReadError

Client-facing errors (``FilterValidationError``, ``TargetingEncodingError``)
are raised before any storage interaction and map to HTTP 400.  Storage
errors map to HTTP 500.  Nothing in this hierarchy is retried.
"""

from __future__ import annotations

from enum import Enum


class AdTargetingError(Exception):
    """Base class for all ad targeting exceptions.

    All application-specific exceptions inherit from this class so that
    callers can catch the entire hierarchy with a single ``except`` clause
    when needed.
    """


# ---------------------------------------------------------------------------
# Client errors
# ---------------------------------------------------------------------------


class FilterValidationError(AdTargetingError):
    """Raised when a list-filter parameter is malformed or out of range.

    Args:
        param: Name of the offending query parameter (e.g. ``"limit"``).
        message: Optional human-readable description.  Defaults to
            ``"invalid <param>"``.
    """

    def __init__(self, param: str, message: str | None = None) -> None:
        super().__init__(message or f"invalid {param}")
        self.param = param


class TargetingEncodingError(AdTargetingError):
    """Raised when a targeting value has no internal encoding.

    Typically an unrecognized platform name.  Callers must treat this as a
    caller error; it is never coerced into a default encoding.

    Args:
        message: Human-readable description of the failure.
        value: The value that could not be encoded.
    """

    def __init__(self, message: str, value: str | None = None) -> None:
        super().__init__(message)
        self.value = value


# ---------------------------------------------------------------------------
# Storage errors
# ---------------------------------------------------------------------------


class WriteStage(str, Enum):
    """Step of the advertisement graph write that was in progress."""

    INSERT_ADVERTISEMENT = "insert advertisement"
    INSERT_CONDITION = "insert condition"
    INSERT_COUNTRY = "insert country"
    COMMIT = "commit"


class StorageError(AdTargetingError):
    """Base class for failures at the storage call boundary."""


class GraphWriteError(StorageError):
    """Raised when persisting an advertisement graph fails.

    The surrounding transaction has been rolled back by the time this is
    raised: none of the advertisement, condition or country rows of the
    failed write are visible.

    Args:
        stage: The :class:`WriteStage` that failed.
        message: Description of the underlying failure.
    """

    def __init__(self, stage: WriteStage, message: str) -> None:
        super().__init__(message)
        self.stage = stage
        self.message = message


class AdvertisementReadError(StorageError):
    """Raised when listing advertisements fails to execute or decode."""
