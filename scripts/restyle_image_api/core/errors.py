"""Error taxonomy for Restyle Forge."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional


class ErrorKind(str, enum.Enum):
    INVALID_DIMENSIONS = "invalid_dimensions"
    INVALID_RATIO = "invalid_ratio"
    INVALID_SELECTION = "invalid_selection"
    MISSING_INPUT = "missing_input"
    REMOTE = "remote"
    TIMEOUT = "timeout"
    STORAGE_QUOTA = "storage_quota"
    STORAGE = "storage"


class RestyleError(Exception):
    kind: ErrorKind = ErrorKind.REMOTE


class InvalidDimensions(RestyleError, ValueError):
    kind = ErrorKind.INVALID_DIMENSIONS


class InvalidRatio(RestyleError, ValueError):
    kind = ErrorKind.INVALID_RATIO


class InvalidSelection(RestyleError, ValueError):
    """Raised by the parameter resolver for keys or values the mode does not know."""

    kind = ErrorKind.INVALID_SELECTION


class MissingInput(RestyleError):
    kind = ErrorKind.MISSING_INPUT


class RemoteError(RestyleError):
    kind = ErrorKind.REMOTE


class GenerationTimeout(RestyleError):
    kind = ErrorKind.TIMEOUT


class StorageQuotaExceeded(RestyleError):
    kind = ErrorKind.STORAGE_QUOTA


@dataclass(frozen=True)
class RunError:
    """Structured failure attached to a run snapshot."""

    kind: ErrorKind
    message: str

    @classmethod
    def from_exception(cls, exc: BaseException, default: Optional[ErrorKind] = None) -> "RunError":
        if isinstance(exc, RestyleError):
            kind = exc.kind
        else:
            kind = default or ErrorKind.REMOTE
        message = str(exc) or exc.__class__.__name__
        return cls(kind=kind, message=message)
