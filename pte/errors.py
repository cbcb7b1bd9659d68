"""Error taxonomy shared by adapters, the retry executor and the engine.

Only ``TransientError`` is retried. Everything else is definitional: it
either rejects a request synchronously (validation, conflict) or ends the
job (auth, quota, not supported, whole-playlist not found).
"""
from __future__ import annotations


class TransferError(Exception):
    """Base class for all transfer failures.

    Attributes:
        phase: Name of the job phase the error was raised in, if known.
    """

    def __init__(self, message: str = "", phase: str | None = None):
        super().__init__(message)
        self.phase = phase

    @property
    def kind(self) -> str:
        return type(self).__name__


class ValidationError(TransferError):
    """Request shape rejected before a job is created."""


class ConflictError(TransferError):
    """A job is already running."""


class AuthError(TransferError):
    """Credential missing, invalid or expired. Never retried."""


class QuotaError(TransferError):
    """Platform-side rate or size limit exceeded."""


class NotFoundError(TransferError):
    """Referenced playlist or track does not exist on the platform."""


class TransientError(TransferError):
    """Network, timeout or 5xx condition that is likely to pass on retry."""


class NotSupportedError(TransferError):
    """Operation is not implemented for the platform."""


def is_transient(exc: BaseException) -> bool:
    return isinstance(exc, TransientError)


def is_fatal(exc: BaseException) -> bool:
    """True for failures that end a job whatever phase they occur in.

    Credential, quota and unsupported-platform errors are infrastructural;
    anything outside the taxonomy is a defect and is fatal too. Transient,
    not-found and other per-request errors are not.
    """
    if not isinstance(exc, TransferError):
        return True
    return isinstance(exc, (AuthError, QuotaError, NotSupportedError))


__all__ = [
    "TransferError",
    "ValidationError",
    "ConflictError",
    "AuthError",
    "QuotaError",
    "NotFoundError",
    "TransientError",
    "NotSupportedError",
    "is_transient",
    "is_fatal",
]
