"""
Vault Control Errors — Failure taxonomy for system backend operations.

Every error carries the operation that failed, the resource path it
addressed and the underlying detail, so callers can decide on recovery.
None of these errors is retried by vault_control itself.

Security Note:
    Error messages never include key shares, tokens or accessors.
"""
from typing import Optional


class VaultError(Exception):
    """Base error for vault_control operations."""

    def __init__(
        self,
        message: str,
        *,
        operation: Optional[str] = None,
        path: Optional[str] = None,
        detail: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.path = path
        self.detail = detail

    def __str__(self) -> str:
        context = []
        if self.operation:
            context.append(f"operation={self.operation}")
        if self.path is not None:
            context.append(f"path={self.path}")
        if self.detail:
            context.append(f"detail={self.detail}")
        if not context:
            return self.message
        return f"{self.message} ({', '.join(context)})"


class TransportFailure(VaultError):
    """Network, timeout or serialization failure reaching the secret store."""


class VaultRequestError(TransportFailure):
    """The secret store answered with a non-success status."""

    def __init__(
        self,
        status: int,
        errors: Optional[list[str]] = None,
        *,
        operation: Optional[str] = None,
        path: Optional[str] = None,
    ):
        self.status = status
        self.errors = list(errors or [])
        super().__init__(
            f"Secret store returned HTTP {status}",
            operation=operation,
            path=path,
            detail="; ".join(self.errors) or None,
        )

    def mentions(self, *fragments: str) -> bool:
        """Return True if any remote error message contains any fragment."""
        text = " ".join(self.errors).lower()
        return any(fragment.lower() in text for fragment in fragments)


class InvalidShareError(VaultError):
    """A key share was rejected by the secret store."""


class AlreadyInitializedError(VaultError):
    """The secret store has already been initialized."""


class MountConflictError(VaultError):
    """A backend is already mounted at the requested path."""


class NotFoundError(VaultError):
    """The addressed mount, backend, token or accessor does not exist."""


class UnsupportedOperationError(VaultError):
    """The target does not provide the requested operation."""


# Remote messages that identify a missing resource on a 400 response.
NOT_FOUND_MESSAGES = (
    "no matching mount",
    "no mount found",
    "no auth backend",
    "no audit backend",
    "unknown audit backend",
    "cannot fetch sysview",
    "does not support hashing",
)


def is_not_found(err: VaultRequestError) -> bool:
    """Whether a request error means the addressed resource is missing."""
    return err.status == 404 or (
        err.status == 400 and err.mentions(*NOT_FOUND_MESSAGES)
    )


class InitializedButSealedError(VaultError):
    """Initialization succeeded but the follow-up unseal did not.

    ``credentials`` holds the one-time root token and key shares; it is
    kept out of the message and ``repr()``.
    """

    def __init__(self, message: str, *, credentials, **context):
        super().__init__(message, **context)
        self.credentials = credentials
