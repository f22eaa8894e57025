"""Vault Control — System backend client for a secret store.

Tracks and transitions the operational state of the store (initialized,
sealed/unsealed), coordinates threshold unsealing, and manages audit and
auth backend mounts and token capabilities.

Security Note (Threat Model):
    Key shares and the root token pass through process memory while an
    operation runs; vault_control never persists or caches them.
"""
from .version import __version__
from .config import ClientConfig
from .exceptions import (
    VaultError,
    TransportFailure,
    VaultRequestError,
    InvalidShareError,
    AlreadyInitializedError,
    InitializedButSealedError,
    MountConflictError,
    NotFoundError,
    UnsupportedOperationError,
)
from .models import (
    AuditBackend,
    AuditHash,
    AuthBackend,
    BackendConfig,
    BackendKind,
    BackendMount,
    InitOptions,
    MasterCredentials,
    SealState,
    SealStatus,
    TokenCapability,
)
from .transport import Transport, HTTPTransport, normalize_path
from .unseal import UnsealCoordinator
from .initialization import InitializationController
from .mounts import MountRegistry
from .capabilities import CapabilityEvaluator
from .client import SystemBackend

__all__ = [
    "__version__",
    "ClientConfig",
    "VaultError",
    "TransportFailure",
    "VaultRequestError",
    "InvalidShareError",
    "AlreadyInitializedError",
    "InitializedButSealedError",
    "MountConflictError",
    "NotFoundError",
    "UnsupportedOperationError",
    "AuditBackend",
    "AuditHash",
    "AuthBackend",
    "BackendConfig",
    "BackendKind",
    "BackendMount",
    "InitOptions",
    "MasterCredentials",
    "SealState",
    "SealStatus",
    "TokenCapability",
    "Transport",
    "HTTPTransport",
    "normalize_path",
    "UnsealCoordinator",
    "InitializationController",
    "MountRegistry",
    "CapabilityEvaluator",
    "SystemBackend",
]
