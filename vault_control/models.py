"""
Vault Control Models — Value objects exchanged with the system backend.

Models accept both the remote wire names (``t``, ``n``, ``keys``...) and the
Python attribute names. They are owned by the caller once returned; nothing
in vault_control caches them.

Security Note:
    ``MasterCredentials`` holds the root token and every key share.
    They are excluded from ``repr()``/``str()`` so they never reach logs.
"""
from enum import Enum
from typing import Any, Optional, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)

from .transport import normalize_path


class BackendKind(str, Enum):
    """Disjoint mount namespaces of the system backend."""

    AUDIT = "audit"
    AUTH = "auth"


class SealState(str, Enum):
    """Position of the secret store in the seal state machine."""

    UNINITIALIZED = "uninitialized"
    SEALED = "sealed"
    UNSEALED = "unsealed"


# ---------------------------------------------------------------------------
# Seal status
# ---------------------------------------------------------------------------

class SealStatus(BaseModel):
    """Seal state reported by the secret store."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    sealed: bool = True
    threshold: int = Field(default=0, ge=0, alias="t")
    shares: int = Field(default=0, ge=0, alias="n")
    progress: int = Field(default=0, ge=0)
    nonce: str = ""
    version: str = ""
    cluster_name: Optional[str] = None
    cluster_id: Optional[str] = None
    initialized: Optional[bool] = None
    type: Optional[str] = None
    migration: bool = False
    recovery_seal: bool = False

    @model_validator(mode="after")
    def validate_progress(self) -> "SealStatus":
        """Progress can never exceed the threshold."""
        if self.threshold and self.progress > self.threshold:
            raise ValueError(
                f"progress {self.progress} exceeds threshold {self.threshold}"
            )
        return self

    @property
    def state(self) -> SealState:
        if self.initialized is False:
            return SealState.UNINITIALIZED
        return SealState.SEALED if self.sealed else SealState.UNSEALED

    @property
    def remaining(self) -> int:
        """Shares still needed to unseal (0 once unsealed)."""
        if not self.sealed:
            return 0
        return max(self.threshold - self.progress, 0)


# ---------------------------------------------------------------------------
# Initialization
# ---------------------------------------------------------------------------

class InitOptions(BaseModel):
    """Parameters of the one-time initialization request."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    secret_shares: int = Field(
        ge=1, validation_alias=AliasChoices("secret_shares", "total_shares"),
    )
    secret_threshold: int = Field(
        ge=1, validation_alias=AliasChoices("secret_threshold", "share_threshold"),
    )
    pgp_keys: Optional[list[str]] = None
    root_token_pgp_key: Optional[str] = None
    stored_shares: Optional[int] = Field(default=None, ge=0)
    recovery_shares: Optional[int] = Field(default=None, ge=0)
    recovery_threshold: Optional[int] = Field(default=None, ge=0)
    recovery_pgp_keys: Optional[list[str]] = None

    @model_validator(mode="after")
    def validate_threshold(self) -> "InitOptions":
        """Ensure the threshold fits in the share set."""
        if self.secret_threshold > self.secret_shares:
            raise ValueError(
                f"secret_threshold {self.secret_threshold} cannot exceed "
                f"secret_shares {self.secret_shares}"
            )
        if self.pgp_keys is not None and len(self.pgp_keys) != self.secret_shares:
            raise ValueError(
                f"pgp_keys must provide one key per share "
                f"({len(self.pgp_keys)} given, {self.secret_shares} shares)"
            )
        return self

    def to_request(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class MasterCredentials(BaseModel):
    """Root token and key shares produced by initialization.

    This is the only time the whole share set is visible together; the
    caller must hand each share to a separate custodian.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    root_token: str = Field(repr=False)
    keys: tuple[str, ...] = Field(default=(), repr=False)
    keys_base64: tuple[str, ...] = Field(default=(), repr=False)
    recovery_keys: tuple[str, ...] = Field(default=(), repr=False)
    recovery_keys_base64: tuple[str, ...] = Field(default=(), repr=False)
    share_threshold: int = Field(ge=1)
    total_shares: int = Field(ge=1)

    @model_validator(mode="after")
    def validate_shares(self) -> "MasterCredentials":
        if self.share_threshold > self.total_shares:
            raise ValueError(
                f"share_threshold {self.share_threshold} cannot exceed "
                f"total_shares {self.total_shares}"
            )
        if self.keys and len(self.keys) != self.total_shares:
            raise ValueError(
                f"expected {self.total_shares} key shares, got {len(self.keys)}"
            )
        return self

    @property
    def key_shares(self) -> tuple[str, ...]:
        return self.keys


# ---------------------------------------------------------------------------
# Backend mounts
# ---------------------------------------------------------------------------

class BackendConfig(BaseModel):
    """Tunable parameters of a mounted backend."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    default_lease_ttl: Optional[Union[int, str]] = None
    max_lease_ttl: Optional[Union[int, str]] = None
    description: Optional[str] = None
    audit_non_hmac_request_keys: Optional[list[str]] = None
    audit_non_hmac_response_keys: Optional[list[str]] = None
    listing_visibility: Optional[str] = None
    passthrough_request_headers: Optional[list[str]] = None
    allowed_response_headers: Optional[list[str]] = None
    token_type: Optional[str] = None
    force_no_cache: Optional[bool] = None

    def to_request(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class BackendMount(BaseModel):
    """A backend registered at a path of its namespace.

    ``path`` may be left unset before mounting; the backend type is used
    as the mount path in that case.
    """

    model_config = ConfigDict(populate_by_name=True)

    kind: BackendKind
    path: Optional[str] = None
    type: str = Field(min_length=1)
    description: str = ""
    local: bool = False
    seal_wrap: bool = False

    @property
    def mount_path(self) -> str:
        """Normalized mount path, defaulting to the backend type."""
        return normalize_path((self.path or "").strip()) or normalize_path(self.type)

    def to_request(self) -> dict[str, Any]:
        """Request body for a mount call (path travels in the URL)."""
        return self.model_dump(
            exclude={"kind", "path", "accessor"}, exclude_none=True,
        )


class AuditBackend(BackendMount):
    """Audit sink mounted under ``sys/audit``."""

    kind: BackendKind = BackendKind.AUDIT
    options: dict[str, Any] = Field(default_factory=dict)


class AuthBackend(BackendMount):
    """Authentication method mounted under ``sys/auth``."""

    kind: BackendKind = BackendKind.AUTH
    config: Optional[BackendConfig] = None
    accessor: Optional[str] = None
    options: Optional[dict[str, Any]] = None


# ---------------------------------------------------------------------------
# Capabilities and audit hashes
# ---------------------------------------------------------------------------

class TokenCapability(BaseModel):
    """Operations a credential holds on a path."""

    model_config = ConfigDict(frozen=True)

    path: str
    capabilities: frozenset[str] = frozenset()

    @property
    def denied(self) -> bool:
        return not self.capabilities or "deny" in self.capabilities

    def allows(self, capability: str) -> bool:
        """Whether ``capability`` is granted; ``deny`` overrides, ``root`` grants all."""
        if "deny" in self.capabilities:
            return False
        return "root" in self.capabilities or capability in self.capabilities


class AuditHash(BaseModel):
    """Keyed digest computed by an audit backend."""

    model_config = ConfigDict(frozen=True)

    hash: str
