"""
Vault Control Configuration — Validated client settings.

A ``ClientConfig`` is passed explicitly to the transport that every
component is built on; nothing in vault_control reads global state on its
own. ``ClientConfig.from_env()`` is an opt-in helper for the conventional
environment variables:
    VAULT_ADDR = <base URL, e.g. https://vault.example.com:8200>
    VAULT_TOKEN = <client token>
    VAULT_NAMESPACE = <namespace>
    VAULT_CLIENT_TIMEOUT = <seconds>
    VAULT_SKIP_VERIFY = <true|false>

Security Note:
    Never log the token. Only log the address and namespace.
"""
import os
import logging
from typing import Optional

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger("vault_control.config")

DEFAULT_ADDRESS = "http://127.0.0.1:8200"

_TRUE_VALUES = ("1", "true", "yes", "on")


class ClientConfig(BaseModel):
    """Validated client configuration."""

    address: str = Field(default=DEFAULT_ADDRESS)
    token: Optional[str] = Field(default=None, repr=False)
    namespace: Optional[str] = None
    api_version: str = Field(default="v1")
    timeout: float = Field(default=30.0, gt=0)
    verify_tls: bool = True

    @field_validator("address")
    @classmethod
    def validate_address(cls, v: str) -> str:
        """Require an http(s) URL and drop the trailing separator."""
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Unsupported secret store address: {v}")
        return v.rstrip("/")

    @field_validator("api_version")
    @classmethod
    def validate_api_version(cls, v: str) -> str:
        """Normalize the version prefix (``/v1/`` -> ``v1``)."""
        v = v.strip("/")
        if not v:
            raise ValueError("api_version cannot be empty")
        return v

    @field_validator("namespace")
    @classmethod
    def validate_namespace(cls, v: Optional[str]) -> Optional[str]:
        """Treat an empty namespace as unset."""
        if v is not None:
            v = v.strip("/")
        return v or None

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Create ClientConfig from the conventional environment variables.

        Returns:
            Populated ClientConfig instance.
        """
        kwargs = {
            "address": os.environ.get("VAULT_ADDR", DEFAULT_ADDRESS),
            "token": os.environ.get("VAULT_TOKEN"),
            "namespace": os.environ.get("VAULT_NAMESPACE"),
        }
        timeout = os.environ.get("VAULT_CLIENT_TIMEOUT")
        if timeout:
            kwargs["timeout"] = float(timeout)
        skip_verify = os.environ.get("VAULT_SKIP_VERIFY", "")
        kwargs["verify_tls"] = skip_verify.lower() not in _TRUE_VALUES
        config = cls(**kwargs)
        logger.debug(
            "Loaded client config from environment: address=%s namespace=%s",
            config.address, config.namespace,
        )
        return config
