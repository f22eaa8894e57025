"""
Capability Evaluator — What a credential may do on a path.

Capabilities are the union of the policy grants applicable to a token,
evaluated by the store's policy engine. Accessor lookups allow
introspection without ever handling the raw token.

Security Note:
    Never log tokens or accessors. Only log the path being evaluated.
"""
import logging
from collections.abc import Mapping
from typing import Any

from .exceptions import NotFoundError, VaultRequestError, is_not_found
from .models import TokenCapability
from .transport import Transport, normalize_path, unwrap

logger = logging.getLogger("vault_control.capabilities")

_TOKEN_PATH = "sys/capabilities"
_ACCESSOR_PATH = "sys/capabilities-accessor"
_SELF_PATH = "sys/capabilities-self"

_INVALID_CREDENTIAL_MESSAGES = (
    "bad token",
    "invalid token",
    "invalid accessor",
    "token not found",
    "accessor not found",
)


def _collect(payload: Mapping[str, Any], path: str) -> frozenset[str]:
    """Union of the ``capabilities`` list and the per-path entry."""
    data = unwrap(payload)
    granted = set(data.get("capabilities") or ())
    granted.update(data.get(path) or ())
    return frozenset(granted)


class CapabilityEvaluator:
    """Evaluates token capabilities against the store's policies."""

    def __init__(self, transport: Transport):
        self._transport = transport

    async def _evaluate(self, operation: str, endpoint: str, path: str, body: dict) -> TokenCapability:
        path = normalize_path(path)
        try:
            payload = await self._transport.request(
                endpoint, "POST", {"path": path, **body},
            )
        except VaultRequestError as err:
            if is_not_found(err) or (
                err.status in (400, 403) and err.mentions(*_INVALID_CREDENTIAL_MESSAGES)
            ):
                logger.warning("%s: credential not found for path %s", operation, path)
                raise NotFoundError(
                    "Token or accessor is invalid or expired",
                    operation=operation, path=path, detail=err.detail,
                ) from err
            raise
        capability = TokenCapability(path=path, capabilities=_collect(payload, path))
        logger.debug(
            "%s: path=%s capabilities=%s",
            operation, path, sorted(capability.capabilities),
        )
        return capability

    async def get_capabilities_for_token(self, path: str, token: str) -> TokenCapability:
        """Capabilities of ``token`` on ``path``.

        Raises:
            NotFoundError: If the token is invalid or expired.
        """
        return await self._evaluate(
            "get_capabilities_for_token", _TOKEN_PATH, path, {"token": token},
        )

    async def get_capabilities_for_accessor(
        self, path: str, accessor: str,
    ) -> TokenCapability:
        """Capabilities of the token behind ``accessor`` on ``path``.

        Raises:
            NotFoundError: If the accessor is invalid or expired.
        """
        return await self._evaluate(
            "get_capabilities_for_accessor", _ACCESSOR_PATH, path,
            {"accessor": accessor},
        )

    async def get_capabilities_for_self(self, path: str) -> TokenCapability:
        """Capabilities of the transport's own token on ``path``."""
        return await self._evaluate(
            "get_capabilities_for_self", _SELF_PATH, path, {},
        )
