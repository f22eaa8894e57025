"""
Vault Control Transport — The request capability every component consumes.

Components only depend on the ``Transport`` protocol:
    ``await transport.request(path, method, body) -> dict``
where ``path`` is a resource path below the API version prefix
(e.g. ``sys/seal-status``). ``HTTPTransport`` is the aiohttp implementation.

Security Note:
    Never log request or response bodies; they carry key shares, tokens
    and root credentials. Only log method, path and status.
"""
import asyncio
import logging
from collections.abc import Mapping
from typing import Any, Optional, Protocol

import aiohttp
import orjson

from .config import ClientConfig
from .exceptions import TransportFailure, VaultRequestError

logger = logging.getLogger("vault_control.transport")

METHODS = frozenset({"GET", "PUT", "POST", "DELETE"})

PATH_SEPARATOR = "/"


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

def normalize_path(path: str) -> str:
    """Strip leading and trailing path separators.

    ``"/approle/"`` and ``"approle"`` address the same resource.
    """
    return path.strip(PATH_SEPARATOR)


def resource_path(*parts: str) -> str:
    """Join path parts into a resource path, normalizing each one."""
    return PATH_SEPARATOR.join(
        normalized for normalized in (normalize_path(p) for p in parts)
        if normalized
    )


def unwrap(payload: Mapping[str, Any]) -> Mapping[str, Any]:
    """Return the ``data`` envelope of a response when present."""
    data = payload.get("data")
    if isinstance(data, Mapping):
        return data
    return payload


# ---------------------------------------------------------------------------
# Transport protocol
# ---------------------------------------------------------------------------

class Transport(Protocol):
    """Request capability consumed by the system backend components."""

    async def request(
        self,
        path: str,
        method: str,
        body: Optional[Mapping[str, Any]] = None,
    ) -> dict:
        """Issue one request and return the decoded response body.

        Raises:
            VaultRequestError: On a non-success status.
            TransportFailure: On network, timeout or serialization failure.
        """
        ...


class HTTPTransport:
    """aiohttp transport bound to a single secret store.

    A session passed in by the caller is borrowed and never closed here;
    otherwise one is created on first use and released by ``close()``.
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.config = config or ClientConfig()
        self._session = session
        self._owns_session = session is None

    def url_for(self, path: str) -> str:
        """Build the absolute URL for a resource path."""
        return f"{self.config.address}/{self.config.api_version}/{normalize_path(path)}"

    def _headers(self, has_body: bool) -> dict[str, str]:
        headers = {"X-Vault-Request": "true"}
        if self.config.token:
            headers["X-Vault-Token"] = self.config.token
        if self.config.namespace:
            headers["X-Vault-Namespace"] = self.config.namespace
        if has_body:
            headers["Content-Type"] = "application/json"
        return headers

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(ssl=self.config.verify_tls)
            self._session = aiohttp.ClientSession(connector=connector)
            self._owns_session = True
        return self._session

    async def request(
        self,
        path: str,
        method: str,
        body: Optional[Mapping[str, Any]] = None,
    ) -> dict:
        """Issue one request against the secret store.

        Args:
            path: Resource path below the API version prefix.
            method: One of GET, PUT, POST, DELETE.
            body: Optional JSON-serializable request body.

        Returns:
            Decoded JSON response, or an empty dict for an empty body.

        Raises:
            ValueError: If the method is not supported.
            VaultRequestError: On a non-success status.
            TransportFailure: On network, timeout or serialization failure.
        """
        method = method.upper()
        if method not in METHODS:
            raise ValueError(f"Unsupported request method: {method}")
        path = normalize_path(path)

        data = None
        if body is not None:
            try:
                data = orjson.dumps(dict(body))
            except TypeError as err:
                raise TransportFailure(
                    "Request body is not serializable",
                    operation=method, path=path, detail=str(err),
                ) from err

        session = self._get_session()
        try:
            async with session.request(
                method,
                self.url_for(path),
                data=data,
                headers=self._headers(data is not None),
                timeout=aiohttp.ClientTimeout(total=self.config.timeout),
            ) as resp:
                status = resp.status
                raw = await resp.read()
        except asyncio.TimeoutError as err:
            raise TransportFailure(
                "Request timed out",
                operation=method, path=path,
                detail=f"timeout={self.config.timeout}s",
            ) from err
        except aiohttp.ClientError as err:
            raise TransportFailure(
                "Request failed",
                operation=method, path=path, detail=str(err),
            ) from err

        logger.debug("%s %s -> %d", method, path, status)

        if status >= 400:
            raise VaultRequestError(
                status, _error_messages(raw), operation=method, path=path,
            )
        if not raw:
            return {}
        try:
            payload = orjson.loads(raw)
        except orjson.JSONDecodeError as err:
            raise TransportFailure(
                "Response is not valid JSON",
                operation=method, path=path, detail=str(err),
            ) from err
        if not isinstance(payload, dict):
            raise TransportFailure(
                "Response is not a JSON object",
                operation=method, path=path,
            )
        return payload

    async def close(self) -> None:
        """Close the owned HTTP session, if any."""
        if self._owns_session and self._session is not None:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "HTTPTransport":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()


def _error_messages(raw: bytes) -> list[str]:
    """Extract the ``errors`` list from an error response body."""
    if not raw:
        return []
    try:
        payload = orjson.loads(raw)
    except orjson.JSONDecodeError:
        return [raw.decode("utf-8", errors="replace").strip()]
    if isinstance(payload, dict):
        errors = payload.get("errors")
        if isinstance(errors, list):
            return [str(e) for e in errors]
    return []
