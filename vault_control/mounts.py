"""
Mount Registry — Audit sinks and authentication methods of a secret store.

Provides the mount API of the system backend:
- ``list_audit_backends()`` / ``list_auth_backends()`` — backends keyed by path
- ``mount_audit_backend()`` / ``mount_auth_backend()`` — register a backend
- ``unmount_audit_backend()`` / ``unmount_auth_backend()`` — remove a backend
- ``get_auth_backend_config()`` / ``tune_auth_backend_config()`` — tuning
- ``audit_hash()`` — keyed digest computed by a named audit backend

Audit and auth are disjoint namespaces: the same path may be mounted in
both. The store detects conflicts; nothing here serializes callers.

Security Note:
    Never log hash inputs. Only log mount paths and backend types.
"""
import logging
from collections.abc import Mapping
from typing import Any, TypeVar, Union

from .exceptions import (
    MountConflictError,
    NotFoundError,
    UnsupportedOperationError,
    VaultRequestError,
    is_not_found,
)
from .models import (
    AuditBackend,
    AuditHash,
    AuthBackend,
    BackendConfig,
    BackendKind,
    BackendMount,
)
from .transport import Transport, normalize_path, resource_path, unwrap

logger = logging.getLogger("vault_control.mounts")

M = TypeVar("M", bound=BackendMount)

_AUDIT_ROOT = "sys/audit"
_AUTH_ROOT = "sys/auth"
_AUDIT_HASH_ROOT = "sys/audit-hash"

_CONFLICT_MESSAGES = (
    "already in use",
    "existing mount",
    "path is already",
)


def _require_path(path: str) -> str:
    normalized = normalize_path(path.strip())
    if not normalized:
        raise ValueError("Mount path cannot be empty")
    return normalized


class MountRegistry:
    """Registry of audit and auth backend mounts.

    Every call is one request to the store; listings are rebuilt from the
    response each time.
    """

    def __init__(self, transport: Transport):
        self._transport = transport

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    async def _call(
        self,
        operation: str,
        path: str,
        method: str,
        body: Any = None,
        addressed: bool = True,
    ) -> dict:
        """Issue a request, translating registry-state rejections.

        Not-found translation only applies to requests addressing a mount.
        """
        try:
            return await self._transport.request(path, method, body)
        except VaultRequestError as err:
            if addressed and is_not_found(err):
                logger.warning("%s: nothing mounted at %s", operation, path)
                raise NotFoundError(
                    "No backend mounted at path",
                    operation=operation, path=path, detail=err.detail,
                ) from err
            if err.status == 400 and err.mentions(*_CONFLICT_MESSAGES):
                logger.warning("%s: path %s already in use", operation, path)
                raise MountConflictError(
                    "A backend is already mounted at path",
                    operation=operation, path=path, detail=err.detail,
                ) from err
            raise

    @staticmethod
    def _stitch(payload: Mapping[str, Any], model: type[M]) -> dict[str, M]:
        """Build a new path -> backend mapping with each key set as the path.

        The wire format reports backends keyed by path and omits the path
        from the value; the response itself is left untouched.
        """
        return {
            key: model.model_validate({**value, "path": key})
            for key, value in unwrap(payload).items()
            if isinstance(value, Mapping)
        }

    async def _list(self, root: str, model: type[M], operation: str) -> dict[str, M]:
        payload = await self._call(operation, root, "GET", addressed=False)
        backends = self._stitch(payload, model)
        logger.debug("%s: %d backend(s)", operation, len(backends))
        return backends

    async def _mount(self, root: str, backend: M, method: str, operation: str) -> M:
        path = _require_path(backend.mount_path)
        await self._call(
            operation, resource_path(root, path), method, backend.to_request(),
        )
        logger.info(
            "Mounted %s backend type=%s at %s", backend.kind.value, backend.type, path,
        )
        return backend.model_copy(update={"path": path})

    async def _unmount(self, root: str, path: str, kind: BackendKind, operation: str) -> None:
        path = _require_path(path)
        await self._call(operation, resource_path(root, path), "DELETE")
        logger.info("Unmounted %s backend at %s", kind.value, path)

    # ------------------------------------------------------------------
    # Audit backends
    # ------------------------------------------------------------------

    async def list_audit_backends(self) -> dict[str, AuditBackend]:
        """Return the mounted audit backends keyed by mount path."""
        return await self._list(_AUDIT_ROOT, AuditBackend, "list_audit_backends")

    async def mount_audit_backend(self, backend: AuditBackend) -> AuditBackend:
        """Mount an audit backend.

        The mount path defaults to the backend type when unset.

        Returns:
            A copy of ``backend`` with its resolved mount path.

        Raises:
            ValueError: If the resolved mount path is empty.
            MountConflictError: If the path is already occupied.
        """
        return await self._mount(_AUDIT_ROOT, backend, "PUT", "mount_audit_backend")

    async def unmount_audit_backend(self, path: str) -> None:
        """Unmount the audit backend at ``path``.

        Raises:
            ValueError: If the path is empty.
            NotFoundError: If nothing is mounted at ``path``.
        """
        await self._unmount(_AUDIT_ROOT, path, BackendKind.AUDIT, "unmount_audit_backend")

    async def audit_hash(self, mount_path: str, value: str) -> AuditHash:
        """Hash ``value`` with the keyed hash of the named audit backend.

        Raises:
            NotFoundError: If the backend does not exist or cannot hash.
        """
        path = resource_path(_AUDIT_HASH_ROOT, _require_path(mount_path))
        payload = await self._call("audit_hash", path, "POST", {"input": value})
        return AuditHash.model_validate(unwrap(payload))

    async def hash_with_audit_backend(self, value: str) -> AuditHash:
        """Hash without naming an audit backend. Not supported."""
        raise UnsupportedOperationError(
            "Hashing requires an explicit audit backend mount path",
            operation="hash_with_audit_backend",
            path=_AUDIT_HASH_ROOT,
        )

    # ------------------------------------------------------------------
    # Auth backends
    # ------------------------------------------------------------------

    async def list_auth_backends(self) -> dict[str, AuthBackend]:
        """Return the mounted auth backends keyed by mount path."""
        return await self._list(_AUTH_ROOT, AuthBackend, "list_auth_backends")

    async def mount_auth_backend(self, backend: AuthBackend) -> AuthBackend:
        """Enable an auth backend; same path defaulting as audit mounts.

        Raises:
            MountConflictError: If the path is already occupied.
        """
        return await self._mount(_AUTH_ROOT, backend, "POST", "mount_auth_backend")

    async def unmount_auth_backend(self, path: str) -> None:
        """Disable the auth backend at ``path``.

        Raises:
            NotFoundError: If nothing is mounted at ``path``.
        """
        await self._unmount(_AUTH_ROOT, path, BackendKind.AUTH, "unmount_auth_backend")

    async def get_auth_backend_config(self, path: str) -> BackendConfig:
        """Read the tuning parameters of a mounted auth backend.

        Raises:
            NotFoundError: If nothing is mounted at ``path``.
        """
        tune_path = resource_path(_AUTH_ROOT, _require_path(path), "tune")
        payload = await self._call("get_auth_backend_config", tune_path, "GET")
        return BackendConfig.model_validate(unwrap(payload))

    async def tune_auth_backend_config(
        self, path: str, config: Union[BackendConfig, Mapping[str, Any]],
    ) -> None:
        """Update the tuning parameters of a mounted auth backend.

        Raises:
            NotFoundError: If nothing is mounted at ``path``.
        """
        if not isinstance(config, BackendConfig):
            config = BackendConfig.model_validate(config)
        path = _require_path(path)
        await self._call(
            "tune_auth_backend_config",
            resource_path(_AUTH_ROOT, path, "tune"),
            "POST",
            config.to_request(),
        )
        logger.info("Tuned auth backend at %s", path)
