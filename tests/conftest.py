"""
Shared fixtures: an in-memory secret store speaking the system backend protocol.
"""
import base64
import hashlib
import hmac
import secrets
import uuid
from typing import Any, Optional

import pytest

from vault_control.exceptions import VaultRequestError
from vault_control.transport import METHODS


class FakeVault:
    """In-memory transport emulating the system backend of a secret store.

    Every request is recorded in ``requests`` as ``(method, path, body)``.
    ``failures`` maps ``(method, path)`` to an exception raised instead of
    handling the request.
    """

    def __init__(self):
        self.requests: list[tuple[str, str, Optional[dict]]] = []
        self.failures: dict[tuple[str, str], Exception] = {}
        self.initialized = False
        self.sealed = True
        self.threshold = 0
        self.total = 0
        self.keys: list[str] = []
        self.root_token: Optional[str] = None
        self.submitted: set[str] = set()
        self.nonce = ""
        self.audit: dict[str, dict] = {}
        self.auth: dict[str, dict] = {}
        self.tuning: dict[str, dict] = {}
        self.policies: dict[str, dict[str, list[str]]] = {}
        self.accessors: dict[str, str] = {}
        self._salt = secrets.token_bytes(16)

    # ------------------------------------------------------------------
    # Test helpers
    # ------------------------------------------------------------------

    def bootstrap(self, shares: int = 5, threshold: int = 3) -> list[str]:
        """Initialize without going through a request."""
        self._initialize({"secret_shares": shares, "secret_threshold": threshold})
        return list(self.keys)

    def grant(self, token: str, path: str, capabilities: list[str], accessor: Optional[str] = None):
        self.policies.setdefault(token, {})[path] = capabilities
        if accessor:
            self.accessors[accessor] = token

    def paths(self, method: Optional[str] = None) -> list[str]:
        return [p for m, p, _ in self.requests if method is None or m == method]

    @property
    def progress(self) -> int:
        return len(self.submitted)

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def request(self, path: str, method: str, body: Optional[dict] = None) -> dict:
        assert method in METHODS
        self.requests.append((method, path, dict(body) if body is not None else None))
        if (method, path) in self.failures:
            raise self.failures[(method, path)]
        parts = path.split("/")
        assert parts[0] == "sys", path
        handler = getattr(self, f"_{method.lower()}_{parts[1].replace('-', '_')}")
        return handler(parts[2:], body or {})

    @staticmethod
    def _error(status: int, message: str, path: str = "") -> VaultRequestError:
        return VaultRequestError(status, [message], path=path)

    def _status(self) -> dict[str, Any]:
        return {
            "type": "shamir",
            "initialized": self.initialized,
            "sealed": self.sealed,
            "t": self.threshold,
            "n": self.total,
            "progress": len(self.submitted),
            "nonce": self.nonce,
            "version": "1.15.0",
            "cluster_name": "vault-cluster-test" if self.initialized else None,
            "migration": False,
            "recovery_seal": False,
        }

    # sys/init

    def _get_init(self, rest, body):
        return {"initialized": self.initialized}

    def _initialize(self, body):
        self.initialized = True
        self.total = body["secret_shares"]
        self.threshold = body["secret_threshold"]
        self.keys = [secrets.token_hex(32) for _ in range(self.total)]
        self.root_token = f"hvs.{secrets.token_urlsafe(18)}"
        self.sealed = True

    def _put_init(self, rest, body):
        if self.initialized:
            raise self._error(400, "Vault is already initialized", "sys/init")
        self._initialize(body)
        return {
            "keys": list(self.keys),
            "keys_base64": [base64.b64encode(bytes.fromhex(k)).decode() for k in self.keys],
            "root_token": self.root_token,
        }

    # sys/seal-status, sys/unseal, sys/seal

    def _get_seal_status(self, rest, body):
        return self._status()

    def _put_unseal(self, rest, body):
        if not self.initialized:
            raise self._error(400, "Vault is not initialized", "sys/unseal")
        if body.get("reset"):
            self.submitted.clear()
            self.nonce = ""
            return self._status()
        key = body.get("key")
        if key is None or not self.sealed:
            return self._status()
        if key not in self.keys:
            raise self._error(400, "Unseal failed, invalid key", "sys/unseal")
        if not self.nonce:
            self.nonce = str(uuid.uuid4())
        self.submitted.add(key)
        if len(self.submitted) >= self.threshold:
            self.sealed = False
            self.submitted.clear()
            self.nonce = ""
        return self._status()

    def _put_seal(self, rest, body):
        if self.sealed:
            raise self._error(503, "Vault is sealed", "sys/seal")
        self.sealed = True
        return {}

    # sys/audit, sys/audit-hash

    def _get_audit(self, rest, body):
        return {f"{path}/": dict(value) for path, value in self.audit.items()}

    def _put_audit(self, rest, body):
        path = "/".join(rest)
        if path in self.audit:
            raise self._error(400, f"path already in use at {path}/", f"sys/audit/{path}")
        self.audit[path] = dict(body)
        return {}

    def _delete_audit(self, rest, body):
        path = "/".join(rest)
        if path not in self.audit:
            raise self._error(400, "no matching mount", f"sys/audit/{path}")
        del self.audit[path]
        return {}

    def _post_audit_hash(self, rest, body):
        path = "/".join(rest)
        if path not in self.audit:
            raise self._error(400, "unknown audit backend", f"sys/audit-hash/{path}")
        digest = hmac.new(self._salt, body["input"].encode(), hashlib.sha256).hexdigest()
        return {"hash": f"hmac-sha256:{digest}"}

    # sys/auth

    def _get_auth(self, rest, body):
        if rest and rest[-1] == "tune":
            path = "/".join(rest[:-1])
            if path not in self.auth:
                raise self._error(400, f"cannot fetch sysview for path {path!r}")
            return {"data": dict(self.tuning[path])}
        return {
            "data": {f"{path}/": dict(value) for path, value in self.auth.items()}
        }

    def _post_auth(self, rest, body):
        if rest and rest[-1] == "tune":
            path = "/".join(rest[:-1])
            if path not in self.auth:
                raise self._error(400, f"cannot fetch sysview for path {path!r}")
            self.tuning[path].update(body)
            return {}
        path = "/".join(rest)
        if path in self.auth:
            raise self._error(400, f"path is already in use at {path}/")
        self.auth[path] = {**body, "accessor": f"auth_{body['type']}_{secrets.token_hex(4)}"}
        self.tuning[path] = {
            "default_lease_ttl": 2764800,
            "max_lease_ttl": 2764800,
            "token_type": "default-service",
        }
        return {}

    def _delete_auth(self, rest, body):
        path = "/".join(rest)
        if path not in self.auth:
            raise self._error(400, "no matching mount", f"sys/auth/{path}")
        del self.auth[path]
        del self.tuning[path]
        return {}

    # sys/capabilities*

    def _capabilities_for(self, token: Optional[str], path: str) -> dict:
        if token not in self.policies:
            raise self._error(400, "bad token")
        caps = self.policies[token].get(path, ["deny"])
        return {"capabilities": caps, path: caps, "data": {"capabilities": caps, path: caps}}

    def _post_capabilities(self, rest, body):
        return self._capabilities_for(body.get("token"), body["path"])

    def _post_capabilities_accessor(self, rest, body):
        token = self.accessors.get(body.get("accessor"))
        if token is None:
            raise self._error(400, "invalid accessor")
        return self._capabilities_for(token, body["path"])

    def _post_capabilities_self(self, rest, body):
        return self._capabilities_for(self.root_token, body["path"])


@pytest.fixture
def vault():
    """A fresh, uninitialized fake secret store."""
    return FakeVault()


@pytest.fixture
def initialized_vault(vault):
    """A fake secret store initialized with 5 shares and threshold 3."""
    vault.bootstrap(shares=5, threshold=3)
    return vault
