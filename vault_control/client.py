"""
SystemBackend — The four system backend components over one transport.

Usage:
    async with SystemBackend(ClientConfig(address="https://vault:8200")) as backend:
        status = await backend.seal.get_seal_status()
        await backend.mounts.mount_auth_backend(AuthBackend(type="approle"))
"""
from typing import Optional

from .capabilities import CapabilityEvaluator
from .config import ClientConfig
from .initialization import InitializationController
from .mounts import MountRegistry
from .transport import HTTPTransport, Transport
from .unseal import UnsealCoordinator


class SystemBackend:
    """Facade over seal, init, mount and capability operations.

    Each instance is bound to one secret store; instances for different
    clusters share nothing.
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        transport: Optional[Transport] = None,
    ):
        if transport is None:
            transport = HTTPTransport(config)
            self._owns_transport = True
        else:
            self._owns_transport = False
        self.transport = transport
        self.seal = UnsealCoordinator(transport)
        self.init = InitializationController(transport)
        self.mounts = MountRegistry(transport)
        self.capabilities = CapabilityEvaluator(transport)

    async def close(self) -> None:
        """Close the transport if it was created here."""
        if self._owns_transport:
            await self.transport.close()

    async def __aenter__(self) -> "SystemBackend":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
