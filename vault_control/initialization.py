"""
Initialization Controller — First-time setup of a secret store.

The only component allowed to move the store from uninitialized to
initialized. Initialization is one-shot: a second attempt is rejected by
the store and surfaced as ``AlreadyInitializedError``; it is never retried
or ignored, since success would imply regenerated key material.

Security Note:
    The returned ``MasterCredentials`` are the only time the whole share
    set is visible together. Never log them and never persist them here.
"""
import logging
from collections.abc import Mapping
from typing import Any, Union

from .exceptions import (
    AlreadyInitializedError,
    InitializedButSealedError,
    VaultError,
    VaultRequestError,
)
from .models import InitOptions, MasterCredentials, SealStatus
from .transport import Transport, unwrap
from .unseal import UnsealCoordinator

logger = logging.getLogger("vault_control.init")

_INIT_PATH = "sys/init"


class InitializationController:
    """Orchestrates first-time setup of one secret store."""

    def __init__(self, transport: Transport):
        self._transport = transport

    async def get_init_status(self) -> bool:
        """Return whether first-time setup has been completed."""
        payload = await self._transport.request(_INIT_PATH, "GET")
        initialized = bool(unwrap(payload).get("initialized", False))
        logger.debug("Init status: initialized=%s", initialized)
        return initialized

    async def initialize(
        self, options: Union[InitOptions, Mapping[str, Any]],
    ) -> MasterCredentials:
        """Initialize the secret store.

        Args:
            options: Share count, threshold and optional PGP/recovery
                settings. Mappings are validated into ``InitOptions``.

        Returns:
            Root token and the full key share set.

        Raises:
            pydantic.ValidationError: If the options are invalid; no request
                is sent in that case.
            AlreadyInitializedError: If the store was already initialized.
        """
        if not isinstance(options, InitOptions):
            options = InitOptions.model_validate(options)
        try:
            payload = await self._transport.request(
                _INIT_PATH, "PUT", options.to_request(),
            )
        except VaultRequestError as err:
            if err.mentions("already initialized"):
                logger.warning("Initialization rejected: already initialized")
                raise AlreadyInitializedError(
                    "Secret store is already initialized",
                    operation="initialize",
                    path=_INIT_PATH,
                    detail=err.detail,
                ) from err
            raise
        credentials = MasterCredentials.model_validate({
            **unwrap(payload),
            "share_threshold": options.secret_threshold,
            "total_shares": options.secret_shares,
        })
        logger.info(
            "Secret store initialized with %d share(s), threshold %d",
            credentials.total_shares, credentials.share_threshold,
        )
        return credentials

    async def initialize_and_unseal(
        self, options: Union[InitOptions, Mapping[str, Any]],
    ) -> tuple[MasterCredentials, SealStatus]:
        """Initialize the store, then unseal it with the first threshold shares.

        When initialization returns no unseal shares (recovery keys only),
        the store is left as is and its current status is returned.

        Returns:
            The credentials and the status after unsealing.

        Raises:
            AlreadyInitializedError: If the store was already initialized.
            InitializedButSealedError: If unsealing failed after a successful
                initialization; the credentials are on its ``credentials``.
        """
        credentials = await self.initialize(options)
        coordinator = UnsealCoordinator(self._transport)
        try:
            if credentials.keys:
                status = await coordinator.unseal_with_all_shares(
                    credentials.keys[:credentials.share_threshold],
                )
            else:
                logger.info("No unseal shares returned; skipping unseal")
                status = await coordinator.get_seal_status()
        except (VaultError, ValueError) as err:
            logger.warning("Unseal after initialization failed: %s", type(err).__name__)
            raise InitializedButSealedError(
                "Secret store initialized but could not be unsealed",
                credentials=credentials,
                operation="initialize_and_unseal",
                path=getattr(err, "path", None),
                detail=str(err),
            ) from err
        return credentials, status
