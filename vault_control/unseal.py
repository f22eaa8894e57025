"""
Unseal Coordinator — Drives the sealed -> unsealed transition.

The secret store accumulates key shares against a disclosed threshold:
- ``get_seal_status()`` — query the current seal state
- ``submit_share(share, reset_session)`` — submit one share toward the threshold
- ``unseal_with_all_shares(shares)`` — submit shares one by one, in order,
  until the store reports unsealed
- ``seal()`` — drop back to the sealed state

Shares are submitted strictly sequentially: the store tracks the unseal
session by nonce, so share order is part of the protocol.

Security Note:
    Never log key shares. Only log progress counters and the nonce.
"""
import logging
from collections.abc import Sequence

from .exceptions import InvalidShareError, VaultRequestError
from .models import SealStatus
from .transport import Transport, unwrap

logger = logging.getLogger("vault_control.seal")

_SEAL_STATUS_PATH = "sys/seal-status"
_UNSEAL_PATH = "sys/unseal"
_SEAL_PATH = "sys/seal"

# Remote messages for a share that can never be accepted.
_INVALID_SHARE_MESSAGES = (
    "unseal failed",
    "invalid key",
    "must be a valid hex or base64",
    "key length",
)


class UnsealCoordinator:
    """Coordinates threshold unsealing of one secret store.

    Holds no progress of its own: every call re-reads the state reported
    by the store.
    """

    def __init__(self, transport: Transport):
        self._transport = transport

    async def get_seal_status(self) -> SealStatus:
        """Return the current seal status.

        Raises:
            TransportFailure: If the store cannot be reached.
        """
        payload = await self._transport.request(_SEAL_STATUS_PATH, "GET")
        status = SealStatus.model_validate(unwrap(payload))
        logger.debug(
            "Seal status: sealed=%s progress=%d/%d",
            status.sealed, status.progress, status.threshold,
        )
        return status

    async def _unseal(self, body: dict, operation: str) -> SealStatus:
        try:
            payload = await self._transport.request(_UNSEAL_PATH, "PUT", body)
        except VaultRequestError as err:
            if err.status == 400 and err.mentions(*_INVALID_SHARE_MESSAGES):
                logger.warning(
                    "Key share rejected by secret store (HTTP %d)", err.status,
                )
                raise InvalidShareError(
                    "Key share rejected by the secret store",
                    operation=operation,
                    path=_UNSEAL_PATH,
                    detail=err.detail,
                ) from err
            raise
        return SealStatus.model_validate(unwrap(payload))

    async def submit_share(
        self, share: str, reset_session: bool = False,
    ) -> SealStatus:
        """Submit one key share toward the unseal threshold.

        Args:
            share: Key share (hex or base64) held by one custodian.
            reset_session: Discard any partial progress. The store handles a
                reset by clearing progress and returning; the share sent
                along with it is not counted and must be submitted again.

        Returns:
            Seal status after the submission.

        Raises:
            ValueError: If the share is empty.
            InvalidShareError: If the store rejects the share. Resubmitting
                the same share cannot succeed, so it is never retried.
        """
        if not share:
            raise ValueError("Key share cannot be empty")
        status = await self._unseal(
            {"key": share, "reset": reset_session}, "submit_share",
        )
        if status.sealed:
            logger.info(
                "Unseal progress %d/%d (nonce=%s)",
                status.progress, status.threshold, status.nonce,
            )
        else:
            logger.info("Secret store unsealed")
        return status

    async def reset_unseal(self) -> SealStatus:
        """Discard the partial progress of the current unseal session."""
        status = await self._unseal({"reset": True}, "reset_unseal")
        logger.info("Unseal progress reset")
        return status

    async def unseal_with_all_shares(self, shares: Sequence[str]) -> SealStatus:
        """Submit shares in the given order until the store unseals.

        Stops at the first status reporting ``sealed == False``; the
        remaining shares are not submitted. The first failure propagates
        immediately, leaving later shares unsubmitted.

        Args:
            shares: Key shares, in submission order.

        Returns:
            The first unsealed status, or the last status if the shares
            were not enough to reach the threshold.

        Raises:
            ValueError: If no shares are given.
            InvalidShareError: If any share is rejected.
        """
        shares = list(shares)
        if not shares:
            raise ValueError("At least one key share is required")
        status = None
        for index, share in enumerate(shares, start=1):
            status = await self.submit_share(share)
            if not status.sealed:
                logger.info(
                    "Unsealed after %d of %d share(s)", index, len(shares),
                )
                return status
        logger.warning(
            "Secret store still sealed after %d share(s): progress %d/%d",
            len(shares), status.progress, status.threshold,
        )
        return status

    async def seal(self) -> None:
        """Seal the secret store. Sealing a sealed store is a no-op."""
        try:
            await self._transport.request(_SEAL_PATH, "PUT")
        except VaultRequestError as err:
            if err.status == 503 and err.mentions("sealed"):
                logger.debug("Secret store already sealed")
                return
            raise
        logger.info("Secret store sealed")
