"""Authorizer - nonce logins, signature checks and contract whitelist for one gas tank."""

from datetime import datetime, timedelta, timezone
from typing import Callable

import structlog

from zerowallet.core.config import settings
from zerowallet.core.metrics import record_authorization
from zerowallet.domain.entities import GaslessLogin, SignedChallenge
from zerowallet.domain.exceptions import (
    AlreadyRegisteredException,
    InvalidArgumentException,
    NotRegisteredException,
    NotWhitelistedException,
)
from zerowallet.domain.interfaces import LoginRepository, WhitelistRepository
from zerowallet.service.signing import (
    InvalidSignature,
    generate_nonce,
    nonce_matches_hash,
    recover_signer,
)

logger = structlog.get_logger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Authorizer:
    """
    Decides whether a wallet is currently authenticated on a gas tank.

    Every check reads the store at the moment it runs; nothing about a
    login or a whitelist entry is cached between calls.
    """

    def __init__(
        self,
        gas_tank_id: int,
        logins: LoginRepository,
        whitelist: WhitelistRepository,
        nonce_lifetime: timedelta | None = None,
        nonce_length: int | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._gas_tank_id = gas_tank_id
        self._logins = logins
        self._whitelist = whitelist
        if nonce_lifetime is None:
            nonce_lifetime = timedelta(seconds=settings.nonce_lifetime_seconds)
        if nonce_length is None:
            nonce_length = settings.nonce_length
        if nonce_length <= 0:
            raise InvalidArgumentException("nonce_length must be positive")
        self._nonce_lifetime = nonce_lifetime
        self._nonce_length = nonce_length
        self._clock = clock
        self._log = logger.bind(gas_tank_id=gas_tank_id)

    @property
    def gas_tank_id(self) -> int:
        return self._gas_tank_id

    # =========================================================================
    # Login records
    # =========================================================================

    async def register(self, address: str) -> str:
        """
        Create a login record with a fresh nonce.

        Returns:
            The new nonce

        Raises:
            AlreadyRegisteredException: If the address already has a record
        """
        if await self.is_registered(address):
            raise AlreadyRegisteredException(address)

        login = GaslessLogin(
            gas_tank_id=self._gas_tank_id,
            address=address,
            nonce=generate_nonce(self._nonce_length),
            expires_at=self._clock() + self._nonce_lifetime,
        )
        await self._logins.create(login)

        self._log.info("user_registered", address=address)
        return login.nonce

    async def refresh(self, address: str) -> str:
        """
        Replace the nonce and push the expiry out from now.

        The previous nonce stops authorizing as soon as this returns.

        Raises:
            NotRegisteredException: If the address has no record
        """
        nonce = generate_nonce(self._nonce_length)
        replaced = await self._logins.replace_nonce(
            self._gas_tank_id,
            address,
            nonce,
            self._clock() + self._nonce_lifetime,
        )
        if not replaced:
            raise NotRegisteredException(address)

        self._log.info("nonce_refreshed", address=address)
        return nonce

    async def deregister(self, address: str) -> None:
        """
        Delete the login record.

        Raises:
            NotRegisteredException: If the address has no record
        """
        if not await self._logins.delete(self._gas_tank_id, address):
            raise NotRegisteredException(address)

        self._log.info("user_deregistered", address=address)

    async def is_registered(self, address: str) -> bool:
        """Check whether a login record exists, expired or not."""
        return await self._logins.get(self._gas_tank_id, address) is not None

    async def current_nonce(self, address: str) -> str | None:
        """Return the live nonce, or None when absent or expired."""
        login = await self._logins.get(self._gas_tank_id, address)
        if login is None or not login.is_live(self._clock()):
            return None
        return login.nonce

    async def is_authorized(
        self,
        signed_challenge: SignedChallenge,
        claimed_nonce: str,
        claimed_address: str,
    ) -> bool:
        """
        Check a signed nonce against the address's live login record.

        The checks run in order: a record must exist, the signature must
        recover to the claimed address, the signed hash must be the
        personal-message hash of the claimed nonce, and the claimed nonce
        must be the stored one and unexpired.

        Returns:
            True only when every check passes

        Raises:
            NotRegisteredException: If the address has no record at all
        """
        if not await self.is_registered(claimed_address):
            record_authorization("unregistered")
            raise NotRegisteredException(claimed_address)

        try:
            recovered = recover_signer(signed_challenge)
        except InvalidSignature as e:
            self._log.info(
                "authorization_rejected",
                address=claimed_address,
                reason="unrecoverable_signature",
                error=str(e),
            )
            record_authorization("rejected")
            return False

        if recovered != claimed_address:
            self._log.info(
                "authorization_rejected",
                address=claimed_address,
                reason="signer_mismatch",
            )
            record_authorization("rejected")
            return False

        if not nonce_matches_hash(claimed_nonce, signed_challenge.message_hash):
            self._log.info(
                "authorization_rejected",
                address=claimed_address,
                reason="hash_mismatch",
            )
            record_authorization("rejected")
            return False

        login = await self._logins.get(self._gas_tank_id, recovered)
        if login is None or login.nonce != claimed_nonce:
            self._log.info(
                "authorization_rejected",
                address=claimed_address,
                reason="stale_nonce",
            )
            record_authorization("rejected")
            return False

        if not login.is_live(self._clock()):
            self._log.info(
                "authorization_rejected",
                address=claimed_address,
                reason="expired_nonce",
            )
            record_authorization("rejected")
            return False

        record_authorization("authorized")
        return True

    # =========================================================================
    # Contract whitelist
    # =========================================================================

    async def is_whitelisted(self, contract_address: str) -> bool:
        return await self._whitelist.contains(self._gas_tank_id, contract_address)

    async def add_to_whitelist(self, contract_address: str) -> None:
        """Whitelist a contract; already whitelisted is a no-op."""
        if await self.is_whitelisted(contract_address):
            return
        if await self._whitelist.add(self._gas_tank_id, contract_address):
            self._log.info("contract_whitelisted", contract_address=contract_address)

    async def remove_from_whitelist(self, contract_address: str) -> None:
        """
        Remove a contract from the whitelist.

        Raises:
            NotWhitelistedException: If the contract is not whitelisted
        """
        if not await self._whitelist.remove(self._gas_tank_id, contract_address):
            raise NotWhitelistedException(contract_address)

        self._log.info("contract_unwhitelisted", contract_address=contract_address)

    async def whitelist(self) -> list[str]:
        """Return the whitelisted contract addresses in insertion order."""
        return await self._whitelist.list_addresses(self._gas_tank_id)
