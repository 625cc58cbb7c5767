"""Gas tank service - relays gasless transactions behind the authorization gates."""

from dataclasses import replace
from typing import Any, Dict, Optional

import structlog

from zerowallet.application.lifecycle import LifecycleState, Readiness
from zerowallet.application.services.authorizer import Authorizer
from zerowallet.core.metrics import record_gate_rejection, record_handshake
from zerowallet.domain.entities import (
    BuiltTransaction,
    GasTankDetails,
    SignedChallenge,
    WalletStatus,
)
from zerowallet.domain.exceptions import (
    ContractNotWhitelistedException,
    InvalidArgumentException,
    NotRegisteredException,
    RelayerUnavailableException,
    StoreException,
    UnauthorizedException,
    WalletNotDeployedException,
)
from zerowallet.domain.interfaces import GasTankRelayer, RelayerClient, Store

logger = structlog.get_logger(__name__)


class GasTank:
    """
    One project's funded relaying capability on one chain.

    The relayer handshake starts when the gas tank is built. With `eager`
    a failed handshake is raised to whoever awaits `ready()`; without it
    the failure leaves the tank FAULTED, administrative operations keep
    working and relayer calls raise RelayerUnavailableException.

    Relay operations pass three gates in order: the signed nonce must
    authorize the user, the user's wallet must exist, and the target
    contract must be whitelisted. Each gate reads current state.
    """

    def __init__(
        self,
        details: GasTankDetails,
        store: Store,
        relayer_client: RelayerClient,
        eager: bool = True,
        authorizer: Optional[Authorizer] = None,
    ):
        self._details = details
        self._store = store
        self._eager = eager
        self._relayer: GasTankRelayer = relayer_client.for_gas_tank(
            details.chain_id,
            details.api_key,
            details.provider_url,
        )
        self._authorizer = authorizer or Authorizer(
            details.gas_tank_id,
            store.logins,
            store.whitelist,
        )
        self._log = logger.bind(
            gas_tank_id=details.gas_tank_id,
            project_id=details.project_id,
            chain_id=details.chain_id,
        )
        self._readiness = Readiness(
            self._handshake(),
            name=f"gas_tank:{details.gas_tank_id}",
            propagate=eager,
        )

    async def _handshake(self) -> None:
        try:
            await self._relayer.connect()
        except Exception:
            record_handshake(False)
            raise
        record_handshake(True)
        self._log.info("gas_tank_ready")

    # =========================================================================
    # Lifecycle and identity
    # =========================================================================

    async def ready(self) -> LifecycleState:
        """
        Wait for the relayer handshake to settle.

        Raises:
            RelayerException: The handshake failure, in eager mode only
        """
        return await self._readiness.wait()

    @property
    def state(self) -> LifecycleState:
        return self._readiness.state

    @property
    def eager(self) -> bool:
        return self._eager

    @property
    def details(self) -> GasTankDetails:
        return self._details

    @property
    def gas_tank_id(self) -> int:
        return self._details.gas_tank_id

    @property
    def chain_id(self) -> int:
        return self._details.chain_id

    @property
    def authorizer(self) -> Authorizer:
        return self._authorizer

    def info(self) -> Dict[str, Any]:
        """Identifying attributes, without the funding api key."""
        return {
            "gas_tank_id": self._details.gas_tank_id,
            "project_id": self._details.project_id,
            "chain_id": self._details.chain_id,
            "provider_url": self._details.provider_url,
            "funding_key": self._details.funding_key,
            "created_at": self._details.created_at.isoformat(),
            "state": self._readiness.state.value,
        }

    async def _connected(self, operation: str) -> GasTankRelayer:
        state = await self._readiness.wait()
        if state is LifecycleState.FAULTED:
            raise RelayerUnavailableException(operation, f"chain:{self.chain_id}")
        return self._relayer

    # =========================================================================
    # Authorization gates
    # =========================================================================

    async def _check_authorized(
        self,
        user_address: str,
        signed_nonce: SignedChallenge,
        nonce: str,
    ) -> None:
        try:
            authorized = await self._authorizer.is_authorized(
                signed_nonce, nonce, user_address
            )
        except NotRegisteredException:
            authorized = False

        if not authorized:
            record_gate_rejection("authorization")
            self._log.info("gate_rejected", gate="authorization", address=user_address)
            raise UnauthorizedException(user_address)

    async def _check_wallet(self, operation: str, user_address: str) -> str:
        relayer = await self._connected(operation)
        status = await relayer.wallet_status(user_address)
        if not status.exists:
            record_gate_rejection("wallet")
            self._log.info("gate_rejected", gate="wallet", address=user_address)
            raise WalletNotDeployedException(user_address)
        return status.wallet_address

    async def _check_whitelisted(self, contract_address: str) -> None:
        if not await self._authorizer.is_whitelisted(contract_address):
            record_gate_rejection("whitelist")
            self._log.info(
                "gate_rejected",
                gate="whitelist",
                contract_address=contract_address,
            )
            raise ContractNotWhitelistedException(contract_address)

    # =========================================================================
    # Relay operations
    # =========================================================================

    async def build_transaction(
        self,
        populated_tx: str,
        target_contract: str,
        user_address: str,
        signed_nonce: SignedChallenge,
        nonce: str,
    ) -> BuiltTransaction:
        """
        Build an unsigned wallet transaction for a contract call.

        Args:
            populated_tx: Encoded call data
            target_contract: Contract the call is sent to
            user_address: Externally owned address of the user
            signed_nonce: User's signature over the current nonce
            nonce: The nonce the user claims to have signed

        Raises:
            UnauthorizedException: If the signed nonce does not authorize the user
            WalletNotDeployedException: If the user has no wallet yet
            ContractNotWhitelistedException: If the target is not whitelisted
            RelayerException: If the relayer fails
        """
        await self._check_authorized(user_address, signed_nonce, nonce)
        wallet_address = await self._check_wallet("build_transaction", user_address)
        await self._check_whitelisted(target_contract)

        body = await self._relayer.build_transaction(
            populated_tx,
            target_contract,
            wallet_address,
        )
        self._log.info(
            "transaction_built",
            address=user_address,
            target_contract=target_contract,
        )
        return BuiltTransaction(wallet_address=wallet_address, transaction_body=body)

    async def send_gasless_transaction(
        self,
        transaction_body: Dict[str, Any],
        signature: str,
        user_address: str,
        signed_nonce: SignedChallenge,
        nonce: str,
    ) -> str:
        """
        Relay a user-signed wallet transaction.

        Returns:
            The relayed transaction hash

        Raises:
            InvalidArgumentException: If the body has no `to` address
            UnauthorizedException, WalletNotDeployedException,
            ContractNotWhitelistedException: When a gate refuses
        """
        target_contract = transaction_body.get("to")
        if not target_contract:
            raise InvalidArgumentException("transaction body has no 'to' address")

        await self._check_authorized(user_address, signed_nonce, nonce)
        wallet_address = await self._check_wallet("send_transaction", user_address)
        await self._check_whitelisted(target_contract)

        tx_hash = await self._relayer.send_transaction(
            transaction_body,
            wallet_address,
            signature,
        )
        self._log.info(
            "transaction_relayed",
            address=user_address,
            target_contract=target_contract,
            tx_hash=tx_hash,
        )
        return tx_hash

    async def deploy_proxy_wallet(
        self,
        user_address: str,
        signed_nonce: SignedChallenge,
        nonce: str,
    ) -> str:
        """
        Deploy the user's smart contract wallet and whitelist it.

        Only the authorization gate applies here.

        Returns:
            The wallet address
        """
        await self._check_authorized(user_address, signed_nonce, nonce)
        relayer = await self._connected("deploy_wallet")

        wallet_address = await relayer.deploy_wallet(user_address)
        await self._authorizer.add_to_whitelist(wallet_address)

        self._log.info(
            "proxy_wallet_deployed",
            address=user_address,
            wallet_address=wallet_address,
        )
        return wallet_address

    async def wallet_status(self, user_address: str) -> WalletStatus:
        relayer = await self._connected("wallet_status")
        return await relayer.wallet_status(user_address)

    # =========================================================================
    # Administration
    # =========================================================================

    async def add_to_whitelist(self, contract_address: str) -> None:
        await self._authorizer.add_to_whitelist(contract_address)

    async def remove_from_whitelist(self, contract_address: str) -> None:
        await self._authorizer.remove_from_whitelist(contract_address)

    async def register_user(self, address: str) -> str:
        return await self._authorizer.register(address)

    async def refresh_nonce(self, address: str) -> str:
        return await self._authorizer.refresh(address)

    async def deregister_user(self, address: str) -> None:
        await self._authorizer.deregister(address)

    async def current_nonce(self, address: str) -> Optional[str]:
        return await self._authorizer.current_nonce(address)

    async def user_exists(self, address: str) -> bool:
        return await self._authorizer.is_registered(address)

    async def update_provider_url(self, provider_url: str) -> None:
        """
        Point the gas tank at a new upstream RPC endpoint.

        The in-memory details change only after the store accepted the update.

        Raises:
            StoreException: If the update could not be persisted
        """
        if self._eager:
            await self._readiness.wait()

        updated = await self._store.gas_tanks.update_provider_url(
            self.gas_tank_id, provider_url
        )
        if not updated:
            raise StoreException("update_provider_url", f"gas_tank:{self.gas_tank_id}")

        self._details = replace(self._details, provider_url=provider_url)
        self._log.info("provider_url_updated", provider_url=provider_url)
