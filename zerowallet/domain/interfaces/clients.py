"""External client interfaces."""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, Dict

from zerowallet.domain.entities import FundingCredentials, WalletStatus


class GasTankRelayer(ABC):
    """
    Relayer session bound to one gas tank's funding credential and chain.

    Every method is a remote call; failures surface as RelayerException.
    """

    @abstractmethod
    async def connect(self) -> None:
        """
        Complete the handshake with the relayer.

        Raises:
            RelayerException: If the relayer cannot be reached or rejects
                the credential
        """
        ...

    @abstractmethod
    async def wallet_status(self, user_address: str) -> WalletStatus:
        """
        Look up the smart contract wallet of an externally owned address.

        A wallet that does not exist is a normal result, not an error.
        """
        ...

    @abstractmethod
    async def deploy_wallet(self, user_address: str) -> str:
        """Deploy (or return the existing) smart contract wallet address."""
        ...

    @abstractmethod
    async def build_transaction(
        self,
        data: str,
        target_contract: str,
        wallet_address: str,
    ) -> Dict[str, Any]:
        """Build the unsigned wallet transaction body for a contract call."""
        ...

    @abstractmethod
    async def send_transaction(
        self,
        transaction_body: Dict[str, Any],
        wallet_address: str,
        signature: str,
    ) -> str:
        """Relay a signed wallet transaction and return its transaction hash."""
        ...


class RelayerClient(ABC):
    """
    Abstract client for the gasless transaction relayer.

    Must be safe for concurrent use by many gas tanks.
    """

    @abstractmethod
    async def provision_funding(self, chain_id: int, name: str) -> FundingCredentials:
        """
        Register a funded dapp with the relayer.

        Args:
            chain_id: Network the dapp is funded on
            name: Deterministic dapp name derived from project and chain

        Returns:
            The funding api key and funding account reference
        """
        ...

    @abstractmethod
    async def fetch_balance(self, api_key: str) -> Decimal:
        """Fetch the effective balance of a funded dapp."""
        ...

    @abstractmethod
    def for_gas_tank(
        self,
        chain_id: int,
        api_key: str,
        provider_url: str,
    ) -> GasTankRelayer:
        """Create a relayer session for one gas tank. No I/O happens here."""
        ...
