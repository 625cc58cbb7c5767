"""Values exchanged with the external relayer."""

from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass(frozen=True)
class FundingCredentials:
    """Credentials returned when the relayer provisions a funded dapp."""

    api_key: str = field(repr=False)
    funding_key: int


@dataclass(frozen=True)
class WalletStatus:
    """Whether a user's smart contract wallet exists, and its address."""

    exists: bool
    wallet_address: str


@dataclass(frozen=True)
class BuiltTransaction:
    """Unsigned transaction body built by the relayer for a wallet."""

    wallet_address: str
    transaction_body: Dict[str, Any]

    def to_dict(self) -> dict:
        return {
            "scwAddress": self.wallet_address,
            "safeTXBody": self.transaction_body,
        }
