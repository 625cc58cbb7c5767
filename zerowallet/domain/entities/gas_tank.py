"""Gas tank entities."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Tuple


@dataclass(frozen=True)
class GasTankDetails:
    """
    Persisted attributes of a gas tank.

    Attributes:
        gas_tank_id: Store-assigned identifier
        project_id: Owning project
        chain_id: Network the tank funds; unique within the project
        provider_url: Upstream RPC endpoint
        api_key: Relayer funding credential, never logged
        funding_key: Relayer funding account reference
        created_at: Creation instant
    """

    gas_tank_id: int
    project_id: str
    chain_id: int
    provider_url: str
    api_key: str = field(repr=False)
    funding_key: int
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class NewGasTank:
    """A gas tank about to be persisted, before the store assigns its id."""

    project_id: str
    chain_id: int
    provider_url: str
    api_key: str = field(repr=False)
    funding_key: int
    whitelist: Tuple[str, ...] = ()
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class GasTankSnapshot:
    """Reporting view of a gas tank with its whitelist and live balance."""

    gas_tank_id: int
    project_id: str
    chain_id: int
    provider_url: str
    funding_key: int
    created_at: datetime
    whitelist: Tuple[str, ...]
    balance: Decimal

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "gas_tank_id": self.gas_tank_id,
            "project_id": self.project_id,
            "chain_id": self.chain_id,
            "provider_url": self.provider_url,
            "funding_key": self.funding_key,
            "created_at": self.created_at.isoformat(),
            "whitelist": list(self.whitelist),
            "balance": str(self.balance),
        }
