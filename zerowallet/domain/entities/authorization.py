"""Login and whitelist entities used by the authorizer."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping

from eth_utils import to_bytes, to_int

from zerowallet.domain.exceptions import InvalidArgumentException


@dataclass(frozen=True)
class GaslessLogin:
    """
    One wallet's current proof-of-address challenge on one gas tank.

    The (gas_tank_id, address) pair is the identity; refreshing replaces
    the nonce and expiry but never the identity.
    """

    gas_tank_id: int
    address: str
    nonce: str
    expires_at: datetime

    def is_live(self, now: datetime) -> bool:
        return self.expires_at > now


@dataclass(frozen=True)
class WhitelistEntry:
    """A contract that transactions through a gas tank may target."""

    gas_tank_id: int
    address: str


def _as_int(value: Any) -> int:
    if isinstance(value, int):
        return value
    if isinstance(value, (bytes, bytearray)):
        return to_int(value)
    return to_int(hexstr=value)


@dataclass(frozen=True)
class SignedChallenge:
    """
    Recoverable ECDSA signature over the personal-message hash of a nonce.

    Wire format: {"messageHash", "r", "s", "v"}.
    """

    message_hash: bytes
    r: int
    s: int
    v: int

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SignedChallenge":
        """
        Parse the wire format.

        Accepts camelCase (messageHash, or transactionHash as sent by older
        clients) and snake_case keys; hex strings or ints for r and s.

        Raises:
            InvalidArgumentException: If a field is missing or malformed
        """
        message_hash = (
            data.get("messageHash")
            or data.get("message_hash")
            or data.get("transactionHash")
        )
        try:
            if message_hash is None:
                raise KeyError("messageHash")
            if not isinstance(message_hash, (bytes, bytearray)):
                message_hash = to_bytes(hexstr=message_hash)
            return cls(
                message_hash=bytes(message_hash),
                r=_as_int(data["r"]),
                s=_as_int(data["s"]),
                v=int(data["v"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidArgumentException(f"Malformed signed nonce: {e}") from e
