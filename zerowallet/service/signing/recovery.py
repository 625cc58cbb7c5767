"""
Personal-message hashing and signer recovery.

Clients sign the nonce with the standard wallet `personal_sign` scheme
(EIP-191 version 0x45), so the hash compared here is
keccak256("\\x19Ethereum Signed Message:\\n" + len(nonce) + nonce).
"""

import hmac

from eth_account.messages import defunct_hash_message
from eth_keys import keys
from eth_keys.exceptions import BadSignature, ValidationError

from zerowallet.domain.entities import SignedChallenge


class InvalidSignature(ValueError):
    """Raised when no address can be recovered from a signature."""


def hash_nonce(nonce: str) -> bytes:
    """Return the personal-message hash of a nonce string."""
    return bytes(defunct_hash_message(text=nonce))


def nonce_matches_hash(nonce: str, message_hash: bytes) -> bool:
    """Check that a signed hash is the personal-message hash of the nonce."""
    return hmac.compare_digest(hash_nonce(nonce), bytes(message_hash))


def recovery_id(v: int) -> int:
    """
    Normalise a signature `v` to the 0/1 recovery id.

    Accepts raw ids, the legacy 27/28 form and EIP-155 values (35 and up).

    Raises:
        InvalidSignature: For any other value
    """
    if v in (0, 1):
        return v
    if v in (27, 28):
        return v - 27
    if v >= 35:
        return (v - 35) % 2
    raise InvalidSignature(f"Unsupported signature v value: {v}")


def recover_signer(challenge: SignedChallenge) -> str:
    """
    Recover the checksum address that produced the signature.

    Raises:
        InvalidSignature: If the hash or signature values are malformed
    """
    v = recovery_id(challenge.v)
    try:
        signature = keys.Signature(vrs=(v, challenge.r, challenge.s))
        public_key = signature.recover_public_key_from_msg_hash(
            bytes(challenge.message_hash)
        )
    except (ValueError, BadSignature, ValidationError) as e:
        raise InvalidSignature(str(e)) from e
    return public_key.to_checksum_address()
