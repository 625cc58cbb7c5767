"""
Signing primitives for the login challenge.

Modules:
- nonce: random nonce generation
- recovery: personal-message hashing and ECDSA signer recovery
"""

from .nonce import NONCE_ALPHABET, generate_nonce
from .recovery import (
    InvalidSignature,
    hash_nonce,
    nonce_matches_hash,
    recover_signer,
    recovery_id,
)

__all__ = [
    "NONCE_ALPHABET",
    "generate_nonce",
    "InvalidSignature",
    "hash_nonce",
    "nonce_matches_hash",
    "recover_signer",
    "recovery_id",
]
