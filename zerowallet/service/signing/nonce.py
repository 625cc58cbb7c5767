"""Login nonce generation."""

import secrets
import string

from zerowallet.core.config import NONCE_LENGTH

NONCE_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits


def generate_nonce(length: int = NONCE_LENGTH) -> str:
    """
    Generate a login nonce.

    Characters are drawn uniformly from upper and lower case ASCII letters
    and digits with the CSPRNG from `secrets`. At the default length of 100
    this gives roughly 595 bits of entropy.
    """
    if length <= 0:
        raise ValueError("Nonce length must be positive")
    return "".join(secrets.choice(NONCE_ALPHABET) for _ in range(length))
