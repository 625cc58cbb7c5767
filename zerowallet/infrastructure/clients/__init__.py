"""External API client implementations."""

from .relayer_client import HttpGasTankRelayer, HttpRelayerClient

__all__ = [
    "HttpGasTankRelayer",
    "HttpRelayerClient",
]
