"""
ZeroWallet - Gas Tank Authorization Core

Projects own per-chain gas tanks that fund gasless transactions. End-user
wallets prove ownership of an address through a nonce/signature challenge
before the relayer builds, sends or deploys anything on their behalf.
"""

__version__ = "0.1.0"
