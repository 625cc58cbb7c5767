"""Authorization-related domain exceptions."""

from .base import DomainException, NotFoundException


class AlreadyRegisteredException(DomainException):
    """Raised when an address already has a login record on the gas tank."""

    def __init__(self, address: str):
        super().__init__(
            message=f"User already registered: {address}. Refresh the nonce instead.",
            code="ALREADY_REGISTERED",
        )
        self.address = address


class NotRegisteredException(DomainException):
    """Raised when an address has no login record on the gas tank."""

    def __init__(self, address: str):
        super().__init__(
            message=f"User is not registered: {address}",
            code="NOT_REGISTERED",
        )
        self.address = address


class NotWhitelistedException(NotFoundException):
    """Raised when removing a contract that is not whitelisted."""

    def __init__(self, contract_address: str):
        super().__init__(
            message=f"Contract is not in whitelist: {contract_address}",
            code="NOT_WHITELISTED",
        )
        self.contract_address = contract_address


class GateRejectedException(DomainException):
    """
    Base exception for relay requests refused by an authorization gate.

    These are expected business outcomes and must always reach the caller.
    """


class UnauthorizedException(GateRejectedException):
    """Raised when the signed nonce does not authenticate the user."""

    def __init__(self, address: str):
        super().__init__(
            message=f"User is not authorized: {address}",
            code="UNAUTHORIZED",
        )
        self.address = address


class WalletNotDeployedException(GateRejectedException):
    """Raised when the user's smart contract wallet does not exist yet."""

    def __init__(self, address: str):
        super().__init__(
            message=f"Smart contract wallet is not deployed for {address}",
            code="WALLET_NOT_DEPLOYED",
        )
        self.address = address


class ContractNotWhitelistedException(GateRejectedException):
    """Raised when the target contract is not whitelisted on the gas tank."""

    def __init__(self, contract_address: str):
        super().__init__(
            message=f"Target contract is not whitelisted: {contract_address}",
            code="CONTRACT_NOT_WHITELISTED",
        )
        self.contract_address = contract_address
