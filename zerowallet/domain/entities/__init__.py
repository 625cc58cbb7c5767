"""Domain Entities - Core business objects."""

from .project import ProjectDetails
from .gas_tank import GasTankDetails, GasTankSnapshot, NewGasTank
from .authorization import GaslessLogin, SignedChallenge, WhitelistEntry
from .relayer import BuiltTransaction, FundingCredentials, WalletStatus

__all__ = [
    "ProjectDetails",
    "GasTankDetails",
    "GasTankSnapshot",
    "NewGasTank",
    "GaslessLogin",
    "SignedChallenge",
    "WhitelistEntry",
    "BuiltTransaction",
    "FundingCredentials",
    "WalletStatus",
]
