"""
Domain models and value objects.

Contains fundamental domain entities: Config, MintInfo, Locker, requests,
country codes and typed errors.
"""

from src.core.domain.errors import ErrorCode, LockerError
from src.core.domain.config import (
    DEFAULT_FEE_DENOMINATOR,
    DEFAULT_FEE_NUMERATOR,
    Config,
    ConfigUpdate,
)
from src.core.domain.country import (
    Country,
    CountryBanList,
    normalize_country_code,
)
from src.core.domain.locker import (
    MAX_UNLOCK_DATE,
    Locker,
    LockerState,
    VestingKind,
)
from src.core.domain.mint_info import MintInfo
from src.core.domain.requests import (
    CloseRequest,
    CreateLockerRequest,
    IncrementLockRequest,
    InitConfigRequest,
    InitMintInfoRequest,
    RelockRequest,
    SignedRequest,
    SplitRequest,
    TransferOwnershipRequest,
    UpdateConfigRequest,
    WithdrawRequest,
)

__all__ = [
    # Errors
    "ErrorCode",
    "LockerError",
    # Config
    "DEFAULT_FEE_DENOMINATOR",
    "DEFAULT_FEE_NUMERATOR",
    "Config",
    "ConfigUpdate",
    # Country
    "Country",
    "CountryBanList",
    "normalize_country_code",
    # Locker
    "MAX_UNLOCK_DATE",
    "Locker",
    "LockerState",
    "VestingKind",
    # MintInfo
    "MintInfo",
    # Requests
    "SignedRequest",
    "InitConfigRequest",
    "UpdateConfigRequest",
    "InitMintInfoRequest",
    "CreateLockerRequest",
    "RelockRequest",
    "TransferOwnershipRequest",
    "IncrementLockRequest",
    "WithdrawRequest",
    "SplitRequest",
    "CloseRequest",
]
