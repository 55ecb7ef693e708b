"""
Requests — модели запросов операций

Каждая операция принимает immutable запрос. signers — множество
идентификаторов, подписавших запрос (предикат авторизации:
identity in signers). Проверка подписей — внешняя ответственность.
"""

from pydantic import BaseModel, Field, field_validator

from src.core.domain.config import (
    DEFAULT_FEE_DENOMINATOR,
    DEFAULT_FEE_NUMERATOR,
    ConfigUpdate,
)
from src.core.math.fixed_point import U64_MAX


class SignedRequest(BaseModel):
    """Базовый запрос с набором подписантов."""

    signers: frozenset[str] = Field(default_factory=frozenset)

    model_config = {"frozen": True}

    def is_signed_by(self, identity: str) -> bool:
        return identity in self.signers


# =============================================================================
# CONFIG
# =============================================================================


class InitConfigRequest(SignedRequest):
    admin: str = Field(..., min_length=1)
    flat_fee_amount: int = Field(..., ge=0, le=U64_MAX)
    proportional_fee_numerator: int = Field(DEFAULT_FEE_NUMERATOR, ge=0, le=U64_MAX)
    proportional_fee_denominator: int = Field(DEFAULT_FEE_DENOMINATOR, ge=0, le=U64_MAX)
    mint_info_permissioned: bool = False
    linear_emission_enabled: bool = True
    fee_destination: str = Field(..., min_length=1)
    country_list_ref: str | None = None


class UpdateConfigRequest(SignedRequest):
    update: ConfigUpdate


class InitMintInfoRequest(SignedRequest):
    payer: str = Field(..., min_length=1)
    asset: str = Field(..., min_length=1)


# =============================================================================
# LOCKER
# =============================================================================


class CreateLockerRequest(SignedRequest):
    """
    Создание locker'а.

    fee_in_native=True — фиксированная комиссия в native активе с fee_payer,
    иначе пропорциональная комиссия из funding_wallet.
    """

    creator: str = Field(..., min_length=1)
    owner: str = Field(..., min_length=1)
    funding_wallet: str = Field(..., min_length=1)
    funding_wallet_authority: str = Field(..., min_length=1)
    fee_wallet: str = Field(..., min_length=1)
    amount: int = Field(..., ge=0, le=U64_MAX)
    unlock_date: int
    country_code: str
    start_emission: int | None = None
    fee_in_native: bool = False
    fee_payer: str | None = None

    @field_validator("fee_payer")
    @classmethod
    def validate_fee_payer(cls, v: str | None) -> str | None:
        if v is not None and not v:
            raise ValueError("fee_payer must be non-empty when given")
        return v


class RelockRequest(SignedRequest):
    locker: str = Field(..., min_length=1)
    unlock_date: int


class TransferOwnershipRequest(SignedRequest):
    locker: str = Field(..., min_length=1)
    new_owner: str = Field(..., min_length=1)


class IncrementLockRequest(SignedRequest):
    locker: str = Field(..., min_length=1)
    funding_wallet: str = Field(..., min_length=1)
    funding_wallet_authority: str = Field(..., min_length=1)
    fee_wallet: str = Field(..., min_length=1)
    amount: int = Field(..., ge=0, le=U64_MAX)
    fee_in_native: bool = False
    fee_payer: str | None = None


class WithdrawRequest(SignedRequest):
    locker: str = Field(..., min_length=1)
    target_wallet: str = Field(..., min_length=1)
    amount: int = Field(..., ge=0, le=U64_MAX)


class SplitRequest(SignedRequest):
    locker: str = Field(..., min_length=1)
    new_owner: str = Field(..., min_length=1)
    amount: int = Field(..., ge=0, le=U64_MAX)


class CloseRequest(SignedRequest):
    locker: str = Field(..., min_length=1)
    target_wallet: str = Field(..., min_length=1)
