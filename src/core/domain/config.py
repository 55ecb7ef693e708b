"""
Config — глобальная конфигурация комиссий и политик

Один экземпляр на систему, принадлежит admin. Создаётся один раз (init),
далее меняется только через ConfigUpdate (частичное обновление: поле None
означает "оставить без изменений"). Каждое обновление увеличивает version.

Config передаётся в операции явно (через LockerStore), а не как ambient state.
"""

from typing import Final

from pydantic import BaseModel, Field, model_validator

from src.core.math.fixed_point import BPS_DENOMINATOR, U64_MAX

# =============================================================================
# ЗНАЧЕНИЯ ПО УМОЛЧАНИЮ
# =============================================================================

# Пропорциональная комиссия по умолчанию: 35 / 10000 = 0.35%
DEFAULT_FEE_NUMERATOR: Final[int] = 35
DEFAULT_FEE_DENOMINATOR: Final[int] = BPS_DENOMINATOR


# =============================================================================
# CONFIG
# =============================================================================


class Config(BaseModel):
    """
    Конфигурация комиссий, регистрации активов и vesting.

    mint_info_permissioned:
        True  — комиссия взимается при каждой операции, регистрировать
                новый актив (MintInfo) может только admin
        False — комиссия взимается один раз на актив, регистрировать
                может кто угодно
    """

    admin: str = Field(..., min_length=1, description="Идентификатор администратора")
    flat_fee_amount: int = Field(
        ..., ge=0, le=U64_MAX, description="Фиксированная комиссия во внешнем (native) активе"
    )
    proportional_fee_numerator: int = Field(
        DEFAULT_FEE_NUMERATOR, ge=0, le=U64_MAX, description="Числитель ставки комиссии"
    )
    proportional_fee_denominator: int = Field(
        DEFAULT_FEE_DENOMINATOR, gt=0, le=U64_MAX, description="Знаменатель ставки комиссии"
    )
    mint_info_permissioned: bool = Field(False, description="Комиссия при каждой операции")
    linear_emission_enabled: bool = Field(True, description="Разрешён ли linear vesting")
    fee_destination: str = Field(..., min_length=1, description="Получатель комиссий")
    country_list_ref: str | None = Field(None, description="Ссылка на ban-list стран")
    version: int = Field(1, ge=1, description="Версия конфигурации")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_fee_rate(self) -> "Config":
        """0 <= numerator <= denominator."""
        if self.proportional_fee_numerator > self.proportional_fee_denominator:
            raise ValueError(
                f"proportional_fee_numerator {self.proportional_fee_numerator} exceeds "
                f"denominator {self.proportional_fee_denominator}"
            )
        return self

    def apply_update(self, update: "ConfigUpdate") -> "Config":
        """
        Применение частичного обновления.

        Поля update со значением None не меняются. version увеличивается
        на 1. Результат проходит полную валидацию модели.
        """
        changes = update.model_dump(exclude_none=True)
        data = self.model_dump()
        data.update(changes)
        data["version"] = self.version + 1
        return Config.model_validate(data)


class ConfigUpdate(BaseModel):
    """Частичное обновление Config. None — оставить прежнее значение."""

    admin: str | None = Field(None, min_length=1)
    flat_fee_amount: int | None = Field(None, ge=0, le=U64_MAX)
    proportional_fee_numerator: int | None = Field(None, ge=0, le=U64_MAX)
    proportional_fee_denominator: int | None = Field(None, gt=0, le=U64_MAX)
    mint_info_permissioned: bool | None = None
    linear_emission_enabled: bool | None = None
    fee_destination: str | None = Field(None, min_length=1)
    country_list_ref: str | None = None

    model_config = {"frozen": True}

    def is_empty(self) -> bool:
        """True если обновление ничего не меняет."""
        return not self.model_dump(exclude_none=True)
