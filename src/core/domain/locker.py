"""
Locker — модель заблокированной позиции

Центральная сущность: владелец, расписание разблокировки и vault,
в котором лежат заблокированные средства.

Immutable Pydantic модель (frozen=True). Любое изменение позиции
создаёт новый экземпляр через model_copy / with_* методы.

ИНВАРИАНТЫ:
1. current_unlock_date >= original_unlock_date (увеличивается только relock)
2. start_emission < current_unlock_date (если задан)
3. deposited_amount — сумма всех блокировок минус split'ы
4. Запись и vault уничтожаются вместе, когда баланс vault == 0
"""

from enum import Enum
from typing import Final

from pydantic import BaseModel, Field, field_validator, model_validator

from src.core.math.fixed_point import U64_MAX

# Верхняя граница unlock_date (секунды). Отсекает timestamp'ы в миллисекундах,
# введённые по ошибке: 10_000_000_000 s ~ 2286 год.
MAX_UNLOCK_DATE: Final[int] = 10_000_000_000


# =============================================================================
# ENUMS
# =============================================================================


class LockerState(str, Enum):
    """Состояние жизненного цикла locker'а."""

    UNINITIALIZED = "UNINITIALIZED"
    ACTIVE = "ACTIVE"
    CLOSED = "CLOSED"


class VestingKind(str, Enum):
    """Тип расписания разблокировки."""

    CLIFF = "cliff"
    LINEAR = "linear"


# =============================================================================
# LOCKER MODEL
# =============================================================================


class Locker(BaseModel):
    """
    Заблокированная позиция.

    creator сохраняется только для вычисления адреса и не даёт прав
    после создания. Все права (relock, transfer, withdraw, split, close)
    принадлежат owner.
    """

    # Идентификация
    address: str = Field(..., min_length=1, description="Производный адрес locker'а")
    owner: str = Field(..., min_length=1, description="Владелец позиции")
    creator: str = Field(..., min_length=1, description="Создатель (только для адресации)")
    asset: str = Field(..., min_length=1, description="Класс актива в vault")
    country_code: str = Field(..., pattern=r"^[A-Z]{2}$", description="Нормализованный код страны")

    # Расписание
    original_unlock_date: int = Field(..., gt=0, description="Исходная дата разблокировки")
    current_unlock_date: int = Field(..., gt=0, description="Текущая дата разблокировки")
    start_emission: int | None = Field(None, ge=0, description="Начало linear vesting")
    last_withdraw: int | None = Field(None, ge=0, description="Checkpoint последнего вывода")

    # Суммы
    deposited_amount: int = Field(..., ge=0, le=U64_MAX, description="Всего заблокировано")
    split_count: int = Field(0, ge=0, description="Счётчик split (seed адреса дочернего locker'а)")

    # Vault
    vault: str = Field(..., min_length=1, description="Адрес vault")
    vault_authority: str = Field(..., min_length=1, description="Authority vault")

    state: LockerState = Field(LockerState.ACTIVE, description="Состояние")

    model_config = {"frozen": True}

    @field_validator("current_unlock_date", "original_unlock_date")
    @classmethod
    def validate_unlock_ceiling(cls, v: int) -> int:
        """Защита от timestamp'ов в миллисекундах."""
        if v >= MAX_UNLOCK_DATE:
            raise ValueError(f"unlock date {v} exceeds ceiling {MAX_UNLOCK_DATE}")
        return v

    @model_validator(mode="after")
    def validate_schedule(self) -> "Locker":
        if self.current_unlock_date < self.original_unlock_date:
            raise ValueError(
                f"current_unlock_date {self.current_unlock_date} precedes "
                f"original_unlock_date {self.original_unlock_date}"
            )
        if self.start_emission is not None and self.start_emission >= self.current_unlock_date:
            raise ValueError(
                f"start_emission {self.start_emission} must precede "
                f"current_unlock_date {self.current_unlock_date}"
            )
        return self

    @property
    def vesting_kind(self) -> VestingKind:
        if self.start_emission is None:
            return VestingKind.CLIFF
        return VestingKind.LINEAR

    def with_unlock_date(self, unlock_date: int) -> "Locker":
        return self.model_copy(update={"current_unlock_date": unlock_date})

    def with_owner(self, owner: str) -> "Locker":
        return self.model_copy(update={"owner": owner})

    def with_deposited(self, deposited_amount: int) -> "Locker":
        return self.model_copy(update={"deposited_amount": deposited_amount})

    def after_split(self, deposited_amount: int) -> "Locker":
        return self.model_copy(
            update={"deposited_amount": deposited_amount, "split_count": self.split_count + 1}
        )

    def with_checkpoint(self, timestamp: int) -> "Locker":
        """Checkpoint ставится только для linear расписания."""
        if self.vesting_kind != VestingKind.LINEAR:
            return self
        return self.model_copy(update={"last_withdraw": timestamp})

    def closed(self) -> "Locker":
        return self.model_copy(update={"state": LockerState.CLOSED})
