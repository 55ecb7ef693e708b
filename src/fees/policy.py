"""Fee Policy — выбор комиссии для операции.

Решение принимается один раз на вызов и возвращается как tagged variant:
- NoFee:           комиссия не взимается
- FlatFee:         фиксированная сумма во внешнем (native) активе
- ProportionalFee: доля от блокируемой суммы, вычитается до попадания в vault

Когда комиссия положена:
- mint_info_permissioned == True  → всегда (каждая операция платит)
- mint_info_permissioned == False → только пока MintInfo.fee_paid == False;
  после оплаты fee_paid = True и для актива комиссия больше не взимается

Сумма комиссии всегда считается от исходной (pre-fee) суммы запроса.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Union

from src.core.domain.config import Config
from src.core.domain.errors import IntegerOverflow, InvalidFeeDestination
from src.core.domain.mint_info import MintInfo
from src.core.math.fixed_point import mul_div
from src.ledger.interfaces import AddressDeriver


class FeeMode(str, Enum):
    """Способ оплаты комиссии."""

    FLAT = "flat"
    PROPORTIONAL = "proportional"


@dataclass(frozen=True)
class NoFee:
    """Комиссия не положена."""

    reason: str

    amount: int = 0
    marks_paid: bool = False

    def locked_amount(self, requested: int) -> int:
        return requested


@dataclass(frozen=True)
class FlatFee:
    """Фиксированная комиссия в native активе. Блокируется вся сумма запроса."""

    amount: int
    destination: str
    marks_paid: bool

    mode: FeeMode = FeeMode.FLAT

    def locked_amount(self, requested: int) -> int:
        return requested


@dataclass(frozen=True)
class ProportionalFee:
    """Пропорциональная комиссия, удерживается из блокируемой суммы."""

    amount: int
    destination: str
    marks_paid: bool
    numerator: int
    denominator: int

    mode: FeeMode = FeeMode.PROPORTIONAL

    def locked_amount(self, requested: int) -> int:
        return requested - self.amount


FeeDecision = Union[NoFee, FlatFee, ProportionalFee]


def is_fee_due(mint_info_permissioned: bool, fee_paid: bool) -> bool:
    """Положена ли комиссия в этом вызове."""
    if mint_info_permissioned:
        return True
    return not fee_paid


class FeePolicy:
    """Разрешение комиссии по Config и MintInfo.

    AddressDeriver нужен для вычисления ожидаемого fee-счёта в активе
    locker'а (associated account получателя комиссий).
    """

    def __init__(self, deriver: AddressDeriver):
        self.deriver = deriver

    def expected_destination(self, config: Config, asset: str, mode: FeeMode) -> str:
        """Ожидаемый получатель комиссии для режима."""
        if mode == FeeMode.FLAT:
            return config.fee_destination
        return self.deriver.associated_account(config.fee_destination, asset)

    def resolve(
        self,
        config: Config,
        mint_info: MintInfo,
        requested_amount: int,
        fee_in_native: bool,
        fee_destination: str,
    ) -> FeeDecision:
        """Выбор варианта комиссии для вызова.

        Args:
            config: текущая конфигурация
            mint_info: запись актива
            requested_amount: сумма запроса до комиссии
            fee_in_native: True — фиксированная комиссия в native активе
            fee_destination: получатель комиссии, переданный вызывающей стороной

        Returns:
            NoFee, FlatFee или ProportionalFee

        Raises:
            InvalidFeeDestination: получатель не совпадает с ожидаемым
            IntegerOverflow: переполнение при расчёте пропорциональной комиссии
        """
        if not is_fee_due(config.mint_info_permissioned, mint_info.fee_paid):
            return NoFee(reason="fee_already_paid_for_asset")

        marks_paid = not config.mint_info_permissioned
        mode = FeeMode.FLAT if fee_in_native else FeeMode.PROPORTIONAL

        expected = self.expected_destination(config, mint_info.asset, mode)
        if fee_destination != expected:
            raise InvalidFeeDestination(
                f"fee destination {fee_destination} does not match {expected}"
            )

        if mode == FeeMode.FLAT:
            return FlatFee(
                amount=config.flat_fee_amount,
                destination=expected,
                marks_paid=marks_paid,
            )

        fee = mul_div(
            requested_amount,
            config.proportional_fee_numerator,
            config.proportional_fee_denominator,
        )
        if fee is None:
            raise IntegerOverflow(
                f"fee for {requested_amount} at "
                f"{config.proportional_fee_numerator}/{config.proportional_fee_denominator} overflowed"
            )

        return ProportionalFee(
            amount=fee,
            destination=expected,
            marks_paid=marks_paid,
            numerator=config.proportional_fee_numerator,
            denominator=config.proportional_fee_denominator,
        )
