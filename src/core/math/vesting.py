"""
Vesting — расчёт доступной к выводу суммы

Два варианта расписания:
- Cliff (start_emission отсутствует): до current_unlock_date ничего,
  после — весь остаток vault.
- Linear (start_emission задан):
      vested(t) = mul_div(deposited_amount, elapsed, full_period)
      start       = last_withdraw или start_emission
      elapsed     = clamp(t, start, end) - start
      full_period = end - start  (> 0, иначе InvalidPeriod)
  После end (t > current_unlock_date) доступен весь остаток vault,
  независимо от формулы (deposited_amount мог вырасти после end).

Checkpoint (last_withdraw) перебазирует расписание после каждого вывода,
чтобы не выдавать повторно уже выведенную часть.

Итог всегда ограничен min(requested, vault_balance).

ИНВАРИАНТ: при фиксированных deposited_amount и start vested(t) не убывает по t.
"""

from dataclasses import dataclass
from typing import Optional

from src.core.domain.errors import IntegerOverflow, InvalidPeriod, TooEarlyToWithdraw
from src.core.domain.locker import VestingKind
from src.core.math.fixed_point import clamp, mul_div


@dataclass(frozen=True)
class WithdrawalQuote:
    """Результат расчёта доступной суммы."""

    amount: int
    kind: VestingKind

    # Диагностика
    vested: int
    start: Optional[int]
    elapsed: int
    full_period: int
    fully_unlocked: bool


def linear_vested(deposited_amount: int, start: int, end: int, now: int) -> int:
    """
    Сумма, открытая linear расписанием к моменту now.

    Args:
        deposited_amount: Полная сумма позиции
        start: Начало периода (start_emission или checkpoint)
        end: current_unlock_date
        now: Текущее время

    Returns:
        floor(deposited_amount * elapsed / full_period)

    Raises:
        InvalidPeriod: Если end <= start
        IntegerOverflow: Если результат не помещается в u64
    """
    full_period = end - start
    if full_period <= 0:
        raise InvalidPeriod(f"vesting period [{start}, {end}] is empty")

    elapsed = clamp(now, start, end) - start
    vested = mul_div(deposited_amount, elapsed, full_period)
    if vested is None:
        raise IntegerOverflow(
            f"mul_div({deposited_amount}, {elapsed}, {full_period}) overflowed"
        )
    return vested


def quote_withdrawal(
    *,
    deposited_amount: int,
    vault_balance: int,
    current_unlock_date: int,
    start_emission: Optional[int],
    last_withdraw: Optional[int],
    now: int,
    requested: int,
) -> WithdrawalQuote:
    """
    Расчёт суммы к выводу в момент now.

    Raises:
        TooEarlyToWithdraw: Cliff расписание и now < current_unlock_date
        InvalidPeriod: Linear расписание с пустым периодом
        IntegerOverflow: Переполнение в mul_div
    """
    if start_emission is None:
        if now < current_unlock_date:
            raise TooEarlyToWithdraw(
                f"locked until {current_unlock_date}, now {now}"
            )
        return WithdrawalQuote(
            amount=min(requested, vault_balance),
            kind=VestingKind.CLIFF,
            vested=vault_balance,
            start=None,
            elapsed=0,
            full_period=0,
            fully_unlocked=True,
        )

    start = last_withdraw if last_withdraw is not None else start_emission
    full_period = current_unlock_date - start

    if now > current_unlock_date:
        # После окончания расписания доступен весь остаток
        return WithdrawalQuote(
            amount=min(requested, vault_balance),
            kind=VestingKind.LINEAR,
            vested=vault_balance,
            start=start,
            elapsed=max(full_period, 0),
            full_period=max(full_period, 0),
            fully_unlocked=True,
        )

    vested = linear_vested(deposited_amount, start, current_unlock_date, now)
    return WithdrawalQuote(
        amount=min(vested, requested, vault_balance),
        kind=VestingKind.LINEAR,
        vested=vested,
        start=start,
        elapsed=clamp(now, start, current_unlock_date) - start,
        full_period=full_period,
        fully_unlocked=False,
    )
