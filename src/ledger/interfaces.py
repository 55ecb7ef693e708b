"""
Внешние контракты, от которых зависит locker.

Реализации: InMemoryLedger, ManualClock/SystemClock, Sha256AddressDeriver,
CountryBanList. Любая другая реализация должна соблюдать те же сигнатуры.
"""

from typing import Protocol, runtime_checkable

# Класс актива для фиксированной комиссии (native валюта ledger'а)
NATIVE_ASSET = "native"


@runtime_checkable
class Ledger(Protocol):
    """Хранилище счетов и примитив перевода."""

    def balance_of(self, account: str) -> int:
        """Текущий баланс счёта."""
        ...

    def asset_of(self, account: str) -> str:
        """Класс актива счёта."""
        ...

    def open_account(self, address: str, asset: str, owner: str) -> None:
        """Создание пустого счёта."""
        ...

    def transfer(self, source: str, destination: str, authority: str, amount: int) -> int:
        """Перевод. Может переместить меньше запрошенного; проверяет вызывающая сторона."""
        ...

    def close_account(self, account: str, destination: str, authority: str) -> None:
        """Закрытие счёта с нулевым балансом."""
        ...


@runtime_checkable
class SnapshotLedger(Ledger, Protocol):
    """Ledger, поддерживающий откат состояния."""

    def snapshot(self) -> object:
        ...

    def restore(self, snapshot: object) -> None:
        ...


class Clock(Protocol):
    def now(self) -> int:
        """Текущее время, секунды UTC. Не убывает между вызовами."""
        ...


class CountryOracle(Protocol):
    def is_country_allowed(self, code: str) -> bool:
        ...


class AddressDeriver(Protocol):
    """Детерминированное вычисление адресов из seed'ов."""

    def derive(self, *seeds: bytes | str | int) -> str:
        ...

    def associated_account(self, owner: str, asset: str) -> str:
        ...
