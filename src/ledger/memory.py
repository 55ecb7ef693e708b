"""
InMemoryLedger — ledger счетов в памяти

Используется тестами и симуляциями как реализация контракта Ledger.

Особенности:
- счёт = (asset, owner, balance); переводить может только owner (authority)
- short_transfer_bps[asset] — доля суммы, которую transfer "не довозит"
  (моделирует fee-on-transfer активы и частичные исполнения)
- snapshot()/restore() для атомарного отката операции
"""

import logging
from dataclasses import dataclass, replace
from typing import Dict, Optional

from src.core.math.fixed_point import U64_MAX, bps_of

logger = logging.getLogger(__name__)


class LedgerError(Exception):
    """Ошибка внешнего ledger'а (неизвестный счёт, нехватка средств и т.п.)."""
    pass


@dataclass(frozen=True)
class Account:
    address: str
    asset: str
    owner: str
    balance: int = 0


class InMemoryLedger:
    """Ledger в памяти."""

    def __init__(self, short_transfer_bps: Optional[Dict[str, int]] = None):
        self._accounts: Dict[str, Account] = {}
        self.short_transfer_bps: Dict[str, int] = dict(short_transfer_bps or {})

    # -------------------------------------------------------------------------
    # Счета
    # -------------------------------------------------------------------------

    def open_account(self, address: str, asset: str, owner: str) -> None:
        if address in self._accounts:
            raise LedgerError(f"account {address} already exists")
        self._accounts[address] = Account(address=address, asset=asset, owner=owner)

    def has_account(self, address: str) -> bool:
        return address in self._accounts

    def account(self, address: str) -> Account:
        try:
            return self._accounts[address]
        except KeyError:
            raise LedgerError(f"account {address} does not exist") from None

    def balance_of(self, account: str) -> int:
        return self.account(account).balance

    def asset_of(self, account: str) -> str:
        return self.account(account).asset

    def mint(self, account: str, amount: int) -> None:
        """Зачисление средств (для тестов и начального состояния)."""
        acc = self.account(account)
        if amount < 0 or acc.balance + amount > U64_MAX:
            raise LedgerError(f"cannot mint {amount} into {account}")
        self._accounts[account] = replace(acc, balance=acc.balance + amount)

    def total_balance(self, asset: str) -> int:
        return sum(a.balance for a in self._accounts.values() if a.asset == asset)

    # -------------------------------------------------------------------------
    # Переводы
    # -------------------------------------------------------------------------

    def transfer(self, source: str, destination: str, authority: str, amount: int) -> int:
        src = self.account(source)
        dst = self.account(destination)

        if src.owner != authority:
            raise LedgerError(f"{authority} is not the owner of {source}")
        if src.asset != dst.asset:
            raise LedgerError(
                f"asset mismatch: {source} holds {src.asset}, {destination} holds {dst.asset}"
            )
        if amount < 0:
            raise LedgerError(f"negative transfer amount {amount}")
        if src.balance < amount:
            raise LedgerError(
                f"insufficient funds in {source}: balance {src.balance}, requested {amount}"
            )

        moved = amount
        haircut_bps = self.short_transfer_bps.get(src.asset, 0)
        if haircut_bps:
            moved = amount - (bps_of(amount, haircut_bps) or 0)

        if source == destination:
            return moved

        self._accounts[source] = replace(src, balance=src.balance - moved)
        self._accounts[destination] = replace(dst, balance=dst.balance + moved)
        logger.debug("transfer %s -> %s: requested=%d moved=%d", source, destination, amount, moved)
        return moved

    def close_account(self, account: str, destination: str, authority: str) -> None:
        acc = self.account(account)
        if acc.owner != authority:
            raise LedgerError(f"{authority} is not the owner of {account}")
        if acc.balance != 0:
            raise LedgerError(f"cannot close {account} with balance {acc.balance}")
        del self._accounts[account]
        logger.debug("closed account %s, residual released to %s", account, destination)

    # -------------------------------------------------------------------------
    # Откат
    # -------------------------------------------------------------------------

    def snapshot(self) -> Dict[str, Account]:
        return dict(self._accounts)

    def restore(self, snapshot: Dict[str, Account]) -> None:
        self._accounts = dict(snapshot)
