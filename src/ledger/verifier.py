"""
Transfer Verifier — проверка каждого внешнего перемещения средств

Алгоритм:
    before = balance(source)
    ledger.transfer(source, destination, authority, amount)
    after  = balance(source)
    require before - after == amount   иначе AmountMismatch

Защищает от примитива перевода, который молча перемещает другую сумму
(fee-on-transfer активы, округления, частичные исполнения).
Повторов нет: несовпадение фатально для всего вызова.
"""

import logging

from src.core.domain.errors import AmountMismatch
from src.ledger.interfaces import Ledger

logger = logging.getLogger(__name__)


class TransferVerifier:
    """Обёртка над Ledger с проверкой сохранения суммы."""

    def __init__(self, ledger: Ledger):
        self.ledger = ledger

    def transfer(self, source: str, destination: str, authority: str, amount: int) -> int:
        """
        Перевод с проверкой.

        Returns:
            Переведённая сумма (всегда == amount)

        Raises:
            AmountMismatch: Если баланс source изменился не на amount
        """
        before = self.ledger.balance_of(source)
        self.ledger.transfer(source, destination, authority, amount)
        after = self.ledger.balance_of(source)

        moved = before - after
        if moved != amount:
            logger.warning(
                "Transfer %s -> %s moved %d instead of %d", source, destination, moved, amount
            )
            raise AmountMismatch(expected=amount, actual=moved, source=source)

        return amount

    def close_if_empty(self, account: str, destination: str, authority: str) -> bool:
        """
        Закрытие счёта при нулевом балансе.

        Returns:
            True если счёт закрыт
        """
        if self.ledger.balance_of(account) != 0:
            return False
        self.ledger.close_account(account, destination, authority)
        return True
