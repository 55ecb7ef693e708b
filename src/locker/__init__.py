"""Locker State Machine — жизненный цикл заблокированных позиций.

create → relock / transfer_ownership / increment_lock / withdraw → close
"""

from .program import (
    CloseResult,
    ConservationReport,
    LockerProgram,
    SplitResult,
    WithdrawResult,
)
from .store import AuditTotals, LockerStore

__all__ = [
    "LockerProgram",
    "LockerStore",
    "AuditTotals",
    "WithdrawResult",
    "SplitResult",
    "CloseResult",
    "ConservationReport",
]
