"""Внешние контракты (ledger, clock, адресация) и их реализации."""

from .addressing import Sha256AddressDeriver
from .clock import ManualClock, SystemClock
from .interfaces import (
    NATIVE_ASSET,
    AddressDeriver,
    Clock,
    CountryOracle,
    Ledger,
    SnapshotLedger,
)
from .memory import Account, InMemoryLedger, LedgerError
from .verifier import TransferVerifier

__all__ = [
    "NATIVE_ASSET",
    "AddressDeriver",
    "Clock",
    "CountryOracle",
    "Ledger",
    "SnapshotLedger",
    "Account",
    "InMemoryLedger",
    "LedgerError",
    "ManualClock",
    "SystemClock",
    "Sha256AddressDeriver",
    "TransferVerifier",
]
