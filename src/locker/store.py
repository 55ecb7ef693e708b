"""
LockerStore — хранилище записей Config / MintInfo / Locker

Записи immutable (frozen pydantic), поэтому snapshot — поверхностная копия
словарей. Счётчики audit используются для проверки сохранения сумм:
    held_in_vaults + fees_paid + released == deposited
"""

from dataclasses import dataclass, replace
from typing import Dict, Optional

from src.core.domain.config import Config
from src.core.domain.errors import ConfigNotInitialized, LockerNotFound
from src.core.domain.locker import Locker
from src.core.domain.mint_info import MintInfo


@dataclass(frozen=True)
class AuditTotals:
    """Накопленные суммы по активу."""

    deposited: int = 0
    fees_paid: int = 0
    released: int = 0


@dataclass(frozen=True)
class StoreSnapshot:
    config: Optional[Config]
    mint_infos: Dict[str, MintInfo]
    lockers: Dict[str, Locker]
    audit: Dict[str, AuditTotals]
    native_fees: int


class LockerStore:
    """Хранилище записей программы."""

    def __init__(self):
        self.config: Optional[Config] = None
        self.mint_infos: Dict[str, MintInfo] = {}
        self.lockers: Dict[str, Locker] = {}
        self.audit: Dict[str, AuditTotals] = {}
        self.native_fees: int = 0

    def require_config(self) -> Config:
        if self.config is None:
            raise ConfigNotInitialized()
        return self.config

    def get_locker(self, address: str) -> Locker:
        try:
            return self.lockers[address]
        except KeyError:
            raise LockerNotFound(f"locker {address} does not exist") from None

    def put_locker(self, locker: Locker) -> None:
        self.lockers[locker.address] = locker

    def delete_locker(self, address: str) -> None:
        self.lockers.pop(address, None)

    def record(
        self,
        asset: str,
        deposited: int = 0,
        fees_paid: int = 0,
        released: int = 0,
    ) -> None:
        totals = self.audit.get(asset, AuditTotals())
        self.audit[asset] = replace(
            totals,
            deposited=totals.deposited + deposited,
            fees_paid=totals.fees_paid + fees_paid,
            released=totals.released + released,
        )

    def snapshot(self) -> StoreSnapshot:
        return StoreSnapshot(
            config=self.config,
            mint_infos=dict(self.mint_infos),
            lockers=dict(self.lockers),
            audit=dict(self.audit),
            native_fees=self.native_fees,
        )

    def restore(self, snapshot: StoreSnapshot) -> None:
        self.config = snapshot.config
        self.mint_infos = dict(snapshot.mint_infos)
        self.lockers = dict(snapshot.lockers)
        self.audit = dict(snapshot.audit)
        self.native_fees = snapshot.native_fees
