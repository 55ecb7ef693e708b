"""Locker State Machine — жизненный цикл заблокированных позиций.

Состояния: UNINITIALIZED → ACTIVE → CLOSED (терминальное).
ACTIVE допускает повторные Relock, TransferOwnership, IncrementLock
и частичные Withdraw. Переход в CLOSED выполняется автоматически внутри
Withdraw / Split / Close, когда баланс vault становится ровно 0.

Каждая операция:
1. читает now один раз (Clock)
2. проверяет предусловия
3. консультируется с FeePolicy и/или vesting калькулятором
4. выполняет переводы через TransferVerifier
5. сохраняет записи

Операция — атомарная единица: при любой ошибке LockerStore и ledger
(если поддерживает snapshot) восстанавливаются, ошибка пробрасывается.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Mapping, Optional

from src.core.contracts import validate_instruction
from src.core.domain.config import Config
from src.core.domain.country import normalize_country_code
from src.core.domain.errors import (
    CannotUnlockEarlier,
    ConfigAlreadyInitialized,
    IntegerOverflow,
    InvalidAmount,
    InvalidCountry,
    InvalidFeeRate,
    InvalidPeriod,
    InvalidTimestamp,
    LinearEmissionDisabled,
    LockerAlreadyExists,
    MintNotRegistered,
    NothingToLock,
    TooEarlyToWithdraw,
    Unauthorized,
    UnlockInThePast,
)
from src.core.domain.locker import MAX_UNLOCK_DATE, Locker, LockerState
from src.core.domain.mint_info import MintInfo
from src.core.domain.requests import (
    CloseRequest,
    CreateLockerRequest,
    IncrementLockRequest,
    InitConfigRequest,
    InitMintInfoRequest,
    RelockRequest,
    SplitRequest,
    TransferOwnershipRequest,
    UpdateConfigRequest,
    WithdrawRequest,
)
from src.core.math.fixed_point import checked_add, checked_sub, validate_fee_rate
from src.core.math.vesting import WithdrawalQuote, quote_withdrawal
from src.fees.policy import FeeDecision, FlatFee, FeePolicy, ProportionalFee
from src.ledger.addressing import Sha256AddressDeriver
from src.ledger.interfaces import (
    NATIVE_ASSET,
    AddressDeriver,
    Clock,
    CountryOracle,
    Ledger,
    SnapshotLedger,
)
from src.ledger.verifier import TransferVerifier
from src.locker.store import AuditTotals, LockerStore

logger = logging.getLogger(__name__)


# =============================================================================
# RESULTS
# =============================================================================


@dataclass(frozen=True)
class WithdrawResult:
    """Результат Withdraw."""

    locker: Locker
    amount: int
    closed: bool
    quote: WithdrawalQuote


@dataclass(frozen=True)
class SplitResult:
    """Результат Split."""

    old_locker: Locker
    new_locker: Locker
    old_closed: bool


@dataclass(frozen=True)
class CloseResult:
    """Результат Close."""

    locker: Locker
    amount: int


@dataclass(frozen=True)
class ConservationReport:
    """Сверка сумм по активу."""

    asset: str
    deposited: int
    fees_paid: int
    released: int
    held_in_vaults: int

    @property
    def balanced(self) -> bool:
        return self.held_in_vaults + self.fees_paid + self.released == self.deposited


# =============================================================================
# PROGRAM
# =============================================================================


class LockerProgram:
    """Locker State Machine.

    Внешние зависимости передаются явно:
    - ledger: счета и переводы
    - clock: источник now
    - deriver: вычисление адресов
    - country_lists: ban-list'ы по ссылке Config.country_list_ref
    """

    def __init__(
        self,
        ledger: Ledger,
        clock: Clock,
        deriver: Optional[AddressDeriver] = None,
        store: Optional[LockerStore] = None,
        country_lists: Optional[Mapping[str, CountryOracle]] = None,
    ):
        self.ledger = ledger
        self.clock = clock
        self.deriver = deriver or Sha256AddressDeriver()
        self.store = store or LockerStore()
        self.country_lists: Dict[str, CountryOracle] = dict(country_lists or {})

        self.verifier = TransferVerifier(ledger)
        self.fee_policy = FeePolicy(self.deriver)

    def register_country_list(self, ref: str, oracle: CountryOracle) -> None:
        self.country_lists[ref] = oracle

    # -------------------------------------------------------------------------
    # Атомарность
    # -------------------------------------------------------------------------

    @contextmanager
    def atomic(self, operation: str) -> Iterator[None]:
        """Unit of work: откат store и ledger при любой ошибке."""
        store_snapshot = self.store.snapshot()
        ledger_snapshot = None
        if isinstance(self.ledger, SnapshotLedger):
            ledger_snapshot = self.ledger.snapshot()

        try:
            yield
        except Exception as e:
            self.store.restore(store_snapshot)
            if ledger_snapshot is not None:
                self.ledger.restore(ledger_snapshot)
            logger.warning("%s aborted, state restored: %s", operation, e)
            raise

    # -------------------------------------------------------------------------
    # Config
    # -------------------------------------------------------------------------

    def init_config(self, request: InitConfigRequest) -> Config:
        with self.atomic("init_config"):
            if self.store.config is not None:
                raise ConfigAlreadyInitialized()
            if not request.is_signed_by(request.admin):
                raise Unauthorized(f"admin {request.admin} did not sign")

            _check_fee_rate(
                request.proportional_fee_numerator, request.proportional_fee_denominator
            )

            config = Config(
                admin=request.admin,
                flat_fee_amount=request.flat_fee_amount,
                proportional_fee_numerator=request.proportional_fee_numerator,
                proportional_fee_denominator=request.proportional_fee_denominator,
                mint_info_permissioned=request.mint_info_permissioned,
                linear_emission_enabled=request.linear_emission_enabled,
                fee_destination=request.fee_destination,
                country_list_ref=request.country_list_ref,
            )
            self.store.config = config

        logger.info("Config initialized by %s", config.admin)
        return config

    def update_config(self, request: UpdateConfigRequest) -> Config:
        with self.atomic("update_config"):
            config = self.store.require_config()
            if not request.is_signed_by(config.admin):
                raise Unauthorized(f"admin {config.admin} did not sign")

            update = request.update
            numerator = (
                update.proportional_fee_numerator
                if update.proportional_fee_numerator is not None
                else config.proportional_fee_numerator
            )
            denominator = (
                update.proportional_fee_denominator
                if update.proportional_fee_denominator is not None
                else config.proportional_fee_denominator
            )
            _check_fee_rate(numerator, denominator)

            new_config = config.apply_update(update)
            self.store.config = new_config

        logger.info("Config updated to version %d", new_config.version)
        return new_config

    def init_mint_info(self, request: InitMintInfoRequest) -> MintInfo:
        with self.atomic("init_mint_info"):
            config = self.store.require_config()
            if not request.is_signed_by(request.payer):
                raise Unauthorized(f"payer {request.payer} did not sign")
            if config.mint_info_permissioned and not request.is_signed_by(config.admin):
                raise Unauthorized("only admin may register assets")

            existing = self.store.mint_infos.get(request.asset)
            if existing is not None:
                return existing

            mint_info = MintInfo(
                asset=request.asset, address=self.deriver.derive(request.asset)
            )
            self.store.mint_infos[request.asset] = mint_info

        logger.info("Registered asset %s", request.asset)
        return mint_info

    def _mint_info_for(self, config: Config, asset: str) -> MintInfo:
        """MintInfo актива; создаётся лениво, если регистрация открыта."""
        mint_info = self.store.mint_infos.get(asset)
        if mint_info is not None:
            return mint_info
        if config.mint_info_permissioned:
            raise MintNotRegistered(f"asset {asset} is not registered")
        return MintInfo(asset=asset, address=self.deriver.derive(asset))

    # -------------------------------------------------------------------------
    # Create
    # -------------------------------------------------------------------------

    def create_locker(self, request: CreateLockerRequest) -> Locker:
        with self.atomic("create_locker"):
            now = self.clock.now()
            config = self.store.require_config()

            if request.unlock_date <= now:
                raise UnlockInThePast(f"unlock date {request.unlock_date} <= now {now}")
            if request.unlock_date >= MAX_UNLOCK_DATE:
                raise InvalidTimestamp(
                    f"unlock date {request.unlock_date} looks like milliseconds"
                )

            country_code = normalize_country_code(request.country_code)
            self._check_country(config, country_code)

            if request.start_emission is not None:
                if not config.linear_emission_enabled:
                    raise LinearEmissionDisabled()
                if request.start_emission >= request.unlock_date:
                    raise InvalidPeriod(
                        f"start_emission {request.start_emission} >= unlock date {request.unlock_date}"
                    )

            if not request.is_signed_by(request.creator):
                raise Unauthorized(f"creator {request.creator} did not sign")
            if not request.is_signed_by(request.funding_wallet_authority):
                raise Unauthorized("funding wallet authority did not sign")

            address = self.deriver.derive(request.creator, request.unlock_date, request.amount)
            if address in self.store.lockers:
                raise LockerAlreadyExists(f"locker {address} already exists")

            asset = self.ledger.asset_of(request.funding_wallet)
            mint_info = self._mint_info_for(config, asset)

            fee = self.fee_policy.resolve(
                config, mint_info, request.amount, request.fee_in_native, request.fee_wallet
            )
            amount_to_lock = fee.locked_amount(request.amount)
            if amount_to_lock <= 0:
                raise NothingToLock(f"nothing left to lock after fee {fee.amount}")

            mint_info = self._charge_fee(
                fee,
                mint_info,
                funding_wallet=request.funding_wallet,
                authority=request.funding_wallet_authority,
                fee_payer=request.fee_payer,
            )

            vault_authority = self.deriver.derive(address)
            vault = self.deriver.derive(address, "vault")
            self.ledger.open_account(vault, asset, vault_authority)
            self.verifier.transfer(
                request.funding_wallet, vault, request.funding_wallet_authority, amount_to_lock
            )

            locker = Locker(
                address=address,
                owner=request.owner,
                creator=request.creator,
                asset=asset,
                country_code=country_code,
                original_unlock_date=request.unlock_date,
                current_unlock_date=request.unlock_date,
                start_emission=request.start_emission,
                last_withdraw=None,
                deposited_amount=amount_to_lock,
                vault=vault,
                vault_authority=vault_authority,
                state=LockerState.ACTIVE,
            )
            self.store.put_locker(locker)
            self.store.mint_infos[asset] = mint_info
            self.store.record(asset, deposited=request.amount, fees_paid=_token_fee(fee))

        logger.info(
            "Created locker %s: owner=%s locked=%d fee=%d unlock=%d",
            locker.address, locker.owner, amount_to_lock, fee.amount, locker.current_unlock_date,
        )
        return locker

    def _check_country(self, config: Config, country_code: str) -> None:
        if config.country_list_ref is None:
            return
        oracle = self.country_lists.get(config.country_list_ref)
        if oracle is None:
            raise InvalidCountry(f"country list {config.country_list_ref} is unavailable")
        if not oracle.is_country_allowed(country_code):
            raise InvalidCountry(f"country {country_code} is banned")

    def _charge_fee(
        self,
        fee: FeeDecision,
        mint_info: MintInfo,
        funding_wallet: str,
        authority: str,
        fee_payer: Optional[str],
    ) -> MintInfo:
        """Списание комиссии. Возвращает обновлённый MintInfo."""
        if isinstance(fee, FlatFee):
            source = fee_payer or self.deriver.associated_account(authority, NATIVE_ASSET)
            self.verifier.transfer(source, fee.destination, authority, fee.amount)
            self.store.native_fees += fee.amount
        elif isinstance(fee, ProportionalFee):
            self.verifier.transfer(funding_wallet, fee.destination, authority, fee.amount)

        logger.debug("Fee resolved: %s", fee)
        if fee.marks_paid:
            return mint_info.mark_fee_paid()
        return mint_info

    # -------------------------------------------------------------------------
    # Relock / TransferOwnership
    # -------------------------------------------------------------------------

    def relock(self, request: RelockRequest) -> Locker:
        with self.atomic("relock"):
            locker = self._owned_locker(request.locker, request)

            if request.unlock_date <= locker.current_unlock_date:
                raise CannotUnlockEarlier(
                    f"{request.unlock_date} <= current {locker.current_unlock_date}"
                )
            if request.unlock_date >= MAX_UNLOCK_DATE:
                raise InvalidTimestamp(
                    f"unlock date {request.unlock_date} looks like milliseconds"
                )

            locker = locker.with_unlock_date(request.unlock_date)
            self.store.put_locker(locker)

        logger.info("Relocked %s until %d", locker.address, locker.current_unlock_date)
        return locker

    def transfer_ownership(self, request: TransferOwnershipRequest) -> Locker:
        with self.atomic("transfer_ownership"):
            locker = self._owned_locker(request.locker, request)
            previous_owner = locker.owner
            locker = locker.with_owner(request.new_owner)
            self.store.put_locker(locker)

        logger.info("Locker %s owner %s -> %s", locker.address, previous_owner, locker.owner)
        return locker

    # -------------------------------------------------------------------------
    # IncrementLock
    # -------------------------------------------------------------------------

    def increment_lock(self, request: IncrementLockRequest) -> Locker:
        with self.atomic("increment_lock"):
            config = self.store.require_config()
            locker = self.store.get_locker(request.locker)

            if not request.is_signed_by(request.funding_wallet_authority):
                raise Unauthorized("funding wallet authority did not sign")

            mint_info = self._mint_info_for(config, locker.asset)
            fee = self.fee_policy.resolve(
                config, mint_info, request.amount, request.fee_in_native, request.fee_wallet
            )
            amount_to_lock = fee.locked_amount(request.amount)
            if amount_to_lock <= 0:
                raise NothingToLock(f"nothing left to lock after fee {fee.amount}")

            deposited = checked_add(locker.deposited_amount, amount_to_lock)
            if deposited is None:
                raise IntegerOverflow(
                    f"deposited {locker.deposited_amount} + {amount_to_lock} overflowed"
                )

            mint_info = self._charge_fee(
                fee,
                mint_info,
                funding_wallet=request.funding_wallet,
                authority=request.funding_wallet_authority,
                fee_payer=request.fee_payer,
            )
            self.verifier.transfer(
                request.funding_wallet,
                locker.vault,
                request.funding_wallet_authority,
                amount_to_lock,
            )

            locker = locker.with_deposited(deposited)
            self.store.put_locker(locker)
            self.store.mint_infos[locker.asset] = mint_info
            self.store.record(locker.asset, deposited=request.amount, fees_paid=_token_fee(fee))

        logger.info(
            "Incremented %s by %d (fee %d), deposited=%d",
            locker.address, amount_to_lock, fee.amount, locker.deposited_amount,
        )
        return locker

    # -------------------------------------------------------------------------
    # Withdraw
    # -------------------------------------------------------------------------

    def withdraw(self, request: WithdrawRequest) -> WithdrawResult:
        with self.atomic("withdraw"):
            if request.amount == 0:
                raise InvalidAmount("requested amount must be positive")

            now = self.clock.now()
            locker = self._owned_locker(request.locker, request)
            vault_balance = self.ledger.balance_of(locker.vault)

            quote = quote_withdrawal(
                deposited_amount=locker.deposited_amount,
                vault_balance=vault_balance,
                current_unlock_date=locker.current_unlock_date,
                start_emission=locker.start_emission,
                last_withdraw=locker.last_withdraw,
                now=now,
                requested=request.amount,
            )
            amount = quote.amount
            if amount <= 0 or amount > vault_balance:
                raise InvalidAmount(
                    f"withdrawable {amount} (vested {quote.vested}, vault {vault_balance})"
                )

            self.verifier.transfer(
                locker.vault, request.target_wallet, locker.vault_authority, amount
            )
            self.store.record(locker.asset, released=amount)

            locker = self._settle(locker.with_checkpoint(now))

        logger.info(
            "Withdrew %d from %s (%s), closed=%s",
            amount, locker.address, quote.kind.value, locker.state == LockerState.CLOSED,
        )
        return WithdrawResult(
            locker=locker,
            amount=amount,
            closed=locker.state == LockerState.CLOSED,
            quote=quote,
        )

    # -------------------------------------------------------------------------
    # Split
    # -------------------------------------------------------------------------

    def split(self, request: SplitRequest) -> SplitResult:
        with self.atomic("split"):
            old = self._owned_locker(request.locker, request)
            vault_balance = self.ledger.balance_of(old.vault)

            if request.amount == 0 or request.amount > vault_balance:
                raise InvalidAmount(
                    f"split amount {request.amount} not in (0, {vault_balance}]"
                )

            remaining = checked_sub(old.deposited_amount, request.amount)
            if remaining is None:
                raise IntegerOverflow(
                    f"deposited {old.deposited_amount} - {request.amount} underflowed"
                )

            address = self.deriver.derive(
                old.address, old.current_unlock_date, request.amount, old.split_count
            )
            if address in self.store.lockers:
                raise LockerAlreadyExists(f"locker {address} already exists")

            vault_authority = self.deriver.derive(address)
            vault = self.deriver.derive(address, "vault")
            self.ledger.open_account(vault, old.asset, vault_authority)
            self.verifier.transfer(old.vault, vault, old.vault_authority, request.amount)

            new = Locker(
                address=address,
                owner=request.new_owner,
                creator=old.address,
                asset=old.asset,
                country_code=old.country_code,
                original_unlock_date=old.current_unlock_date,
                current_unlock_date=old.current_unlock_date,
                start_emission=old.start_emission,
                last_withdraw=None,
                deposited_amount=request.amount,
                vault=vault,
                vault_authority=vault_authority,
                state=LockerState.ACTIVE,
            )
            self.store.put_locker(new)

            old = self._settle(old.after_split(remaining))

        logger.info(
            "Split %d from %s into %s (owner %s)", request.amount, old.address, new.address, new.owner
        )
        return SplitResult(
            old_locker=old, new_locker=new, old_closed=old.state == LockerState.CLOSED
        )

    # -------------------------------------------------------------------------
    # Close
    # -------------------------------------------------------------------------

    def close(self, request: CloseRequest) -> CloseResult:
        with self.atomic("close"):
            now = self.clock.now()
            locker = self._owned_locker(request.locker, request)
            balance = self.ledger.balance_of(locker.vault)

            if balance > 0 and now < locker.current_unlock_date:
                raise TooEarlyToWithdraw(
                    f"locked until {locker.current_unlock_date}, now {now}"
                )

            if balance > 0:
                self.verifier.transfer(
                    locker.vault, request.target_wallet, locker.vault_authority, balance
                )
                self.store.record(locker.asset, released=balance)

            locker = self._settle(locker)

        logger.info("Closed locker %s, released %d", locker.address, balance)
        return CloseResult(locker=locker, amount=balance)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _owned_locker(self, address: str, request: Any) -> Locker:
        locker = self.store.get_locker(address)
        if not request.is_signed_by(locker.owner):
            raise Unauthorized(f"owner {locker.owner} did not sign")
        return locker

    def _settle(self, locker: Locker) -> Locker:
        """Пост-условие после уменьшения vault: баланс 0 → CLOSED."""
        closed = self.verifier.close_if_empty(
            locker.vault, locker.owner, locker.vault_authority
        )
        if closed:
            self.store.delete_locker(locker.address)
            return locker.closed()

        self.store.put_locker(locker)
        return locker

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_locker(self, address: str) -> Locker:
        return self.store.get_locker(address)

    def get_lockers(self) -> List[Locker]:
        return list(self.store.lockers.values())

    def get_lockers_owned_by(self, owner: str) -> List[Locker]:
        return [l for l in self.store.lockers.values() if l.owner == owner]

    def is_mint_whitelisted(self, asset: str) -> bool:
        mint_info = self.store.mint_infos.get(asset)
        return mint_info is not None and mint_info.fee_paid

    def vault_balance(self, address: str) -> int:
        return self.ledger.balance_of(self.store.get_locker(address).vault)

    def audit(self, asset: str) -> ConservationReport:
        totals = self.store.audit.get(asset, AuditTotals())
        held = sum(
            self.ledger.balance_of(l.vault)
            for l in self.store.lockers.values()
            if l.asset == asset
        )
        return ConservationReport(
            asset=asset,
            deposited=totals.deposited,
            fees_paid=totals.fees_paid,
            released=totals.released,
            held_in_vaults=held,
        )

    def check_conservation(self) -> bool:
        return all(self.audit(asset).balanced for asset in self.store.audit)

    # -------------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------------

    def dispatch(self, instruction: str, payload: Dict[str, Any]) -> Any:
        """Выполнение операции по имени инструкции и JSON payload.

        Payload проходит JSON Schema контракт (если он есть для инструкции),
        затем превращается в модель запроса.

        Raises:
            KeyError: неизвестная инструкция
            jsonschema.ValidationError: payload не соответствует контракту
            pydantic.ValidationError: payload не соответствует модели
        """
        handler, request_model = self._handlers()[instruction]
        validate_instruction(instruction, payload)
        return handler(request_model.model_validate(payload))

    def _handlers(self) -> Dict[str, tuple]:
        return {
            "init_config": (self.init_config, InitConfigRequest),
            "update_config": (self.update_config, UpdateConfigRequest),
            "init_mint_info": (self.init_mint_info, InitMintInfoRequest),
            "create_locker": (self.create_locker, CreateLockerRequest),
            "relock": (self.relock, RelockRequest),
            "transfer_ownership": (self.transfer_ownership, TransferOwnershipRequest),
            "increment_lock": (self.increment_lock, IncrementLockRequest),
            "withdraw_funds": (self.withdraw, WithdrawRequest),
            "split_locker": (self.split, SplitRequest),
            "close_locker": (self.close, CloseRequest),
        }


def _check_fee_rate(numerator: int, denominator: int) -> None:
    try:
        validate_fee_rate(numerator, denominator)
    except ValueError as e:
        raise InvalidFeeRate(str(e)) from e


def _token_fee(fee: FeeDecision) -> int:
    """Комиссия, удержанная в активе locker'а (только пропорциональная)."""
    if isinstance(fee, ProportionalFee):
        return fee.amount
    return 0
