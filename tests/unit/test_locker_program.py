"""Тесты для Locker State Machine.

Coverage:
- Config: init / update / init_mint_info, права admin
- Create: комиссии (flat / proportional / paid-once / permissioned), предусловия
- Relock / TransferOwnership / IncrementLock
- Withdraw: cliff, linear с checkpoint, закрытие vault
- Split / Close
- Атомарность: откат при AmountMismatch и ошибках ledger'а
- Сохранение сумм: vaults + fees + released == deposited
"""

from types import SimpleNamespace

import pytest

from src.core.domain import (
    CloseRequest,
    ConfigUpdate,
    CountryBanList,
    CreateLockerRequest,
    IncrementLockRequest,
    InitConfigRequest,
    InitMintInfoRequest,
    LockerState,
    RelockRequest,
    SplitRequest,
    TransferOwnershipRequest,
    UpdateConfigRequest,
    WithdrawRequest,
)
from src.core.domain.errors import (
    AmountMismatch,
    CannotUnlockEarlier,
    ConfigAlreadyInitialized,
    ConfigNotInitialized,
    InvalidAmount,
    InvalidCountry,
    InvalidFeeDestination,
    InvalidFeeRate,
    InvalidPeriod,
    InvalidTimestamp,
    LinearEmissionDisabled,
    LockerAlreadyExists,
    LockerNotFound,
    MintNotRegistered,
    NothingToLock,
    TooEarlyToWithdraw,
    Unauthorized,
    UnlockInThePast,
)
from src.ledger import (
    NATIVE_ASSET,
    InMemoryLedger,
    LedgerError,
    ManualClock,
    Sha256AddressDeriver,
)
from src.locker import LockerProgram

NOW = 1_700_000_000
ADMIN = "admin"
FEE_OWNER = "fee-owner"
ASSET = "TOKEN"
FLAT_FEE = 1_000


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def env():
    """Программа с инициализированным Config и счетами alice/bob."""
    ledger = InMemoryLedger()
    clock = ManualClock(NOW)
    deriver = Sha256AddressDeriver()
    program = LockerProgram(ledger, clock, deriver)

    program.init_config(
        InitConfigRequest(
            signers={ADMIN},
            admin=ADMIN,
            flat_fee_amount=FLAT_FEE,
            fee_destination=FEE_OWNER,
        )
    )

    fee_token = deriver.associated_account(FEE_OWNER, ASSET)
    ledger.open_account(fee_token, ASSET, FEE_OWNER)
    ledger.open_account(FEE_OWNER, NATIVE_ASSET, FEE_OWNER)

    ledger.open_account("alice-wallet", ASSET, "alice")
    ledger.mint("alice-wallet", 1_000_000)
    alice_native = deriver.associated_account("alice", NATIVE_ASSET)
    ledger.open_account(alice_native, NATIVE_ASSET, "alice")
    ledger.mint(alice_native, 10_000)

    ledger.open_account("alice-target", ASSET, "alice")
    ledger.open_account("bob-target", ASSET, "bob")

    return SimpleNamespace(
        program=program,
        ledger=ledger,
        clock=clock,
        deriver=deriver,
        fee_token=fee_token,
        alice_native=alice_native,
    )


def create(
    env,
    amount=10_000,
    unlock_date=NOW + 100,
    start_emission=None,
    owner="alice",
    fee_in_native=False,
    country_code="US",
    fee_wallet=None,
):
    if fee_wallet is None:
        fee_wallet = FEE_OWNER if fee_in_native else env.fee_token
    return env.program.create_locker(
        CreateLockerRequest(
            signers={"alice"},
            creator="alice",
            owner=owner,
            funding_wallet="alice-wallet",
            funding_wallet_authority="alice",
            fee_wallet=fee_wallet,
            amount=amount,
            unlock_date=unlock_date,
            country_code=country_code,
            start_emission=start_emission,
            fee_in_native=fee_in_native,
        )
    )


def withdraw(env, locker, amount, signer="alice", target="alice-target"):
    return env.program.withdraw(
        WithdrawRequest(signers={signer}, locker=locker.address, target_wallet=target, amount=amount)
    )


def update_config(env, **fields):
    return env.program.update_config(
        UpdateConfigRequest(signers={ADMIN}, update=ConfigUpdate(**fields))
    )


# =============================================================================
# CONFIG
# =============================================================================


class TestConfig:
    def test_operations_require_config(self):
        program = LockerProgram(InMemoryLedger(), ManualClock(NOW))
        with pytest.raises(ConfigNotInitialized):
            program.update_config(UpdateConfigRequest(signers={ADMIN}, update=ConfigUpdate()))

    def test_init_twice(self, env):
        with pytest.raises(ConfigAlreadyInitialized):
            env.program.init_config(
                InitConfigRequest(
                    signers={ADMIN}, admin=ADMIN, flat_fee_amount=0, fee_destination=FEE_OWNER
                )
            )

    def test_init_requires_admin_signature(self):
        program = LockerProgram(InMemoryLedger(), ManualClock(NOW))
        with pytest.raises(Unauthorized):
            program.init_config(
                InitConfigRequest(
                    signers={"mallory"}, admin=ADMIN, flat_fee_amount=0, fee_destination=FEE_OWNER
                )
            )

    def test_init_rejects_bad_rate(self):
        program = LockerProgram(InMemoryLedger(), ManualClock(NOW))
        with pytest.raises(InvalidFeeRate, match="must be positive"):
            program.init_config(
                InitConfigRequest(
                    signers={ADMIN},
                    admin=ADMIN,
                    flat_fee_amount=0,
                    fee_destination=FEE_OWNER,
                    proportional_fee_denominator=0,
                )
            )

    def test_partial_update(self, env):
        config = update_config(env, flat_fee_amount=7)

        assert config.flat_fee_amount == 7
        assert config.proportional_fee_numerator == 35
        assert config.version == 2
        assert env.program.store.config == config

    def test_update_requires_admin(self, env):
        with pytest.raises(Unauthorized):
            env.program.update_config(
                UpdateConfigRequest(signers={"mallory"}, update=ConfigUpdate(flat_fee_amount=0))
            )

    def test_update_rejects_numerator_above_denominator(self, env):
        with pytest.raises(InvalidFeeRate, match="exceeds denominator"):
            update_config(env, proportional_fee_numerator=10_001)
        assert env.program.store.config.version == 1

    def test_admin_handover(self, env):
        update_config(env, admin="new-admin")
        with pytest.raises(Unauthorized):
            update_config(env, flat_fee_amount=0)


class TestMintInfo:
    def test_anyone_registers_when_open(self, env):
        info = env.program.init_mint_info(
            InitMintInfoRequest(signers={"bob"}, payer="bob", asset="OTHER")
        )
        assert info.asset == "OTHER"
        assert not info.fee_paid

    def test_register_is_idempotent(self, env):
        request = InitMintInfoRequest(signers={"bob"}, payer="bob", asset="OTHER")
        assert env.program.init_mint_info(request) == env.program.init_mint_info(request)

    def test_only_admin_when_permissioned(self, env):
        update_config(env, mint_info_permissioned=True)

        with pytest.raises(Unauthorized):
            env.program.init_mint_info(
                InitMintInfoRequest(signers={"bob"}, payer="bob", asset="OTHER")
            )

        info = env.program.init_mint_info(
            InitMintInfoRequest(signers={"bob", ADMIN}, payer="bob", asset="OTHER")
        )
        assert info.asset == "OTHER"


# =============================================================================
# CREATE
# =============================================================================


class TestCreate:
    def test_proportional_fee_scenario(self, env):
        """amount=10000, fee 35/10000 → fee 35, locked 9965"""
        locker = create(env)

        assert locker.deposited_amount == 9_965
        assert locker.state == LockerState.ACTIVE
        assert locker.original_unlock_date == NOW + 100
        assert locker.current_unlock_date == NOW + 100
        assert locker.last_withdraw is None
        assert env.ledger.balance_of(locker.vault) == 9_965
        assert env.ledger.balance_of(env.fee_token) == 35
        assert env.ledger.balance_of("alice-wallet") == 1_000_000 - 10_000
        assert env.program.is_mint_whitelisted(ASSET)

    def test_fee_charged_once_per_asset(self, env):
        create(env, amount=10_000)
        second = create(env, amount=20_000)

        assert second.deposited_amount == 20_000
        assert env.ledger.balance_of(env.fee_token) == 35

    def test_permissioned_charges_every_time(self, env):
        update_config(env, mint_info_permissioned=True)
        env.program.init_mint_info(
            InitMintInfoRequest(signers={ADMIN}, payer=ADMIN, asset=ASSET)
        )

        create(env, amount=10_000)
        create(env, amount=20_000)

        assert env.ledger.balance_of(env.fee_token) == 35 + 70
        assert not env.program.is_mint_whitelisted(ASSET)

    def test_permissioned_unknown_asset(self, env):
        update_config(env, mint_info_permissioned=True)
        with pytest.raises(MintNotRegistered):
            create(env)

    def test_flat_fee(self, env):
        locker = create(env, amount=10_000, fee_in_native=True)

        assert locker.deposited_amount == 10_000
        assert env.ledger.balance_of(FEE_OWNER) == FLAT_FEE
        assert env.ledger.balance_of(env.alice_native) == 10_000 - FLAT_FEE
        assert env.ledger.balance_of(env.fee_token) == 0
        assert env.program.store.native_fees == FLAT_FEE

    def test_invalid_fee_destination(self, env):
        with pytest.raises(InvalidFeeDestination):
            create(env, fee_wallet="mallory-wallet")
        assert env.program.get_lockers() == []

    def test_unlock_in_the_past(self, env):
        with pytest.raises(UnlockInThePast):
            create(env, unlock_date=NOW)

    def test_millisecond_unlock_date(self, env):
        with pytest.raises(InvalidTimestamp):
            create(env, unlock_date=(NOW + 100) * 1_000)

    def test_start_emission_must_precede_unlock(self, env):
        with pytest.raises(InvalidPeriod):
            create(env, start_emission=NOW + 100, unlock_date=NOW + 100)

    def test_linear_emission_disabled(self, env):
        update_config(env, linear_emission_enabled=False)
        with pytest.raises(LinearEmissionDisabled):
            create(env, start_emission=NOW)

    def test_nothing_to_lock(self, env):
        with pytest.raises(NothingToLock):
            create(env, amount=0)

    def test_full_rate_fee_leaves_nothing(self, env):
        update_config(env, proportional_fee_numerator=1, proportional_fee_denominator=1)
        with pytest.raises(NothingToLock):
            create(env)
        assert env.ledger.balance_of("alice-wallet") == 1_000_000

    def test_requires_signatures(self, env):
        with pytest.raises(Unauthorized):
            env.program.create_locker(
                CreateLockerRequest(
                    signers={"mallory"},
                    creator="alice",
                    owner="alice",
                    funding_wallet="alice-wallet",
                    funding_wallet_authority="alice",
                    fee_wallet=env.fee_token,
                    amount=10_000,
                    unlock_date=NOW + 100,
                    country_code="US",
                )
            )

    def test_duplicate_address(self, env):
        create(env)
        with pytest.raises(LockerAlreadyExists):
            create(env)

    def test_country_code_normalized(self, env):
        locker = create(env, country_code=" de ")
        assert locker.country_code == "DE"

    def test_banned_country(self, env):
        banlist = CountryBanList(admin=ADMIN, address="banlist-1", codes=["US", "RU"])
        banlist.flip_ban(ADMIN, "RU", True)
        env.program.register_country_list("banlist-1", banlist)
        update_config(env, country_list_ref="banlist-1")

        with pytest.raises(InvalidCountry):
            create(env, country_code="ru")

        assert create(env, country_code="us").country_code == "US"

    def test_unavailable_country_list(self, env):
        update_config(env, country_list_ref="missing")
        with pytest.raises(InvalidCountry):
            create(env)


# =============================================================================
# RELOCK / TRANSFER OWNERSHIP
# =============================================================================


class TestRelock:
    def test_relock_scenario(self, env):
        locker = create(env)

        with pytest.raises(CannotUnlockEarlier):
            env.program.relock(
                RelockRequest(signers={"alice"}, locker=locker.address, unlock_date=NOW + 50)
            )
        with pytest.raises(CannotUnlockEarlier):
            env.program.relock(
                RelockRequest(signers={"alice"}, locker=locker.address, unlock_date=NOW + 100)
            )

        relocked = env.program.relock(
            RelockRequest(signers={"alice"}, locker=locker.address, unlock_date=NOW + 200)
        )

        assert relocked.current_unlock_date == NOW + 200
        assert relocked.original_unlock_date == NOW + 100
        assert relocked.deposited_amount == locker.deposited_amount
        assert relocked.owner == locker.owner
        assert env.program.get_locker(locker.address) == relocked

    def test_relock_requires_owner(self, env):
        locker = create(env)
        with pytest.raises(Unauthorized):
            env.program.relock(
                RelockRequest(signers={"bob"}, locker=locker.address, unlock_date=NOW + 200)
            )

    def test_relock_rejects_milliseconds(self, env):
        locker = create(env)
        with pytest.raises(InvalidTimestamp):
            env.program.relock(
                RelockRequest(signers={"alice"}, locker=locker.address, unlock_date=NOW * 1_000)
            )

    def test_unknown_locker(self, env):
        with pytest.raises(LockerNotFound):
            env.program.relock(
                RelockRequest(signers={"alice"}, locker="missing", unlock_date=NOW + 200)
            )


class TestTransferOwnership:
    def test_new_owner_takes_over(self, env):
        locker = create(env)
        moved = env.program.transfer_ownership(
            TransferOwnershipRequest(signers={"alice"}, locker=locker.address, new_owner="bob")
        )

        assert moved.owner == "bob"
        assert moved.creator == "alice"
        assert env.program.get_lockers_owned_by("bob") == [moved]
        assert env.program.get_lockers_owned_by("alice") == []

        env.clock.set(NOW + 101)
        with pytest.raises(Unauthorized):
            withdraw(env, locker, 100, signer="alice")
        assert withdraw(env, locker, 100, signer="bob", target="bob-target").amount == 100

    def test_requires_owner(self, env):
        locker = create(env)
        with pytest.raises(Unauthorized):
            env.program.transfer_ownership(
                TransferOwnershipRequest(signers={"bob"}, locker=locker.address, new_owner="bob")
            )


# =============================================================================
# INCREMENT
# =============================================================================


class TestIncrementLock:
    def increment(self, env, locker, amount, fee_wallet=None, signer="alice"):
        return env.program.increment_lock(
            IncrementLockRequest(
                signers={signer},
                locker=locker.address,
                funding_wallet="alice-wallet",
                funding_wallet_authority="alice",
                fee_wallet=fee_wallet or env.fee_token,
                amount=amount,
            )
        )

    def test_increment_after_fee_paid(self, env):
        locker = create(env, amount=1_000, fee_in_native=True)
        incremented = self.increment(env, locker, 500)

        assert incremented.deposited_amount == 1_500
        assert env.ledger.balance_of(locker.vault) == 1_500
        assert env.ledger.balance_of(env.fee_token) == 0

    def test_increment_charges_fee_when_permissioned(self, env):
        locker = create(env, amount=10_000)
        update_config(env, mint_info_permissioned=True)

        incremented = self.increment(env, locker, 10_000)

        assert incremented.deposited_amount == 9_965 + 9_965
        assert env.ledger.balance_of(env.fee_token) == 70

    def test_increment_keeps_checkpoint(self, env):
        locker = create(env, amount=1_000, unlock_date=NOW + 1_000, start_emission=NOW, fee_in_native=True)
        env.clock.set(NOW + 250)
        withdraw(env, locker, 1_000)

        incremented = self.increment(env, locker, 500)
        assert incremented.last_withdraw == NOW + 250

    def test_requires_funding_authority(self, env):
        locker = create(env)
        with pytest.raises(Unauthorized):
            self.increment(env, locker, 500, signer="bob")

    def test_nothing_to_lock(self, env):
        locker = create(env)
        with pytest.raises(NothingToLock):
            self.increment(env, locker, 0)


# =============================================================================
# WITHDRAW
# =============================================================================


class TestWithdraw:
    def test_cliff_scenario(self, env):
        """Вывод до даты разблокировки запрещён, после — весь остаток и закрытие"""
        locker = create(env)

        env.clock.set(NOW + 50)
        with pytest.raises(TooEarlyToWithdraw):
            withdraw(env, locker, 9_965)

        env.clock.set(NOW + 101)
        result = withdraw(env, locker, 9_965)

        assert result.amount == 9_965
        assert result.closed
        assert result.locker.state == LockerState.CLOSED
        assert not env.ledger.has_account(locker.vault)
        assert env.program.get_lockers() == []
        assert env.ledger.balance_of("alice-target") == 9_965
        assert env.program.check_conservation()

    def test_zero_amount_always_fails(self, env):
        locker = create(env)
        env.clock.set(NOW + 101)
        with pytest.raises(InvalidAmount):
            withdraw(env, locker, 0)

    def test_partial_cliff_withdraw_keeps_locker(self, env):
        locker = create(env)
        env.clock.set(NOW + 101)

        result = withdraw(env, locker, 1_000)

        assert not result.closed
        assert result.locker.last_withdraw is None
        assert env.program.vault_balance(locker.address) == 8_965

    def test_linear_checkpoint_scenario(self, env):
        """250 в t=+250, затем 1000*250/750 = 333 в t=+500"""
        locker = create(env, amount=1_000, unlock_date=NOW + 1_000, start_emission=NOW, fee_in_native=True)
        assert locker.deposited_amount == 1_000

        env.clock.set(NOW + 250)
        first = withdraw(env, locker, 1_000)
        assert first.amount == 250
        assert first.locker.last_withdraw == NOW + 250

        env.clock.set(NOW + 500)
        second = withdraw(env, locker, 1_000)
        assert second.amount == 333
        assert second.quote.full_period == 750
        assert second.locker.last_withdraw == NOW + 500
        assert env.program.vault_balance(locker.address) == 1_000 - 250 - 333

    def test_linear_immediately_after_checkpoint(self, env):
        locker = create(env, amount=1_000, unlock_date=NOW + 1_000, start_emission=NOW, fee_in_native=True)
        env.clock.set(NOW + 250)
        withdraw(env, locker, 1_000)

        with pytest.raises(InvalidAmount):
            withdraw(env, locker, 1_000)

    def test_linear_after_end_releases_everything(self, env):
        locker = create(env, amount=1_000, unlock_date=NOW + 1_000, start_emission=NOW, fee_in_native=True)
        env.clock.set(NOW + 250)
        withdraw(env, locker, 1_000)

        env.clock.set(NOW + 1_001)
        result = withdraw(env, locker, 1_000)

        assert result.amount == 750
        assert result.closed
        assert env.program.check_conservation()

    def test_requires_owner(self, env):
        locker = create(env)
        env.clock.set(NOW + 101)
        with pytest.raises(Unauthorized):
            withdraw(env, locker, 100, signer="bob", target="bob-target")

    def test_amount_mismatch_rolls_back(self, env):
        """Недовоз при выводе → AmountMismatch, состояние не меняется"""
        locker = create(env, amount=1_000, unlock_date=NOW + 1_000, start_emission=NOW, fee_in_native=True)
        env.clock.set(NOW + 250)
        env.ledger.short_transfer_bps[ASSET] = 100

        with pytest.raises(AmountMismatch):
            withdraw(env, locker, 1_000)

        assert env.program.get_locker(locker.address) == locker
        assert env.program.vault_balance(locker.address) == 1_000
        assert env.ledger.balance_of("alice-target") == 0
        assert env.program.audit(ASSET).released == 0


# =============================================================================
# SPLIT
# =============================================================================


class TestSplit:
    def split(self, env, locker, amount, new_owner="bob", signer="alice"):
        return env.program.split(
            SplitRequest(signers={signer}, locker=locker.address, new_owner=new_owner, amount=amount)
        )

    def test_split_scenario(self, env):
        locker = create(env, amount=1_000, fee_in_native=True)

        result = self.split(env, locker, 400)

        assert result.old_locker.deposited_amount == 600
        assert result.new_locker.deposited_amount == 400
        assert not result.old_closed
        assert env.ledger.balance_of(result.old_locker.vault) == 600
        assert env.ledger.balance_of(result.new_locker.vault) == 400

        new = result.new_locker
        assert new.owner == "bob"
        assert new.creator == locker.address
        assert new.country_code == locker.country_code
        assert new.current_unlock_date == locker.current_unlock_date
        assert new.start_emission == locker.start_emission
        assert new.last_withdraw is None
        assert env.program.check_conservation()

    def test_same_amount_split_twice(self, env):
        locker = create(env)

        first = self.split(env, locker, 400, new_owner="bob")
        second = self.split(env, locker, 400, new_owner="carol")

        assert first.new_locker.address != second.new_locker.address
        assert second.old_locker.deposited_amount == 9_965 - 800
        assert second.old_locker.split_count == 2
        assert env.program.get_lockers_owned_by("bob") == [first.new_locker]
        assert env.program.get_lockers_owned_by("carol") == [second.new_locker]
        assert env.ledger.balance_of(first.new_locker.vault) == 400
        assert env.ledger.balance_of(second.new_locker.vault) == 400
        assert env.program.check_conservation()

    def test_split_whole_balance_closes_old(self, env):
        locker = create(env, amount=1_000, fee_in_native=True)

        result = self.split(env, locker, 1_000)

        assert result.old_closed
        assert not env.ledger.has_account(locker.vault)
        assert env.program.get_lockers() == [result.new_locker]

    def test_split_preserves_linear_schedule(self, env):
        locker = create(env, amount=1_000, unlock_date=NOW + 1_000, start_emission=NOW, fee_in_native=True)
        env.clock.set(NOW + 250)
        withdraw(env, locker, 1_000)

        result = self.split(env, locker, 300)

        assert result.new_locker.start_emission == NOW
        assert result.new_locker.last_withdraw is None
        assert result.old_locker.last_withdraw == NOW + 250
        assert result.old_locker.deposited_amount == 700

    def test_invalid_amounts(self, env):
        locker = create(env, amount=1_000, fee_in_native=True)
        with pytest.raises(InvalidAmount):
            self.split(env, locker, 0)
        with pytest.raises(InvalidAmount):
            self.split(env, locker, 1_001)

    def test_requires_owner(self, env):
        locker = create(env, amount=1_000, fee_in_native=True)
        with pytest.raises(Unauthorized):
            self.split(env, locker, 100, signer="bob")


# =============================================================================
# CLOSE
# =============================================================================


class TestClose:
    def close(self, env, locker, signer="alice"):
        return env.program.close(
            CloseRequest(signers={signer}, locker=locker.address, target_wallet="alice-target")
        )

    def test_close_after_unlock(self, env):
        locker = create(env)
        env.clock.set(NOW + 100)

        result = self.close(env, locker)

        assert result.amount == 9_965
        assert result.locker.state == LockerState.CLOSED
        assert not env.ledger.has_account(locker.vault)
        with pytest.raises(LockerNotFound):
            env.program.get_locker(locker.address)

    def test_close_before_unlock(self, env):
        locker = create(env)
        with pytest.raises(TooEarlyToWithdraw):
            self.close(env, locker)
        assert env.program.vault_balance(locker.address) == 9_965

    def test_requires_owner(self, env):
        locker = create(env)
        env.clock.set(NOW + 100)
        with pytest.raises(Unauthorized):
            self.close(env, locker, signer="bob")


# =============================================================================
# АТОМАРНОСТЬ И СОХРАНЕНИЕ СУММ
# =============================================================================


class TestAtomicity:
    def test_fee_on_transfer_create_rolls_back(self, env):
        """Недовоз при блокировке → AmountMismatch, комиссия тоже возвращается"""
        env.ledger.short_transfer_bps[ASSET] = 100

        with pytest.raises(AmountMismatch):
            create(env)

        assert env.ledger.balance_of("alice-wallet") == 1_000_000
        assert env.ledger.balance_of(env.fee_token) == 0
        assert env.program.get_lockers() == []
        assert not env.program.is_mint_whitelisted(ASSET)
        assert env.program.store.audit == {}

    def test_ledger_error_rolls_back_flat_fee(self, env):
        with pytest.raises(LedgerError):
            create(env, amount=2_000_000, fee_in_native=True)

        assert env.ledger.balance_of(env.alice_native) == 10_000
        assert env.ledger.balance_of(FEE_OWNER) == 0
        assert env.program.store.native_fees == 0


class TestConservation:
    def test_mixed_lifecycle(self, env):
        a = create(env, amount=10_000)
        b = create(env, amount=5_000, unlock_date=NOW + 1_000, start_emission=NOW)
        env.program.split(SplitRequest(signers={"alice"}, locker=a.address, new_owner="bob", amount=4_000))

        env.clock.set(NOW + 300)
        withdraw(env, b, 5_000)
        env.clock.set(NOW + 400)
        withdraw(env, a, 1_000)

        report = env.program.audit(ASSET)
        assert report.deposited == 15_000
        assert report.fees_paid == 35
        assert report.balanced
        assert env.program.check_conservation()

        vaults = sum(env.program.vault_balance(l.address) for l in env.program.get_lockers())
        assert vaults + report.fees_paid + report.released == report.deposited
