"""
Locker Errors — типизированные ошибки операций

Каждая ошибка:
- несёт стабильный ErrorCode (str enum, пригоден для сериализации)
- не предполагает автоматического повтора (non-retryable)
- прерывает операцию целиком, состояние откатывается в LockerProgram.atomic()

Вызывающая сторона может повторить запрос после исправления условия.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Коды ошибок операций locker'а."""

    # Ошибки входных данных при создании
    UNLOCK_IN_THE_PAST = "UnlockInThePast"
    INVALID_TIMESTAMP = "InvalidTimestamp"
    INVALID_PERIOD = "InvalidPeriod"
    INVALID_COUNTRY = "InvalidCountry"
    LINEAR_EMISSION_DISABLED = "LinearEmissionDisabled"

    # Комиссии
    INVALID_FEE_DESTINATION = "InvalidFeeDestination"
    INVALID_FEE_RATE = "InvalidFeeRate"

    # Арифметика и суммы
    INTEGER_OVERFLOW = "IntegerOverflow"
    NOTHING_TO_LOCK = "NothingToLock"
    INVALID_AMOUNT = "InvalidAmount"
    AMOUNT_MISMATCH = "AmountMismatch"

    # Жизненный цикл
    CANNOT_UNLOCK_EARLIER = "CannotUnlockEarlier"
    TOO_EARLY_TO_WITHDRAW = "TooEarlyToWithdraw"

    # Авторизация и записи
    UNAUTHORIZED = "Unauthorized"
    CONFIG_NOT_INITIALIZED = "ConfigNotInitialized"
    CONFIG_ALREADY_INITIALIZED = "ConfigAlreadyInitialized"
    MINT_NOT_REGISTERED = "MintNotRegistered"
    LOCKER_NOT_FOUND = "LockerNotFound"
    LOCKER_ALREADY_EXISTS = "LockerAlreadyExists"


class LockerError(Exception):
    """
    Базовая ошибка locker'а.

    Подклассы задают атрибут класса `code`. Сообщение опционально,
    по умолчанию используется значение кода.
    """

    code: ErrorCode

    def __init__(self, message: str = ""):
        self.message = message or self.code.value
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.message == self.code.value:
            return self.code.value
        return f"{self.code.value}: {self.message}"


class UnlockInThePast(LockerError):
    code = ErrorCode.UNLOCK_IN_THE_PAST


class InvalidTimestamp(LockerError):
    code = ErrorCode.INVALID_TIMESTAMP


class InvalidPeriod(LockerError):
    code = ErrorCode.INVALID_PERIOD


class InvalidCountry(LockerError):
    code = ErrorCode.INVALID_COUNTRY


class LinearEmissionDisabled(LockerError):
    code = ErrorCode.LINEAR_EMISSION_DISABLED


class InvalidFeeDestination(LockerError):
    code = ErrorCode.INVALID_FEE_DESTINATION


class InvalidFeeRate(LockerError):
    code = ErrorCode.INVALID_FEE_RATE


class IntegerOverflow(LockerError):
    code = ErrorCode.INTEGER_OVERFLOW


class NothingToLock(LockerError):
    code = ErrorCode.NOTHING_TO_LOCK


class InvalidAmount(LockerError):
    code = ErrorCode.INVALID_AMOUNT


class AmountMismatch(LockerError):
    """Внешний transfer переместил сумму, отличную от запрошенной."""

    code = ErrorCode.AMOUNT_MISMATCH

    def __init__(self, expected: int, actual: int, source: str = ""):
        self.expected = expected
        self.actual = actual
        self.source = source
        super().__init__(
            f"expected {expected} to leave {source or 'source'}, observed {actual}"
        )


class CannotUnlockEarlier(LockerError):
    code = ErrorCode.CANNOT_UNLOCK_EARLIER


class TooEarlyToWithdraw(LockerError):
    code = ErrorCode.TOO_EARLY_TO_WITHDRAW


class Unauthorized(LockerError):
    code = ErrorCode.UNAUTHORIZED


class ConfigNotInitialized(LockerError):
    code = ErrorCode.CONFIG_NOT_INITIALIZED


class ConfigAlreadyInitialized(LockerError):
    code = ErrorCode.CONFIG_ALREADY_INITIALIZED


class MintNotRegistered(LockerError):
    code = ErrorCode.MINT_NOT_REGISTERED


class LockerNotFound(LockerError):
    code = ErrorCode.LOCKER_NOT_FOUND


class LockerAlreadyExists(LockerError):
    code = ErrorCode.LOCKER_ALREADY_EXISTS
