"""
Fixed Point — целочисленная арифметика с контролем переполнения

Все суммы в системе — беззнаковые 64-битные целые (минимальные единицы
актива). Модуль даёт единственный допустимый способ вычислять доли от сумм:
- mul_div: floor(a * b / denominator) без переполнения промежуточного значения
- checked_add / checked_sub: сложение/вычитание в пределах u64
- clamp: ограничение значения диапазоном (для timestamp'ов)
- validate_*: проверки входных параметров

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. mul_div всегда округляет вниз (floor), никогда не вверх
2. mul_div(a, b, d) == mul_div(b, a, d)
3. None возвращается тогда и только тогда, когда результат не помещается
   в u64 или denominator == 0
4. Промежуточные значения не превышают 128 бит (max-first-divide)
"""

from typing import Final

# =============================================================================
# ГРАНИЦЫ
# =============================================================================

# Ширина выходного значения (u64)
U64_MAX: Final[int] = 2**64 - 1

# Знаменатель комиссии в базисных пунктах
BPS_DENOMINATOR: Final[int] = 10_000


# =============================================================================
# MUL_DIV
# =============================================================================


def mul_div(a: int, b: int, denominator: int) -> int | None:
    """
    floor(a * b / denominator) с защитой от переполнения.

    Алгоритм (max-first-divide):
        big, small = max(a, b), min(a, b)
        q, r = divmod(big, denominator)
        result = q * small + (r * small) // denominator

    Поскольку big = q * d + r, то big * small / d = q * small + r * small / d,
    а q * small — целое, поэтому floor применяется только ко второму слагаемому.
    r < d <= U64_MAX, следовательно r * small < 2**128.

    Args:
        a: Первый множитель (u64)
        b: Второй множитель (u64)
        denominator: Делитель (u64)

    Returns:
        Результат или None при делении на ноль / выходе за пределы u64

    Raises:
        ValueError: Если аргумент отрицательный или больше U64_MAX

    Examples:
        >>> mul_div(10_000, 35, 10_000)
        35
        >>> mul_div(1_000, 250, 750)
        333
        >>> mul_div(1, 1, 0) is None
        True
        >>> mul_div(U64_MAX, 2, 1) is None
        True
    """
    validate_u64(a, "a")
    validate_u64(b, "b")
    validate_u64(denominator, "denominator")

    if denominator == 0:
        return None

    big, small = (a, b) if a >= b else (b, a)
    quotient, remainder = divmod(big, denominator)

    whole = quotient * small
    if whole > U64_MAX:
        return None

    result = whole + (remainder * small) // denominator
    if result > U64_MAX:
        return None

    return result


def bps_of(amount: int, bps: int) -> int | None:
    """
    Доля amount в базисных пунктах: floor(amount * bps / 10000).

    Args:
        amount: Сумма (u64)
        bps: Ставка в базисных пунктах (35 = 0.35%)

    Returns:
        Результат или None при переполнении
    """
    return mul_div(amount, bps, BPS_DENOMINATOR)


# =============================================================================
# CHECKED ОПЕРАЦИИ
# =============================================================================


def checked_add(a: int, b: int) -> int | None:
    """Сложение в пределах u64. None при переполнении."""
    result = a + b
    if result < 0 or result > U64_MAX:
        return None
    return result


def checked_sub(a: int, b: int) -> int | None:
    """Вычитание в пределах u64. None если результат отрицательный."""
    result = a - b
    if result < 0 or result > U64_MAX:
        return None
    return result


# =============================================================================
# УТИЛИТЫ
# =============================================================================


def clamp(
    value: int,
    min_value: int | None = None,
    max_value: int | None = None,
) -> int:
    """
    Ограничение значения в заданном диапазоне.

    Examples:
        >>> clamp(5, 0, 10)
        5
        >>> clamp(-1, 0, 10)
        0
        >>> clamp(15, 0, 10)
        10
    """
    result = value

    if min_value is not None:
        result = max(result, min_value)

    if max_value is not None:
        result = min(result, max_value)

    return result


# =============================================================================
# ВАЛИДАЦИЯ
# =============================================================================


def is_u64(value: int) -> bool:
    """True если value — целое в диапазоне [0, U64_MAX]."""
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= U64_MAX


def validate_u64(value: int, name: str) -> None:
    """
    Валидация, что значение — u64.

    Raises:
        ValueError: Если value не целое или вне [0, U64_MAX]
    """
    if not is_u64(value):
        raise ValueError(f"{name} must be an integer in [0, {U64_MAX}], got {value!r}")


def validate_fee_rate(numerator: int, denominator: int) -> None:
    """
    Валидация рациональной ставки комиссии.

    Raises:
        ValueError: Если denominator == 0 или numerator > denominator
    """
    validate_u64(numerator, "numerator")
    validate_u64(denominator, "denominator")

    if denominator == 0:
        raise ValueError("fee denominator must be positive")

    if numerator > denominator:
        raise ValueError(
            f"fee numerator {numerator} exceeds denominator {denominator}"
        )
