"""
Fixed-Point Arithmetic — целочисленная арифметика с контролем переполнения

Все суммы в движке — целые числа с 18 знаками после запятой (wei).
MCR% хранится в базисных пунктах процента (9000 = 90.00%), курсы валют —
с двумя знаками (100 = 1.00 единицы валюты за 1 ETH).

Модуль обеспечивает:
- Масштабные константы (WAD, RATIO_SCALE, RATE_SCALE)
- Проверенные операции в диапазоне uint256 (сложение, вычитание, умножение)
- mul_div / ceil_div с явным направлением округления
- Валидацию целочисленных параметров

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Результат любой checked_* операции лежит в [0, UINT256_MAX]
2. Выход за диапазон всегда вызывает FixedPointOverflow (никогда не wrap)
3. Деление округляет вниз, если явно не указано иное
4. Все операции детерминированы
"""

from decimal import Decimal
from typing import Final

# =============================================================================
# МАСШТАБНЫЕ КОНСТАНТЫ
# =============================================================================

# Количество десятичных знаков базовой единицы (wei)
DECIMALS: Final[int] = 18

# 1.0 в fixed-point представлении
WAD: Final[int] = 10**DECIMALS

# 100.00% в базисных пунктах процента
RATIO_SCALE: Final[int] = 10_000

# 1.00 в представлении курса валюты
RATE_SCALE: Final[int] = 100

# Граница диапазона значений (uint256)
UINT256_MAX: Final[int] = 2**256 - 1


class FixedPointOverflow(ArithmeticError):
    """Результат операции вышел за диапазон [0, UINT256_MAX]."""

    pass


# =============================================================================
# ПРОВЕРЕННЫЕ ОПЕРАЦИИ
# =============================================================================


def is_uint256(value: int) -> bool:
    """Проверка, что значение — целое в диапазоне uint256 (bool не считается)."""
    return (
        isinstance(value, int)
        and not isinstance(value, bool)
        and 0 <= value <= UINT256_MAX
    )


def _checked(value: int, op: str) -> int:
    if value < 0:
        raise FixedPointOverflow(f"{op} underflow: result {value} < 0")
    if value > UINT256_MAX:
        raise FixedPointOverflow(f"{op} overflow: result exceeds uint256")
    return value


def checked_add(a: int, b: int) -> int:
    """
    Сложение с контролем переполнения.

    Raises:
        FixedPointOverflow: Если a + b > UINT256_MAX

    Examples:
        >>> checked_add(1, 2)
        3
    """
    return _checked(a + b, "add")


def checked_sub(a: int, b: int) -> int:
    """
    Вычитание с контролем отрицательного результата.

    Raises:
        FixedPointOverflow: Если a < b
    """
    return _checked(a - b, "sub")


def checked_mul(a: int, b: int) -> int:
    """
    Умножение с контролем переполнения.

    Raises:
        FixedPointOverflow: Если a * b > UINT256_MAX
    """
    return _checked(a * b, "mul")


def checked_pow(base: int, exponent: int) -> int:
    """
    Возведение в степень повторным checked_mul.

    Переполнение обнаруживается на промежуточном шаге, до построения
    гигантского целого.
    """
    if exponent < 0:
        raise ValueError(f"exponent must be non-negative, got {exponent}")

    result = 1
    for _ in range(exponent):
        result = checked_mul(result, base)
    return result


def mul_div(a: int, b: int, denominator: int) -> int:
    """
    Вычисление floor(a * b / denominator) с контролем переполнения произведения.

    Args:
        a: Первый множитель
        b: Второй множитель
        denominator: Делитель (> 0)

    Returns:
        Округлённый вниз результат

    Raises:
        ZeroDivisionError: Если denominator == 0
        FixedPointOverflow: Если a * b > UINT256_MAX

    Examples:
        >>> mul_div(10**17, 10**18, 2 * 10**16)
        5000000000000000000
    """
    if denominator == 0:
        raise ZeroDivisionError("mul_div denominator is zero")
    return checked_mul(a, b) // denominator


def ceil_div(numerator: int, denominator: int) -> int:
    """
    Целочисленное деление с округлением вверх.

    Examples:
        >>> ceil_div(7, 2)
        4
        >>> ceil_div(8, 2)
        4
    """
    if denominator <= 0:
        raise ZeroDivisionError(f"ceil_div denominator must be positive, got {denominator}")
    return -(-numerator // denominator)


# =============================================================================
# КОНВЕРСИЯ ДЛЯ ОТОБРАЖЕНИЯ
# =============================================================================


def to_wad(amount: int | str | Decimal) -> int:
    """
    Перевод человекочитаемой суммы в wei (округление вниз).

    Examples:
        >>> to_wad("0.1")
        100000000000000000
    """
    return int(Decimal(str(amount)) * WAD)


def from_wad(value: int) -> Decimal:
    """Перевод wei в Decimal (для логов и отчётов)."""
    return Decimal(value) / WAD


# =============================================================================
# ВАЛИДАЦИЯ
# =============================================================================


def validate_positive_int(value: int, name: str) -> None:
    """
    Валидация, что значение — положительное целое в диапазоне uint256.

    Raises:
        ValueError: Если value не int, bool, <= 0 или > UINT256_MAX
    """
    if not is_uint256(value):
        raise ValueError(f"{name} must be an integer in uint256 range, got {value!r}")

    if value == 0:
        raise ValueError(f"{name} must be positive, got {value}")


def validate_non_negative_int(value: int, name: str) -> None:
    """
    Валидация, что значение — неотрицательное целое в диапазоне uint256.

    Raises:
        ValueError: Если value не int, bool, < 0 или > UINT256_MAX
    """
    if not is_uint256(value):
        raise ValueError(f"{name} must be a non-negative integer in uint256 range, got {value!r}")
