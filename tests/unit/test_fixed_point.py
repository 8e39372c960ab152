"""
Тесты для модуля Fixed-Point Arithmetic

Проверяет:
1. Масштабные константы
2. Проверенные операции в диапазоне uint256
3. mul_div / ceil_div и направление округления
4. Конверсию для отображения
5. Валидацию целочисленных параметров
"""

from decimal import Decimal

import pytest

from mcrpricing.core.math.fixed_point import (
    RATE_SCALE,
    RATIO_SCALE,
    UINT256_MAX,
    WAD,
    FixedPointOverflow,
    ceil_div,
    checked_add,
    checked_mul,
    checked_pow,
    checked_sub,
    from_wad,
    is_uint256,
    mul_div,
    to_wad,
    validate_non_negative_int,
    validate_positive_int,
)

# =============================================================================
# КОНСТАНТЫ
# =============================================================================


class TestConstants:
    """Тесты масштабных констант"""

    def test_scales(self) -> None:
        """18 знаков для сумм, bp для MCR%, x100 для курсов"""
        assert WAD == 10**18
        assert RATIO_SCALE == 10_000
        assert RATE_SCALE == 100
        assert UINT256_MAX == 2**256 - 1


# =============================================================================
# ПРОВЕРЕННЫЕ ОПЕРАЦИИ
# =============================================================================


class TestCheckedArithmetic:
    """Тесты checked_add / checked_sub / checked_mul / checked_pow"""

    def test_add_within_range(self) -> None:
        """Сложение в диапазоне не меняет результат"""
        assert checked_add(1, 2) == 3
        assert checked_add(UINT256_MAX, 0) == UINT256_MAX

    def test_add_overflow_raises(self) -> None:
        """Переполнение при сложении обнаруживается"""
        with pytest.raises(FixedPointOverflow, match="overflow"):
            checked_add(UINT256_MAX, 1)

    def test_sub_underflow_raises(self) -> None:
        """Отрицательный результат вычитания обнаруживается"""
        assert checked_sub(5, 5) == 0
        with pytest.raises(FixedPointOverflow, match="underflow"):
            checked_sub(1, 2)

    def test_mul_overflow_raises(self) -> None:
        """Произведение больше uint256 обнаруживается"""
        assert checked_mul(2**128, 2**127) == 2**255
        with pytest.raises(FixedPointOverflow):
            checked_mul(2**128, 2**128)

    def test_pow(self) -> None:
        """Степень вычисляется повторным checked_mul"""
        assert checked_pow(10, 0) == 1
        assert checked_pow(8000, 4) == 8000**4
        assert checked_pow(2, 255) == 2**255

    def test_pow_overflow_raises(self) -> None:
        """Переполнение обнаруживается на промежуточном шаге"""
        with pytest.raises(FixedPointOverflow):
            checked_pow(2, 256)

    def test_pow_negative_exponent_raises(self) -> None:
        """Отрицательная степень запрещена"""
        with pytest.raises(ValueError, match="non-negative"):
            checked_pow(2, -1)

    def test_overflow_is_arithmetic_error(self) -> None:
        """FixedPointOverflow — подкласс ArithmeticError"""
        assert issubclass(FixedPointOverflow, ArithmeticError)


class TestDivision:
    """Тесты mul_div и ceil_div"""

    def test_mul_div_exact(self) -> None:
        """Точное деление"""
        assert mul_div(10**17, WAD, 2 * 10**16) == 5 * WAD

    def test_mul_div_rounds_down(self) -> None:
        """mul_div округляет вниз"""
        assert mul_div(7, 1, 2) == 3
        assert mul_div(1, 1, 3) == 0

    def test_mul_div_zero_denominator(self) -> None:
        """Деление на ноль запрещено"""
        with pytest.raises(ZeroDivisionError):
            mul_div(1, 1, 0)

    def test_mul_div_product_overflow(self) -> None:
        """Переполнение произведения обнаруживается даже при большом делителе"""
        with pytest.raises(FixedPointOverflow):
            mul_div(2**200, 2**100, 2**100)

    def test_ceil_div(self) -> None:
        """ceil_div округляет вверх"""
        assert ceil_div(7, 2) == 4
        assert ceil_div(8, 2) == 4
        assert ceil_div(0, 5) == 0

    def test_ceil_div_invalid_denominator(self) -> None:
        """Неположительный делитель запрещён"""
        with pytest.raises(ZeroDivisionError):
            ceil_div(1, 0)


# =============================================================================
# КОНВЕРСИЯ
# =============================================================================


class TestConversion:
    """Тесты to_wad / from_wad"""

    def test_to_wad(self) -> None:
        """Человекочитаемые суммы переводятся в wei"""
        assert to_wad("0.1") == 10**17
        assert to_wad(5) == 5 * WAD
        assert to_wad(Decimal("100")) == 100 * WAD

    def test_from_wad(self) -> None:
        """wei переводятся в Decimal без потери точности"""
        assert from_wad(15 * 10**17) == Decimal("1.5")
        assert from_wad(1) == Decimal("1E-18")


# =============================================================================
# ВАЛИДАЦИЯ
# =============================================================================


class TestValidation:
    """Тесты валидации целочисленных параметров"""

    def test_is_uint256(self) -> None:
        """Только int в [0, UINT256_MAX], bool не считается"""
        assert is_uint256(0)
        assert is_uint256(UINT256_MAX)
        assert not is_uint256(-1)
        assert not is_uint256(UINT256_MAX + 1)
        assert not is_uint256(True)
        assert not is_uint256(1.0)

    def test_validate_positive_int(self) -> None:
        """Положительное целое проходит, остальное — ValueError"""
        validate_positive_int(1, "x")

        with pytest.raises(ValueError, match="must be positive"):
            validate_positive_int(0, "x")

        with pytest.raises(ValueError, match="uint256 range"):
            validate_positive_int(-3, "x")

        with pytest.raises(ValueError, match="uint256 range"):
            validate_positive_int(True, "x")

        with pytest.raises(ValueError, match="uint256 range"):
            validate_positive_int(1.5, "x")

    def test_validate_non_negative_int(self) -> None:
        """Ноль допустим, отрицательные — нет"""
        validate_non_negative_int(0, "x")

        with pytest.raises(ValueError, match="non-negative"):
            validate_non_negative_int(-1, "x")
