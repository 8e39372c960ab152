"""
MCRState — снапшот достаточности капитала

Immutable Pydantic модели:
- ReportInput: входной отчёт о капитале, валидируемый на границе
- MCRState: зафиксированное состояние {MCR%, требуемый капитал,
  стоимость фонда, снапшот курсов, дата}

Состояния только добавляются в историю (см. capital.mcr_history) и никогда
не изменяются. Состояние создаётся либо внешним отчётом (REPORT), либо
выводится из результата покупки (PURCHASE).
"""

from datetime import date
from enum import Enum

from pydantic import BaseModel, Field, field_validator, model_validator

from mcrpricing.core.domain.currency import CurrencyRate, normalize_currency_code
from mcrpricing.core.math.fixed_point import UINT256_MAX


# =============================================================================
# ENUMS
# =============================================================================


class StateOrigin(str, Enum):
    """Источник состояния."""

    REPORT = "REPORT"  # Внешний отчёт о капитале
    PURCHASE = "PURCHASE"  # Выведено из покупки


# =============================================================================
# HELPERS
# =============================================================================


def parse_effective_date(value):
    """
    Приведение даты отчёта.

    Помимо date и ISO-строки принимает целое YYYYMMDD (20190219),
    как в формате внешних отчётов о капитале.
    """
    if isinstance(value, bool):
        raise ValueError(f"effective_date must be a date, got {value!r}")

    if isinstance(value, str) and len(value) == 8 and value.isdigit():
        value = int(value)

    if isinstance(value, int):
        year, rest = divmod(value, 10_000)
        month, day = divmod(rest, 100)
        try:
            return date(year, month, day)
        except ValueError as e:
            raise ValueError(f"effective_date {value} is not a valid YYYYMMDD date: {e}") from e

    return value


def _ensure_unique(codes: list[str]) -> None:
    seen = set()
    for code in codes:
        if code in seen:
            raise ValueError(f"Duplicate currency code {code!r}")
        seen.add(code)


# =============================================================================
# REPORT INPUT
# =============================================================================


class ReportInput(BaseModel):
    """
    Отчёт о достаточности капитала.

    Списки currency_codes и rates — одинаковой ненулевой длины,
    все курсы > 0, коды уникальны.
    """

    ratio_bp: int = Field(..., ge=0, le=UINT256_MAX, description="MCR% (9000 = 90.00%)")
    required_capital: int = Field(
        ..., gt=0, le=UINT256_MAX, description="Требуемый капитал (wei, ETH-эквивалент)"
    )
    fund_value: int = Field(
        ..., ge=0, le=UINT256_MAX, description="Стоимость фонда (wei, ETH-эквивалент)"
    )
    currency_codes: list[str] = Field(..., min_length=1, description="Коды валют")
    rates: list[int] = Field(..., min_length=1, description="Курсы валют (x100)")
    effective_date: date = Field(..., description="Дата отчёта")

    model_config = {"frozen": True}

    @field_validator("currency_codes", mode="before")
    @classmethod
    def normalize_codes(cls, v):
        """Нормализация кодов валют."""
        if not isinstance(v, (list, tuple)):
            raise ValueError("currency_codes must be a list")
        return [normalize_currency_code(code) for code in v]

    @field_validator("rates")
    @classmethod
    def validate_rates(cls, v: list[int]) -> list[int]:
        """Каждый курс положительный и в диапазоне uint256."""
        for rate in v:
            if rate <= 0 or rate > UINT256_MAX:
                raise ValueError(f"rate must be positive uint256, got {rate}")
        return v

    @field_validator("effective_date", mode="before")
    @classmethod
    def parse_date(cls, v):
        """Поддержка формата YYYYMMDD."""
        return parse_effective_date(v)

    @model_validator(mode="after")
    def validate_lists(self) -> "ReportInput":
        """Длины списков совпадают, коды уникальны."""
        if len(self.currency_codes) != len(self.rates):
            raise ValueError(
                f"currency_codes ({len(self.currency_codes)}) and rates "
                f"({len(self.rates)}) must have equal length"
            )
        _ensure_unique(self.currency_codes)
        return self

    def currency_snapshot(self) -> tuple[CurrencyRate, ...]:
        """Снапшот курсов в порядке отчёта."""
        return tuple(
            CurrencyRate(code=code, rate=rate)
            for code, rate in zip(self.currency_codes, self.rates)
        )


# =============================================================================
# MCR STATE
# =============================================================================


class MCRState(BaseModel):
    """
    Зафиксированное состояние достаточности капитала.

    Immutable модель (frozen=True). Движок всегда читает последнее
    состояние истории ("current").
    """

    ratio_bp: int = Field(..., ge=0, le=UINT256_MAX, description="MCR% (9000 = 90.00%)")
    required_capital: int = Field(
        ..., gt=0, le=UINT256_MAX, description="Требуемый капитал (wei)"
    )
    fund_value: int = Field(..., ge=0, le=UINT256_MAX, description="Стоимость фонда (wei)")
    currency_snapshot: tuple[CurrencyRate, ...] = Field(
        ..., min_length=1, description="Снапшот курсов валют"
    )
    effective_date: date = Field(..., description="Дата состояния")
    origin: StateOrigin = Field(StateOrigin.REPORT, description="Источник состояния")
    sequence: int = Field(0, ge=0, description="Позиция в истории")

    model_config = {"frozen": True}

    @field_validator("currency_snapshot")
    @classmethod
    def validate_unique_codes(
        cls, v: tuple[CurrencyRate, ...]
    ) -> tuple[CurrencyRate, ...]:
        """Коды валют в снапшоте уникальны."""
        _ensure_unique([entry.code for entry in v])
        return v

    @classmethod
    def from_report(cls, report: ReportInput, sequence: int) -> "MCRState":
        """Создание состояния из отчёта."""
        return cls(
            ratio_bp=report.ratio_bp,
            required_capital=report.required_capital,
            fund_value=report.fund_value,
            currency_snapshot=report.currency_snapshot(),
            effective_date=report.effective_date,
            origin=StateOrigin.REPORT,
            sequence=sequence,
        )

    def rate_for(self, code: str) -> int | None:
        """Курс валюты из снапшота или None, если валюты нет."""
        for entry in self.currency_snapshot:
            if entry.code == code:
                return entry.rate
        return None

    def codes(self) -> tuple[str, ...]:
        """Коды валют снапшота в исходном порядке."""
        return tuple(entry.code for entry in self.currency_snapshot)

    def derive(self, fund_value: int, ratio_bp: int, sequence: int) -> "MCRState":
        """
        Новое состояние после покупки.

        Требуемый капитал, снапшот курсов и дата наследуются от текущего.
        """
        return MCRState(
            ratio_bp=ratio_bp,
            required_capital=self.required_capital,
            fund_value=fund_value,
            currency_snapshot=self.currency_snapshot,
            effective_date=self.effective_date,
            origin=StateOrigin.PURCHASE,
            sequence=sequence,
        )
