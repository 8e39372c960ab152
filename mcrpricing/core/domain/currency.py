"""
Currency — коды валют, курсы и конверсия в базовую валюту

Код валюты — фиксированной ширины (до 4 ASCII байт). Принимается в виде
текста ("ETH"), байтов (b"ETH\\x00") или hex-строки ("0x455448",
"0x45544800"); всегда нормализуется в текст верхнего регистра без
NUL-заполнения.

Курс (rate) — количество единиц валюты за 1 единицу базовой валюты,
масштабированное на RATE_SCALE (100 = 1.00). Для базовой валюты rate = 100.
Стоимость одной единицы валюты в базовой валюте = RATE_SCALE / rate.
"""

from dataclasses import dataclass
from typing import Final

from pydantic import BaseModel, Field, field_validator

from mcrpricing.core.math.fixed_point import RATE_SCALE, UINT256_MAX, mul_div

# Ширина кода валюты в байтах
CURRENCY_CODE_WIDTH: Final[int] = 4

# Базовая валюта пула по умолчанию
BASE_CURRENCY: Final[str] = "ETH"


def normalize_currency_code(value: str | bytes) -> str:
    """
    Нормализация кода валюты.

    Args:
        value: "ETH", b"ETH", "0x455448" или "0x45544800"

    Returns:
        Код в верхнем регистре без NUL-заполнения

    Raises:
        ValueError: Пустой код, длиннее 4 байт или не ASCII alnum

    Examples:
        >>> normalize_currency_code("0x45544800")
        'ETH'
        >>> normalize_currency_code("dai")
        'DAI'
    """
    if isinstance(value, str) and value[:2].lower() == "0x":
        try:
            value = bytes.fromhex(value[2:])
        except ValueError as e:
            raise ValueError(f"Invalid hex currency code {value!r}: {e}") from e

    if isinstance(value, (bytes, bytearray)):
        raw = bytes(value).rstrip(b"\x00")
        if len(raw) > CURRENCY_CODE_WIDTH:
            raise ValueError(
                f"Currency code {value!r} wider than {CURRENCY_CODE_WIDTH} bytes"
            )
        try:
            value = raw.decode("ascii")
        except UnicodeDecodeError as e:
            raise ValueError(f"Currency code {value!r} is not ASCII") from e

    if not isinstance(value, str):
        raise ValueError(f"Currency code must be str or bytes, got {type(value).__name__}")

    code = value.strip().upper()

    if not code:
        raise ValueError("Currency code is empty")

    if len(code) > CURRENCY_CODE_WIDTH:
        raise ValueError(f"Currency code {code!r} longer than {CURRENCY_CODE_WIDTH} chars")

    if not (code.isascii() and code.isalnum()):
        raise ValueError(f"Currency code {code!r} must be ASCII alphanumeric")

    return code


def to_base_amount(amount: int, rate: int) -> int:
    """
    Конверсия суммы в валюте в базовую валюту (округление вниз).

    base = amount * RATE_SCALE / rate

    Examples:
        >>> to_base_amount(15517, 15517)
        100
    """
    return mul_div(amount, RATE_SCALE, rate)


def from_base_amount(base_amount: int, rate: int) -> int:
    """
    Конверсия суммы в базовой валюте в валюту (округление вниз).

    amount = base_amount * rate / RATE_SCALE
    """
    return mul_div(base_amount, rate, RATE_SCALE)


# =============================================================================
# MODELS
# =============================================================================


class CurrencyRate(BaseModel):
    """
    Запись снапшота курсов: код валюты и её курс к базовой валюте.
    """

    code: str = Field(..., description="Код валюты (нормализованный)")
    rate: int = Field(
        ..., gt=0, le=UINT256_MAX, description="Единиц валюты за 1 ETH (x100)"
    )

    model_config = {"frozen": True}

    @field_validator("code", mode="before")
    @classmethod
    def normalize_code(cls, v: str | bytes) -> str:
        """Приведение кода к каноническому виду."""
        return normalize_currency_code(v)


@dataclass(frozen=True)
class Currency:
    """Представление пула валюты в ledger: код, курс и баланс."""

    code: str
    rate: int
    balance: int

    def base_value(self) -> int:
        """Стоимость баланса в базовой валюте."""
        return to_base_amount(self.balance, self.rate)
