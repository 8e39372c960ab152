"""
Purchase — запрос и результат покупки токена

PurchaseRequest валидируется на границе (Pydantic), результаты интеграла
кривой — frozen dataclasses и нигде не сохраняются.
"""

from dataclasses import dataclass

from pydantic import BaseModel, Field, field_validator

from mcrpricing.core.domain.currency import normalize_currency_code
from mcrpricing.core.math.fixed_point import UINT256_MAX, WAD


class PurchaseRequest(BaseModel):
    """
    Запрос покупки: плательщик, сумма (wei валюты), валюта.

    Пустой payer и неположительная сумма здесь допустимы: их отклоняют
    eligibility gate (NotEligible) и интеграл кривой (ZeroPayment).
    """

    payer: str = Field(..., description="Идентификатор плательщика")
    payment_amount: int = Field(
        ..., le=UINT256_MAX, strict=True, description="Сумма платежа (в единицах валюты)"
    )
    currency: str = Field(..., description="Код валюты платежа")

    model_config = {"frozen": True}

    @field_validator("currency", mode="before")
    @classmethod
    def normalize_code(cls, v):
        """Приведение кода к каноническому виду."""
        return normalize_currency_code(v)


@dataclass(frozen=True)
class Tranche:
    """Часть покупки внутри одной ступени кривой."""

    step_index: int
    base_amount: int  # Потреблено базовой валюты (wei)
    price: int  # Цена ступени (wei за токен)
    tokens: int  # Начислено токенов (wei токена)


@dataclass(frozen=True)
class StepBounds:
    """Границы ступени: диапазон MCR% и цены на нижней и верхней границе."""

    index: int
    lower_ratio_bp: int
    upper_ratio_bp: int
    floor_price: int  # Цена ступени
    ceiling_price: int  # Цена следующей ступени


@dataclass(frozen=True)
class PurchaseResult:
    """Результат интеграла кривой по платежу."""

    minted_quantity: int
    new_fund_value: int
    new_ratio_bp: int

    # Входные параметры для диагностики
    currency: str
    payment_amount: int
    base_amount: int

    tranches: tuple[Tranche, ...]

    @property
    def steps_crossed(self) -> int:
        """Число границ ступеней, пересечённых покупкой."""
        return max(len(self.tranches) - 1, 0)

    def average_price(self) -> int:
        """Средняя цена покупки (wei базовой валюты за токен)."""
        if self.minted_quantity == 0:
            return 0
        return self.base_amount * WAD // self.minted_quantity
