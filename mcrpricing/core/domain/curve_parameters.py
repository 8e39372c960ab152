"""
CurveParameters — калибровка ступенчатой кривой цены

- growth_step: ширина ступени в пространстве MCR% (базисные пункты)
- scaling_factor: обратный вес вклада ступени в цену
- base_price: нижняя граница цены (wei за 1 токен)

Параметры заменяются только операцией калибровки; покупка использует
снапшот, взятый в начале покупки.
"""

from pydantic import BaseModel, Field, model_validator

from mcrpricing.core.math.fixed_point import UINT256_MAX

# Границы положительного целого параметра
_POSITIVE = {"gt": 0, "le": UINT256_MAX, "strict": True}


class CurveParameters(BaseModel):
    """Снапшот параметров кривой (frozen)."""

    growth_step: int = Field(..., description="Ширина ступени (bp MCR%)", **_POSITIVE)
    scaling_factor: int = Field(..., description="Обратный вес вклада ступени", **_POSITIVE)
    base_price: int = Field(..., description="Базовая цена (wei за токен)", **_POSITIVE)

    model_config = {"frozen": True}

    def with_updates(self, calibration: "CalibrationInput") -> "CurveParameters":
        """Новый снапшот с применённой калибровкой."""
        return CurveParameters(
            growth_step=calibration.growth_step or self.growth_step,
            scaling_factor=calibration.scaling_factor or self.scaling_factor,
            base_price=calibration.base_price or self.base_price,
        )


class CalibrationInput(BaseModel):
    """
    Запрос калибровки.

    Можно задать одно или несколько полей; хотя бы одно обязательно.
    """

    growth_step: int | None = Field(None, description="Новая ширина ступени", **_POSITIVE)
    scaling_factor: int | None = Field(None, description="Новый scaling factor", **_POSITIVE)
    base_price: int | None = Field(None, description="Новая базовая цена", **_POSITIVE)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_not_empty(self) -> "CalibrationInput":
        """Хотя бы один параметр задан."""
        if self.growth_step is None and self.scaling_factor is None and self.base_price is None:
            raise ValueError("Calibration must set at least one parameter")
        return self
