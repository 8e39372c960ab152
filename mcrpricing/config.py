"""
EngineSettings — конфигурация движка ценообразования

Значения по умолчанию откалиброваны так, что при MCR% = 90.00%,
требуемом капитале 100 ETH и фонде 90 ETH:
- 0.1 ETH покупает ~5.13 токена
- 100 ETH за одну покупку — ~5114 токенов
"""

from dataclasses import asdict, dataclass
from typing import Any, Final, Mapping

from mcrpricing.core.contracts import validate_engine_settings
from mcrpricing.core.domain.currency import BASE_CURRENCY, normalize_currency_code
from mcrpricing.core.domain.curve_parameters import CurveParameters
from mcrpricing.core.math.fixed_point import validate_positive_int

# Базовая цена токена: 0.01948 ETH
DEFAULT_BASE_PRICE: Final[int] = 1948 * 10**13

# Ширина ступени: 20.00% MCR
DEFAULT_GROWTH_STEP: Final[int] = 2000

# Обратный вес вклада ступени
DEFAULT_SCALING_FACTOR: Final[int] = 5203349

# Лимит ступеней, пересекаемых одной покупкой
DEFAULT_MAX_CURVE_STEPS: Final[int] = 100_000


@dataclass(frozen=True)
class EngineSettings:
    """Конфигурация движка.

    Коды модулей используются только при сборке через реестр модулей.
    """

    base_currency: str = BASE_CURRENCY
    base_price: int = DEFAULT_BASE_PRICE
    default_growth_step: int = DEFAULT_GROWTH_STEP
    default_scaling_factor: int = DEFAULT_SCALING_FACTOR
    max_curve_steps: int = DEFAULT_MAX_CURVE_STEPS
    membership_module_code: str = "MR"
    token_module_code: str = "TK"

    def __post_init__(self):
        object.__setattr__(self, "base_currency", normalize_currency_code(self.base_currency))
        validate_positive_int(self.base_price, "base_price")
        validate_positive_int(self.default_growth_step, "default_growth_step")
        validate_positive_int(self.default_scaling_factor, "default_scaling_factor")
        validate_positive_int(self.max_curve_steps, "max_curve_steps")
        if not self.membership_module_code or not self.token_module_code:
            raise ValueError("module codes must be non-empty")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "EngineSettings":
        """
        Создание настроек из словаря (например, загруженного JSON).

        Raises:
            jsonschema.ValidationError: Словарь не соответствует схеме engine_settings
        """
        payload = dict(data)
        validate_engine_settings(payload)
        return cls(**payload)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def initial_parameters(self) -> CurveParameters:
        """Параметры кривой до первой калибровки."""
        return CurveParameters(
            growth_step=self.default_growth_step,
            scaling_factor=self.default_scaling_factor,
            base_price=self.base_price,
        )
