"""Pricing — ступенчатая кривая цены токена по MCR% и её интеграл."""

from .curve import (
    PRICE_EXPONENT,
    fund_at_step_boundary,
    integrate,
    ratio_for_fund,
    resolve_rate,
    spot_price,
    step_bounds,
    step_index_for_fund,
    step_index_for_ratio,
    step_price,
)

__all__ = [
    "PRICE_EXPONENT",
    "fund_at_step_boundary",
    "integrate",
    "ratio_for_fund",
    "resolve_rate",
    "spot_price",
    "step_bounds",
    "step_index_for_fund",
    "step_index_for_ratio",
    "step_price",
]
