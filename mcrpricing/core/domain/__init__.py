"""
Domain models and value objects.

Contains currency codes and rates, MCR state snapshots, curve calibration
and purchase results.
"""

from mcrpricing.core.domain.currency import (
    BASE_CURRENCY,
    CURRENCY_CODE_WIDTH,
    Currency,
    CurrencyRate,
    from_base_amount,
    normalize_currency_code,
    to_base_amount,
)
from mcrpricing.core.domain.curve_parameters import CalibrationInput, CurveParameters
from mcrpricing.core.domain.mcr_state import (
    MCRState,
    ReportInput,
    StateOrigin,
    parse_effective_date,
)
from mcrpricing.core.domain.purchase import (
    PurchaseRequest,
    PurchaseResult,
    StepBounds,
    Tranche,
)

__all__ = [
    # Currency
    "BASE_CURRENCY",
    "CURRENCY_CODE_WIDTH",
    "Currency",
    "CurrencyRate",
    "from_base_amount",
    "normalize_currency_code",
    "to_base_amount",
    # Curve calibration
    "CalibrationInput",
    "CurveParameters",
    # MCR state
    "MCRState",
    "ReportInput",
    "StateOrigin",
    "parse_effective_date",
    # Purchase
    "PurchaseRequest",
    "PurchaseResult",
    "StepBounds",
    "Tranche",
]
