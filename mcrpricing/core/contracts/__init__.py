"""
Contract Validation Module

Модуль для валидации JSON контрактов движка (отчёты, покупки, калибровка,
настройки).
"""

from .validators import (
    CalibrationValidator,
    CapitalReportValidator,
    ContractValidator,
    EngineSettingsValidator,
    PurchaseRequestValidator,
    SchemaLoader,
    validate_calibration,
    validate_capital_report,
    validate_engine_settings,
    validate_purchase_request,
)

__all__ = [
    # Classes
    "SchemaLoader",
    "ContractValidator",
    "CapitalReportValidator",
    "PurchaseRequestValidator",
    "CalibrationValidator",
    "EngineSettingsValidator",
    # Functions
    "validate_capital_report",
    "validate_purchase_request",
    "validate_calibration",
    "validate_engine_settings",
]
