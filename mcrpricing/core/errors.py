"""
Ошибки движка ценообразования.

Все ошибки локальные и восстановимые: вызывающая сторона может повторить
операцию с исправленными входными данными. После любой ошибки общее
состояние (ledger, текущий MCRState, параметры кривой) не изменено.

Каждая ошибка несёт машиночитаемый `reason` (snake_case код причины).
"""


class PricingEngineError(Exception):
    """Базовая ошибка движка."""

    default_reason = "pricing_engine_error"

    def __init__(self, message: str, reason: str | None = None):
        super().__init__(message)
        self.reason = reason or self.default_reason


class InvalidInput(PricingEngineError):
    """Некорректные параметры отчёта или запроса."""

    default_reason = "invalid_input"


class StaleReport(PricingEngineError):
    """Дата отчёта раньше даты текущего состояния."""

    default_reason = "stale_report"


class InvalidParameter(PricingEngineError):
    """Неположительное значение калибровки кривой."""

    default_reason = "invalid_parameter"


class UnknownCurrency(PricingEngineError):
    """Валюта отсутствует в снапшоте курсов."""

    default_reason = "unknown_currency"

    def __init__(self, code: str):
        super().__init__(f"Unknown currency: {code!r}")
        self.code = code


class NotEligible(PricingEngineError):
    """Плательщик не допущен к покупке."""

    default_reason = "not_eligible"


class ZeroPayment(PricingEngineError):
    """Нулевой (или округляющийся до нуля) платёж."""

    default_reason = "zero_payment"


class PurchaseAborted(PricingEngineError):
    """
    Покупка прервана, состояние откатано.

    Причины: переполнение fixed-point арифметики при обходе ступеней,
    превышение лимита ступеней, сбой ledger / history / mint.
    """

    default_reason = "purchase_aborted"


class NoCapitalState(PricingEngineError):
    """Ни одного отчёта о капитале ещё не поступало."""

    default_reason = "no_capital_state"
