"""
PricingEngine — фасад движка ценообразования

Владеет общим изменяемым состоянием:
- CapitalLedger (балансы пула по валютам)
- MCRStateHistory (указатель на текущее MCRState)
- CurveParameters (калибровка кривой)

Все операции сериализованы одним re-entrant lock: каждая выполняется до
конца против одного согласованного "текущего" состояния. Покупка берёт
снапшот параметров и состояния один раз при входе.

Входные данные валидируются на границе (JSON Schema для словарей, затем
Pydantic); ошибки валидации превращаются в ошибки движка.
"""

import logging
import threading
from typing import Any, Mapping

import jsonschema
from pydantic import ValidationError

from mcrpricing.capital.ledger import CapitalLedger
from mcrpricing.capital.mcr_history import MCRStateHistory
from mcrpricing.collaborators import MembershipRegistry, ModuleRegistry, TokenMinter
from mcrpricing.config import EngineSettings
from mcrpricing.core.contracts import (
    validate_calibration,
    validate_capital_report,
    validate_purchase_request,
)
from mcrpricing.core.domain.curve_parameters import CalibrationInput, CurveParameters
from mcrpricing.core.domain.mcr_state import MCRState, ReportInput
from mcrpricing.core.domain.purchase import PurchaseRequest, PurchaseResult, StepBounds
from mcrpricing.core.errors import InvalidInput, InvalidParameter
from mcrpricing.pricing.curve import (
    ratio_for_fund,
    spot_price,
    step_bounds,
    step_index_for_ratio,
)
from mcrpricing.purchase.eligibility_gate import EligibilityGate
from mcrpricing.purchase.processor import ProcessorConfig, PurchaseProcessor

logger = logging.getLogger(__name__)


class PricingEngine:
    """Движок ценообразования токена по MCR%."""

    def __init__(
        self,
        membership: MembershipRegistry,
        minter: TokenMinter,
        settings: EngineSettings | None = None,
        ledger: CapitalLedger | None = None,
        history: MCRStateHistory | None = None,
    ):
        """
        Args:
            membership: коллаборатор проверки членства
            minter: коллаборатор выпуска токена
            settings: настройки движка
            ledger: ledger пула (по умолчанию пустой)
            history: история состояний (по умолчанию пустая)
        """
        self.settings = settings or EngineSettings()
        self.ledger = ledger if ledger is not None else CapitalLedger(self.settings.base_currency)
        self._history = history if history is not None else MCRStateHistory()
        self._parameters = self.settings.initial_parameters()
        self._purchases_halted = False
        self._lock = threading.RLock()

        self._processor = PurchaseProcessor(
            ledger=self.ledger,
            history=self._history,
            minter=minter,
            gate=EligibilityGate(membership),
            config=ProcessorConfig(
                base_currency=self.settings.base_currency,
                max_curve_steps=self.settings.max_curve_steps,
            ),
        )

    @classmethod
    def from_registry(
        cls,
        registry: ModuleRegistry,
        settings: EngineSettings | None = None,
    ) -> "PricingEngine":
        """Сборка движка: коллабораторы разрешаются один раз по коротким кодам."""
        settings = settings or EngineSettings()
        membership = registry.resolve(settings.membership_module_code)
        minter = registry.resolve(settings.token_module_code)

        if not isinstance(membership, MembershipRegistry):
            raise InvalidInput(
                f"Module {settings.membership_module_code!r} is not a membership registry",
                reason="unknown_module",
            )
        if not isinstance(minter, TokenMinter):
            raise InvalidInput(
                f"Module {settings.token_module_code!r} is not a token minter",
                reason="unknown_module",
            )

        return cls(membership=membership, minter=minter, settings=settings)

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def current_state(self) -> MCRState:
        """Текущее MCRState (NoCapitalState, если отчётов не было)."""
        with self._lock:
            return self._history.current

    @property
    def history(self) -> tuple[MCRState, ...]:
        """Все состояния для аудита."""
        with self._lock:
            return self._history.states

    @property
    def parameters(self) -> CurveParameters:
        """Снапшот параметров кривой."""
        with self._lock:
            return self._parameters

    @property
    def purchases_halted(self) -> bool:
        with self._lock:
            return self._purchases_halted

    # =========================================================================
    # CAPITAL REPORTING
    # =========================================================================

    def report_capital_state(self, report: ReportInput | Mapping[str, Any]) -> MCRState:
        """
        Добавление отчёта о капитале; заменяет текущее состояние.

        Raises:
            InvalidInput: Некорректные параметры отчёта
            StaleReport: Дата отчёта раньше текущего состояния
        """
        report = self._coerce_report(report)

        with self._lock:
            state = self._history.record_report(report)
            self.ledger.update_rates(state.currency_snapshot)
            return state

    @staticmethod
    def _coerce_report(report: ReportInput | Mapping[str, Any]) -> ReportInput:
        if isinstance(report, ReportInput):
            return report

        payload = dict(report)
        try:
            validate_capital_report(payload)
            return ReportInput.model_validate(payload)
        except jsonschema.ValidationError as e:
            raise InvalidInput(f"Capital report violates contract: {e.message}") from e
        except ValidationError as e:
            raise InvalidInput(f"Invalid capital report: {e}") from e

    # =========================================================================
    # CALIBRATION
    # =========================================================================

    def set_growth_step(self, value: int) -> CurveParameters:
        """Новая ширина ступени (InvalidParameter, если не положительное целое)."""
        return self.calibrate(self._calibration(growth_step=value))

    def set_scaling_factor(self, value: int) -> CurveParameters:
        """Новый scaling factor (InvalidParameter, если не положительное целое)."""
        return self.calibrate(self._calibration(scaling_factor=value))

    def calibrate(self, calibration: CalibrationInput | Mapping[str, Any]) -> CurveParameters:
        """
        Атомарная замена параметров кривой.

        Raises:
            InvalidParameter: Значение не положительное целое
        """
        if not isinstance(calibration, CalibrationInput):
            payload = dict(calibration)
            try:
                validate_calibration(payload)
            except jsonschema.ValidationError as e:
                raise InvalidParameter(f"Calibration violates contract: {e.message}") from e
            calibration = self._calibration(**payload)

        with self._lock:
            self._parameters = self._parameters.with_updates(calibration)
            logger.info(
                "curve calibrated: growth_step=%d scaling_factor=%d base_price=%d",
                self._parameters.growth_step,
                self._parameters.scaling_factor,
                self._parameters.base_price,
            )
            return self._parameters

    @staticmethod
    def _calibration(**values: Any) -> CalibrationInput:
        try:
            return CalibrationInput(**values)
        except ValidationError as e:
            raise InvalidParameter(f"Invalid calibration {values}: {e}") from e

    # =========================================================================
    # PRICING
    # =========================================================================

    def spot_price(self, currency: str | bytes) -> int:
        """
        Спот-цена токена в валюте по текущему состоянию.

        Raises:
            UnknownCurrency: Валюта отсутствует в снапшоте
            NoCapitalState: Отчётов о капитале не было
        """
        with self._lock:
            return spot_price(
                currency,
                self._history.current,
                self._parameters,
                base_currency=self.settings.base_currency,
            )

    def current_step(self) -> StepBounds:
        """Границы и цены ступени, содержащей текущий MCR%."""
        with self._lock:
            state = self._history.current
            index = step_index_for_ratio(state.ratio_bp, self._parameters)
            return step_bounds(index, state, self._parameters)

    def quote(self, payment_amount: int, currency: str | bytes) -> PurchaseResult:
        """Оценка покупки по текущему снапшоту без commit и проверки допуска."""
        request = self._build_request("", payment_amount, currency)
        with self._lock:
            return self._processor.quote(request, self._parameters)

    # =========================================================================
    # PURCHASE
    # =========================================================================

    def purchase(self, payer: str, payment_amount: int, currency: str | bytes) -> int:
        """
        Покупка токена; возвращает выпущенное количество.

        Raises:
            NotEligible, ZeroPayment, UnknownCurrency, PurchaseAborted
        """
        return self.purchase_receipt(payer, payment_amount, currency).minted_quantity

    def purchase_receipt(
        self, payer: str, payment_amount: int, currency: str | bytes
    ) -> PurchaseResult:
        """Покупка токена с полным результатом интеграла."""
        request = self._build_request(payer, payment_amount, currency)
        with self._lock:
            return self._processor.purchase(
                request,
                self._parameters,
                purchases_halted=self._purchases_halted,
            )

    def purchase_from_payload(self, payload: Mapping[str, Any]) -> int:
        """Покупка по JSON-запросу (контракт purchase_request)."""
        data = dict(payload)
        try:
            validate_purchase_request(data)
        except jsonschema.ValidationError as e:
            raise InvalidInput(f"Purchase request violates contract: {e.message}") from e
        return self.purchase(data["payer"], data["payment_amount"], data["currency"])

    @staticmethod
    def _build_request(payer: str, payment_amount: int, currency: str | bytes) -> PurchaseRequest:
        try:
            return PurchaseRequest(payer=payer, payment_amount=payment_amount, currency=currency)
        except ValidationError as e:
            raise InvalidInput(f"Invalid purchase request: {e}") from e

    def halt_purchases(self) -> None:
        """Ручная остановка покупок."""
        with self._lock:
            self._purchases_halted = True
            logger.warning("purchases halted by operator")

    def resume_purchases(self) -> None:
        """Возобновление покупок."""
        with self._lock:
            self._purchases_halted = False
            logger.info("purchases resumed by operator")

    # =========================================================================
    # LEDGER AGGREGATES
    # =========================================================================

    def ledger_fund_value(self) -> int:
        """Стоимость фонда по балансам ledger и последнему снапшоту курсов."""
        with self._lock:
            return self.ledger.fund_value()

    def ledger_capital_ratio(self) -> int:
        """MCR% по балансам ledger против текущего требуемого капитала."""
        with self._lock:
            return ratio_for_fund(
                self.ledger.fund_value(), self._history.current.required_capital
            )
