"""PurchaseProcessor — атомарная покупка токена

Порядок:
1. Eligibility gate (NotEligible при блокировке)
2. Снапшот текущего MCRState; параметры кривой передаются снапшотом
3. Интеграл кривой (ZeroPayment / UnknownCurrency / PurchaseAborted)
4. Commit: зачисление в ledger → производное состояние → mint

Commit атомарен: при сбое любого шага ledger и история откатываются,
бросается PurchaseAborted. Токены при сбое не выпускаются.
"""

import logging
from dataclasses import dataclass

from mcrpricing.capital.ledger import CapitalLedger
from mcrpricing.capital.mcr_history import MCRStateHistory
from mcrpricing.collaborators import TokenMinter
from mcrpricing.core.domain.currency import BASE_CURRENCY
from mcrpricing.core.domain.curve_parameters import CurveParameters
from mcrpricing.core.domain.purchase import PurchaseRequest, PurchaseResult
from mcrpricing.core.errors import NotEligible, PurchaseAborted
from mcrpricing.pricing.curve import integrate
from mcrpricing.purchase.eligibility_gate import EligibilityGate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessorConfig:
    """Конфигурация PurchaseProcessor."""

    base_currency: str = BASE_CURRENCY
    max_curve_steps: int | None = 100_000


class PurchaseProcessor:
    """Оркестрация покупки: gate → интеграл → атомарный commit."""

    def __init__(
        self,
        ledger: CapitalLedger,
        history: MCRStateHistory,
        minter: TokenMinter,
        gate: EligibilityGate,
        config: ProcessorConfig | None = None,
    ):
        self.ledger = ledger
        self.history = history
        self.minter = minter
        self.gate = gate
        self.config = config or ProcessorConfig()

    def quote(self, request: PurchaseRequest, params: CurveParameters) -> PurchaseResult:
        """Интеграл по текущему состоянию без допуска и commit."""
        return integrate(
            request.payment_amount,
            request.currency,
            self.history.current,
            params,
            max_steps=self.config.max_curve_steps,
            base_currency=self.config.base_currency,
        )

    def purchase(
        self,
        request: PurchaseRequest,
        params: CurveParameters,
        purchases_halted: bool = False,
    ) -> PurchaseResult:
        """Покупка токена.

        Args:
            request: валидированный запрос покупки
            params: снапшот параметров кривой на момент начала покупки
            purchases_halted: флаг ручной остановки покупок

        Returns:
            PurchaseResult зафиксированной покупки

        Raises:
            NotEligible: плательщик не допущен
            ZeroPayment: нулевой платёж
            UnknownCurrency: валюта отсутствует в снапшоте
            NoCapitalState: отчётов о капитале ещё не было
            PurchaseAborted: переполнение, лимит ступеней или сбой commit
        """
        # 1. Допуск
        admission = self.gate.evaluate(request.payer, purchases_halted=purchases_halted)
        if not admission.entry_allowed:
            logger.warning(
                "purchase rejected: payer=%s reason=%s", request.payer, admission.block_reason
            )
            raise NotEligible(admission.details, reason=admission.block_reason)

        # 2-3. Интеграл по снапшоту
        result = self.quote(request, params)

        # 4. Commit
        checkpoint = self.ledger.checkpoint()
        history_length = len(self.history)
        try:
            self.ledger.credit(result.currency, request.payment_amount)
            self.history.record_purchase(result.new_fund_value, result.new_ratio_bp)
            self.minter.mint(request.payer, result.minted_quantity)
        except Exception as e:
            self.ledger.restore(checkpoint)
            self.history.rollback_to(history_length)
            logger.warning(
                "purchase aborted and rolled back: payer=%s amount=%d %s error=%s",
                request.payer,
                request.payment_amount,
                result.currency,
                e,
            )
            raise PurchaseAborted(f"Purchase commit failed: {e}", reason="commit_failed") from e

        logger.info(
            "purchase committed: payer=%s amount=%d %s minted=%d tranches=%d ratio_bp=%d",
            request.payer,
            request.payment_amount,
            result.currency,
            result.minted_quantity,
            len(result.tranches),
            result.new_ratio_bp,
        )
        return result
