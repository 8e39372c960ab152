"""Purchase — допуск плательщика и атомарная покупка токена."""

from .eligibility_gate import EligibilityGate, EligibilityResult
from .processor import ProcessorConfig, PurchaseProcessor

__all__ = [
    "EligibilityGate",
    "EligibilityResult",
    "ProcessorConfig",
    "PurchaseProcessor",
]
