"""Eligibility Gate: допуск плательщика к покупке токена

Блокирует покупку при:
  * Ручной остановке покупок оператором (purchases_halted)
  * Пустом идентификаторе плательщика
  * Отказе membership-коллаборатора (нет взноса / KYC)

Gate не изменяет состояние и не бросает исключений: решение возвращается
в EligibilityResult, PurchaseProcessor превращает блокировку в NotEligible.
"""

from dataclasses import dataclass

from mcrpricing.collaborators import MembershipRegistry


@dataclass(frozen=True)
class EligibilityResult:
    """Результат проверки допуска."""

    entry_allowed: bool
    block_reason: str

    # Входные параметры для диагностики
    payer: str
    purchases_halted: bool

    # Детали
    details: str


class EligibilityGate:
    """Gate допуска плательщика.

    Порядок проверок:
    1. Manual halt → блокировка (высший приоритет)
    2. Пустой payer → блокировка
    3. membership.is_eligible(payer) → блокировка, если False
    """

    def __init__(self, membership: MembershipRegistry):
        """
        Args:
            membership: коллаборатор проверки членства
        """
        self.membership = membership

    def evaluate(self, payer: str, purchases_halted: bool = False) -> EligibilityResult:
        """Оценка допуска плательщика.

        Args:
            payer: идентификатор плательщика
            purchases_halted: флаг ручной остановки покупок

        Returns:
            EligibilityResult с решением о допуске
        """
        # 1. Manual halt
        if purchases_halted:
            return EligibilityResult(
                entry_allowed=False,
                block_reason="purchases_halted",
                payer=payer,
                purchases_halted=purchases_halted,
                details="Manual halt: purchases suspended by operator"
            )

        # 2. Идентификатор плательщика
        if not payer:
            return EligibilityResult(
                entry_allowed=False,
                block_reason="payer_missing",
                payer=payer,
                purchases_halted=purchases_halted,
                details="Payer identifier is empty"
            )

        # 3. Membership
        if not self.membership.is_eligible(payer):
            return EligibilityResult(
                entry_allowed=False,
                block_reason="payer_not_member",
                payer=payer,
                purchases_halted=purchases_halted,
                details=f"Payer {payer} is not an eligible member"
            )

        # 4. PASS
        return EligibilityResult(
            entry_allowed=True,
            block_reason="",
            payer=payer,
            purchases_halted=purchases_halted,
            details=f"PASS: payer={payer}"
        )
