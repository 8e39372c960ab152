"""
Коллабораторы движка: membership, выпуск токена, реестр модулей.

Движок получает коллабораторов через конструктор (dependency injection).
Реестр модулей используется только при сборке (PricingEngine.from_registry)
и никогда — внутри логики ценообразования.

In-memory реализации пригодны для тестов и симуляций.
"""

from typing import Any, Mapping, Protocol, runtime_checkable

from mcrpricing.core.errors import InvalidInput
from mcrpricing.core.math.fixed_point import checked_add, is_uint256


# =============================================================================
# PROTOCOLS
# =============================================================================


@runtime_checkable
class MembershipRegistry(Protocol):
    """Проверка допуска плательщика."""

    def is_eligible(self, payer: str) -> bool: ...


@runtime_checkable
class TokenMinter(Protocol):
    """Выпуск токена плательщику."""

    def mint(self, payer: str, amount: int) -> None: ...


@runtime_checkable
class ModuleRegistry(Protocol):
    """Разрешение коллаборатора по короткому коду."""

    def resolve(self, code: str) -> Any: ...


# =============================================================================
# IN-MEMORY IMPLEMENTATIONS
# =============================================================================


class InMemoryMembership:
    """
    Membership: допуск = оплачен вступительный взнос + положительный KYC.
    """

    def __init__(self, joining_fee: int = 0):
        self.joining_fee = joining_fee
        self._fee_paid: set[str] = set()
        self._kyc_passed: set[str] = set()

    def pay_joining_fee(self, payer: str, amount: int) -> None:
        """Оплата вступительного взноса."""
        if amount < self.joining_fee:
            raise InvalidInput(
                f"Joining fee {amount} below required {self.joining_fee}",
                reason="joining_fee_too_low",
            )
        self._fee_paid.add(payer)

    def kyc_verdict(self, payer: str, verdict: bool) -> None:
        """Решение KYC; отрицательное снимает допуск."""
        if verdict:
            self._kyc_passed.add(payer)
        else:
            self._kyc_passed.discard(payer)

    def is_eligible(self, payer: str) -> bool:
        return payer in self._fee_paid and payer in self._kyc_passed


class InMemoryTokenLedger:
    """Балансы токена и общий выпуск."""

    def __init__(self):
        self._balances: dict[str, int] = {}
        self.total_supply = 0

    def mint(self, payer: str, amount: int) -> None:
        if not is_uint256(amount):
            raise InvalidInput(f"mint amount must be uint256, got {amount!r}")
        new_supply = checked_add(self.total_supply, amount)
        self._balances[payer] = self._balances.get(payer, 0) + amount
        self.total_supply = new_supply

    def balance_of(self, holder: str) -> int:
        return self._balances.get(holder, 0)


class StaticModuleRegistry:
    """Реестр модулей на основе словаря {код: коллаборатор}."""

    def __init__(self, modules: Mapping[str, Any]):
        self._modules = dict(modules)

    def resolve(self, code: str) -> Any:
        try:
            return self._modules[code]
        except KeyError:
            raise InvalidInput(f"Module {code!r} not registered", reason="unknown_module") from None
