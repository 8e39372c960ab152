"""
CapitalLedger — пул капитала по валютам

Хранит баланс пула по каждой валюте и последний снапшот курсов, агрегирует
балансы в единую стоимость фонда в базовой валюте.

Балансы изменяются только PurchaseProcessor (credit) и откатываются через
checkpoint/restore при сбое покупки.
"""

import logging
from dataclasses import dataclass
from typing import Iterable

from mcrpricing.core.domain.currency import (
    BASE_CURRENCY,
    Currency,
    CurrencyRate,
    normalize_currency_code,
    to_base_amount,
)
from mcrpricing.core.errors import InvalidInput, UnknownCurrency
from mcrpricing.core.math.fixed_point import RATE_SCALE, checked_add, is_uint256

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerCheckpoint:
    """Снапшот ledger для отката."""

    balances: tuple[tuple[str, int], ...]
    rates: tuple[tuple[str, int], ...]


class CapitalLedger:
    """
    Балансы пула по валютам и снапшот курсов.

    Инварианты:
    - баланс >= 0 для каждой валюты
    - курс > 0 для каждой валюты
    - базовая валюта всегда имеет курс RATE_SCALE, если не задан отчётом
    """

    def __init__(self, base_currency: str = BASE_CURRENCY):
        self.base_currency = normalize_currency_code(base_currency)
        self._balances: dict[str, int] = {self.base_currency: 0}
        self._rates: dict[str, int] = {self.base_currency: RATE_SCALE}

    def _code(self, currency: str | bytes) -> str:
        try:
            return normalize_currency_code(currency)
        except ValueError as e:
            raise InvalidInput(str(e), reason="invalid_currency_code") from e

    # -------------------------------------------------------------------------
    # Балансы
    # -------------------------------------------------------------------------

    def register_currency(self, currency: str | bytes) -> str:
        """Регистрация валюты с нулевым балансом (идемпотентно)."""
        code = self._code(currency)
        self._balances.setdefault(code, 0)
        return code

    def balance_of(self, currency: str | bytes) -> int:
        """
        Баланс пула в валюте.

        Raises:
            UnknownCurrency: Валюта не зарегистрирована
        """
        code = self._code(currency)
        if code not in self._balances:
            raise UnknownCurrency(code)
        return self._balances[code]

    def credit(self, currency: str | bytes, amount: int) -> int:
        """
        Зачисление платежа в пул валюты.

        Returns:
            Новый баланс

        Raises:
            InvalidInput: amount не положительное целое
            FixedPointOverflow: Баланс выходит за uint256
        """
        if not is_uint256(amount) or amount == 0:
            raise InvalidInput(
                f"credit amount must be a positive integer, got {amount!r}",
                reason="invalid_amount",
            )

        code = self.register_currency(currency)
        new_balance = checked_add(self._balances[code], amount)
        self._balances[code] = new_balance
        logger.debug("ledger credit %s +%d -> %d", code, amount, new_balance)
        return new_balance

    # -------------------------------------------------------------------------
    # Курсы
    # -------------------------------------------------------------------------

    def update_rates(self, snapshot: Iterable[CurrencyRate]) -> None:
        """
        Замена снапшота курсов (из отчёта о капитале).

        Валюты снапшота регистрируются в ledger с нулевым балансом.
        """
        rates = {self.base_currency: RATE_SCALE}
        for entry in snapshot:
            rates[entry.code] = entry.rate
            self._balances.setdefault(entry.code, 0)
        self._rates = rates

    def rate_of(self, currency: str | bytes) -> int:
        """
        Курс валюты из последнего снапшота.

        Raises:
            UnknownCurrency: Курс неизвестен
        """
        code = self._code(currency)
        if code not in self._rates:
            raise UnknownCurrency(code)
        return self._rates[code]

    # -------------------------------------------------------------------------
    # Агрегаты
    # -------------------------------------------------------------------------

    def currency(self, currency: str | bytes) -> Currency:
        """Представление пула валюты: код, курс, баланс."""
        code = self._code(currency)
        return Currency(code=code, rate=self.rate_of(code), balance=self.balance_of(code))

    def currencies(self) -> tuple[Currency, ...]:
        """Все валюты с известным курсом (в порядке регистрации)."""
        return tuple(
            Currency(code=code, rate=self._rates[code], balance=balance)
            for code, balance in self._balances.items()
            if code in self._rates
        )

    def fund_value(self) -> int:
        """
        Стоимость фонда в базовой валюте: сумма балансов по курсам.

        Raises:
            UnknownCurrency: Ненулевой баланс в валюте без курса
        """
        total = 0
        for code, balance in self._balances.items():
            if balance == 0:
                continue
            if code not in self._rates:
                raise UnknownCurrency(code)
            total = checked_add(total, to_base_amount(balance, self._rates[code]))
        return total

    # -------------------------------------------------------------------------
    # Откат
    # -------------------------------------------------------------------------

    def checkpoint(self) -> LedgerCheckpoint:
        """Снапшот балансов и курсов."""
        return LedgerCheckpoint(
            balances=tuple(self._balances.items()),
            rates=tuple(self._rates.items()),
        )

    def restore(self, checkpoint: LedgerCheckpoint) -> None:
        """Восстановление ledger из снапшота."""
        self._balances = dict(checkpoint.balances)
        self._rates = dict(checkpoint.rates)
