"""
MCRStateHistory — история состояний достаточности капитала

Состояния только добавляются. "Текущее" состояние — последнее в истории.
Отчёт (REPORT) не может иметь дату раньше текущего состояния; состояния
покупок (PURCHASE) наследуют дату текущего состояния.

Откат (rollback_to) используется только PurchaseProcessor для отмены
незавершённой покупки.
"""

import logging

from mcrpricing.core.domain.mcr_state import MCRState, ReportInput
from mcrpricing.core.errors import NoCapitalState, StaleReport

logger = logging.getLogger(__name__)


class MCRStateHistory:
    """Append-only история MCRState."""

    def __init__(self):
        self._states: list[MCRState] = []

    def __len__(self) -> int:
        return len(self._states)

    @property
    def current(self) -> MCRState:
        """
        Последнее состояние.

        Raises:
            NoCapitalState: История пуста
        """
        if not self._states:
            raise NoCapitalState("No capital state has been reported yet")
        return self._states[-1]

    @property
    def has_state(self) -> bool:
        return bool(self._states)

    @property
    def states(self) -> tuple[MCRState, ...]:
        """Все состояния (для аудита)."""
        return tuple(self._states)

    def at(self, sequence: int) -> MCRState:
        """Состояние по позиции в истории."""
        return self._states[sequence]

    def record_report(self, report: ReportInput) -> MCRState:
        """
        Добавление состояния из отчёта.

        Raises:
            StaleReport: Дата отчёта раньше даты текущего состояния
        """
        if self._states and report.effective_date < self._states[-1].effective_date:
            raise StaleReport(
                f"Report date {report.effective_date.isoformat()} is earlier than "
                f"current state date {self._states[-1].effective_date.isoformat()}"
            )

        state = MCRState.from_report(report, sequence=len(self._states))
        self._states.append(state)
        logger.info(
            "capital state reported: seq=%d ratio_bp=%d fund_value=%d required_capital=%d date=%s",
            state.sequence,
            state.ratio_bp,
            state.fund_value,
            state.required_capital,
            state.effective_date.isoformat(),
        )
        return state

    def record_purchase(self, fund_value: int, ratio_bp: int) -> MCRState:
        """Добавление состояния, выведенного из покупки."""
        state = self.current.derive(
            fund_value=fund_value, ratio_bp=ratio_bp, sequence=len(self._states)
        )
        self._states.append(state)
        return state

    def rollback_to(self, length: int) -> None:
        """Удаление состояний, добавленных после позиции length."""
        if length < len(self._states):
            del self._states[length:]
