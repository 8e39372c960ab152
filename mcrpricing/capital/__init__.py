"""Capital — пул капитала по валютам и история состояний MCR."""

from .ledger import CapitalLedger, LedgerCheckpoint
from .mcr_history import MCRStateHistory

__all__ = [
    "CapitalLedger",
    "LedgerCheckpoint",
    "MCRStateHistory",
]
