from .base import Base, TimestampMixin
from .ledger import (
    LedgerCheckpoint,
    OperatorShareState,
    OperatorStrategyShares,
    NetworkTotalShares,
)

__all__ = [
    "Base",
    "TimestampMixin",
    "LedgerCheckpoint",
    "OperatorShareState",
    "OperatorStrategyShares",
    "NetworkTotalShares",
]
