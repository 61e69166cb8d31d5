# services/events.py
"""
Inbound events, one dataclass per event kind.

Rows from the events DB are turned into these by `event_from_row`.
"""
from dataclasses import dataclass
from typing import Dict, Optional, Union

from tvl_pipeline.utils.normalizers import normalize_address

OPERATOR_REGISTERED = "OPERATOR_REGISTERED"
OPERATOR_DEREGISTERED = "OPERATOR_DEREGISTERED"
SHARES_INCREASED = "INCREASED"
SHARES_DECREASED = "DECREASED"


@dataclass(frozen=True)
class OperatorRegistered:
    operator: str
    block_number: int
    log_index: int = 0
    transaction_hash: Optional[str] = None


@dataclass(frozen=True)
class OperatorDeregistered:
    operator: str
    block_number: int
    log_index: int = 0
    transaction_hash: Optional[str] = None


@dataclass(frozen=True)
class OperatorSharesIncreased:
    operator: str
    strategy: str
    shares: int
    block_number: int
    log_index: int = 0
    transaction_hash: Optional[str] = None


@dataclass(frozen=True)
class OperatorSharesDecreased:
    operator: str
    strategy: str
    shares: int
    block_number: int
    log_index: int = 0
    transaction_hash: Optional[str] = None


LedgerEvent = Union[
    OperatorRegistered,
    OperatorDeregistered,
    OperatorSharesIncreased,
    OperatorSharesDecreased,
]


def event_from_row(row: Dict) -> LedgerEvent:
    """
    Build an event from an events-DB row.

    Expected keys: event_type, operator_id, strategy_id, shares,
    block_number, log_index, transaction_hash.
    """
    event_type = row.get("event_type")
    common = {
        "operator": normalize_address(row["operator_id"]),
        "block_number": int(row["block_number"]),
        "log_index": int(row.get("log_index") or 0),
        "transaction_hash": row.get("transaction_hash"),
    }

    if event_type == OPERATOR_REGISTERED:
        return OperatorRegistered(**common)
    if event_type == OPERATOR_DEREGISTERED:
        return OperatorDeregistered(**common)

    if event_type in (SHARES_INCREASED, SHARES_DECREASED):
        if not row.get("strategy_id"):
            raise ValueError(
                f"Share event at block {common['block_number']} "
                f"log {common['log_index']} has no strategy"
            )
        event_cls = (
            OperatorSharesIncreased
            if event_type == SHARES_INCREASED
            else OperatorSharesDecreased
        )
        return event_cls(
            strategy=normalize_address(row["strategy_id"]),
            shares=int(row.get("shares") or 0),
            **common,
        )

    raise ValueError(f"Unknown event type: {event_type!r}")
