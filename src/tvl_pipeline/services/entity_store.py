# services/entity_store.py
"""
Entity store accessors for the share ledger.

Lookups return None when a record does not exist; callers decide whether to
start from a zero-valued record with the `*_or_new` helpers. Writes replace
the whole record.
"""
import copy
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Dict, List, Optional, Tuple, Union

from sqlalchemy import text

from tvl_pipeline.constants import TOTAL_SHARES_ID
from tvl_pipeline.db.models import (
    LedgerCheckpoint,
    NetworkTotalShares,
    OperatorShareState,
    OperatorStrategyShares,
)
from tvl_pipeline.services.records import Operator, StrategyShares, TotalShares

Record = Union[Operator, StrategyShares, TotalShares]

# pg_advisory_xact_lock key shared by every ledger writer
LEDGER_LOCK_KEY = 7_318_202_401


class EntityStore(ABC):
    @abstractmethod
    def get_operator(self, address: str) -> Optional[Operator]:
        pass

    @abstractmethod
    def get_strategy_shares(
        self, operator: str, strategy: str
    ) -> Optional[StrategyShares]:
        pass

    @abstractmethod
    def get_total_shares(self) -> Optional[TotalShares]:
        pass

    @abstractmethod
    def save(self, record: Record) -> None:
        pass

    @abstractmethod
    def registered_operators(self) -> List[Operator]:
        pass

    @abstractmethod
    def transaction(self):
        """Context manager; writes inside only persist if the block succeeds."""
        pass


def operator_or_new(store: EntityStore, address: str) -> Operator:
    return store.get_operator(address) or Operator(address=address)


def strategy_shares_or_new(
    store: EntityStore, operator: str, strategy: str
) -> StrategyShares:
    existing = store.get_strategy_shares(operator, strategy)
    return existing or StrategyShares(operator=operator, strategy=strategy)


def total_shares_or_new(store: EntityStore) -> TotalShares:
    return store.get_total_shares() or TotalShares()


class InMemoryEntityStore(EntityStore):
    """Dict-backed store. Writes inside `transaction()` are staged until exit."""

    def __init__(self):
        self.operators: Dict[str, Operator] = {}
        self.strategy_shares: Dict[Tuple[str, str], StrategyShares] = {}
        self.total_shares: Optional[TotalShares] = None
        self._staged: Optional[List[Record]] = None

    def _staged_lookup(self, match) -> Optional[Record]:
        for record in reversed(self._staged or []):
            if match(record):
                return copy.copy(record)
        return None

    def get_operator(self, address: str) -> Optional[Operator]:
        staged = self._staged_lookup(
            lambda r: isinstance(r, Operator) and r.address == address
        )
        if staged is not None:
            return staged
        found = self.operators.get(address)
        return copy.copy(found) if found else None

    def get_strategy_shares(
        self, operator: str, strategy: str
    ) -> Optional[StrategyShares]:
        staged = self._staged_lookup(
            lambda r: isinstance(r, StrategyShares)
            and (r.operator, r.strategy) == (operator, strategy)
        )
        if staged is not None:
            return staged
        found = self.strategy_shares.get((operator, strategy))
        return copy.copy(found) if found else None

    def get_total_shares(self) -> Optional[TotalShares]:
        staged = self._staged_lookup(lambda r: isinstance(r, TotalShares))
        if staged is not None:
            return staged
        return copy.copy(self.total_shares) if self.total_shares else None

    def save(self, record: Record) -> None:
        if self._staged is not None:
            self._staged.append(copy.copy(record))
        else:
            self._write(copy.copy(record))

    def _write(self, record: Record) -> None:
        if isinstance(record, Operator):
            self.operators[record.address] = record
        elif isinstance(record, StrategyShares):
            self.strategy_shares[(record.operator, record.strategy)] = record
        elif isinstance(record, TotalShares):
            self.total_shares = record
        else:
            raise TypeError(f"Unsupported record type: {type(record).__name__}")

    def registered_operators(self) -> List[Operator]:
        return [copy.copy(o) for o in self.operators.values() if o.is_registered]

    @contextmanager
    def transaction(self):
        if self._staged is not None:
            raise RuntimeError("Nested transactions are not supported")
        self._staged = []
        try:
            yield self
            staged = self._staged
        finally:
            self._staged = None
        for record in staged:
            self._write(record)


def _to_int(value) -> int:
    """Share column value to int; NULL reads as 0."""
    return 0 if value is None else int(value)


class SqlEntityStore(EntityStore):
    """
    Store over an analytics DB session. The session scope that created the
    session owns commit and rollback; `transaction()` only takes the ledger
    lock.
    """

    def __init__(self, session):
        self.session = session

    def get_operator(self, address: str) -> Optional[Operator]:
        row = self.session.get(OperatorShareState, address)
        if row is None:
            return None
        return Operator(
            address=row.id,
            is_registered=bool(row.is_registered),
            total_eth_shares=_to_int(row.total_eth_shares),
            total_eigen_shares=_to_int(row.total_eigen_shares),
        )

    def get_strategy_shares(
        self, operator: str, strategy: str
    ) -> Optional[StrategyShares]:
        row = self.session.get(OperatorStrategyShares, f"{operator}-{strategy}")
        if row is None:
            return None
        return StrategyShares(
            operator=row.operator_id,
            strategy=row.strategy_id,
            shares=_to_int(row.shares),
        )

    def get_total_shares(self) -> Optional[TotalShares]:
        row = self.session.get(NetworkTotalShares, TOTAL_SHARES_ID)
        if row is None:
            return None
        return TotalShares(
            id=row.id,
            total_eth_shares=_to_int(row.total_eth_shares),
            total_eigen_shares=_to_int(row.total_eigen_shares),
        )

    def save(self, record: Record) -> None:
        if isinstance(record, Operator):
            row = OperatorShareState(
                id=record.address,
                is_registered=record.is_registered,
                total_eth_shares=record.total_eth_shares,
                total_eigen_shares=record.total_eigen_shares,
            )
        elif isinstance(record, StrategyShares):
            row = OperatorStrategyShares(
                id=record.id,
                operator_id=record.operator,
                strategy_id=record.strategy,
                shares=record.shares,
            )
        elif isinstance(record, TotalShares):
            row = NetworkTotalShares(
                id=record.id,
                total_eth_shares=record.total_eth_shares,
                total_eigen_shares=record.total_eigen_shares,
            )
        else:
            raise TypeError(f"Unsupported record type: {type(record).__name__}")
        self.session.merge(row)
        self.session.flush()

    def registered_operators(self) -> List[Operator]:
        rows = (
            self.session.query(OperatorShareState)
            .filter(OperatorShareState.is_registered.is_(True))
            .order_by(OperatorShareState.id)
            .all()
        )
        return [
            Operator(
                address=row.id,
                is_registered=True,
                total_eth_shares=_to_int(row.total_eth_shares),
                total_eigen_shares=_to_int(row.total_eigen_shares),
            )
            for row in rows
        ]

    @contextmanager
    def transaction(self):
        self.lock_ledger()
        yield self

    def lock_ledger(self) -> None:
        """
        Block other ledger writers until this session's transaction ends.

        Postgres takes a transaction-scoped advisory lock. Elsewhere a no-op
        UPDATE takes the write lock, which on SQLite covers the whole file.
        Must be the first statement of the transaction on SQLite.
        """
        if self.session.get_bind().dialect.name == "postgresql":
            self.session.execute(
                text("SELECT pg_advisory_xact_lock(:key)"), {"key": LEDGER_LOCK_KEY}
            )
        else:
            self.session.execute(
                text("UPDATE total_shares SET id = id WHERE id = :id"),
                {"id": TOTAL_SHARES_ID},
            )

    def get_checkpoint(self, pipeline_name: str) -> Optional[LedgerCheckpoint]:
        return self.session.get(LedgerCheckpoint, pipeline_name)

    def save_checkpoint(
        self,
        pipeline_name: str,
        block_number: int,
        log_index: int,
        transaction_hash: Optional[str] = None,
    ) -> None:
        checkpoint = self.get_checkpoint(pipeline_name)
        if checkpoint is None:
            checkpoint = LedgerCheckpoint(pipeline_name=pipeline_name, events_processed=0)
            self.session.add(checkpoint)
        checkpoint.last_block_number = block_number
        checkpoint.last_log_index = log_index
        checkpoint.last_transaction_hash = transaction_hash
        checkpoint.events_processed = (checkpoint.events_processed or 0) + 1
        self.session.flush()
