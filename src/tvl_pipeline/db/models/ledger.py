# SHARE LEDGER TABLES
from decimal import Decimal

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.types import TypeDecorator

from .base import Base, TimestampMixin


class Uint256(TypeDecorator):
    """
    Exact uint256 share amounts, read back as int.

    NUMERIC(78, 0) where the database has exact decimals. SQLite stores
    NUMERIC as a float, so there the value is kept as decimal text.
    """

    impl = Numeric(78, 0)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "sqlite":
            return dialect.type_descriptor(String(78))
        return dialect.type_descriptor(Numeric(78, 0))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if dialect.name == "sqlite":
            return str(int(value))
        return Decimal(int(value))

    def process_result_value(self, value, dialect):
        return None if value is None else int(value)


SHARES = Uint256()


class LedgerCheckpoint(Base, TimestampMixin):
    __tablename__ = "ledger_checkpoints"

    pipeline_name = Column(String(100), primary_key=True)
    last_block_number = Column(BigInteger, nullable=False)
    last_log_index = Column(Integer, nullable=False)
    last_transaction_hash = Column(String(66))
    events_processed = Column(BigInteger, nullable=False, default=0)


class OperatorShareState(Base, TimestampMixin):
    __tablename__ = "operators"

    # Lowercase hex address
    id = Column(String(42), primary_key=True)
    is_registered = Column(Boolean, nullable=False, default=False)

    total_eth_shares = Column(SHARES, nullable=False, default=0)
    total_eigen_shares = Column(SHARES, nullable=False, default=0)

    __table_args__ = (Index("idx_operators_registered", "is_registered"),)


class OperatorStrategyShares(Base, TimestampMixin):
    __tablename__ = "operator_strategy_shares"

    id = Column(String(85), primary_key=True)  # operator-strategy composite
    operator_id = Column(
        String(42),
        ForeignKey("operators.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    strategy_id = Column(String(42), nullable=False, index=True)
    shares = Column(SHARES, nullable=False, default=0)


class NetworkTotalShares(Base, TimestampMixin):
    __tablename__ = "total_shares"

    id = Column(String(10), primary_key=True)
    total_eth_shares = Column(SHARES, nullable=False, default=0)
    total_eigen_shares = Column(SHARES, nullable=False, default=0)
