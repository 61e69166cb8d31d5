import pytest

from tvl_pipeline.services.entity_store import (
    InMemoryEntityStore,
    SqlEntityStore,
    operator_or_new,
    strategy_shares_or_new,
    total_shares_or_new,
)
from tvl_pipeline.services.records import Operator, StrategyShares, TotalShares

from conftest import BEACON, OPERATOR


def test_missing_records_are_none_and_helpers_zero_initialize(store):
    assert store.get_operator(OPERATOR) is None
    assert store.get_strategy_shares(OPERATOR, BEACON) is None
    assert store.get_total_shares() is None

    assert operator_or_new(store, OPERATOR) == Operator(address=OPERATOR)
    assert strategy_shares_or_new(store, OPERATOR, BEACON).shares == 0
    assert total_shares_or_new(store) == TotalShares(id="1")


def test_returned_records_are_copies(store):
    store.save(Operator(address=OPERATOR, total_eth_shares=5))

    loaded = store.get_operator(OPERATOR)
    loaded.total_eth_shares = 99

    assert store.get_operator(OPERATOR).total_eth_shares == 5


def test_transaction_reads_its_own_writes_and_commits(store):
    with store.transaction():
        store.save(TotalShares(total_eth_shares=7))
        assert store.get_total_shares().total_eth_shares == 7
        assert store.total_shares is None

    assert store.get_total_shares().total_eth_shares == 7


def test_transaction_discards_writes_on_error(store):
    store.save(TotalShares(total_eth_shares=1))

    with pytest.raises(RuntimeError):
        with store.transaction():
            store.save(TotalShares(total_eth_shares=2))
            raise RuntimeError("abort")

    assert store.get_total_shares().total_eth_shares == 1


def test_registered_operators_filters_flag(store):
    store.save(Operator(address=OPERATOR, is_registered=True))
    store.save(Operator(address="0x" + "02".rjust(40, "0")))

    assert [o.address for o in store.registered_operators()] == [OPERATOR]


def test_save_rejects_unknown_records():
    with pytest.raises(TypeError):
        InMemoryEntityStore().save("operator")


# --- SqlEntityStore ---


def test_sql_store_round_trip(session_scope):
    with session_scope() as session:
        store = SqlEntityStore(session)
        store.save(Operator(address=OPERATOR, is_registered=True, total_eth_shares=32))
        store.save(StrategyShares(operator=OPERATOR, strategy=BEACON, shares=32))
        store.save(TotalShares(total_eth_shares=32, total_eigen_shares=3))

    with session_scope() as session:
        store = SqlEntityStore(session)
        assert store.get_operator(OPERATOR) == Operator(
            address=OPERATOR, is_registered=True, total_eth_shares=32
        )
        assert store.get_strategy_shares(OPERATOR, BEACON).shares == 32
        assert store.get_total_shares() == TotalShares(
            total_eth_shares=32, total_eigen_shares=3
        )
        assert [o.address for o in store.registered_operators()] == [OPERATOR]


def test_sql_store_overwrites_full_record(session_scope):
    with session_scope() as session:
        SqlEntityStore(session).save(
            Operator(address=OPERATOR, is_registered=True, total_eth_shares=10)
        )
    with session_scope() as session:
        SqlEntityStore(session).save(
            Operator(address=OPERATOR, is_registered=False, total_eth_shares=10)
        )

    with session_scope() as session:
        store = SqlEntityStore(session)
        assert store.get_operator(OPERATOR).is_registered is False
        assert store.registered_operators() == []


def test_sql_session_scope_rolls_back_on_error(session_scope):
    with pytest.raises(RuntimeError):
        with session_scope() as session:
            SqlEntityStore(session).save(TotalShares(total_eth_shares=5))
            raise RuntimeError("abort")

    with session_scope() as session:
        assert SqlEntityStore(session).get_total_shares() is None


def test_checkpoint_advances_and_counts(session_scope):
    with session_scope() as session:
        store = SqlEntityStore(session)
        store.save_checkpoint("ledger", 10, 2, "0xaa")
        store.save_checkpoint("ledger", 11, 0, "0xbb")

    with session_scope() as session:
        checkpoint = SqlEntityStore(session).get_checkpoint("ledger")
        assert (checkpoint.last_block_number, checkpoint.last_log_index) == (11, 0)
        assert checkpoint.events_processed == 2


def test_sql_store_keeps_uint256_values_exact(session_scope):
    big = 10**21 + 1
    max_uint = 2**256 - 1
    with session_scope() as session:
        store = SqlEntityStore(session)
        store.save(Operator(address=OPERATOR, is_registered=True, total_eth_shares=big))
        store.save(StrategyShares(operator=OPERATOR, strategy=BEACON, shares=max_uint))
        store.save(TotalShares(total_eth_shares=big, total_eigen_shares=max_uint))

    with session_scope() as session:
        store = SqlEntityStore(session)
        assert store.get_operator(OPERATOR).total_eth_shares == big
        assert store.get_strategy_shares(OPERATOR, BEACON).shares == max_uint
        assert store.get_total_shares() == TotalShares(
            total_eth_shares=big, total_eigen_shares=max_uint
        )
        assert store.registered_operators()[0].total_eth_shares == big
