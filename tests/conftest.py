import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from tvl_pipeline import constants
from tvl_pipeline.db.models import Base
from tvl_pipeline.db.session import transactional_session
from tvl_pipeline.services.chain_readers import ChainReadError
from tvl_pipeline.services.eligibility import EligibilityPolicy
from tvl_pipeline.services.entity_store import InMemoryEntityStore
from tvl_pipeline.services.share_ledger import ShareLedgerEngine

OPERATOR = "0x0000000000000000000000000000000000000001"
OTHER_OPERATOR = "0x0000000000000000000000000000000000000002"

BEACON = constants.BEACON_CHAIN_STRATEGY
STETH = constants.LST_STRATEGIES[0]
EIGEN = constants.EIGEN_STRATEGY
UNLISTED = "0x" + "ab" * 20

CUTOVER = 1_000
PRE_CUTOVER = 500


# --- Fakes ---


class ScriptedBalanceSource:
    """Returns whatever balance the test last set for a pair, 0 otherwise."""

    def __init__(self):
        self.balances = {}
        self.calls = []
        self.fail_on = set()

    def set(self, operator, strategy, shares):
        self.balances[(operator, strategy)] = shares

    def operator_shares(self, operator, strategy, block_number):
        self.calls.append((operator, strategy, block_number))
        if (operator, strategy) in self.fail_on:
            raise ChainReadError(f"rpc down for {operator}/{strategy}")
        return self.balances.get((operator, strategy), 0)


class StaticRegistry:
    def __init__(self, strategies=None):
        self.strategies = list(strategies or [])
        self.calls = []
        self.fail = False

    def restakeable_strategies(self, block_number):
        self.calls.append(block_number)
        if self.fail:
            raise ChainReadError("registry unreachable")
        return list(self.strategies)


class LogStub:
    """Stands in for a Dagster context: only `.log` is used."""

    def __init__(self, logger):
        self.log = logger


# --- Fixtures ---


@pytest.fixture
def balances():
    return ScriptedBalanceSource()


@pytest.fixture
def registry():
    return StaticRegistry([BEACON, UNLISTED])


@pytest.fixture
def policy(registry):
    return EligibilityPolicy(
        static_strategies=[BEACON, STETH],
        registry=registry,
        cutover_block=CUTOVER,
        secondary_strategy=EIGEN,
    )


@pytest.fixture
def engine(policy, balances):
    return ShareLedgerEngine(policy, balances)


@pytest.fixture
def store():
    return InMemoryEntityStore()


@pytest.fixture
def session_factory(tmp_path):
    db_engine = create_engine(f"sqlite:///{tmp_path / 'ledger.db'}")
    Base.metadata.create_all(db_engine)
    yield sessionmaker(bind=db_engine, expire_on_commit=False)
    db_engine.dispose()


@pytest.fixture
def session_scope(session_factory):
    return lambda: transactional_session(session_factory)
