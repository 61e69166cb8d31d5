import pytest
from web3 import Web3
from web3.exceptions import Web3Exception

from tvl_pipeline.services.chain_readers import (
    AVSManagerReader,
    ChainReadError,
    DelegationManagerReader,
)

from conftest import BEACON, OPERATOR, UNLISTED


# --- Fake contract ---


class FakeCall:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.blocks = []

    def call(self, block_identifier="latest"):
        self.blocks.append(block_identifier)
        if self.error:
            raise self.error
        return self.result


class FakeFunctions:
    def __init__(self, call):
        self._call = call
        self.args = []

    def getOperatorShares(self, operator, strategies):
        self.args.append((operator, strategies))
        return self._call

    def getRestakeableStrategies(self):
        self.args.append(())
        return self._call


class FakeContract:
    def __init__(self, result=None, error=None):
        self.call = FakeCall(result, error)
        self.functions = FakeFunctions(self.call)


# --- DelegationManagerReader ---


def test_operator_shares_reads_at_event_block():
    contract = FakeContract(result=[123])
    reader = DelegationManagerReader(None, BEACON, contract=contract)

    assert reader.operator_shares(OPERATOR, BEACON, 42) == 123
    assert contract.call.blocks == [42]
    assert contract.functions.args == [
        (Web3.to_checksum_address(OPERATOR), [Web3.to_checksum_address(BEACON)])
    ]


@pytest.mark.parametrize("result", [[], [1, 2], [-1], ["12"], None])
def test_malformed_share_result_raises(result):
    reader = DelegationManagerReader(None, BEACON, contract=FakeContract(result=result))

    with pytest.raises(ChainReadError):
        reader.operator_shares(OPERATOR, BEACON, 1)


@pytest.mark.parametrize(
    "error", [Web3Exception("execution reverted"), ConnectionError("refused")]
)
def test_rpc_failure_raises_chain_read_error(error):
    reader = DelegationManagerReader(None, BEACON, contract=FakeContract(error=error))

    with pytest.raises(ChainReadError):
        reader.operator_shares(OPERATOR, BEACON, 1)


# --- AVSManagerReader ---


def test_restakeable_strategies_normalized():
    contract = FakeContract(result=[Web3.to_checksum_address(BEACON), UNLISTED])
    reader = AVSManagerReader(None, UNLISTED, contract=contract)

    assert reader.restakeable_strategies(10) == [BEACON, UNLISTED]
    assert contract.call.blocks == [10]


def test_restakeable_strategies_memoized_per_block():
    contract = FakeContract(result=[BEACON])
    reader = AVSManagerReader(None, UNLISTED, contract=contract)

    reader.restakeable_strategies(10)
    reader.restakeable_strategies(10)
    reader.restakeable_strategies(11)

    assert contract.call.blocks == [10, 11]


def test_registry_failure_raises_chain_read_error():
    reader = AVSManagerReader(
        None, UNLISTED, contract=FakeContract(error=Web3Exception("boom"))
    )

    with pytest.raises(ChainReadError):
        reader.restakeable_strategies(10)


def test_registry_bad_address_raises_chain_read_error():
    reader = AVSManagerReader(None, UNLISTED, contract=FakeContract(result=["0x12"]))

    with pytest.raises(ChainReadError):
        reader.restakeable_strategies(10)
