# services/chain_readers.py
"""
Point-in-time contract reads used while applying events.

DelegationManagerReader is the balance source: it returns an operator's
shares in one strategy at the block being processed. AVSManagerReader is the
registry behind the eligibility policy after the cutover block.
"""
import logging
from typing import List, Optional, Protocol, Tuple

from web3 import Web3
from web3.exceptions import Web3Exception

from tvl_pipeline.utils.normalizers import normalize_address

DELEGATION_MANAGER_ABI = [
    {
        "name": "getOperatorShares",
        "type": "function",
        "stateMutability": "view",
        "inputs": [
            {"name": "operator", "type": "address"},
            {"name": "strategies", "type": "address[]"},
        ],
        "outputs": [{"name": "", "type": "uint256[]"}],
    }
]

UNIFI_AVS_MANAGER_ABI = [
    {
        "name": "getRestakeableStrategies",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "address[]"}],
    }
]


class ChainReadError(RuntimeError):
    """A contract read failed or returned something unusable."""


class BalanceSource(Protocol):
    def operator_shares(self, operator: str, strategy: str, block_number: int) -> int:
        """Operator's shares in `strategy` as of `block_number`."""
        ...


class DelegationManagerReader:
    def __init__(
        self,
        w3: Web3,
        address: str,
        logger: Optional[logging.Logger] = None,
        contract=None,
    ):
        self.logger = logger or logging.getLogger(__name__)
        self.contract = contract or w3.eth.contract(
            address=Web3.to_checksum_address(address), abi=DELEGATION_MANAGER_ABI
        )

    def operator_shares(self, operator: str, strategy: str, block_number: int) -> int:
        operator_cs = Web3.to_checksum_address(operator)
        strategy_cs = Web3.to_checksum_address(strategy)
        try:
            result = self.contract.functions.getOperatorShares(
                operator_cs, [strategy_cs]
            ).call(block_identifier=block_number)
        except (Web3Exception, OSError, ValueError) as exc:
            raise ChainReadError(
                f"getOperatorShares({operator}, [{strategy}]) failed at block "
                f"{block_number}: {exc}"
            ) from exc

        if not isinstance(result, (list, tuple)) or len(result) != 1:
            raise ChainReadError(
                f"getOperatorShares({operator}, [{strategy}]) returned {result!r}, "
                f"expected a single value"
            )

        shares = result[0]
        if isinstance(shares, bool) or not isinstance(shares, int) or shares < 0:
            raise ChainReadError(
                f"getOperatorShares({operator}, [{strategy}]) returned invalid "
                f"shares {shares!r}"
            )
        return shares


class AVSManagerReader:
    def __init__(
        self,
        w3: Web3,
        address: str,
        logger: Optional[logging.Logger] = None,
        contract=None,
    ):
        self.logger = logger or logging.getLogger(__name__)
        self.contract = contract or w3.eth.contract(
            address=Web3.to_checksum_address(address), abi=UNIFI_AVS_MANAGER_ABI
        )
        # Registry answer can't change within a block
        self._last: Optional[Tuple[int, List[str]]] = None

    def restakeable_strategies(self, block_number: int) -> List[str]:
        if self._last is not None and self._last[0] == block_number:
            return list(self._last[1])

        try:
            result = self.contract.functions.getRestakeableStrategies().call(
                block_identifier=block_number
            )
        except (Web3Exception, OSError, ValueError) as exc:
            raise ChainReadError(
                f"getRestakeableStrategies() failed at block {block_number}: {exc}"
            ) from exc

        if not isinstance(result, (list, tuple)):
            raise ChainReadError(
                f"getRestakeableStrategies() returned {result!r}, expected a list"
            )

        try:
            strategies = [normalize_address(s) for s in result]
        except ValueError as exc:
            raise ChainReadError(
                f"getRestakeableStrategies() returned a bad address: {exc}"
            ) from exc

        self.logger.debug(
            f"Block {block_number}: {len(strategies)} restakeable strategies"
        )
        self._last = (block_number, strategies)
        return list(strategies)
