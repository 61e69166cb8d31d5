# services/records.py
"""
Ledger records as seen by the share ledger engine.

Share values are plain Python ints (uint256 on chain).
"""
from dataclasses import dataclass

from tvl_pipeline.constants import TOTAL_SHARES_ID

ETH = "eth"
EIGEN = "eigen"


@dataclass
class Operator:
    address: str
    is_registered: bool = False
    total_eth_shares: int = 0
    total_eigen_shares: int = 0

    def shares_of(self, kind: str) -> int:
        return self.total_eth_shares if kind == ETH else self.total_eigen_shares

    def adjust(self, kind: str, delta: int) -> None:
        if kind == ETH:
            self.total_eth_shares += delta
        else:
            self.total_eigen_shares += delta


@dataclass
class StrategyShares:
    operator: str
    strategy: str
    shares: int = 0

    @property
    def id(self) -> str:
        return f"{self.operator}-{self.strategy}"


@dataclass
class TotalShares:
    id: str = TOTAL_SHARES_ID
    total_eth_shares: int = 0
    total_eigen_shares: int = 0

    def adjust(self, kind: str, delta: int) -> None:
        if kind == ETH:
            self.total_eth_shares += delta
        else:
            self.total_eigen_shares += delta

    def add_operator(self, operator: Operator) -> None:
        self.total_eth_shares += operator.total_eth_shares
        self.total_eigen_shares += operator.total_eigen_shares

    def remove_operator(self, operator: Operator) -> None:
        self.total_eth_shares -= operator.total_eth_shares
        self.total_eigen_shares -= operator.total_eigen_shares
