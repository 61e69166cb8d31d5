# services/audit.py
"""
Recomputes the share totals from operator rows and compares them with the
TotalShares singleton.
"""
from dataclasses import dataclass
from typing import List

import pandas as pd

from tvl_pipeline.services.records import Operator, TotalShares


@dataclass
class LedgerAudit:
    registered_operators: int
    recorded_eth_shares: int
    recorded_eigen_shares: int
    computed_eth_shares: int
    computed_eigen_shares: int

    @property
    def eth_drift(self) -> int:
        return self.recorded_eth_shares - self.computed_eth_shares

    @property
    def eigen_drift(self) -> int:
        return self.recorded_eigen_shares - self.computed_eigen_shares

    @property
    def is_consistent(self) -> bool:
        return self.eth_drift == 0 and self.eigen_drift == 0


def operators_frame(operators: List[Operator]) -> pd.DataFrame:
    # object dtype keeps uint256 values as exact Python ints
    return pd.DataFrame(
        [
            {
                "address": o.address,
                "is_registered": o.is_registered,
                "total_eth_shares": o.total_eth_shares,
                "total_eigen_shares": o.total_eigen_shares,
            }
            for o in operators
        ],
        columns=["address", "is_registered", "total_eth_shares", "total_eigen_shares"],
        dtype=object,
    )


def audit_ledger(operators: List[Operator], totals: TotalShares) -> LedgerAudit:
    df = operators_frame(operators)
    registered = df[df["is_registered"] == True]  # noqa: E712

    return LedgerAudit(
        registered_operators=len(registered),
        recorded_eth_shares=totals.total_eth_shares,
        recorded_eigen_shares=totals.total_eigen_shares,
        computed_eth_shares=int(sum(registered["total_eth_shares"])),
        computed_eigen_shares=int(sum(registered["total_eigen_shares"])),
    )
