from tvl_pipeline.services.audit import audit_ledger
from tvl_pipeline.services.records import Operator, TotalShares

BIG = 2**200


def operators():
    return [
        Operator("0x01", is_registered=True, total_eth_shares=BIG, total_eigen_shares=3),
        Operator("0x02", is_registered=True, total_eth_shares=5),
        Operator("0x03", is_registered=False, total_eth_shares=1_000),
    ]


def test_consistent_ledger():
    result = audit_ledger(
        operators(), TotalShares(total_eth_shares=BIG + 5, total_eigen_shares=3)
    )

    assert result.is_consistent
    assert result.registered_operators == 2
    assert result.computed_eth_shares == BIG + 5


def test_drift_is_reported():
    result = audit_ledger(operators(), TotalShares(total_eth_shares=BIG + 1_005))

    assert not result.is_consistent
    assert result.eth_drift == 1_000
    assert result.eigen_drift == -3


def test_empty_ledger():
    result = audit_ledger([], TotalShares())

    assert result.is_consistent
    assert result.registered_operators == 0
