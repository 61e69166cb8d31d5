# tvl_pipeline/defs/assets/audit.py
"""
Audit Asset - Check TotalShares against the sum over registered operators
"""

from dagster import asset, OpExecutionContext, Output

from tvl_pipeline.services.audit import audit_ledger
from tvl_pipeline.services.entity_store import SqlEntityStore, total_shares_or_new
from ..resources import DatabaseResource


@asset(
    deps=["share_ledger_sync"],
    description="Recomputes ledger totals from operator rows and reports drift",
    compute_kind="pandas",
)
def share_ledger_audit(
    context: OpExecutionContext,
    db: DatabaseResource,
) -> Output[bool]:
    with db.get_analytics_session() as session:
        store = SqlEntityStore(session)
        result = audit_ledger(store.registered_operators(), total_shares_or_new(store))

    if result.is_consistent:
        context.log.info(
            f"Ledger consistent: {result.registered_operators} registered operators, "
            f"eth={result.recorded_eth_shares}, eigen={result.recorded_eigen_shares}"
        )
    else:
        context.log.error(
            f"Ledger drift detected: eth {result.eth_drift:+d}, "
            f"eigen {result.eigen_drift:+d}"
        )

    return Output(
        result.is_consistent,
        metadata={
            "registered_operators": result.registered_operators,
            # uint256 values exceed int metadata range
            "total_eth_shares": str(result.recorded_eth_shares),
            "total_eigen_shares": str(result.recorded_eigen_shares),
            "eth_drift": str(result.eth_drift),
            "eigen_drift": str(result.eigen_drift),
        },
    )
