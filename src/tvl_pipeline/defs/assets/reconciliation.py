# tvl_pipeline/defs/assets/reconciliation.py
"""
Reconciliation Asset - Re-read balances of every registered operator

Not scheduled. Run once after the eligibility cutover, or whenever the audit
or an external comparison shows the ledger has drifted from chain state.
"""

from dagster import asset, OpExecutionContext

from tvl_pipeline.services.entity_store import SqlEntityStore
from tvl_pipeline.services.processors.process_events import read_checkpoint
from ..resources import ChainResource, ConfigResource, DatabaseResource


@asset(
    description="Re-reads registered operators' balances at the checkpoint block",
    compute_kind="python",
)
def share_ledger_reconciliation(
    context: OpExecutionContext,
    db: DatabaseResource,
    chain: ChainResource,
    config: ConfigResource,
) -> int:
    """
    Returns:
        Number of operators whose aggregates changed
    """
    block_number, _ = read_checkpoint(db.get_analytics_session, config.checkpoint_key)
    if block_number < 0:
        context.log.info("Ledger has no checkpoint yet, nothing to reconcile")
        return 0

    with db.get_analytics_session() as session:
        operators = [o.address for o in SqlEntityStore(session).registered_operators()]

    engine = config.build_engine(chain, context.log)
    corrected = 0
    for idx, address in enumerate(operators, 1):
        if idx % config.log_batch_progress_every == 0:
            context.log.info(f"Reconciling {idx}/{len(operators)}: {address}")

        with db.get_analytics_session() as session:
            eth_delta, eigen_delta = engine.reconcile_operator(
                SqlEntityStore(session), address, block_number
            )
        if eth_delta or eigen_delta:
            corrected += 1

    context.log.info(
        f"Reconciled {len(operators)} operators at block {block_number}, "
        f"{corrected} corrected"
    )
    return corrected
