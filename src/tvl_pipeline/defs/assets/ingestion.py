# tvl_pipeline/defs/assets/ingestion.py
"""
Ingestion Asset - Apply new ledger events since the last checkpoint
"""

from dagster import asset, OpExecutionContext
from datetime import datetime, timezone

from tvl_pipeline.services.processors.process_events import (
    process_events,
    read_checkpoint,
    rows_to_events,
)
from tvl_pipeline.services.query_builders.share_events_builder import (
    ShareEventsQueryBuilder,
)
from ..resources import ChainResource, ConfigResource, DatabaseResource


@asset(
    description="Applies operator registration and share events to the TVL share ledger",
    compute_kind="python",
)
def share_ledger_sync(
    context: OpExecutionContext,
    db: DatabaseResource,
    chain: ChainResource,
    config: ConfigResource,
) -> int:
    """
    Fetch events after the checkpoint from the events DB and apply them in
    (block_number, log_index) order.

    Returns:
        Number of events applied
    """
    start_time = datetime.now(timezone.utc)

    last_block, last_log_index = read_checkpoint(
        db.get_analytics_session, config.checkpoint_key
    )
    if last_block < 0:
        context.log.info("First ledger run - applying events from genesis")
    else:
        context.log.info(f"Checkpoint at block {last_block} log {last_log_index}")

    query_builder = ShareEventsQueryBuilder()
    query, params = query_builder.build_fetch_query(
        last_block, last_log_index, config.max_events_per_run
    )
    rows = db.execute_query(query, params, db="events")
    events = rows_to_events(rows, query_builder.get_column_names())

    context.log.info(
        f"Fetched {len(events)} events in "
        f"{(datetime.now(timezone.utc) - start_time).total_seconds():.2f}s"
    )

    engine = config.build_engine(chain, context.log)
    return process_events(
        context,
        events,
        engine,
        db.get_analytics_session,
        config.checkpoint_key,
        log_every=config.log_batch_progress_every,
    )
