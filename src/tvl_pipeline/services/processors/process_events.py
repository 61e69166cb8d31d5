from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple

import pandas as pd

from tvl_pipeline.services.entity_store import SqlEntityStore
from tvl_pipeline.services.events import LedgerEvent, event_from_row
from tvl_pipeline.services.share_ledger import ShareLedgerEngine
from tvl_pipeline.utils.normalizers import normalize_bytes_columns


def rows_to_events(rows: List[tuple], column_names: List[str]) -> List[LedgerEvent]:
    """Events-DB result rows to ordered ledger events."""
    if not rows:
        return []

    df = pd.DataFrame([tuple(r) for r in rows], columns=column_names, dtype=object)
    df = normalize_bytes_columns(df)
    df = df.where(pd.notnull(df), None)
    df = df.sort_values(["block_number", "log_index"], kind="stable")

    return [event_from_row(record) for record in df.to_dict(orient="records")]


def read_checkpoint(session_scope: Callable, checkpoint_key: str) -> Tuple[int, int]:
    """(block_number, log_index) of the last applied event, (-1, -1) if none."""
    with session_scope() as session:
        checkpoint = SqlEntityStore(session).get_checkpoint(checkpoint_key)
        if checkpoint is None:
            return -1, -1
        return checkpoint.last_block_number, checkpoint.last_log_index


def process_events(
    context,
    events: List[LedgerEvent],
    engine: ShareLedgerEngine,
    session_scope: Callable,
    checkpoint_key: str,
    log_every: int = 100,
) -> int:
    """
    Apply events in order, one analytics transaction per event. The
    checkpoint moves in the same transaction as the event's ledger writes.

    Stops at the first failure: the failing transaction rolls back and the
    error propagates, leaving the checkpoint just before the failed event.
    """
    if not events:
        context.log.info("No new ledger events to apply")
        return 0

    start_time = datetime.now(timezone.utc)
    applied = 0
    last_event: Optional[LedgerEvent] = None

    for idx, event in enumerate(events, 1):
        if idx % log_every == 0:
            context.log.info(
                f"Applying ledger events {idx}/{len(events)} "
                f"(block {event.block_number})"
            )

        try:
            with session_scope() as session:
                store = SqlEntityStore(session)
                engine.apply(store, event)
                store.save_checkpoint(
                    checkpoint_key,
                    event.block_number,
                    event.log_index,
                    event.transaction_hash,
                )
        except Exception as exc:
            context.log.error(
                f"Failed to apply {type(event).__name__} for {event.operator} at "
                f"block {event.block_number} log {event.log_index}: {exc}"
            )
            raise

        applied += 1
        last_event = event

    duration = (datetime.now(timezone.utc) - start_time).total_seconds()
    context.log.info(
        f"Applied {applied} ledger events, "
        f"checkpoint at block {last_event.block_number} log {last_event.log_index}, "
        f"duration: {duration:.2f}s"
    )
    return applied
