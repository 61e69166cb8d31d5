# services/query_builders/share_events_builder.py
from typing import Dict, List, Optional, Tuple

from tvl_pipeline.services.events import (
    OPERATOR_DEREGISTERED,
    OPERATOR_REGISTERED,
)

registration_events_query = """
    SELECT
        '{event_type}' AS event_type,
        operator_id,
        NULL AS strategy_id,
        NULL AS shares,
        block_number,
        log_index,
        transaction_hash
    FROM {table}
    WHERE {after_checkpoint}
"""

share_events_query = """
    SELECT
        event_type,
        operator_id,
        strategy_id,
        shares,
        block_number,
        log_index,
        transaction_hash
    FROM {table}
    WHERE {after_checkpoint}
      AND event_type IN ('INCREASED', 'DECREASED')
"""

after_checkpoint_clause = """(
        block_number > :last_block_number
        OR (block_number = :last_block_number AND log_index > :last_log_index)
    )"""


class ShareEventsQueryBuilder:
    """
    Builds the ordered fetch of ledger events from the events DB.

    Registration events come from the AVS manager tables, share events from
    the DelegationManager `operator_share_events` table. Rows are returned
    strictly after the (block_number, log_index) checkpoint.
    """

    def __init__(
        self,
        registered_table: str = "avs_operator_registered_events",
        deregistered_table: str = "avs_operator_deregistered_events",
        share_events_table: str = "operator_share_events",
    ):
        self.registered_table = registered_table
        self.deregistered_table = deregistered_table
        self.share_events_table = share_events_table

    def build_fetch_query(
        self,
        last_block_number: int,
        last_log_index: int,
        limit: int,
        up_to_block: Optional[int] = None,
    ) -> Tuple[str, Dict]:
        after_checkpoint = after_checkpoint_clause
        params = {
            "last_block_number": last_block_number,
            "last_log_index": last_log_index,
            "limit": limit,
        }
        if up_to_block is not None:
            after_checkpoint += "\n      AND block_number <= :up_to_block"
            params["up_to_block"] = up_to_block

        parts = [
            registration_events_query.format(
                event_type=OPERATOR_REGISTERED,
                table=self.registered_table,
                after_checkpoint=after_checkpoint,
            ),
            registration_events_query.format(
                event_type=OPERATOR_DEREGISTERED,
                table=self.deregistered_table,
                after_checkpoint=after_checkpoint,
            ),
            share_events_query.format(
                table=self.share_events_table,
                after_checkpoint=after_checkpoint,
            ),
        ]

        query = (
            "SELECT * FROM (\n"
            + "\n    UNION ALL\n".join(parts)
            + "\n) AS ledger_events\n"
            + "ORDER BY block_number, log_index\n"
            + "LIMIT :limit"
        )
        return query, params

    def get_column_names(self) -> List[str]:
        return [
            "event_type",
            "operator_id",
            "strategy_id",
            "shares",
            "block_number",
            "log_index",
            "transaction_hash",
        ]
