"""
Dagster Definitions for the TVL share ledger pipeline
"""

from dagster import Definitions

from tvl_pipeline.defs import (
    ledger_assets,
    sync_job,
    audit_job,
    reconciliation_job,
    sync_schedule,
    audit_schedule,
    resources,
)

defs = Definitions(
    assets=ledger_assets,
    jobs=[
        sync_job,
        audit_job,
        reconciliation_job,
    ],
    schedules=[
        sync_schedule,
        audit_schedule,
    ],
    resources=resources,
)
