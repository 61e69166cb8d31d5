from dagster import (
    ScheduleDefinition,
    define_asset_job,
    AssetSelection,
)

from .assets.ingestion import share_ledger_sync
from .assets.audit import share_ledger_audit
from .assets.reconciliation import share_ledger_reconciliation

from .resources import DatabaseResource, ChainResource, ConfigResource


# Ledger writers share one run queue slot (see dagster.yaml)
LEDGER_CONCURRENCY_TAGS = {"dagster/concurrency_key": "share_ledger"}


ledger_assets = [
    share_ledger_sync,
    share_ledger_audit,
    share_ledger_reconciliation,
]


sync_job = define_asset_job(
    name="share_ledger_sync_job",
    selection=AssetSelection.assets(share_ledger_sync),
    description="Apply new registration and share events to the ledger",
    tags=LEDGER_CONCURRENCY_TAGS,
)

audit_job = define_asset_job(
    name="share_ledger_audit_job",
    selection=AssetSelection.assets(share_ledger_audit),
    description="Check ledger totals against registered operator balances",
    tags=LEDGER_CONCURRENCY_TAGS,
)

reconciliation_job = define_asset_job(
    name="share_ledger_reconciliation_job",
    selection=AssetSelection.assets(share_ledger_reconciliation),
    description="Re-read balances of all registered operators (manual)",
    tags=LEDGER_CONCURRENCY_TAGS,
)


sync_schedule = ScheduleDefinition(
    job=sync_job,
    cron_schedule="*/10 * * * *",
    description="Apply new ledger events every 10 minutes",
)

audit_schedule = ScheduleDefinition(
    job=audit_job,
    cron_schedule="5 * * * *",
    description="Audit ledger totals hourly",
)


resources = {
    "db": DatabaseResource(),
    "chain": ChainResource(),
    "config": ConfigResource(),
}
