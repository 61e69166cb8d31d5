# tvl_pipeline/defs/resources.py
"""
Dagster Resources for database connections, chain reads and configuration
"""
from dagster import ConfigurableResource
from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker
from web3 import Web3
import os
from typing import List, Optional

from tvl_pipeline import constants
from tvl_pipeline.db.session import transactional_session
from tvl_pipeline.services.chain_readers import AVSManagerReader, DelegationManagerReader
from tvl_pipeline.services.eligibility import EligibilityPolicy
from tvl_pipeline.services.share_ledger import ShareLedgerEngine


class DatabaseResource(ConfigurableResource):
    """Database resource for the events DB (read) and analytics DB (ledger)"""

    events_db_url: Optional[str] = os.getenv("EVENTS_DB_URL")
    analytics_db_url: Optional[str] = os.getenv("ANALYTICS_DB_URL")

    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = 30

    def __init__(self, **data):
        super().__init__(**data)
        self._events_engine = None
        self._analytics_engine = None
        self._AnalyticsSessionLocal = None

    @property
    def events_engine(self):
        """Lazy initialization of events database engine"""
        if self._events_engine is None:
            self._events_engine = create_engine(
                self.events_db_url,
                pool_size=self.pool_size,
                max_overflow=self.max_overflow,
                pool_timeout=self.pool_timeout,
                echo=False,
            )
        return self._events_engine

    @property
    def analytics_engine(self):
        """Lazy initialization of analytics database engine"""
        if self._analytics_engine is None:
            self._analytics_engine = create_engine(
                self.analytics_db_url,
                pool_size=self.pool_size,
                max_overflow=self.max_overflow,
                pool_timeout=self.pool_timeout,
                echo=False,
            )
        return self._analytics_engine

    @property
    def AnalyticsSessionLocal(self):
        """Session factory for analytics database"""
        if self._AnalyticsSessionLocal is None:
            self._AnalyticsSessionLocal = sessionmaker(
                bind=self.analytics_engine,
                expire_on_commit=False,
            )
        return self._AnalyticsSessionLocal

    def get_analytics_session(self):
        """Context manager for analytics database session"""
        return transactional_session(self.AnalyticsSessionLocal)

    def execute_query(self, query: str, params: dict = None, db: str = "events"):
        """Execute a raw SQL query and return results"""
        engine = self.events_engine if db == "events" else self.analytics_engine
        with engine.connect() as conn:
            result = conn.execute(text(query), params or {})
            return result.fetchall()


class ChainResource(ConfigurableResource):
    """Ethereum RPC access for point-in-time contract reads"""

    rpc_url: Optional[str] = os.getenv("ETH_RPC_URL")
    request_timeout: int = 30

    delegation_manager_address: str = constants.DELEGATION_MANAGER
    avs_manager_address: str = constants.UNIFI_AVS_MANAGER

    def __init__(self, **data):
        super().__init__(**data)
        self._w3 = None

    @property
    def w3(self) -> Web3:
        if self._w3 is None:
            self._w3 = Web3(
                Web3.HTTPProvider(
                    self.rpc_url, request_kwargs={"timeout": self.request_timeout}
                )
            )
        return self._w3

    def delegation_manager(self, logger=None) -> DelegationManagerReader:
        return DelegationManagerReader(
            self.w3, self.delegation_manager_address, logger=logger
        )

    def avs_manager(self, logger=None) -> AVSManagerReader:
        return AVSManagerReader(self.w3, self.avs_manager_address, logger=logger)


class ConfigResource(ConfigurableResource):
    """Configuration resource for ledger settings"""

    # Checkpoint settings
    checkpoint_key: str = "tvl_share_ledger_v1"

    # Batch processing
    max_events_per_run: int = 5000

    # Eligibility
    eligibility_cutover_block: int = constants.RESTAKEABLE_STRATEGIES_CUTOVER_BLOCK
    static_eligible_strategies: List[str] = constants.STATIC_ELIGIBLE_STRATEGIES
    secondary_strategy: str = constants.EIGEN_STRATEGY
    include_secondary_before_cutover: bool = True

    # Monitoring
    log_batch_progress_every: int = 100

    def build_eligibility_policy(self, registry, logger=None) -> EligibilityPolicy:
        return EligibilityPolicy(
            static_strategies=self.static_eligible_strategies,
            registry=registry,
            cutover_block=self.eligibility_cutover_block,
            secondary_strategy=self.secondary_strategy or None,
            include_secondary_before_cutover=self.include_secondary_before_cutover,
            logger=logger,
        )

    def build_engine(self, chain: ChainResource, logger=None) -> ShareLedgerEngine:
        policy = self.build_eligibility_policy(chain.avs_manager(logger), logger)
        return ShareLedgerEngine(policy, chain.delegation_manager(logger), logger)
