# services/share_ledger.py
"""
Share ledger engine - applies one event at a time to the entity store.

Every change to an operator's aggregate is mirrored on the TotalShares
singleton in the same transaction, so the singleton always equals the sum
over registered operators. Share deltas come from point-in-time balance
reads, never from the event payload, which lets the ledger absorb missed or
duplicated share events for a pair.
"""
import logging
from typing import List, Optional, Tuple

from tvl_pipeline.services.chain_readers import BalanceSource
from tvl_pipeline.services.eligibility import EligibilityPolicy
from tvl_pipeline.services.entity_store import (
    EntityStore,
    operator_or_new,
    strategy_shares_or_new,
    total_shares_or_new,
)
from tvl_pipeline.services.events import (
    LedgerEvent,
    OperatorDeregistered,
    OperatorRegistered,
    OperatorSharesDecreased,
    OperatorSharesIncreased,
)
from tvl_pipeline.services.records import EIGEN, ETH, Operator, StrategyShares
from tvl_pipeline.utils.normalizers import normalize_address


class ShareLedgerEngine:
    def __init__(
        self,
        eligibility: EligibilityPolicy,
        balances: BalanceSource,
        logger: Optional[logging.Logger] = None,
    ):
        self.eligibility = eligibility
        self.balances = balances
        self.logger = logger or logging.getLogger(__name__)

    @property
    def secondary_strategy(self) -> Optional[str]:
        return self.eligibility.secondary_strategy

    def apply(self, store: EntityStore, event: LedgerEvent) -> None:
        """Apply a single event atomically."""
        if isinstance(event, OperatorRegistered):
            handler = self.handle_operator_registered
        elif isinstance(event, OperatorDeregistered):
            handler = self.handle_operator_deregistered
        elif isinstance(event, OperatorSharesIncreased):
            handler = self.handle_operator_shares_increased
        elif isinstance(event, OperatorSharesDecreased):
            handler = self.handle_operator_shares_decreased
        else:
            raise ValueError(f"Unsupported event: {event!r}")

        with store.transaction():
            handler(store, event)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def handle_operator_registered(
        self, store: EntityStore, event: OperatorRegistered
    ) -> None:
        address = normalize_address(event.operator)
        rows, eth, eigen = self._read_operator_balances(address, event.block_number)

        operator = operator_or_new(store, address)
        totals = total_shares_or_new(store)

        if operator.is_registered:
            # Registered twice without a deregistration in between
            self.logger.info(
                f"Operator {address} re-registered at block {event.block_number} "
                f"while still registered, replacing its balances"
            )
            totals.remove_operator(operator)

        operator.is_registered = True
        operator.total_eth_shares = eth
        operator.total_eigen_shares = eigen
        totals.add_operator(operator)

        # operator row first, pair rows reference it
        store.save(operator)
        for row in rows:
            store.save(row)
        store.save(totals)

        self.logger.info(
            f"Registered operator {address} at block {event.block_number}: "
            f"eth_shares={eth}, eigen_shares={eigen}"
        )

    def handle_operator_deregistered(
        self, store: EntityStore, event: OperatorDeregistered
    ) -> None:
        address = normalize_address(event.operator)
        operator = store.get_operator(address)

        if operator is None:
            self.logger.debug(f"Ignoring deregistration of unknown operator {address}")
            return
        if not operator.is_registered:
            self.logger.debug(
                f"Ignoring deregistration of already deregistered operator {address}"
            )
            return

        totals = total_shares_or_new(store)
        totals.remove_operator(operator)
        operator.is_registered = False

        store.save(totals)
        store.save(operator)

        self.logger.info(
            f"Deregistered operator {address} at block {event.block_number}: "
            f"released eth_shares={operator.total_eth_shares}, "
            f"eigen_shares={operator.total_eigen_shares}"
        )

    # ------------------------------------------------------------------
    # Share changes
    # ------------------------------------------------------------------

    def handle_operator_shares_increased(
        self, store: EntityStore, event: OperatorSharesIncreased
    ) -> None:
        self._handle_share_change(store, event, increased=True)

    def handle_operator_shares_decreased(
        self, store: EntityStore, event: OperatorSharesDecreased
    ) -> None:
        self._handle_share_change(store, event, increased=False)

    def _handle_share_change(self, store: EntityStore, event, increased: bool) -> None:
        address = normalize_address(event.operator)
        strategy = normalize_address(event.strategy)

        operator = store.get_operator(address)
        if operator is None or not operator.is_registered:
            self.logger.debug(
                f"Ignoring share change for unregistered operator {address} "
                f"in strategy {strategy}"
            )
            return

        kind = self.share_kind(strategy, event.block_number)
        row = strategy_shares_or_new(store, address, strategy)
        old = row.shares
        new = self.balances.operator_shares(address, strategy, event.block_number)

        row.shares = new
        store.save(row)

        if kind is None:
            self.logger.debug(
                f"Strategy {strategy} not eligible at block {event.block_number}, "
                f"aggregates unchanged for {address}"
            )
            return

        totals = total_shares_or_new(store)
        if increased:
            delta = new - old
            operator.adjust(kind, delta)
            totals.adjust(kind, delta)
        else:
            delta = old - new
            operator.adjust(kind, -delta)
            totals.adjust(kind, -delta)

        store.save(operator)
        store.save(totals)

        self.logger.debug(
            f"{'Increase' if increased else 'Decrease'} for {address} in "
            f"{strategy} ({kind}): {old} -> {new}"
        )

    def share_kind(self, strategy: str, block_number: int) -> Optional[str]:
        """Aggregate a strategy's shares count toward at a block, or None."""
        if self.secondary_strategy and strategy == self.secondary_strategy:
            return EIGEN if self.eligibility.counts_secondary(block_number) else None
        if self.eligibility.is_eligible(strategy, block_number):
            return ETH
        return None

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    def reconcile_operator(
        self, store: EntityStore, address: str, block_number: int
    ) -> Tuple[int, int]:
        """
        Re-read every eligible strategy for a registered operator and move
        the singleton by the difference. Returns the (eth, eigen) corrections.
        """
        address = normalize_address(address)
        with store.transaction():
            operator = store.get_operator(address)
            if operator is None or not operator.is_registered:
                return 0, 0

            rows, eth, eigen = self._read_operator_balances(address, block_number)
            eth_delta = eth - operator.total_eth_shares
            eigen_delta = eigen - operator.total_eigen_shares

            totals = total_shares_or_new(store)
            operator.adjust(ETH, eth_delta)
            operator.adjust(EIGEN, eigen_delta)
            totals.adjust(ETH, eth_delta)
            totals.adjust(EIGEN, eigen_delta)

            for row in rows:
                store.save(row)
            store.save(operator)
            store.save(totals)

        if eth_delta or eigen_delta:
            self.logger.info(
                f"Reconciled operator {address} at block {block_number}: "
                f"eth {eth_delta:+d}, eigen {eigen_delta:+d}"
            )
        return eth_delta, eigen_delta

    def _read_operator_balances(
        self, address: str, block_number: int
    ) -> Tuple[List[StrategyShares], int, int]:
        """Pair rows for every counted strategy plus their eth / eigen sums."""
        rows = []
        eth = 0
        for strategy in self.eligibility.eligible_strategies(block_number):
            if strategy == self.secondary_strategy:
                continue
            shares = self.balances.operator_shares(address, strategy, block_number)
            rows.append(StrategyShares(operator=address, strategy=strategy, shares=shares))
            eth += shares

        eigen = 0
        if self.eligibility.counts_secondary(block_number):
            eigen = self.balances.operator_shares(
                address, self.secondary_strategy, block_number
            )
            rows.append(
                StrategyShares(
                    operator=address, strategy=self.secondary_strategy, shares=eigen
                )
            )
        return rows, eth, eigen


def ledger_invariant_holds(store: EntityStore) -> bool:
    """True when the singleton equals the sum over registered operators."""
    totals = total_shares_or_new(store)
    operators: List[Operator] = store.registered_operators()
    return totals.total_eth_shares == sum(
        o.total_eth_shares for o in operators
    ) and totals.total_eigen_shares == sum(o.total_eigen_shares for o in operators)
