# services/eligibility.py
"""
Decides which strategies count toward tracked totals at a given block.

Before the cutover block the AVS manager could not enumerate its restakeable
strategies, so a static allow-list stands in for it. From the cutover block
onward the registry is asked directly.

The secondary strategy feeds the Eigen aggregates from the cutover block on,
and before it only when `include_secondary_before_cutover` is set.
"""
import logging
from typing import Iterable, List, Optional, Protocol

from tvl_pipeline.utils.normalizers import normalize_address


class StrategyRegistry(Protocol):
    def restakeable_strategies(self, block_number: int) -> List[str]:
        """Authoritative eligible strategy addresses as of `block_number`."""
        ...


class EligibilityPolicy:
    def __init__(
        self,
        static_strategies: Iterable[str],
        registry: StrategyRegistry,
        cutover_block: int,
        secondary_strategy: Optional[str] = None,
        include_secondary_before_cutover: bool = True,
        logger: Optional[logging.Logger] = None,
    ):
        self.static_strategies = [normalize_address(s) for s in static_strategies]
        self.registry = registry
        self.cutover_block = cutover_block
        self.secondary_strategy = (
            normalize_address(secondary_strategy) if secondary_strategy else None
        )
        self.include_secondary_before_cutover = include_secondary_before_cutover
        self.logger = logger or logging.getLogger(__name__)

        if include_secondary_before_cutover and self.secondary_strategy:
            if self.secondary_strategy not in self.static_strategies:
                self.static_strategies.append(self.secondary_strategy)

    def uses_registry(self, block_number: int) -> bool:
        return block_number >= self.cutover_block

    def counts_secondary(self, block_number: int) -> bool:
        """Whether secondary strategy shares feed the Eigen aggregates at a block."""
        if not self.secondary_strategy:
            return False
        return self.uses_registry(block_number) or self.include_secondary_before_cutover

    def eligible_strategies(self, block_number: int) -> List[str]:
        """Strategies whose shares count at `block_number`, in a stable order."""
        if not self.uses_registry(block_number):
            return list(self.static_strategies)

        strategies = []
        for strategy in self.registry.restakeable_strategies(block_number):
            address = normalize_address(strategy)
            if address not in strategies:
                strategies.append(address)
        return strategies

    def is_eligible(self, strategy: str, block_number: int) -> bool:
        return normalize_address(strategy) in self.eligible_strategies(block_number)
