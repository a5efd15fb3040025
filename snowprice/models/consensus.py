"""
Consensus validation data models.

Outcome of reconciling two extraction passes over the same store.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List

from .listing import RawListing


class ConsensusStatus(str, Enum):
    AUTO_MERGED = "auto_merged"
    MERGED_WITH_WARNING = "merged_with_warning"
    REQUIRES_CONFIRMATION = "requires_confirmation"
    SKIPPED_SINGLE_SOURCE = "skipped_single_source"
    ERROR = "error"


class ConsensusState(str, Enum):
    """States of one store-addition validation run."""
    INIT = "init"
    PRIMARY_FETCHED = "primary_fetched"
    SECONDARY_FETCHING = "secondary_fetching"
    RECONCILED = "reconciled"
    AUTO_MERGED = "auto_merged"
    WARN_MERGED = "warn_merged"
    NEEDS_CONFIRMATION = "needs_confirmation"
    SKIPPED = "skipped"
    ERRORED = "errored"


# Terminal state reached for each final status
TERMINAL_STATES = {
    ConsensusStatus.AUTO_MERGED: ConsensusState.AUTO_MERGED,
    ConsensusStatus.MERGED_WITH_WARNING: ConsensusState.WARN_MERGED,
    ConsensusStatus.REQUIRES_CONFIRMATION: ConsensusState.NEEDS_CONFIRMATION,
    ConsensusStatus.SKIPPED_SINGLE_SOURCE: ConsensusState.SKIPPED,
    ConsensusStatus.ERROR: ConsensusState.ERRORED,
}


@dataclass
class PassSummary:
    """One extraction pass: method id and the listings it produced."""
    method: str
    listings: List[RawListing] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.listings)


@dataclass
class PriceDiscrepancy:
    url: str
    primary_price: float
    secondary_price: float
    difference_percent: float


@dataclass
class QualityMetrics:
    """Percentages (0-100) of merged listings with usable fields."""
    valid_image_percent: float = 0.0
    price_percent: float = 0.0
    brand_percent: float = 0.0


@dataclass
class ConsensusResult:
    """
    Result of a dual-pass validation for one store.

    `merged` is the union of both passes by product URL (primary wins on
    conflicting fields, secondary fills gaps). A REQUIRES_CONFIRMATION or
    ERROR result must never be applied to the catalog automatically.
    """
    store_id: str
    primary: PassSummary
    secondary: PassSummary
    status: ConsensusStatus = ConsensusStatus.ERROR
    difference_percent: float = 0.0
    merged: List[RawListing] = field(default_factory=list)
    merged_from_primary: int = 0
    merged_from_secondary: int = 0
    only_in_primary: List[str] = field(default_factory=list)
    only_in_secondary: List[str] = field(default_factory=list)
    in_both: List[str] = field(default_factory=list)
    price_discrepancies: List[PriceDiscrepancy] = field(default_factory=list)
    quality_metrics: QualityMetrics = field(default_factory=QualityMetrics)
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    state_history: List[ConsensusState] = field(default_factory=lambda: [ConsensusState.INIT])

    @property
    def state(self) -> ConsensusState:
        return self.state_history[-1]

    @property
    def passed(self) -> bool:
        """True when the merged listings may be applied without confirmation."""
        return self.status in (
            ConsensusStatus.AUTO_MERGED,
            ConsensusStatus.MERGED_WITH_WARNING,
            ConsensusStatus.SKIPPED_SINGLE_SOURCE,
        )

    @property
    def requires_confirmation(self) -> bool:
        return self.status == ConsensusStatus.REQUIRES_CONFIRMATION

    def advance(self, state: ConsensusState) -> None:
        self.state_history.append(state)
