"""
Data models for the usage ledger.

Defines the per-attempt record and the statistics derived from it.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict

from ai_tier_router.core.tiers import Tier


@dataclass(frozen=True)
class UsageRecord:
    """Immutable record of one routing attempt.

    A route call that falls back produces one record per attempt. The id is
    the ledger sequence number; records built by callers leave it at 0 and
    the ledger assigns it on append.
    """
    timestamp: datetime
    tier: Tier
    model: str
    input_tokens: int
    output_tokens: int
    cost: float
    duration_ms: float
    success: bool
    attempts: int = 1
    error: str = ""
    id: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


@dataclass(frozen=True)
class TierBreakdown:
    """Successful usage attributed to a single tier."""
    requests: int = 0
    cost: float = 0.0
    input_tokens: int = 0
    output_tokens: int = 0


@dataclass(frozen=True)
class UsageStatistics:
    """Aggregate view of the ledger, recomputed on every request."""
    total_requests: int
    successful_requests: int
    failed_requests: int
    total_cost: float
    baseline_cost: float
    savings: float
    savings_percent: float
    savings_multiplier: float
    avg_cost_per_request: float
    total_input_tokens: int
    total_output_tokens: int
    cost_by_tier: Dict[Tier, TierBreakdown] = field(default_factory=dict)

    @property
    def requests_by_tier(self) -> Dict[Tier, int]:
        return {tier: breakdown.requests for tier, breakdown in self.cost_by_tier.items()}
