"""
In-memory usage ledger.

Append-only record of every routing attempt, with statistics, a text report
and a tabular export derived on demand. Writing the export anywhere is left
to the caller (see repository.py and the CLI).
"""

import itertools
import threading
from dataclasses import replace
from typing import Any, Dict, List

import structlog

from ai_tier_router.core.pricing import (
    BaselinePricing,
    DEFAULT_BASELINE,
    calculate_baseline_cost
)
from ai_tier_router.core.tiers import Tier
from ai_tier_router.core.token_counter import TokenUsage
from .models import TierBreakdown, UsageRecord, UsageStatistics

log = structlog.get_logger(__name__)

EXPORT_COLUMNS = (
    "ID",
    "Timestamp",
    "Tier",
    "Model",
    "Input Tokens",
    "Output Tokens",
    "Cost",
    "Duration (ms)",
    "Success",
    "Attempts",
    "Error",
)

REPORT_RULE = "=" * 55


class UsageLedger:
    """Thread-safe, append-only ledger of routing attempts.

    Sequence numbers come from a counter that never rewinds, so ids stay
    strictly increasing across concurrent appends and across clear().
    """

    def __init__(self, baseline: BaselinePricing = DEFAULT_BASELINE):
        """Initialize an empty ledger.

        Args:
            baseline: Reference rates for the all-premium baseline cost
        """
        self.baseline = baseline
        self._records: List[UsageRecord] = []
        self._sequence = itertools.count(1)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._records)

    def append(self, record: UsageRecord) -> UsageRecord:
        """Append a record, assigning its sequence id.

        The caller's record is left untouched; a copy carrying the id is
        stored and returned.
        """
        with self._lock:
            stored = replace(record, id=next(self._sequence))
            self._records.append(stored)
        return stored

    def records(self) -> List[UsageRecord]:
        """Snapshot of all records in append order."""
        with self._lock:
            return list(self._records)

    def recent(self, limit: int = 10) -> List[UsageRecord]:
        """The last `limit` records in append order."""
        if limit <= 0:
            return []
        with self._lock:
            return self._records[-limit:]

    def clear(self) -> None:
        """Discard all records. Irreversible."""
        with self._lock:
            discarded = len(self._records)
            self._records = []
        log.info("usage_ledger.cleared", discarded=discarded)

    def stats(self) -> UsageStatistics:
        """Derive statistics from every record appended so far.

        Actual and baseline cost only count successful attempts; failed
        attempts are counted but carry no tokens or cost.
        """
        records = self.records()
        successful = [r for r in records if r.success]

        total_cost = sum(r.cost for r in successful)
        total_input = sum(r.input_tokens for r in successful)
        total_output = sum(r.output_tokens for r in successful)

        baseline_cost = sum(
            calculate_baseline_cost(TokenUsage(r.input_tokens, r.output_tokens), self.baseline)
            for r in successful
        )

        savings = baseline_cost - total_cost
        savings_percent = (savings / baseline_cost) * 100 if baseline_cost else 0.0
        multiplier = baseline_cost / total_cost if total_cost else 0.0

        cost_by_tier = {}
        for tier in Tier:
            tier_records = [r for r in successful if r.tier == tier]
            cost_by_tier[tier] = TierBreakdown(
                requests=len(tier_records),
                cost=sum(r.cost for r in tier_records),
                input_tokens=sum(r.input_tokens for r in tier_records),
                output_tokens=sum(r.output_tokens for r in tier_records)
            )

        return UsageStatistics(
            total_requests=len(records),
            successful_requests=len(successful),
            failed_requests=len(records) - len(successful),
            total_cost=total_cost,
            baseline_cost=baseline_cost,
            savings=savings,
            savings_percent=savings_percent,
            savings_multiplier=multiplier,
            avg_cost_per_request=total_cost / len(successful) if successful else 0.0,
            total_input_tokens=total_input,
            total_output_tokens=total_output,
            cost_by_tier=cost_by_tier
        )

    def report(self) -> str:
        """Plain-text cost report."""
        stats = self.stats()

        lines = [
            REPORT_RULE,
            "              TIER ROUTER COST REPORT",
            REPORT_RULE,
            "",
            "Summary:",
            f"   Total Requests: {stats.total_requests}",
            f"   Successful: {stats.successful_requests}",
            f"   Failed: {stats.failed_requests}",
            "",
            "Costs:",
            f"   Routed Cost: ${stats.total_cost:.6f}",
            f"   Baseline Cost (All {self.baseline.name}): ${stats.baseline_cost:.6f}",
            f"   Savings: ${stats.savings:.6f} ({stats.savings_percent:.1f}%)",
            f"   Cost Multiplier: {stats.savings_multiplier:.2f}x cheaper",
            f"   Avg Cost/Request: ${stats.avg_cost_per_request:.6f}",
            "",
            "Breakdown by Tier:",
        ]

        for tier, data in stats.cost_by_tier.items():
            if data.requests == 0:
                continue
            lines.extend([
                f"   {tier.value}:",
                f"      Requests: {data.requests}",
                f"      Cost: ${data.cost:.6f}",
                f"      Tokens: {data.input_tokens:,} in / {data.output_tokens:,} out",
            ])

        lines.extend(["", REPORT_RULE])
        return "\n".join(lines) + "\n"

    def export_records(self) -> List[Dict[str, Any]]:
        """One row per record, keyed by EXPORT_COLUMNS."""
        return [_to_row(record) for record in self.records()]

    def dashboard(self, recent_limit: int = 5) -> Dict[str, Any]:
        """Statistics plus a short summary of the latest attempts."""
        return {
            "stats": self.stats(),
            "recent": [
                {
                    "timestamp": r.timestamp.isoformat(),
                    "tier": r.tier.value,
                    "model": r.model,
                    "cost": f"{r.cost:.6f}",
                    "success": r.success,
                    "duration_ms": r.duration_ms,
                }
                for r in self.recent(recent_limit)
            ]
        }


def _to_row(record: UsageRecord) -> Dict[str, Any]:
    return {
        "ID": record.id,
        "Timestamp": record.timestamp.isoformat(),
        "Tier": record.tier.value,
        "Model": record.model,
        "Input Tokens": record.input_tokens,
        "Output Tokens": record.output_tokens,
        "Cost": f"{record.cost:.8f}",
        "Duration (ms)": round(record.duration_ms),
        "Success": record.success,
        "Attempts": record.attempts or 1,
        "Error": record.error,
    }

