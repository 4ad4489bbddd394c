"""
Pricing calculations and baseline rates.

Costs are quoted per million tokens. Calculations run in Decimal so that
round rates produce exact results (1M tokens at $1.27 costs exactly $1.27).
"""

from dataclasses import dataclass
from decimal import Decimal

from .token_counter import TokenUsage

TOKENS_PER_UNIT = Decimal("1000000")


@dataclass(frozen=True)
class BaselinePricing:
    """Reference rates used to price the all-premium baseline."""
    name: str
    cost_per_m_input: float
    cost_per_m_output: float


# Routing everything through the most expensive default tier
DEFAULT_BASELINE = BaselinePricing(
    name="Claude Opus 4.6",
    cost_per_m_input=90.00,
    cost_per_m_output=90.00
)


def _to_decimal(value: float) -> Decimal:
    # str() keeps the literal the caller configured (1.27, not 1.2700000000000000177...)
    return Decimal(str(value))


def calculate_cost(
    usage: TokenUsage,
    cost_per_m_input: float,
    cost_per_m_output: float
) -> float:
    """Calculate the cost of token usage at per-million rates.

    No rounding is applied: per-request costs are usually fractions of a cent
    and are only rounded for display or export.

    Args:
        usage: Token usage data
        cost_per_m_input: Cost per million input tokens
        cost_per_m_output: Cost per million output tokens

    Returns:
        Total cost in USD
    """
    input_cost = (Decimal(usage.input_tokens) / TOKENS_PER_UNIT) * _to_decimal(cost_per_m_input)
    output_cost = (Decimal(usage.output_tokens) / TOKENS_PER_UNIT) * _to_decimal(cost_per_m_output)
    return float(input_cost + output_cost)


def calculate_baseline_cost(usage: TokenUsage, baseline: BaselinePricing = DEFAULT_BASELINE) -> float:
    """Calculate what usage would have cost at the baseline rates."""
    return calculate_cost(usage, baseline.cost_per_m_input, baseline.cost_per_m_output)
