"""
Tier definitions and the per-router tier registry.

Tiers are ordered by cost and capability. Each tier maps to a ModelConfig
that callers may override at any time; overrides replace the stored entry
as a whole so concurrent readers see either the old or the new config.
"""

from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

from .errors import ConfigurationError


class Tier(Enum):
    """Cost tiers in escalation order."""
    SIMPLE = "SIMPLE"
    MEDIUM = "MEDIUM"
    COMPLEX = "COMPLEX"

    def next(self) -> Optional["Tier"]:
        """Next tier in the fallback chain, or None at the top."""
        return FALLBACK_CHAIN[self]


FALLBACK_CHAIN: Dict[Tier, Optional[Tier]] = {
    Tier.SIMPLE: Tier.MEDIUM,
    Tier.MEDIUM: Tier.COMPLEX,
    Tier.COMPLEX: None,
}

TierLike = Union[Tier, str]


def resolve_tier(tier: TierLike) -> Tier:
    """Resolve a Tier or a tier name (case-insensitive).

    Raises:
        ConfigurationError: If the tier is unknown
    """
    if isinstance(tier, Tier):
        return tier
    if isinstance(tier, str):
        try:
            return Tier(tier.strip().upper())
        except ValueError:
            pass
    valid = [t.value for t in Tier]
    raise ConfigurationError(f"Unknown tier: {tier!r}. Must be one of: {valid}")


@dataclass
class ModelConfig:
    """Backend configuration for one tier.

    Attributes:
        name: Backend model identifier passed to the backend
        display_name: Human readable model name
        cost_per_m_input: USD per million input tokens
        cost_per_m_output: USD per million output tokens
        max_retries: Retry budget advertised for the tier
    """
    name: str
    display_name: str
    cost_per_m_input: float
    cost_per_m_output: float
    max_retries: int


MODEL_CONFIG_FIELDS = frozenset(f.name for f in fields(ModelConfig))


def default_tier_configs() -> Dict[Tier, ModelConfig]:
    """Fresh copy of the default tier configuration."""
    return {
        Tier.SIMPLE: ModelConfig(
            name="minimax/minimax-01",
            display_name="Minimax M2.5",
            cost_per_m_input=1.27,
            cost_per_m_output=1.27,
            max_retries=2
        ),
        Tier.MEDIUM: ModelConfig(
            name="anthropic/claude-3-5-haiku-20241022",
            display_name="Claude 3.5 Haiku",
            cost_per_m_input=0.80,
            cost_per_m_output=4.00,
            max_retries=2
        ),
        Tier.COMPLEX: ModelConfig(
            name="anthropic/claude-opus-4-20250514",
            display_name="Claude Opus 4.6",
            cost_per_m_input=90.00,
            cost_per_m_output=90.00,
            max_retries=1
        ),
    }


class TierRegistry:
    """Mutable tier -> ModelConfig mapping owned by a router.

    Costs are not sanity checked: zero or negative rates are an explicit
    override and are stored as given.
    """

    def __init__(self, configs: Optional[Mapping[Tier, ModelConfig]] = None):
        self._configs: Dict[Tier, ModelConfig] = default_tier_configs()
        if configs:
            for tier, config in configs.items():
                self._configs[resolve_tier(tier)] = config

    def get_config(self, tier: TierLike) -> ModelConfig:
        """Get the configuration for a tier.

        Raises:
            ConfigurationError: If the tier is unknown
        """
        return self._configs[resolve_tier(tier)]

    def set_config(
        self,
        tier: TierLike,
        partial: Optional[Mapping[str, Any]] = None,
        **overrides: Any
    ) -> ModelConfig:
        """Merge the given fields over the tier's current config.

        Fields may be passed as a mapping, as keyword arguments, or both
        (keywords win). Fields not provided keep their current value.

        Args:
            tier: Tier or tier name
            partial: Mapping of ModelConfig field names to new values
            **overrides: Additional field overrides

        Returns:
            The new ModelConfig stored for the tier

        Raises:
            ConfigurationError: If the tier or a field name is unknown
        """
        resolved = resolve_tier(tier)
        changes = dict(partial or {})
        changes.update(overrides)

        unknown = set(changes) - MODEL_CONFIG_FIELDS
        if unknown:
            raise ConfigurationError(f"Unknown ModelConfig fields: {sorted(unknown)}")

        updated = replace(self._configs[resolved], **changes)
        self._configs[resolved] = updated
        return updated

    def items(self):
        """(Tier, ModelConfig) pairs in escalation order."""
        return [(tier, self._configs[tier]) for tier in Tier]
