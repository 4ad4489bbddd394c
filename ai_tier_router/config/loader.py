"""
Configuration management and loading.

Reads tier overrides, the baseline rate and the attempt ceiling from YAML.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

import yaml

from ai_tier_router.core.errors import ConfigurationError
from ai_tier_router.core.pricing import BaselinePricing, DEFAULT_BASELINE
from ai_tier_router.core.tiers import MODEL_CONFIG_FIELDS, Tier, resolve_tier

DEFAULT_MAX_ATTEMPTS = 3

_STRING_FIELDS = {"name", "display_name"}
_RATE_FIELDS = {"cost_per_m_input", "cost_per_m_output"}


@dataclass(frozen=True)
class RouterConfig:
    """Validated router configuration.

    Tier overrides are partial: only the fields present in the file are
    merged over the defaults.
    """
    tiers: Dict[Tier, Dict[str, Any]] = field(default_factory=dict)
    baseline: BaselinePricing = DEFAULT_BASELINE
    max_attempts: int = DEFAULT_MAX_ATTEMPTS

    def __post_init__(self):
        """Validate the attempt ceiling."""
        if self.max_attempts < 1:
            raise ConfigurationError("max_attempts must be >= 1")


def load_router_config(path: str) -> RouterConfig:
    """Load and validate router configuration from a YAML file.

    Strict validation: unknown keys are rejected so that a typo never
    silently leaves a tier on its default (and differently priced) model.

    Args:
        path: Path to YAML configuration file

    Returns:
        Validated RouterConfig

    Raises:
        FileNotFoundError: If config file doesn't exist
        ConfigurationError: If YAML is invalid or configuration is invalid
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Router config file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in config file {path}: {e}")

    if not raw_config:
        raise ConfigurationError("Configuration file is empty")
    if not isinstance(raw_config, dict):
        raise ConfigurationError("Configuration must be a mapping")

    allowed_top_keys = {'tiers', 'baseline', 'max_attempts'}
    unknown_keys = set(raw_config.keys()) - allowed_top_keys
    if unknown_keys:
        raise ConfigurationError(f"Unknown configuration keys: {unknown_keys}")

    tiers_data = raw_config.get('tiers') or {}
    if not isinstance(tiers_data, dict):
        raise ConfigurationError("'tiers' must be a dictionary")

    tiers = {}
    for tier_name, tier_data in tiers_data.items():
        tier = resolve_tier(str(tier_name))
        if not isinstance(tier_data, dict):
            raise ConfigurationError(f"Tier '{tier_name}' must be a dictionary")
        tiers[tier] = _parse_tier_overrides(tier_data, f"tiers.{tier.value}")

    baseline = DEFAULT_BASELINE
    if 'baseline' in raw_config:
        baseline_data = raw_config['baseline']
        if not isinstance(baseline_data, dict):
            raise ConfigurationError("'baseline' must be a dictionary")
        baseline = _parse_baseline(baseline_data)

    max_attempts = raw_config.get('max_attempts', DEFAULT_MAX_ATTEMPTS)
    if isinstance(max_attempts, bool) or not isinstance(max_attempts, int):
        raise ConfigurationError("'max_attempts' must be an integer")

    return RouterConfig(
        tiers=tiers,
        baseline=baseline,
        max_attempts=max_attempts
    )


def _parse_tier_overrides(data: Dict, path: str) -> Dict[str, Any]:
    """Parse and validate a partial ModelConfig.

    Rates are only type-checked; zero or negative costs are a deliberate
    override and are accepted.

    Args:
        data: Tier configuration data
        path: Path for error messages

    Returns:
        Mapping of ModelConfig field names to values

    Raises:
        ConfigurationError: If configuration is invalid
    """
    unknown_keys = set(data.keys()) - MODEL_CONFIG_FIELDS
    if unknown_keys:
        raise ConfigurationError(f"Unknown keys in {path}: {unknown_keys}")

    overrides: Dict[str, Any] = {}
    for key, value in data.items():
        if key in _STRING_FIELDS:
            if not isinstance(value, str) or not value.strip():
                raise ConfigurationError(f"'{key}' in {path} must be a non-empty string")
            overrides[key] = value
        elif key in _RATE_FIELDS:
            overrides[key] = _parse_rate(value, key, path)
        elif key == 'max_retries':
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ConfigurationError(f"'max_retries' in {path} must be an integer >= 0")
            overrides[key] = value

    return overrides


def _parse_baseline(data: Dict) -> BaselinePricing:
    allowed_keys = {'name', 'cost_per_m_input', 'cost_per_m_output'}
    unknown_keys = set(data.keys()) - allowed_keys
    if unknown_keys:
        raise ConfigurationError(f"Unknown baseline keys: {unknown_keys}")

    for key in _RATE_FIELDS:
        if key not in data:
            raise ConfigurationError(f"Missing required '{key}' in baseline")

    name = data.get('name', DEFAULT_BASELINE.name)
    if not isinstance(name, str) or not name.strip():
        raise ConfigurationError("'name' in baseline must be a non-empty string")

    return BaselinePricing(
        name=name,
        cost_per_m_input=_parse_rate(data['cost_per_m_input'], 'cost_per_m_input', 'baseline'),
        cost_per_m_output=_parse_rate(data['cost_per_m_output'], 'cost_per_m_output', 'baseline')
    )


def _parse_rate(value: Any, key: str, path: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(f"'{key}' in {path} must be a number")
    return float(value)
