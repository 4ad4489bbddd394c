"""
Unit tests for configuration loading and validation.

Tests strict validation and error handling for router configs.
"""

import os
import tempfile

import pytest
import yaml

from ai_tier_router.config.loader import RouterConfig, load_router_config
from ai_tier_router.core.errors import ConfigurationError
from ai_tier_router.core.pricing import DEFAULT_BASELINE
from ai_tier_router.core.tiers import Tier


class TestConfigLoading:
    """Test configuration loading and validation."""

    def setup_method(self):
        """Set up test environment."""
        self.temp_dir = tempfile.mkdtemp()

    def teardown_method(self):
        """Clean up test environment."""
        import shutil
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _write_config(self, config_data, filename: str = "config.yaml") -> str:
        """Write configuration data to temporary file."""
        config_path = os.path.join(self.temp_dir, filename)
        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.dump(config_data, f)
        return config_path

    def _write_text(self, text: str, filename: str = "config.yaml") -> str:
        config_path = os.path.join(self.temp_dir, filename)
        with open(config_path, 'w', encoding='utf-8') as f:
            f.write(text)
        return config_path

    def test_valid_config_loads_correctly(self):
        """Test that a valid configuration loads correctly."""
        config_path = self._write_config({
            "tiers": {
                "simple": {"name": "local/tiny", "cost_per_m_input": 0.1, "cost_per_m_output": 0.2},
                "COMPLEX": {"max_retries": 0}
            },
            "baseline": {"name": "Premium", "cost_per_m_input": 60, "cost_per_m_output": 75},
            "max_attempts": 2
        })

        config = load_router_config(config_path)

        assert config.tiers[Tier.SIMPLE] == {
            "name": "local/tiny",
            "cost_per_m_input": 0.1,
            "cost_per_m_output": 0.2
        }
        assert config.tiers[Tier.COMPLEX] == {"max_retries": 0}
        assert Tier.MEDIUM not in config.tiers
        assert config.baseline.name == "Premium"
        assert config.baseline.cost_per_m_input == 60.0
        assert config.baseline.cost_per_m_output == 75.0
        assert config.max_attempts == 2

    def test_defaults_when_sections_omitted(self):
        config = load_router_config(self._write_config({"max_attempts": 3}))
        assert config.tiers == {}
        assert config.baseline == DEFAULT_BASELINE

    def test_missing_file(self):
        with pytest.raises(FileNotFoundError, match="Router config file not found"):
            load_router_config(os.path.join(self.temp_dir, "missing.yaml"))

    def test_empty_file(self):
        with pytest.raises(ConfigurationError, match="empty"):
            load_router_config(self._write_text(""))

    def test_invalid_yaml(self):
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_router_config(self._write_text("tiers: [unclosed"))

    def test_non_mapping(self):
        with pytest.raises(ConfigurationError, match="must be a mapping"):
            load_router_config(self._write_config(["a", "b"]))

    def test_unknown_top_level_key(self):
        with pytest.raises(ConfigurationError, match="Unknown configuration keys"):
            load_router_config(self._write_config({"budget": {"daily": 1}}))

    def test_unknown_tier(self):
        with pytest.raises(ConfigurationError, match="Unknown tier"):
            load_router_config(self._write_config({"tiers": {"EXPERT": {"name": "x"}}}))

    def test_unknown_tier_field(self):
        with pytest.raises(ConfigurationError, match="Unknown keys in tiers.SIMPLE"):
            load_router_config(self._write_config({"tiers": {"SIMPLE": {"temperature": 1}}}))

    def test_tier_must_be_mapping(self):
        with pytest.raises(ConfigurationError, match="must be a dictionary"):
            load_router_config(self._write_config({"tiers": {"SIMPLE": "cheap"}}))

    @pytest.mark.parametrize("value", ["cheap", True, None])
    def test_rate_must_be_number(self, value):
        with pytest.raises(ConfigurationError, match="must be a number"):
            load_router_config(self._write_config({"tiers": {"SIMPLE": {"cost_per_m_input": value}}}))

    def test_negative_rate_accepted(self):
        config = load_router_config(self._write_config({"tiers": {"SIMPLE": {"cost_per_m_input": -1}}}))
        assert config.tiers[Tier.SIMPLE]["cost_per_m_input"] == -1.0

    def test_empty_model_name(self):
        with pytest.raises(ConfigurationError, match="non-empty string"):
            load_router_config(self._write_config({"tiers": {"MEDIUM": {"name": "  "}}}))

    @pytest.mark.parametrize("value", [-1, 1.5, "two"])
    def test_invalid_max_retries(self, value):
        with pytest.raises(ConfigurationError, match="max_retries"):
            load_router_config(self._write_config({"tiers": {"MEDIUM": {"max_retries": value}}}))

    def test_baseline_requires_both_rates(self):
        with pytest.raises(ConfigurationError, match="Missing required 'cost_per_m_output'"):
            load_router_config(self._write_config({"baseline": {"cost_per_m_input": 10}}))

    def test_baseline_name_defaults(self):
        config = load_router_config(self._write_config({
            "baseline": {"cost_per_m_input": 10, "cost_per_m_output": 10}
        }))
        assert config.baseline.name == DEFAULT_BASELINE.name

    def test_unknown_baseline_key(self):
        with pytest.raises(ConfigurationError, match="Unknown baseline keys"):
            load_router_config(self._write_config({
                "baseline": {"cost_per_m_input": 1, "cost_per_m_output": 1, "currency": "EUR"}
            }))

    @pytest.mark.parametrize("value", [0, -2])
    def test_max_attempts_must_be_positive(self, value):
        with pytest.raises(ConfigurationError, match="max_attempts"):
            load_router_config(self._write_config({"max_attempts": value}))

    def test_max_attempts_must_be_integer(self):
        with pytest.raises(ConfigurationError, match="must be an integer"):
            load_router_config(self._write_config({"max_attempts": "3"}))


class TestRouterConfig:
    """Test RouterConfig validation."""

    def test_defaults(self):
        config = RouterConfig()
        assert config.tiers == {}
        assert config.max_attempts == 3

    def test_rejects_zero_attempts(self):
        with pytest.raises(ConfigurationError):
            RouterConfig(max_attempts=0)
