"""
Tests for the CLI interface.
"""
import os
from unittest.mock import AsyncMock, Mock, patch

import pytest
import yaml
from typer.testing import CliRunner

from ai_tier_router.cli.main import app, EXIT_CODE_PASS, EXIT_CODE_FAIL
from ai_tier_router.core.tiers import Tier
from ai_tier_router.demo.sample_prompts import SAMPLE_PROMPTS, get_prompts_by_tier
from ai_tier_router.storage.repository import fetch_usage_records

runner = CliRunner()


@pytest.fixture
def config_file(tmp_path):
    """Write a small router config and return its path."""
    path = tmp_path / "router.yaml"
    path.write_text(yaml.dump({
        "tiers": {"SIMPLE": {"name": "local/tiny", "display_name": "Tiny"}},
        "max_attempts": 2
    }))
    return str(path)


class TestCLI:
    """Test CLI commands."""

    def test_no_command_prints_hint(self):
        result = runner.invoke(app, [])
        assert result.exit_code == 0
        assert "Use --help" in result.output

    def test_classify_simple(self):
        result = runner.invoke(app, ["classify", "What's 2+2?"])
        assert result.exit_code == 0
        assert "Tier: SIMPLE" in result.output
        assert "Confidence: 92%" in result.output
        assert "Complexity Metrics" in result.output

    def test_classify_code(self):
        result = runner.invoke(app, ["classify", "const x = 1"])
        assert result.exit_code == 0
        assert "Tier: MEDIUM" in result.output
        assert "Contains code" in result.output

    def test_route_success(self):
        result = runner.invoke(app, ["route", "What's 2+2?", "--seed", "1"])
        assert result.exit_code == EXIT_CODE_PASS
        assert "Minimax M2.5 (SIMPLE)" in result.output
        assert "Attempts: 1" in result.output
        assert "Mock response from minimax/minimax-01" in result.output

    def test_route_forced_tier(self):
        result = runner.invoke(app, ["route", "hi", "--force-tier", "complex"])
        assert result.exit_code == EXIT_CODE_PASS
        assert "(COMPLEX)" in result.output

    def test_route_with_config(self, config_file):
        result = runner.invoke(app, ["route", "hi", "--config", config_file])
        assert result.exit_code == EXIT_CODE_PASS
        assert "Tiny (SIMPLE)" in result.output

    def test_route_all_tiers_fail(self):
        result = runner.invoke(app, ["route", "hi", "--failure-rate", "1.0", "--seed", "1"])
        assert result.exit_code == EXIT_CODE_FAIL
        assert "All tiers failed after 3 attempts" in result.output

    def test_route_respects_config_attempt_ceiling(self, config_file):
        result = runner.invoke(app, ["route", "hi", "--config", config_file, "--failure-rate", "1.0"])
        assert result.exit_code == EXIT_CODE_FAIL
        assert "All tiers failed after 2 attempts" in result.output

    def test_route_unknown_tier(self):
        result = runner.invoke(app, ["route", "hi", "--force-tier", "EXPERT"])
        assert result.exit_code == EXIT_CODE_FAIL
        assert "Error:" in result.output

    def test_route_missing_config(self, tmp_path):
        result = runner.invoke(app, ["route", "hi", "--config", str(tmp_path / "missing.yaml")])
        assert result.exit_code == EXIT_CODE_FAIL
        assert "not found" in result.output

    def test_tiers_table(self):
        result = runner.invoke(app, ["tiers"])
        assert result.exit_code == 0
        assert "Model Tiers" in result.output

    def test_tiers_bad_config(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("unknown: 1\n")
        result = runner.invoke(app, ["tiers", "--config", str(path)])
        assert result.exit_code == EXIT_CODE_FAIL
        assert "Unknown configuration keys" in result.output

    def test_demo_writes_exports(self, tmp_path):
        csv_path = tmp_path / "usage.csv"
        db_path = tmp_path / "usage.db"

        result = runner.invoke(app, [
            "demo", "--no-latency", "--seed", "42",
            "--csv", str(csv_path), "--db", str(db_path)
        ])

        assert result.exit_code == EXIT_CODE_PASS
        assert "TIER ROUTER COST REPORT" in result.output
        assert "Routing 42 sample prompts" in result.output
        assert "24 SIMPLE, 9 MEDIUM, 9 COMPLEX" in result.output
        assert os.path.exists(csv_path)
        assert len(fetch_usage_records(limit=1000, db_path=str(db_path))) >= 42

    @patch('ai_tier_router.sdk.openai_client.AsyncOpenAI')
    def test_route_openai_closes_client(self, mock_openai_class):
        """Verify the OpenAI client is closed before the command exits."""
        response = Mock()
        response.id = "chatcmpl-1"
        response.usage.prompt_tokens = 4
        response.usage.completion_tokens = 2
        response.choices = [Mock()]
        response.choices[0].message.content = "4"
        client = Mock()
        client.chat.completions.create = AsyncMock(return_value=response)
        client.close = AsyncMock()
        mock_openai_class.return_value = client

        result = runner.invoke(app, ["route", "What's 2+2?", "--openai"])

        assert result.exit_code == EXIT_CODE_PASS
        assert "(SIMPLE)" in result.output
        client.close.assert_awaited_once()

    @patch('ai_tier_router.sdk.openai_client.AsyncOpenAI')
    def test_route_openai_closes_client_on_failure(self, mock_openai_class):
        client = Mock()
        client.chat.completions.create = AsyncMock(side_effect=RuntimeError("API Error"))
        client.close = AsyncMock()
        mock_openai_class.return_value = client

        result = runner.invoke(app, ["route", "hi", "--openai"])

        assert result.exit_code == EXIT_CODE_FAIL
        assert "All tiers failed after 3 attempts" in result.output
        client.close.assert_awaited_once()


class TestSamplePrompts:
    """Test the bundled demo prompts."""

    def test_prompts_by_tier_partition_all_prompts(self):
        by_tier = {tier: get_prompts_by_tier(tier) for tier in Tier}
        assert sum(len(prompts) for prompts in by_tier.values()) == len(SAMPLE_PROMPTS)
        assert all(p.expected_tier == Tier.COMPLEX for p in by_tier[Tier.COMPLEX])
        assert len(by_tier[Tier.SIMPLE]) == 24
