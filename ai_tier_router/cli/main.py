"""
CLI interface for AI Tier Router.

Provides command-line access to classification, routing and the demo run.
"""

import asyncio
import sys
from typing import Dict, Optional

import typer
from rich.console import Console
from rich.table import Table

from ai_tier_router.config.loader import RouterConfig, load_router_config
from ai_tier_router.core.backend import MockBackend
from ai_tier_router.core.errors import AllTiersExhaustedError
from ai_tier_router.core.router import TierRouter, create_router
from ai_tier_router.core.tiers import Tier
from ai_tier_router.demo.sample_prompts import SAMPLE_PROMPTS, get_prompts_by_tier
from ai_tier_router.storage.repository import initialize_schema, insert_usage_records, write_csv
from ai_tier_router.telemetry.logging import configure_logging

app = typer.Typer()
console = Console()

EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1

# Simulated availability per tier for the demo
DEMO_FAILURE_RATES = {
    Tier.SIMPLE: 0.15,
    Tier.MEDIUM: 0.05,
    Tier.COMPLEX: 0.01,
}
DEMO_LATENCY = (0.1, 0.3)

CONFIG_OPTION = typer.Option(
    None,
    "--config",
    "-c",
    help="YAML file with tier overrides and baseline rates"
)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show routing logs"),
    json_logs: bool = typer.Option(False, "--json-logs", help="Render logs as JSON")
):
    """AI Tier Router CLI."""
    configure_logging(json_logs=json_logs, log_level="DEBUG" if verbose else "WARNING")
    if ctx.invoked_subcommand is None:
        console.print("AI Tier Router - Use --help to see available commands")


@app.command()
def classify(text: str = typer.Argument(..., help="Prompt to classify")):
    """Classify a prompt without dispatching it."""
    analysis = TierRouter().classify(text)
    metrics = analysis.metrics

    console.print(f"\n[bold]Tier:[/bold] {analysis.tier.value}")
    console.print(f"Confidence: {analysis.confidence:.0%}")
    console.print(f"Reasoning: {analysis.summary}\n")

    table = Table(title="Complexity Metrics")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Estimated tokens", str(metrics.tokens))
    table.add_row("Contains code", "yes" if metrics.has_code else "no")
    table.add_row("Reasoning level", f"{metrics.reasoning_level}/10")
    table.add_row("Complexity score", f"{metrics.complexity_score}/100")
    table.add_row("Sentences", str(metrics.sentences))
    table.add_row("Questions", str(metrics.questions))
    console.print(table)


@app.command()
def route(
    text: str = typer.Argument(..., help="Prompt to route"),
    force_tier: Optional[str] = typer.Option(
        None,
        "--force-tier",
        "-t",
        help="Start at SIMPLE, MEDIUM or COMPLEX instead of the classified tier"
    ),
    config_path: Optional[str] = CONFIG_OPTION,
    failure_rate: float = typer.Option(
        0.0,
        "--failure-rate",
        help="Simulated failure probability for every tier"
    ),
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed for simulated failures"),
    use_openai: bool = typer.Option(
        False,
        "--openai",
        help="Dispatch through the OpenAI API instead of the simulated backend"
    )
):
    """Route a single prompt and show the result."""
    try:
        config = _load_config(config_path)
        if use_openai:
            from ai_tier_router.sdk.openai_client import OpenAIBackend
            router = create_router(config, backend=OpenAIBackend())
        else:
            rates = {tier: failure_rate for tier in Tier}
            router = _simulated_router(config, rates, seed=seed)

        result = asyncio.run(_route_once(router, text, force_tier))
    except AllTiersExhaustedError as e:
        console.print(f"[red]All tiers failed after {e.attempts} attempts:[/] {e.last_error}")
        sys.exit(EXIT_CODE_FAIL)
    except Exception as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    console.print(f"\n[green]✓[/] {result.display_name} ({result.tier.value})")
    console.print(f"Attempts: {result.attempts}")
    console.print(
        f"Tokens: {result.usage.input_tokens} in / {result.usage.output_tokens} out"
    )
    console.print(f"Cost: {_format_cost(result.cost)} | Duration: {result.duration_ms:.0f}ms")
    console.print(f"\n{result.response}\n", markup=False)
    sys.exit(EXIT_CODE_PASS)


@app.command()
def tiers(config_path: Optional[str] = CONFIG_OPTION):
    """Show the tier configuration."""
    try:
        router = create_router(_load_config(config_path))
    except Exception as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    table = Table(title="Model Tiers")
    table.add_column("Tier")
    table.add_column("Model")
    table.add_column("Display Name")
    table.add_column("$/M in", justify="right")
    table.add_column("$/M out", justify="right")
    table.add_column("Max retries", justify="right")
    table.add_column("Falls back to")

    for tier, model in router.registry.items():
        next_tier = tier.next()
        table.add_row(
            tier.value,
            model.name,
            model.display_name,
            f"{model.cost_per_m_input:.2f}",
            f"{model.cost_per_m_output:.2f}",
            str(model.max_retries),
            next_tier.value if next_tier else "-"
        )
    console.print(table)


@app.command()
def demo(
    config_path: Optional[str] = CONFIG_OPTION,
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed for simulated failures"),
    csv_path: Optional[str] = typer.Option(None, "--csv", help="Write the usage export to CSV"),
    db_path: Optional[str] = typer.Option(None, "--db", help="Append the usage export to SQLite"),
    latency: bool = typer.Option(True, "--latency/--no-latency", help="Simulate backend latency")
):
    """
    Route the bundled sample prompts and print the cost report.

    Uses the simulated backend with per-tier failure rates so that the
    fallback chain is exercised.
    """
    try:
        router = _simulated_router(
            _load_config(config_path),
            DEMO_FAILURE_RATES,
            seed=seed,
            latency=DEMO_LATENCY if latency else (0.0, 0.0)
        )
    except Exception as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    expected = ", ".join(f"{len(get_prompts_by_tier(tier))} {tier.value}" for tier in Tier)
    console.print(f"\n[bold]Routing {len(SAMPLE_PROMPTS)} sample prompts[/bold] (expected: {expected})")
    console.print("-" * 40)

    mismatches = 0
    failures = 0
    for number, sample in enumerate(SAMPLE_PROMPTS, start=1):
        try:
            result = asyncio.run(router.route(sample.text))
        except AllTiersExhaustedError:
            failures += 1
            console.print(f"[{number}/{len(SAMPLE_PROMPTS)}] [red]✗ FAILED[/]")
            continue

        classified = result.analysis.tier
        marker = "[green]✓[/]" if classified == sample.expected_tier else "[yellow]⚠[/]"
        if classified != sample.expected_tier:
            mismatches += 1
        note = f" (fell back from {classified.value})" if result.tier != classified else ""
        console.print(f"[{number}/{len(SAMPLE_PROMPTS)}] {marker} {result.tier.value}{note}")

    console.print()
    console.print(router.get_report(), markup=False)
    console.print(f"Classifier disagreed with expected tier on {mismatches} prompts")
    if failures:
        console.print(f"[red]{failures} prompts failed on every tier[/]")

    rows = router.export_records()
    if csv_path:
        written = write_csv(rows, csv_path)
        console.print(f"[green]✓[/] CSV export written to {written}")
    if db_path:
        initialize_schema(db_path)
        inserted = insert_usage_records(rows, db_path)
        console.print(f"[green]✓[/] {inserted} records appended to {db_path}")

    sys.exit(EXIT_CODE_PASS)


def _load_config(config_path: Optional[str]) -> Optional[RouterConfig]:
    return load_router_config(config_path) if config_path else None


async def _route_once(router: TierRouter, text: str, force_tier: Optional[str]):
    """Route once, closing the backend before the event loop shuts down."""
    try:
        return await router.route(text, force_tier=force_tier)
    finally:
        await router.backend.aclose()


def _simulated_router(
    config: Optional[RouterConfig],
    failure_rates: Dict[Tier, float],
    seed: Optional[int] = None,
    latency=(0.0, 0.0)
) -> TierRouter:
    """Router on a MockBackend whose failure rates follow the tier's model."""
    backend = MockBackend(latency=latency, seed=seed)
    router = create_router(config, backend=backend)
    backend.failure_rates = {
        router.get_tier_config(tier).name: rate
        for tier, rate in failure_rates.items()
    }
    return router


def _format_cost(amount: float) -> str:
    """Format a per-request cost, which is usually a fraction of a cent."""
    return f"${amount:.6f}"


if __name__ == "__main__":
    app()
