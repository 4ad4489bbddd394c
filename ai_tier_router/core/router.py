"""
Tier router: classification, dispatch and escalating fallback.

Each route call walks a small state machine:

    start tier (forced or classified)
      -> invoke backend
         success -> record, return DispatchResult
         failure -> record, escalate SIMPLE -> MEDIUM -> COMPLEX
                    while a next tier exists and attempts < max_attempts
      -> AllTiersExhausted

A tier is never retried; failures either escalate or terminate. Every
attempt is written to the ledger before the next decision is made.
"""

import time
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, List, Mapping, Optional

import structlog

from .analyzer import TaskAnalysis, TaskAnalyzer
from .backend import MockBackend, TierBackend
from .errors import AllTiersExhaustedError
from .pricing import calculate_cost
from .tiers import ModelConfig, Tier, TierLike, TierRegistry, resolve_tier
from .token_counter import TokenUsage
from ai_tier_router.storage.ledger import UsageLedger
from ai_tier_router.storage.models import UsageRecord, UsageStatistics

if TYPE_CHECKING:
    from ai_tier_router.config.loader import RouterConfig

log = structlog.get_logger(__name__)

MAX_ATTEMPTS = 3


@dataclass(frozen=True)
class DispatchResult:
    """Outcome of a successful route call."""
    success: bool
    tier: Tier
    model: str
    display_name: str
    response: str
    usage: TokenUsage
    cost: float
    duration_ms: float
    analysis: TaskAnalysis
    attempts: int


class TierRouter:
    """Routes prompts to the cheapest tier that can serve them.

    The router owns its tier registry and ledger unless the caller injects
    shared instances.
    """

    def __init__(
        self,
        backend: Optional[TierBackend] = None,
        ledger: Optional[UsageLedger] = None,
        registry: Optional[TierRegistry] = None,
        analyzer: Optional[TaskAnalyzer] = None,
        max_attempts: int = MAX_ATTEMPTS
    ):
        """Initialize the router.

        Args:
            backend: Backend invoked per attempt (simulated if omitted)
            ledger: Usage ledger (a private one if omitted)
            registry: Tier registry (defaults if omitted)
            analyzer: Prompt classifier
            max_attempts: Ceiling on attempts per route call

        Raises:
            ValueError: If max_attempts is less than 1
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")

        self.backend = backend if backend is not None else MockBackend()
        self.ledger = ledger if ledger is not None else UsageLedger()
        self.registry = registry if registry is not None else TierRegistry()
        self.analyzer = analyzer if analyzer is not None else TaskAnalyzer()
        self.max_attempts = max_attempts

    def classify(self, text: str) -> TaskAnalysis:
        """Classify a prompt without dispatching it."""
        return self.analyzer.analyze(text)

    async def route(
        self,
        text: str,
        force_tier: Optional[TierLike] = None,
        **options: Any
    ) -> DispatchResult:
        """Route a prompt to a tier, falling back upwards on failure.

        The prompt is classified even when force_tier is given, so that the
        result always carries an analysis; the forced tier only decides where
        dispatch starts. Classification runs synchronously on the event loop
        and is linear in the prompt length.

        Args:
            text: Prompt text
            force_tier: Start at this tier instead of the classified one
            **options: Passed through to the backend

        Returns:
            DispatchResult of the first successful attempt

        Raises:
            ConfigurationError: If force_tier is unknown
            AllTiersExhaustedError: If no attempt succeeded
        """
        analysis = self.classify(text)
        start = time.perf_counter()

        tier: Optional[Tier] = resolve_tier(force_tier) if force_tier is not None else analysis.tier

        log.info(
            "tier_router.analyzed",
            tier=analysis.tier.value,
            confidence=analysis.confidence,
            reasoning=analysis.summary,
            forced_tier=tier.value if force_tier is not None else None,
        )

        attempts = 0
        tiers_attempted: List[str] = []
        last_error: Optional[Exception] = None

        while tier is not None:
            attempts += 1
            tiers_attempted.append(tier.value)
            config = self.registry.get_config(tier)

            log.info(
                "tier_router.attempting_tier",
                tier=tier.value,
                model=config.name,
                attempt=attempts,
            )

            try:
                response = await self.backend.invoke(config.name, text, options)
            except Exception as exc:
                last_error = exc
                self.log_attempt(UsageRecord(
                    timestamp=datetime.now(),
                    tier=tier,
                    model=config.name,
                    input_tokens=0,
                    output_tokens=0,
                    cost=0.0,
                    duration_ms=_elapsed_ms(start),
                    success=False,
                    attempts=attempts,
                    error=str(exc)
                ))

                next_tier = tier.next()
                log.warning(
                    "tier_router.tier_failed",
                    tier=tier.value,
                    model=config.name,
                    error_type=type(exc).__name__,
                    error_message=str(exc),
                    next_tier=next_tier.value if next_tier else None,
                    attempt=attempts,
                )

                if next_tier is not None and attempts < self.max_attempts:
                    tier = next_tier
                    continue
                break

            duration_ms = _elapsed_ms(start)
            cost = self.calculate_cost(config, response.usage)
            self.log_attempt(UsageRecord(
                timestamp=datetime.now(),
                tier=tier,
                model=config.name,
                input_tokens=response.usage.input_tokens,
                output_tokens=response.usage.output_tokens,
                cost=cost,
                duration_ms=duration_ms,
                success=True,
                attempts=attempts
            ))

            log.info(
                "tier_router.tier_succeeded",
                tier=tier.value,
                model=config.name,
                cost=cost,
                duration_ms=duration_ms,
                fallback_occurred=attempts > 1,
            )

            return DispatchResult(
                success=True,
                tier=tier,
                model=config.name,
                display_name=config.display_name,
                response=response.content,
                usage=response.usage,
                cost=cost,
                duration_ms=duration_ms,
                analysis=analysis,
                attempts=attempts
            )

        log.error(
            "tier_router.all_tiers_failed",
            attempts=attempts,
            tiers_attempted=tiers_attempted,
            last_error=str(last_error),
        )
        raise AllTiersExhaustedError(last_error, attempts, tiers_attempted) from last_error

    def calculate_cost(self, config: ModelConfig, usage: TokenUsage) -> float:
        """Cost of usage at a tier's configured rates."""
        return calculate_cost(usage, config.cost_per_m_input, config.cost_per_m_output)

    def get_tier_config(self, tier: TierLike) -> ModelConfig:
        return self.registry.get_config(tier)

    def set_tier_config(
        self,
        tier: TierLike,
        partial: Optional[Mapping[str, Any]] = None,
        **overrides: Any
    ) -> ModelConfig:
        """Override fields of a tier's config; see TierRegistry.set_config."""
        config = self.registry.set_config(tier, partial, **overrides)

        baseline = self.ledger.baseline
        if (config.cost_per_m_input > baseline.cost_per_m_input
                or config.cost_per_m_output > baseline.cost_per_m_output):
            # Savings are reported against the fixed baseline, which is now
            # cheaper than this tier
            log.warning(
                "tier_router.tier_above_baseline",
                tier=resolve_tier(tier).value,
                model=config.name,
                baseline=baseline.name,
            )
        return config

    def log_attempt(self, record: UsageRecord) -> UsageRecord:
        return self.ledger.append(record)

    def get_statistics(self) -> UsageStatistics:
        return self.ledger.stats()

    def get_report(self) -> str:
        return self.ledger.report()

    def get_recent(self, limit: int = 10) -> List[UsageRecord]:
        return self.ledger.recent(limit)

    def get_dashboard(self) -> dict:
        return self.ledger.dashboard()

    def export_records(self) -> List[dict]:
        return self.ledger.export_records()

    def clear(self) -> None:
        self.ledger.clear()


def create_router(
    config: Optional["RouterConfig"] = None,
    backend: Optional[TierBackend] = None,
    ledger: Optional[UsageLedger] = None
) -> TierRouter:
    """Build a router with its own ledger from loaded configuration.

    Args:
        config: Loaded RouterConfig (defaults if None)
        backend: Backend to dispatch to (simulated if None)
        ledger: Ledger to record into; built from the config's baseline if None

    Returns:
        Configured TierRouter
    """
    if config is None:
        return TierRouter(backend=backend, ledger=ledger)

    if ledger is None:
        ledger = UsageLedger(baseline=config.baseline)

    router = TierRouter(backend=backend, ledger=ledger, max_attempts=config.max_attempts)
    for tier, overrides in config.tiers.items():
        router.set_tier_config(tier, overrides)
    return router


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000
