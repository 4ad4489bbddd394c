"""
Backend capability used by the router, and a simulated implementation.

The router only knows the TierBackend interface; whether invoke() reaches a
real API or a simulation is invisible to it. Any exception raised by
invoke() is treated as a failed attempt.
"""

import asyncio
import random
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

from .errors import BackendUnavailableError
from .token_counter import TokenUsage, estimate_usage

CALL_HISTORY_SIZE = 100


@dataclass(frozen=True)
class BackendResponse:
    """Content and token usage returned by a backend."""
    content: str
    usage: TokenUsage
    metadata: Dict[str, Any] = field(default_factory=dict)


class TierBackend(ABC):
    """Abstract backend invoked once per routing attempt."""

    @abstractmethod
    async def invoke(
        self,
        model: str,
        text: str,
        options: Mapping[str, Any]
    ) -> BackendResponse:
        """Generate a response for text with the given model.

        Args:
            model: Backend model identifier from the tier's ModelConfig
            text: Prompt text
            options: Caller options passed through route()

        Returns:
            BackendResponse with content and exact or estimated usage

        Raises:
            Exception: Any failure; the router falls back uniformly
        """

    async def aclose(self) -> None:
        """Release connections held by the backend."""


class MockBackend(TierBackend):
    """Simulated backend for demos and tests.

    Usage comes from the token heuristic. Failures are injected per model
    with a seedable RNG so runs can be reproduced.
    """

    def __init__(
        self,
        failure_rates: Optional[Mapping[str, float]] = None,
        latency: Tuple[float, float] = (0.0, 0.0),
        seed: Optional[int] = None
    ):
        """Initialize the simulated backend.

        Args:
            failure_rates: Model identifier -> probability of failure (0-1)
            latency: (min, max) simulated latency in seconds
            seed: Optional RNG seed
        """
        self.failure_rates = dict(failure_rates or {})
        self.latency = latency
        self._rng = random.Random(seed)
        # Models invoked, most recent last
        self.calls = deque(maxlen=CALL_HISTORY_SIZE)

    async def invoke(
        self,
        model: str,
        text: str,
        options: Mapping[str, Any]
    ) -> BackendResponse:
        self.calls.append(model)
        usage = estimate_usage(text)

        failure_rate = self.failure_rates.get(model, 0.0)
        if failure_rate and self._rng.random() < failure_rate:
            raise BackendUnavailableError(f"{model} temporarily unavailable", model=model)

        low, high = self.latency
        if high > 0:
            await asyncio.sleep(low + self._rng.random() * (high - low))

        return BackendResponse(
            content=f'[Mock response from {model}]\n\nThis is a simulated response to: "{text[:50]}..."',
            usage=usage
        )
