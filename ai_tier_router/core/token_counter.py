"""
Token counting and usage tracking.

Provides the chars-per-token heuristic used by the classifier and the
simulated backend, and the usage value reported by every backend.
"""

import math
from dataclasses import dataclass

CHARS_PER_TOKEN = 4

# Simulated responses are assumed to be half the prompt length
SIMULATED_OUTPUT_RATIO = 0.5


@dataclass(frozen=True)
class TokenUsage:
    """Token usage data for cost calculation.

    Real backends fill this from their response metadata; the simulated
    backend derives it from the prompt length.
    """
    input_tokens: int
    output_tokens: int

    @property
    def total_tokens(self) -> int:
        """Total tokens used (input + output)."""
        return self.input_tokens + self.output_tokens


def estimate_tokens(text: str) -> int:
    """Estimate the token count of text at ~4 characters per token."""
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def estimate_usage(text: str) -> TokenUsage:
    """Estimate the usage a simulated backend would report for text.

    Args:
        text: Prompt text

    Returns:
        TokenUsage with input = ceil(len/4) and output = floor(input * 0.5)
    """
    input_tokens = estimate_tokens(text)
    output_tokens = math.floor(input_tokens * SIMULATED_OUTPUT_RATIO)
    return TokenUsage(input_tokens=input_tokens, output_tokens=output_tokens)
