"""
Task complexity analysis for tier routing.

Scores a prompt from cheap text features and recommends a tier:
- SIMPLE: basic queries, short responses, no reasoning
- MEDIUM: some analysis, moderate length, light reasoning
- COMPLEX: deep reasoning, code, long context

Decision order (first match wins):
1. complexity_score >= 60               -> COMPLEX
2. has_code and reasoning_level >= 5    -> COMPLEX
3. tokens > 500                         -> COMPLEX
4. complexity_score >= 30               -> MEDIUM
5. has_code                             -> MEDIUM
6. reasoning_level >= 3                 -> MEDIUM
7. tokens > 200                         -> MEDIUM
8. otherwise                            -> SIMPLE
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .tiers import Tier
from .token_counter import estimate_tokens

CODE_PATTERNS = (
    re.compile(r"```"),
    re.compile(r"\bfunction\b", re.IGNORECASE),
    re.compile(r"\bclass\b", re.IGNORECASE),
    re.compile(r"\bimport\b", re.IGNORECASE),
    re.compile(r"\bconst\b", re.IGNORECASE),
    re.compile(r"\blet\b", re.IGNORECASE),
    re.compile(r"\bvar\b", re.IGNORECASE),
    re.compile(r"=>"),
)

REASONING_KEYWORDS = (
    "analyze", "explain", "compare", "evaluate", "critique",
    "reason", "logic", "proof", "deduce", "infer",
    "strategy", "plan", "design", "architect",
    "debug", "optimize", "refactor", "solve",
)

COMPLEX_KEYWORDS = (
    "comprehensive", "detailed", "in-depth", "thorough",
    "multiple", "various", "several", "complex",
)

# One digit before the dot counts the same items as \d+\. without backtracking
# over long digit runs
STEP_MARKERS = re.compile(r"\d\.|step|first|then|next|finally", re.IGNORECASE)
SENTENCE_TERMINATORS = re.compile(r"[.!?]+")

MAX_REASONING_LEVEL = 10
MAX_COMPLEXITY_SCORE = 100

# Score thresholds
COMPLEX_SCORE = 60
MEDIUM_SCORE = 30
HIGH_REASONING = 5
MEDIUM_REASONING = 3
COMPLEX_TOKENS = 500
MEDIUM_TOKENS = 200

DEFAULT_CONFIDENCE = 0.75


@dataclass(frozen=True)
class ComplexityMetrics:
    """Text features a routing decision is based on."""
    tokens: int
    has_code: bool
    reasoning_level: int  # 0-10
    complexity_score: int  # 0-100
    length: int
    sentences: int
    questions: int


@dataclass(frozen=True)
class TaskAnalysis:
    """Tier recommendation with the evidence behind it.

    Confidence is advisory: it accompanies the result for observability and
    never changes routing.
    """
    tier: Tier
    metrics: ComplexityMetrics
    confidence: float
    reasoning: Tuple[str, ...]

    @property
    def summary(self) -> str:
        """Reasoning clauses as a single line."""
        return ", ".join(self.reasoning)


def has_braced_block(text: str) -> bool:
    """True if a '{' appears somewhere before a '}'."""
    opening = text.find("{")
    return opening != -1 and opening < text.rfind("}")


def detect_code(text: str) -> bool:
    """True if text contains anything that looks like source code."""
    return has_braced_block(text) or any(pattern.search(text) for pattern in CODE_PATTERNS)


def assess_reasoning(text: str) -> int:
    """Rate how much reasoning text asks for, 0-10.

    Each distinct reasoning keyword counts once no matter how often it
    repeats; each multi-step marker (numbered item, step/first/then/next/
    finally) counts per occurrence.
    """
    lowered = text.lower()
    score = sum(1 for keyword in REASONING_KEYWORDS if keyword in lowered)
    score += len(STEP_MARKERS.findall(text))
    return min(MAX_REASONING_LEVEL, score)


def count_sentences(text: str) -> int:
    return len(SENTENCE_TERMINATORS.findall(text))


def count_questions(text: str) -> int:
    return text.count("?")


def calculate_complexity(
    text: str,
    has_code: Optional[bool] = None,
    reasoning_level: Optional[int] = None
) -> int:
    """Additive complexity score clamped to 0-100.

    Args:
        text: Prompt text
        has_code: Precomputed detect_code(text), if already known
        reasoning_level: Precomputed assess_reasoning(text), if already known
    """
    if has_code is None:
        has_code = detect_code(text)
    if reasoning_level is None:
        reasoning_level = assess_reasoning(text)

    score = 0

    if len(text) > 500:
        score += 20
    if len(text) > 1000:
        score += 20

    if has_code:
        score += 25

    score += reasoning_level * 3

    lowered = text.lower()
    score += 5 * sum(1 for keyword in COMPLEX_KEYWORDS if keyword in lowered)

    questions = count_questions(text)
    if questions > 1:
        score += questions * 5

    return min(MAX_COMPLEXITY_SCORE, score)


class TaskAnalyzer:
    """Heuristic prompt classifier.

    Stateless; analyze() never raises for any string, and empty or
    whitespace-only prompts fall through to SIMPLE.
    """

    def analyze(self, text: str) -> TaskAnalysis:
        """Analyze a prompt and recommend a tier.

        Args:
            text: The user's prompt

        Returns:
            TaskAnalysis with tier, metrics, confidence and reasoning
        """
        metrics = self.calculate_metrics(text)
        tier = self.determine_tier(metrics)
        return TaskAnalysis(
            tier=tier,
            metrics=metrics,
            confidence=self.calculate_confidence(metrics, tier),
            reasoning=tuple(self.explain_decision(metrics))
        )

    def calculate_metrics(self, text: str) -> ComplexityMetrics:
        has_code = detect_code(text)
        reasoning_level = assess_reasoning(text)
        return ComplexityMetrics(
            tokens=estimate_tokens(text),
            has_code=has_code,
            reasoning_level=reasoning_level,
            complexity_score=calculate_complexity(text, has_code, reasoning_level),
            length=len(text),
            sentences=count_sentences(text),
            questions=count_questions(text)
        )

    def determine_tier(self, metrics: ComplexityMetrics) -> Tier:
        if metrics.complexity_score >= COMPLEX_SCORE:
            return Tier.COMPLEX
        if metrics.has_code and metrics.reasoning_level >= HIGH_REASONING:
            return Tier.COMPLEX
        if metrics.tokens > COMPLEX_TOKENS:
            return Tier.COMPLEX

        if metrics.complexity_score >= MEDIUM_SCORE:
            return Tier.MEDIUM
        if metrics.has_code:
            return Tier.MEDIUM
        if metrics.reasoning_level >= MEDIUM_REASONING:
            return Tier.MEDIUM
        if metrics.tokens > MEDIUM_TOKENS:
            return Tier.MEDIUM

        return Tier.SIMPLE

    def calculate_confidence(self, metrics: ComplexityMetrics, tier: Tier) -> float:
        """How strongly the score supports the chosen tier."""
        score = metrics.complexity_score

        if tier == Tier.COMPLEX and score >= 70:
            return 0.95
        if tier == Tier.COMPLEX and score >= 60:
            return 0.85
        if tier == Tier.MEDIUM and 30 <= score < 60:
            return 0.90
        if tier == Tier.SIMPLE and score < 25:
            return 0.92

        # Borderline: tier was decided by a secondary signal
        return DEFAULT_CONFIDENCE

    def explain_decision(self, metrics: ComplexityMetrics) -> List[str]:
        reasons = []

        if metrics.complexity_score >= COMPLEX_SCORE:
            reasons.append(f"High complexity score ({metrics.complexity_score})")
        if metrics.has_code:
            reasons.append("Contains code")
        if metrics.reasoning_level >= HIGH_REASONING:
            reasons.append(f"High reasoning requirement ({metrics.reasoning_level}/10)")
        if metrics.tokens > COMPLEX_TOKENS:
            reasons.append(f"Large token count (~{metrics.tokens})")

        if not reasons:
            reasons.append("Simple query with basic requirements")

        return reasons
