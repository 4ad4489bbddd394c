"""
Sample prompts spanning the three tiers, used by the ``demo`` command.

The expected tier is what a human would pick; the demo reports where the
classifier disagrees.
"""

from typing import List, NamedTuple

from ai_tier_router.core.tiers import Tier


class SamplePrompt(NamedTuple):
    text: str
    expected_tier: Tier


SAMPLE_PROMPTS: List[SamplePrompt] = [
    SamplePrompt("What's 2+2?", Tier.SIMPLE),
    SamplePrompt("What's the capital of France?", Tier.SIMPLE),
    SamplePrompt("Say hello", Tier.SIMPLE),
    SamplePrompt("What time is it?", Tier.SIMPLE),
    SamplePrompt("Define 'algorithm'", Tier.SIMPLE),
    SamplePrompt("Who wrote Hamlet?", Tier.SIMPLE),
    SamplePrompt("What color is the sky?", Tier.SIMPLE),
    SamplePrompt("How many days in a week?", Tier.SIMPLE),
    SamplePrompt("Translate 'hello' to Spanish", Tier.SIMPLE),
    SamplePrompt("What does API stand for?", Tier.SIMPLE),
    SamplePrompt("Name a fruit", Tier.SIMPLE),
    SamplePrompt("What is water made of?", Tier.SIMPLE),
    SamplePrompt("Spell 'necessary'", Tier.SIMPLE),
    SamplePrompt("What's 10 * 5?", Tier.SIMPLE),
    SamplePrompt("What does CPU stand for?", Tier.SIMPLE),
    SamplePrompt("Name the primary colors", Tier.SIMPLE),
    SamplePrompt("What is the largest ocean?", Tier.SIMPLE),
    SamplePrompt("How many continents are there?", Tier.SIMPLE),
    SamplePrompt("What language is spoken in Brazil?", Tier.SIMPLE),
    SamplePrompt("Convert 1 mile to kilometers", Tier.SIMPLE),
    SamplePrompt("What is the opposite of hot?", Tier.SIMPLE),
    SamplePrompt("Who painted the Mona Lisa?", Tier.SIMPLE),
    SamplePrompt("What does HTTP stand for?", Tier.SIMPLE),
    SamplePrompt("What year did WWII end?", Tier.SIMPLE),

    SamplePrompt("Explain how photosynthesis works", Tier.MEDIUM),
    SamplePrompt("Compare Python and JavaScript for web development", Tier.MEDIUM),
    SamplePrompt("Write a short poem about coding", Tier.MEDIUM),
    SamplePrompt("Summarize the plot of The Great Gatsby", Tier.MEDIUM),
    SamplePrompt("What are the benefits of exercise?", Tier.MEDIUM),
    SamplePrompt("Explain the difference between AI and ML", Tier.MEDIUM),
    SamplePrompt("How does HTTP work?", Tier.MEDIUM),
    SamplePrompt("Compare SQL and NoSQL databases", Tier.MEDIUM),
    SamplePrompt("What are the main causes of climate change?", Tier.MEDIUM),

    SamplePrompt(
        "Write a Python function to implement binary search with detailed comments "
        "explaining the algorithm",
        Tier.COMPLEX
    ),
    SamplePrompt(
        "Design a scalable microservices architecture for an e-commerce platform. "
        "Include service boundaries, communication patterns, and database strategies.",
        Tier.COMPLEX
    ),
    SamplePrompt(
        "Debug this code and explain what's wrong:\n```javascript\nfunction factorial(n) {\n"
        "  return n * factorial(n-1);\n}\n```",
        Tier.COMPLEX
    ),
    SamplePrompt(
        "Analyze the time complexity of quicksort in best, average, and worst cases. "
        "Provide mathematical proof.",
        Tier.COMPLEX
    ),
    SamplePrompt(
        "Create a comprehensive test strategy for a distributed system with multiple failure "
        "modes. Include unit, integration, and chaos engineering approaches.",
        Tier.COMPLEX
    ),
    SamplePrompt(
        "Implement a LRU cache in JavaScript with O(1) get and set operations. "
        "Explain the data structures used.",
        Tier.COMPLEX
    ),
    SamplePrompt(
        "Design a fault-tolerant distributed key-value store. Discuss consistency models, "
        "replication strategies, and partition handling.",
        Tier.COMPLEX
    ),
    SamplePrompt(
        "Refactor this legacy codebase to use modern design patterns. Explain each change "
        "and why it improves maintainability.",
        Tier.COMPLEX
    ),
    SamplePrompt(
        "Implement a rate limiter using the token bucket algorithm. Include tests and "
        "explain the trade-offs vs sliding window.",
        Tier.COMPLEX
    ),
]


def get_prompts_by_tier(tier: Tier) -> List[SamplePrompt]:
    return [prompt for prompt in SAMPLE_PROMPTS if prompt.expected_tier == tier]
