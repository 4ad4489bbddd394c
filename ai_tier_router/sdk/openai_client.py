"""
OpenAI-backed tier backend.

Serves every tier through the OpenAI chat completions API (or any
OpenAI-compatible endpoint via base_url), reporting exact token counts from
the response.
"""

from typing import Any, Mapping, Optional

from openai import AsyncOpenAI

from ..core.backend import BackendResponse, TierBackend
from ..core.token_counter import TokenUsage

# Options forwarded to chat.completions.create
SUPPORTED_OPTIONS = frozenset({
    "temperature",
    "max_tokens",
    "top_p",
    "stop",
    "system",
})


class OpenAIBackend(TierBackend):
    """TierBackend that calls OpenAI chat completions.

    Failures are loud: API errors and responses without usage propagate to
    the router, which records the attempt and falls back.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        client: Optional[AsyncOpenAI] = None
    ):
        """Initialize the OpenAI backend.

        Args:
            api_key: API key (defaults to OPENAI_API_KEY)
            base_url: Optional OpenAI-compatible endpoint
            client: Pre-built client, mainly for tests
        """
        self.client = client or AsyncOpenAI(api_key=api_key, base_url=base_url)

    async def invoke(
        self,
        model: str,
        text: str,
        options: Mapping[str, Any]
    ) -> BackendResponse:
        """Create a chat completion for text.

        Args:
            model: Model identifier from the tier config
            text: User prompt
            options: Route options; see SUPPORTED_OPTIONS

        Returns:
            BackendResponse with exact token usage

        Raises:
            ValueError: If model or text is empty, or usage is missing
            OpenAI API errors: Propagated without modification
        """
        if not model or not model.strip():
            raise ValueError("model is required and cannot be empty")
        if not text:
            raise ValueError("text is required and cannot be empty")

        unknown = set(options) - SUPPORTED_OPTIONS
        if unknown:
            raise ValueError(f"Unsupported options: {sorted(unknown)}")

        params = {key: value for key, value in options.items() if key != "system"}

        messages = []
        if options.get("system"):
            messages.append({"role": "system", "content": options["system"]})
        messages.append({"role": "user", "content": text})

        response = await self.client.chat.completions.create(
            model=model,
            messages=messages,
            **params
        )

        usage = response.usage
        if not usage:
            raise ValueError("OpenAI response missing usage information")

        content = response.choices[0].message.content if response.choices else ""

        return BackendResponse(
            content=content or "",
            usage=TokenUsage(
                input_tokens=usage.prompt_tokens,
                output_tokens=usage.completion_tokens
            ),
            metadata={"request_id": response.id}
        )

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.close()
