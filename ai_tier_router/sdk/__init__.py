"""
SDK for AI Tier Router.

Provides real backend implementations for the router.
"""

from .openai_client import OpenAIBackend

__all__ = ["OpenAIBackend"]
