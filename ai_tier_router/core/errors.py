"""
Error taxonomy for the routing core.

Backends raise BackendUnavailableError (or anything else); the router turns
every backend failure into a fallback and only surfaces
AllTiersExhaustedError once the chain is spent.
"""

from typing import List, Optional


class TierRouterError(Exception):
    """Base class for all routing errors."""


class ConfigurationError(TierRouterError, ValueError):
    """Raised for an unknown tier, an unknown config field, or a bad config file."""


class BackendUnavailableError(TierRouterError):
    """Raised by a backend when the model for a tier cannot serve the request."""
    def __init__(self, message: str, model: Optional[str] = None):
        super().__init__(message)
        self.model = model


class AllTiersExhaustedError(TierRouterError):
    """Raised when every attempt of a route call has failed."""
    def __init__(
        self,
        last_error: Optional[BaseException],
        attempts: int,
        tiers_attempted: List[str]
    ):
        super().__init__(f"All tiers failed. Last error: {last_error}")
        self.last_error = last_error
        self.attempts = attempts
        self.tiers_attempted = tiers_attempted
