"""
Core modules for AI Tier Router.

This package contains the complexity classifier, the tier registry, the
backend interface, and the router with its fallback chain.
"""
