"""
Device inventory module.

This module stores lab computers with their hardware baselines, routes
incoming snapshots and keeps device liveness up to date.
"""

__all__ = ["models", "store", "liveness", "service"]
