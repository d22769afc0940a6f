"""
Typed fetch hooks: cache-keyed reads and invalidating mutations.
"""

from .query import Mutation, Query, Subscription
from .resources import PlatformHooks

__all__ = ["Mutation", "PlatformHooks", "Query", "Subscription"]
