"""Read-only views over account collections."""

from gameswap.queries.stats import collection_stats

__all__ = ["collection_stats"]
