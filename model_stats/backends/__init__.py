"""Collections that statistics are evaluated against."""

from model_stats.backends.base import QueryableCollection
from model_stats.backends.sql import SqlCollection

__all__ = [
    'QueryableCollection',
    'SqlCollection',
]
