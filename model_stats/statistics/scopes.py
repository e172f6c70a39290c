"""
Chaining of named scopes onto a collection.
"""
from __future__ import annotations

import logging
from typing import Sequence

from model_stats.backends.base import QueryableCollection
from model_stats.statistics.exceptions import UnknownScope
from model_stats.statistics.model import ALL_SCOPE

logger = logging.getLogger(__name__)


def apply_scopes(collection: QueryableCollection, scopes: Sequence[str]) -> QueryableCollection:
    """
    Narrow a collection by applying each named scope in order.

    The sentinel "all" means no narrowing; inside a longer chain it is
    skipped.

    Args:
        collection: Base collection
        scopes: Scope names, applied left to right

    Returns:
        The narrowed collection (the base itself for "all")

    Raises:
        UnknownScope: If the collection does not know a scope name
    """
    if not scopes or tuple(scopes) == (ALL_SCOPE,):
        return collection

    for scope in scopes:
        if scope == ALL_SCOPE:
            continue
        try:
            collection = collection.apply_scope(scope)
        except (KeyError, AttributeError) as e:
            raise UnknownScope(scope) from e
        logger.debug(f"Applied scope: {scope}")
    return collection
