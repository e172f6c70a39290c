"""
Execution of a single aggregate against a collection.
"""
from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from model_stats.backends.base import QueryableCollection
from model_stats.statistics.exceptions import CalculationError, StatisticsError
from model_stats.statistics.filters import CompiledCondition, merge_conditions
from model_stats.statistics.model import CalculationKind, StatValue

logger = logging.getLogger(__name__)

CONDITIONS_KEY = "conditions"

# Kinds whose empty-set result is 0 rather than None
_ZERO_WHEN_EMPTY = (CalculationKind.COUNT, CalculationKind.SUM)


def build_options(compiled: CompiledCondition, extra_options: Optional[Mapping[str, Any]] = None) -> dict:
    """Copy the pass-through options and merge the compiled condition into them."""
    options = dict(extra_options or {})
    conditions = merge_conditions(options.get(CONDITIONS_KEY), compiled)
    if conditions is not None:
        options[CONDITIONS_KEY] = conditions
    return options


def execute_calculation(
    collection: QueryableCollection,
    kind: CalculationKind,
    column: str,
    compiled: CompiledCondition,
    extra_options: Optional[Mapping[str, Any]] = None,
    name: str = "",
) -> StatValue:
    """
    Run an aggregate on a collection.

    With no matching rows, count and sum return 0 while average, minimum
    and maximum return None (SQL returns NULL for all of them except COUNT).

    Args:
        collection: Collection already narrowed by scopes
        kind: Aggregate to run
        column: Column to aggregate
        compiled: Condition compiled from runtime filters
        extra_options: Pass-through options (conditions, joins, ...)
        name: Statistic name, used in errors

    Returns:
        The aggregate value

    Raises:
        CalculationError: If the collection fails to compute the aggregate
    """
    options = build_options(compiled, extra_options)
    try:
        result = collection.calculate(kind.value, column, options)
    except StatisticsError:
        raise
    except Exception as e:
        logger.error(f"Error calculating {kind.value}({column}) for statistic {name!r}: {e}")
        raise CalculationError(name, e) from e

    if result is None and kind in _ZERO_WHEN_EMPTY:
        return 0
    return result
