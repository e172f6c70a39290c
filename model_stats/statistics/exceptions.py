"""
Exceptions raised while evaluating statistics.
"""
from __future__ import annotations

from typing import Sequence


class StatisticsError(Exception):
    """Base exception for all statistics evaluation errors."""
    pass


class StatisticNotFound(StatisticsError):
    """Raised when a statistic name is not registered."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Statistic not found: {name!r}")
        self.name = name


class UnknownFilterKey(StatisticsError):
    """Raised when a runtime filter has no condition template."""

    def __init__(self, key, statistic: str = None) -> None:
        message = f"No filter template defined for key {key!r}"
        if statistic:
            message += f" (statistic {statistic!r})"
        super().__init__(message)
        self.key = key
        self.statistic = statistic


class UnknownScope(StatisticsError):
    """Raised when a collection does not recognise a named scope."""

    def __init__(self, scope: str) -> None:
        super().__init__(f"Unknown scope: {scope!r}")
        self.scope = scope


class CyclicDependency(StatisticsError):
    """Raised when derived statistics recurse deeper than the allowed bound."""

    def __init__(self, path: Sequence[str], max_depth: int) -> None:
        chain = " -> ".join(path)
        super().__init__(f"Statistic evaluation exceeded depth {max_depth}: {chain}")
        self.path = tuple(path)
        self.max_depth = max_depth


class CalculationError(StatisticsError):
    """Raised when the underlying aggregate (or a derived formula) fails."""

    def __init__(self, name: str, cause: BaseException) -> None:
        super().__init__(f"Calculation of statistic {name!r} failed: {cause}")
        self.name = name
        self.cause = cause


class EvaluationCancelled(StatisticsError):
    """Raised when a stop is requested part way through evaluate_all."""
    pass
