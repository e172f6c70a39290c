"""model_stats package: Exposes core classes for declaring and evaluating model statistics."""

from model_stats.app_hooks import AppHooks
from model_stats.backends import QueryableCollection, SqlCollection
from model_stats.statistics import (
    CalculationError,
    CalculationKind,
    CyclicDependency,
    EvaluationCancelled,
    Statistics,
    StatisticNotFound,
    StatisticsConfig,
    StatisticsError,
    StatisticsEvaluator,
    StatisticsRegistry,
    UnknownFilterKey,
    UnknownScope,
)

__all__ = [
    "AppHooks",
    "CalculationError",
    "CalculationKind",
    "CyclicDependency",
    "EvaluationCancelled",
    "QueryableCollection",
    "SqlCollection",
    "Statistics",
    "StatisticNotFound",
    "StatisticsConfig",
    "StatisticsError",
    "StatisticsEvaluator",
    "StatisticsRegistry",
    "UnknownFilterKey",
    "UnknownScope",
]
