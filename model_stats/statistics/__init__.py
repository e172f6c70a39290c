"""
Statistics module for declaring and evaluating named aggregates.

A model type declares named statistics (count, sum, average, minimum,
maximum over a scoped, filtered subset of its records) and derived
statistics computed from other statistics. Callers evaluate one or all of
them under a set of runtime filter values.

Main components:
    - StatisticsRegistry: Named definitions and global filter templates
    - StatisticsEvaluator: Evaluates definitions against a collection
    - Statistics: Convenience wrapper binding a registry to a collection
    - StatisticsConfig: YAML / dictionary configuration
"""

from model_stats.statistics.model import (
    CalculatedStatisticDefinition,
    CalculationKind,
    StatisticDefinition,
    StatValue,
)
from model_stats.statistics.exceptions import (
    CalculationError,
    CyclicDependency,
    EvaluationCancelled,
    StatisticNotFound,
    StatisticsError,
    UnknownFilterKey,
    UnknownScope,
)
from model_stats.statistics.filters import CompiledCondition, ConditionFragment, compile_filters, merge_conditions
from model_stats.statistics.scopes import apply_scopes
from model_stats.statistics.calculation import execute_calculation
from model_stats.statistics.registry import StatisticsRegistry
from model_stats.statistics.evaluator import EvaluationContext, StatisticsEvaluator
from model_stats.statistics.config import StatisticsConfig
from model_stats.statistics.statistics import Statistics

__all__ = [
    'CalculatedStatisticDefinition',
    'CalculationKind',
    'StatisticDefinition',
    'StatValue',
    'CalculationError',
    'CyclicDependency',
    'EvaluationCancelled',
    'StatisticNotFound',
    'StatisticsError',
    'UnknownFilterKey',
    'UnknownScope',
    'CompiledCondition',
    'ConditionFragment',
    'compile_filters',
    'merge_conditions',
    'apply_scopes',
    'execute_calculation',
    'StatisticsRegistry',
    'EvaluationContext',
    'StatisticsEvaluator',
    'StatisticsConfig',
    'Statistics',
]
