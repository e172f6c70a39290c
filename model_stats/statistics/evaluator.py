"""
Evaluation of registered statistics against a collection.
"""
from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from model_stats.app_hooks import AppHooks
from model_stats.backends.base import QueryableCollection
from model_stats.statistics.calculation import execute_calculation
from model_stats.statistics.exceptions import (
    CalculationError,
    CyclicDependency,
    EvaluationCancelled,
    StatisticsError,
)
from model_stats.statistics.filters import compile_filters
from model_stats.statistics.model import CalculatedStatisticDefinition, StatValue
from model_stats.statistics.registry import StatisticsRegistry
from model_stats.statistics.scopes import apply_scopes

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 64


class EvaluationContext:
    """
    Filter context handed to a derived statistic's formula.

    Formulas look up sibling statistics through the context, which evaluates
    them under the same filters:

        def profit(stats):
            return stats.get_stat("Revenue") - stats["Costs"]
    """

    def __init__(self, evaluator: StatisticsEvaluator, filters: Mapping[Any, Any], path: Tuple[str, ...]) -> None:
        self._evaluator = evaluator
        self._filters = MappingProxyType(dict(filters))
        self.path = path

    @property
    def filters(self) -> Mapping[Any, Any]:
        """The ambient filter values (read-only)."""
        return self._filters

    def get_stat(self, name: str) -> StatValue:
        """Evaluate another statistic under this context's filters."""
        return self._evaluator._evaluate(name, self._filters, self.path)

    def __getitem__(self, name: str) -> StatValue:
        return self.get_stat(name)


class StatisticsEvaluator:
    """
    Evaluates statistics from a registry against one collection.

    The evaluator holds no per-call state, so evaluate and evaluate_all can
    be called from several threads at once.

    Attributes:
        registry: Statistic definitions and filter templates
        collection: Base collection statistics are computed on
        max_depth: Maximum nesting of derived statistics
        app_hooks: Optional application hooks for progress reporting and stopping
    """

    def __init__(
        self,
        registry: StatisticsRegistry,
        collection: QueryableCollection,
        max_depth: int = DEFAULT_MAX_DEPTH,
        app_hooks: Optional[AppHooks] = None,
    ) -> None:
        if max_depth < 1:
            raise ValueError("max_depth must be at least 1")
        self.registry = registry
        self.collection = collection
        self.max_depth = max_depth
        self.app_hooks = app_hooks

    def evaluate(self, name: str, filters: Optional[Mapping[Any, Any]] = None) -> StatValue:
        """
        Evaluate a single statistic.

        Args:
            name: Statistic name
            filters: Runtime filter values; keys need a matching template

        Returns:
            The statistic's value

        Raises:
            StatisticNotFound: Unknown statistic name
            UnknownFilterKey: A filter has no template
            UnknownScope: A scope is not known to the collection
            CyclicDependency: Derived statistics nest deeper than max_depth
            CalculationError: The aggregate or a formula failed
        """
        return self._evaluate(name, filters or {}, ())

    def evaluate_all(self, filters: Optional[Mapping[Any, Any]] = None, exclude: Optional[str] = None) -> Dict[str, StatValue]:
        """
        Evaluate every registered statistic.

        Any failure aborts the whole call; no partial mapping is returned.

        Args:
            filters: Runtime filter values applied to every statistic
            exclude: Optional statistic name to leave out

        Returns:
            Dict of statistic name -> value

        Raises:
            EvaluationCancelled: If the app hooks request a stop
        """
        filters = filters or {}
        names = [name for name in self.registry.list_names() if name != exclude]
        self._report_step(info="Evaluating statistics", target=len(names), reset_counter=True, plus_step=0)

        results: Dict[str, StatValue] = {}
        for name in names:
            if self._stop_requested("Statistics evaluation stopped by user"):
                raise EvaluationCancelled(f"Stopped after {len(results)} of {len(names)} statistics")
            results[name] = self._evaluate(name, filters, ())
            self._report_step(plus_step=1)

        logger.info(f"Evaluated {len(results)} statistics")
        return results

    def _evaluate(self, name: str, filters: Mapping[Any, Any], path: Tuple[str, ...]) -> StatValue:
        path = path + (name,)
        if len(path) > self.max_depth:
            raise CyclicDependency(path, self.max_depth)

        definition = self.registry.lookup(name)
        logger.debug(f"Evaluating statistic {name!r} with filters {dict(filters)}")

        if isinstance(definition, CalculatedStatisticDefinition):
            context = EvaluationContext(self, filters, path)
            try:
                return definition.formula(context)
            except StatisticsError:
                raise
            except Exception as e:
                logger.error(f"Error in formula for derived statistic {name!r}: {e}")
                raise CalculationError(name, e) from e

        compiled = compile_filters(
            filters,
            definition.filter_overrides,
            self.registry.global_filter_templates,
            statistic=name,
        )
        collection = apply_scopes(self.collection, definition.scopes)
        return execute_calculation(
            collection,
            definition.kind,
            definition.column,
            compiled,
            definition.options(),
            name=name,
        )

    def _report_step(self, info: str = "", target: Optional[int] = None, reset_counter: bool = False, plus_step: int = 0) -> None:
        """
        Report a step via app hooks if available.

        Args:
            info (str): Information message.
            target (int): Target count for progress.
            reset_counter (bool): Whether to reset the counter.
            plus_step (int): Incremental step count.
        """
        if self.app_hooks and callable(getattr(self.app_hooks, "report_step", None)):
            self.app_hooks.report_step(info=info, target=target, reset_counter=reset_counter, plus_step=plus_step)
        elif info:
            logger.debug(info)

    def _stop_requested(self, logger_stop_message: str = "Stop requested by user") -> bool:
        """
        Check if stop has been requested via app hooks.

        Returns:
            bool: True if stop requested, False otherwise.
        """
        if self.app_hooks and callable(getattr(self.app_hooks, "stop_requested", None)):
            if self.app_hooks.stop_requested():
                if logger_stop_message:
                    logger.info(logger_stop_message)
                return True
        return False
