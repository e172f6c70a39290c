"""
Registry of statistic definitions for one model type.
"""
from __future__ import annotations

import logging
import threading
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional

from model_stats.statistics.exceptions import StatisticNotFound
from model_stats.statistics.filters import validate_condition, validate_template
from model_stats.statistics.model import (
    CALCULATION_KEYS,
    FILTER_ON_KEY,
    CalculatedStatisticDefinition,
    Definition,
    StatisticDefinition,
)

logger = logging.getLogger(__name__)


class StatisticsRegistry:
    """
    Named statistics and global filter templates for a single model type.

    Definitions are registered at configuration time and looked up at
    evaluation time. Plain and calculated statistics share one name space;
    the last registration for a name wins.

    Example:
        registry = StatisticsRegistry()
        registry.register("Basic Count", count="all")
        registry.register("Basic Sum", sum="all", column="amount")
        registry.register("Active Count", count=["active"], filter_on={"channel": "channel = ?"})
        registry.set_global_filter_template("user_id", "user_id = ?")

        @registry.register_derived("Total Profit")
        def total_profit(stats):
            return stats.get_stat("Basic Sum") * stats.get_stat("Basic Count")
    """

    def __init__(self, identity_column: str = "id") -> None:
        """
        Args:
            identity_column: Default column for statistics that do not name one
        """
        self.identity_column = identity_column
        self._definitions: Dict[str, Definition] = {}
        self._filter_templates: Dict[Any, str] = {}
        self._lock = threading.RLock()

    def register(self, name: str, options: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> StatisticDefinition:
        """
        Register (or replace) a plain statistic.

        Args:
            name: Statistic name
            options: Registration options; keyword arguments are merged on top

        Returns:
            The stored StatisticDefinition

        Raises:
            ValueError: If a filter_on template or the conditions option is malformed
        """
        merged = dict(options or {})
        merged.update(kwargs)

        calculation_keys = [key for key in merged if key in CALCULATION_KEYS]
        if len(calculation_keys) > 1:
            logger.warning(f"Statistic {name!r} has several calculation keys {calculation_keys}, using {calculation_keys[0]!r}")

        for key, template in (merged.get(FILTER_ON_KEY) or {}).items():
            validate_template(key, template)
        validate_condition(merged.get("conditions"), name)

        definition = StatisticDefinition.from_options(name, merged, identity_column=self.identity_column)
        self._store(definition)
        return definition

    def register_derived(self, name: str, formula: Optional[Callable] = None):
        """
        Register (or replace) a statistic calculated from other statistics.

        Can be called directly or used as a decorator:

            registry.register_derived("Ratio", lambda stats: stats["A"] / stats["B"])

            @registry.register_derived("Ratio")
            def ratio(stats):
                return stats["A"] / stats["B"]

        Args:
            name: Statistic name
            formula: Callable taking an EvaluationContext and returning a number

        Returns:
            The stored definition, or a decorator when formula is omitted
        """
        if formula is None:
            def decorator(func: Callable) -> Callable:
                self.register_derived(name, func)
                return func
            return decorator

        if not callable(formula):
            raise TypeError(f"Formula for derived statistic {name!r} must be callable")
        definition = CalculatedStatisticDefinition(name=name, formula=formula)
        self._store(definition)
        return definition

    def set_global_filter_template(self, key: Any, template: str) -> None:
        """
        Define a filter template applied to every statistic of this model.

        Args:
            key: Filter key as supplied at evaluation time
            template: Condition with one '?' placeholder, e.g. "user_id = ?"
        """
        validate_template(key, template)
        with self._lock:
            templates = dict(self._filter_templates)
            templates[key] = template
            self._filter_templates = templates
        logger.debug(f"Set global filter template {key!r}: {template}")

    @property
    def global_filter_templates(self) -> Mapping[Any, str]:
        """Read-only view of the global filter templates."""
        return MappingProxyType(self._filter_templates)

    def list_names(self) -> List[str]:
        """Names of all registered statistics."""
        return list(self._definitions.keys())

    def lookup(self, name: str) -> Definition:
        """
        Get a definition by name.

        Raises:
            StatisticNotFound: If no statistic has this name
        """
        try:
            return self._definitions[name]
        except KeyError:
            raise StatisticNotFound(name) from None

    def __contains__(self, name: object) -> bool:
        return name in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)

    def _store(self, definition: Definition) -> None:
        with self._lock:
            if definition.name in self._definitions:
                logger.debug(f"Overwriting statistic: {definition.name}")
            # Readers may hold the old dict; replace rather than mutate
            definitions = dict(self._definitions)
            definitions[definition.name] = definition
            self._definitions = definitions
        logger.debug(f"Registered statistic: {definition.name}")
