from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional
import logging

from model_stats.app_hooks import AppHooks
from model_stats.backends.base import QueryableCollection
from .config import StatisticsConfig
from .evaluator import StatisticsEvaluator
from .model import StatValue
from .registry import StatisticsRegistry

logger = logging.getLogger(__name__)


class Statistics:
    """
    High-level interface for declaring and evaluating a model's statistics.

    This is a convenience wrapper around StatisticsRegistry and
    StatisticsEvaluator bound to a single collection.

    Example:
        stats = Statistics(SqlCollection(engine, "orders"))
        stats.register("Order Count", count="all")
        stats.register("Revenue", sum="all", column="amount")
        stats.set_global_filter_template("channel", "channel = ?")

        @stats.register_derived("Average Order")
        def average_order(ctx):
            return ctx["Revenue"] / ctx["Order Count"]

        stats.evaluate("Revenue", {"channel": "web"})
        stats.evaluate_all({"channel": "web"})
    """

    def __init__(
        self,
        collection: QueryableCollection,
        registry: Optional[StatisticsRegistry] = None,
        config: Optional[StatisticsConfig] = None,
        config_dict: Optional[Dict[str, Any]] = None,
        config_file: Optional[Path] = None,
        app_hooks: Optional[AppHooks] = None,
    ) -> None:
        """
        Initialize statistics for a collection.

        Args:
            collection: Collection statistics are evaluated against
            registry: Existing registry to use (a new one is created otherwise)
            config: Configuration object
            config_dict: Dictionary to configure statistics (see StatisticsConfig)
            config_file: Path to YAML config file
            app_hooks: Optional application hooks for progress reporting
        """
        if config is None:
            if config_dict:
                config = StatisticsConfig.from_dict(config_dict)
            elif config_file:
                config = StatisticsConfig(config_file=config_file)
            else:
                config = StatisticsConfig()
        self.config = config

        if registry is None:
            registry = config.create_registry()
        else:
            config.apply(registry)
        self.registry = registry

        self.evaluator = StatisticsEvaluator(
            registry,
            collection,
            max_depth=config.max_depth,
            app_hooks=app_hooks,
        )

    @property
    def collection(self) -> QueryableCollection:
        return self.evaluator.collection

    def register(self, name: str, options: Optional[Mapping[str, Any]] = None, **kwargs: Any):
        """Register a plain statistic (see StatisticsRegistry.register)."""
        return self.registry.register(name, options, **kwargs)

    def register_derived(self, name: str, formula: Optional[Callable] = None):
        """Register a derived statistic; usable as a decorator."""
        return self.registry.register_derived(name, formula)

    def set_global_filter_template(self, key: Any, template: str) -> None:
        """Define a filter template shared by all statistics."""
        self.registry.set_global_filter_template(key, template)

    def list_names(self) -> List[str]:
        return self.registry.list_names()

    def evaluate(self, name: str, filters: Optional[Mapping[Any, Any]] = None) -> StatValue:
        """
        Evaluate a single statistic.

        Args:
            name: Statistic name
            filters: Runtime filter values

        Returns:
            The statistic's value
        """
        return self.evaluator.evaluate(name, filters)

    def evaluate_all(self, filters: Optional[Mapping[Any, Any]] = None, exclude: Optional[str] = None) -> Dict[str, StatValue]:
        """
        Evaluate all statistics, optionally leaving one out.

        Args:
            filters: Runtime filter values
            exclude: Statistic name to skip

        Returns:
            Dictionary of statistic names to values
        """
        return self.evaluator.evaluate_all(filters, exclude=exclude)
