"""
Configuration for statistics definitions.
"""
from __future__ import annotations

from dataclasses import dataclass, field
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from model_stats.statistics.evaluator import DEFAULT_MAX_DEPTH
from model_stats.statistics.registry import StatisticsRegistry

logger = logging.getLogger(__name__)

SECTION = "statistics"


@dataclass
class StatisticsConfig:
    """
    Configuration for a model's statistics.

    A YAML file holds a 'statistics' section, for example:

        statistics:
          identity_column: id
          max_depth: 32
          filters:
            user_id: "user_id = ?"
          definitions:
            Basic Count:
              count: all
            Paid Sum:
              sum: [paid]
              column: amount
              filter_on:
                channel: "channel = ?"

    Derived statistics need code and are registered directly on the registry.

    Attributes:
        identity_column: Default column for statistics that do not name one
        max_depth: Maximum nesting of derived statistics
        filters: Global filter key -> condition template
        definitions: Statistic name -> registration options
        config_file: Path to YAML config file (optional)
    """
    identity_column: str = "id"
    max_depth: int = DEFAULT_MAX_DEPTH
    filters: Dict[Any, str] = field(default_factory=dict)
    definitions: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    config_file: Optional[Path] = None

    def __post_init__(self) -> None:
        """Load configuration from file if config_file is specified."""
        if self.config_file:
            self._load_from_file(Path(self.config_file))

    def _load_from_file(self, path: Path) -> None:
        """
        Load configuration from YAML file.

        Reads the 'statistics' section; values in the file replace the
        defaults, while filters and definitions are merged on top of any
        given to the constructor.

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the file is not valid YAML
        """
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Error parsing {path}: {e}")

        self._update(data.get(SECTION) or {})
        logger.info(f"Loaded statistics config from {path}")

    def _update(self, section: Dict[str, Any]) -> None:
        if 'identity_column' in section:
            self.identity_column = str(section['identity_column'])
        if 'max_depth' in section:
            self.max_depth = int(section['max_depth'])
        self.filters.update(section.get('filters') or {})
        for name, options in (section.get('definitions') or {}).items():
            self.definitions[str(name)] = dict(options or {})

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> StatisticsConfig:
        """
        Create configuration from dictionary.

        Accepts either a whole config document (with a 'statistics' key) or
        just the section itself.

        Args:
            data: Configuration dictionary

        Returns:
            StatisticsConfig instance
        """
        config = cls()
        config._update(data.get(SECTION, data) or {})
        return config

    def create_registry(self) -> StatisticsRegistry:
        """Create a new registry populated from this configuration."""
        registry = StatisticsRegistry(identity_column=self.identity_column)
        self.apply(registry)
        return registry

    def apply(self, registry: StatisticsRegistry) -> StatisticsRegistry:
        """
        Install filter templates and definitions into a registry.

        Args:
            registry: Registry to populate

        Returns:
            The same registry
        """
        for key, template in self.filters.items():
            registry.set_global_filter_template(key, template)
        for name, options in self.definitions.items():
            registry.register(name, options)
        if self.filters or self.definitions:
            logger.info(f"Configured {len(self.definitions)} statistics and {len(self.filters)} global filters")
        return registry
