"""
Data models for statistics definitions.
"""
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

ALL_SCOPE = "all"

StatValue = Optional[Union[int, float]]


class CalculationKind(str, Enum):
    """Aggregate operations a statistic can perform."""
    COUNT = "count"
    SUM = "sum"
    AVERAGE = "average"
    MINIMUM = "minimum"
    MAXIMUM = "maximum"

    @classmethod
    def option_keys(cls) -> Tuple[str, ...]:
        return tuple(kind.value for kind in cls)


CALCULATION_KEYS = CalculationKind.option_keys()
COLUMN_KEY = "column"
FILTER_ON_KEY = "filter_on"


def _normalize_scopes(scopes: Any) -> Tuple[str, ...]:
    # None -> ("all",), a single name -> one-element tuple
    if scopes is None:
        return (ALL_SCOPE,)
    if isinstance(scopes, str):
        return (scopes,)
    scopes = tuple(str(scope) for scope in scopes)
    return scopes or (ALL_SCOPE,)


@dataclass(frozen=True)
class StatisticDefinition:
    """
    A plain statistic: an aggregate over a scoped, filtered collection.

    Attributes:
        name: Unique name of the statistic within its registry
        kind: Aggregate operation to run
        column: Column the aggregate is computed on
        scopes: Ordered scope names; ("all",) means no narrowing
        filter_overrides: Filter key -> template, taking precedence over globals
        extra_options: Options forwarded to the collection (conditions, joins, ...)
    """
    name: str
    kind: CalculationKind = CalculationKind.COUNT
    column: str = "id"
    scopes: Tuple[str, ...] = (ALL_SCOPE,)
    filter_overrides: Mapping[str, str] = field(default_factory=dict)
    extra_options: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "filter_overrides", MappingProxyType(dict(self.filter_overrides)))
        object.__setattr__(self, "extra_options", MappingProxyType(copy.deepcopy(dict(self.extra_options))))

    @classmethod
    def from_options(cls, name: str, options: Mapping[str, Any], identity_column: str = "id") -> StatisticDefinition:
        """
        Build a definition from registration options.

        The first calculation key found (count, sum, average, minimum,
        maximum) selects the aggregate and its value gives the scopes. With
        no calculation key the statistic is an unscoped count.

        Args:
            name: Statistic name
            options: Registration options
            identity_column: Column used when no 'column' option is given

        Returns:
            StatisticDefinition instance
        """
        options = dict(options or {})
        found = [key for key in options if key in CALCULATION_KEYS]
        kind = CalculationKind(found[0]) if found else CalculationKind.COUNT
        scopes = _normalize_scopes(options.get(found[0]) if found else None)

        column = options.pop(COLUMN_KEY, None) or identity_column
        filter_overrides = options.pop(FILTER_ON_KEY, None) or {}
        for key in CALCULATION_KEYS:
            options.pop(key, None)

        return cls(
            name=name,
            kind=kind,
            column=str(column),
            scopes=scopes,
            filter_overrides=filter_overrides,
            extra_options=options,
        )

    def options(self) -> Dict[str, Any]:
        """Return a fresh, mutable copy of the pass-through options."""
        return copy.deepcopy(dict(self.extra_options))


@dataclass(frozen=True)
class CalculatedStatisticDefinition:
    """
    A derived statistic computed by a formula over other statistics.

    The formula receives an EvaluationContext and returns a number.
    """
    name: str
    formula: Callable[[Any], StatValue]


Definition = Union[StatisticDefinition, CalculatedStatisticDefinition]
