from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Union

Number = Optional[Union[int, float]]


class QueryableCollection(Protocol):
    """
    Protocol for the record collections statistics are computed on.

    Methods:
        apply_scope(name) -> QueryableCollection:
            Return a narrowed collection; raise KeyError for unknown scopes.
        calculate(kind, column, options) -> number:
            Run an aggregate ('count', 'sum', 'average', 'minimum', 'maximum').
    """
    def apply_scope(self, name: str) -> QueryableCollection:
        """
        Narrow the collection by a named scope.

        Args:
            name (str): Scope name.

        Returns:
            QueryableCollection: A new, narrowed collection.
        """
        ...

    def calculate(self, kind: str, column: str, options: Mapping[str, Any]) -> Number:
        """
        Compute an aggregate over the collection.

        Args:
            kind (str): Aggregate name.
            column (str): Column to aggregate.
            options (Mapping): Optional 'conditions' as a string or as
                [expression, *params], plus store-specific keys such as 'joins'.

        Returns:
            The aggregate value, or None for an empty set.
        """
        ...
