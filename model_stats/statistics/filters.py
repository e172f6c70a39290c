"""
Compilation of runtime filter values into parameterized query conditions.

A condition template is a predicate with a single '?' placeholder, for example
"channel = ?" or "DATE(created_at) > ?". Compiling a filter map never inserts
values into the template text: every fragment keeps its placeholders and
carries the values as bound parameters, which the collection resolves.

Conditions already present in a statistic's options may be either a plain
string or a positional list [expression, param1, param2, ...]. The compiled
fragments are ANDed onto whichever representation is there.

A plain string is literal SQL and has no placeholders. In the positional
form each '?' is a placeholder and '??' stands for a literal '?'; merging a
plain string into the positional form escapes its '?' characters that way.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
import re
from typing import Any, List, Mapping, Optional, Sequence, Tuple, Union

from model_stats.statistics.exceptions import UnknownFilterKey

logger = logging.getLogger(__name__)

PLACEHOLDER = "?"
ESCAPED_PLACEHOLDER = "??"
AND = " AND "

_PLACEHOLDER_RE = re.compile(r"\?\?|\?")

Condition = Union[str, Sequence[Any]]


def count_placeholders(expression: str) -> int:
    """Number of '?' placeholders in a positional expression ('??' excluded)."""
    return sum(1 for match in _PLACEHOLDER_RE.finditer(expression) if match.group() == PLACEHOLDER)


def escape_literal(sql: str) -> str:
    """Escape literal '?' characters so sql can join a positional expression."""
    return sql.replace(PLACEHOLDER, ESCAPED_PLACEHOLDER)


def validate_template(key: Any, template: Any) -> str:
    """
    Check that a condition template has exactly one placeholder.

    Args:
        key: Filter key the template belongs to (for error messages)
        template: Template string; '??' is a literal '?'

    Returns:
        The template, unchanged

    Raises:
        ValueError: If the template is not a string or has != 1 placeholder
    """
    if not isinstance(template, str):
        raise ValueError(f"Filter template for {key!r} must be a string, got {type(template).__name__}")
    count = count_placeholders(template)
    if count != 1:
        raise ValueError(f"Filter template for {key!r} must contain exactly one '{PLACEHOLDER}', found {count}: {template!r}")
    return template


def validate_condition(condition: Any, statistic: Optional[str] = None) -> Any:
    """
    Check a registered 'conditions' option.

    Accepts None, a plain string, or a non-empty list/tuple whose first
    element is a string with one placeholder per remaining element.

    Raises:
        ValueError: If the condition has another shape or the counts differ
    """
    where = f" for statistic {statistic!r}" if statistic else ""
    if condition is None or isinstance(condition, str):
        return condition
    if not isinstance(condition, (list, tuple)) or not condition or not isinstance(condition[0], str):
        raise ValueError(f"Conditions{where} must be a string or [expression, *params], got {condition!r}")
    placeholders = count_placeholders(condition[0])
    if placeholders != len(condition) - 1:
        raise ValueError(
            f"Conditions{where} have {placeholders} placeholders but {len(condition) - 1} parameters: {condition!r}"
        )
    return condition


@dataclass(frozen=True)
class ConditionFragment:
    """A single predicate with its bound parameters."""
    expression: str
    params: Tuple[Any, ...] = ()

    @classmethod
    def bind(cls, template: str, value: Any) -> ConditionFragment:
        """
        Bind a filter value to a template.

        Sequence values (list, tuple, set) expand the placeholder into one
        placeholder per element, e.g. "channel IN (?)" with ["web", "store"]
        becomes "channel IN (?, ?)". An empty sequence renders as NULL.
        """
        if isinstance(value, (list, tuple, set, frozenset)):
            values = tuple(value)
            marks = ", ".join(PLACEHOLDER for _ in values) or "NULL"

            def expand(match):
                return marks if match.group() == PLACEHOLDER else match.group()

            return cls(_PLACEHOLDER_RE.sub(expand, template), values)
        return cls(template, (value,))


@dataclass(frozen=True)
class CompiledCondition:
    """Ordered AND-combination of condition fragments."""
    fragments: Tuple[ConditionFragment, ...] = ()

    @property
    def expression(self) -> str:
        return AND.join(fragment.expression for fragment in self.fragments)

    @property
    def params(self) -> Tuple[Any, ...]:
        return tuple(param for fragment in self.fragments for param in fragment.params)

    def is_empty(self) -> bool:
        return not self.fragments

    def to_condition(self) -> Optional[List[Any]]:
        """Positional representation [expression, *params], or None if empty."""
        if self.is_empty():
            return None
        return [self.expression, *self.params]


def compile_filters(
    filters: Optional[Mapping[Any, Any]],
    overrides: Optional[Mapping[Any, str]] = None,
    global_templates: Optional[Mapping[Any, str]] = None,
    statistic: Optional[str] = None,
) -> CompiledCondition:
    """
    Compile runtime filter values into a condition.

    Filters are processed in insertion order. A value of None or False means
    "not filtering on this key" and is skipped; any other value (including 0
    and "") is applied.

    Args:
        filters: Runtime filter key -> value
        overrides: Per-statistic templates, checked first
        global_templates: Templates shared by all statistics of a model
        statistic: Name of the statistic being compiled (for error messages)

    Returns:
        CompiledCondition with one fragment per applied filter

    Raises:
        UnknownFilterKey: If a supplied filter has no template
    """
    overrides = overrides or {}
    global_templates = global_templates or {}
    fragments = []

    for key, value in (filters or {}).items():
        if value is None or value is False:
            continue
        if key in overrides:
            template = overrides[key]
        elif key in global_templates:
            template = global_templates[key]
        else:
            raise UnknownFilterKey(key, statistic)
        fragments.append(ConditionFragment.bind(template, value))

    return CompiledCondition(tuple(fragments))


def merge_conditions(existing: Optional[Condition], compiled: CompiledCondition) -> Optional[Condition]:
    """
    AND a compiled condition onto an existing condition.

    - nothing compiled: existing is returned as is
    - no existing condition: the compiled condition in positional form
    - existing string: the string, with its literal '?' escaped as '??', is
      extended and the new params follow it
    - existing positional list: the expression element is extended, existing
      params are kept and the new params appended

    Neither input is modified; the result is a new list.

    Raises:
        TypeError: If existing is neither a string nor a non-empty sequence
    """
    if compiled.is_empty():
        return existing
    if existing is None:
        return compiled.to_condition()
    if isinstance(existing, str):
        return [escape_literal(existing) + AND + compiled.expression, *compiled.params]
    if isinstance(existing, (list, tuple)) and existing:
        expression, *params = existing
        return [str(expression) + AND + compiled.expression, *params, *compiled.params]
    raise TypeError(f"Unsupported condition representation: {existing!r}")
