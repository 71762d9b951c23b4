"""
Rules that stop the traversal from descending into a child.

A rule sees the child's field name, the child's value and the parent value.
When any rule applies the child may still be emitted, but its own children
are not visited. Runtimes with other characteristic self-referencing fields
can supply extra rules through ``FlattenConfig.skip_rules``.
"""

import datetime
from dataclasses import dataclass
from typing import Any, Callable, Tuple

import pandas as pd

from .constants import SYNC_ROOT_FIELD

TEMPORAL_TYPES = (
    datetime.date,
    datetime.time,
    datetime.timedelta,
    pd.Timestamp,
    pd.Timedelta,
    pd.Period,
)


@dataclass(frozen=True)
class RecursionRule:
    name: str
    applies: Callable[[str, Any, Any], bool]

    def __call__(self, field_name: str, value: Any, parent: Any) -> bool:
        return bool(self.applies(field_name, value, parent))


def _same_temporal_type(field_name: str, value: Any, parent: Any) -> bool:
    return type(value) is type(parent) and isinstance(value, TEMPORAL_TYPES)


def _null_sync_root(field_name: str, value: Any, parent: Any) -> bool:
    return field_name == SYNC_ROOT_FIELD and value is None


same_temporal_type = RecursionRule("same-temporal-type", _same_temporal_type)
null_sync_root = RecursionRule("null-sync-root", _null_sync_root)

DEFAULT_SKIP_RULES: Tuple[RecursionRule, ...] = (same_temporal_type, null_sync_root)


def first_matching_rule(rules, field_name: str, value: Any, parent: Any):
    """Return the first rule that applies, or None."""
    for rule in rules:
        if rule(field_name, value, parent):
            return rule
    return None
