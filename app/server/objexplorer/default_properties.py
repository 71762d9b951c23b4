"""
Registry of field names intrinsic to runtime-supplied types.

Built-in wrapper types such as datetime expose fields (year, month, ...) that
describe the type rather than application data. When flattening with
``exclude_default`` enabled those names are dropped for values of the
registered type and its subclasses. Types that are not registered contribute
no excluded names.
"""

import datetime
import logging
from typing import Any, Dict, FrozenSet, Iterable, Optional

import pandas as pd

logger = logging.getLogger(__name__)

_TIME_FIELDS = ("hour", "minute", "second", "microsecond", "tzinfo", "fold")
_DATE_FIELDS = ("year", "month", "day")

_PANDAS_TIMESTAMP_FIELDS = (
    "nanosecond", "tz", "unit", "value", "asm8",
    "dayofweek", "day_of_week", "dayofyear", "day_of_year",
    "quarter", "week", "weekofyear", "days_in_month", "daysinmonth",
    "is_leap_year", "is_month_start", "is_month_end",
    "is_quarter_start", "is_quarter_end", "is_year_start", "is_year_end",
)

_PANDAS_TIMEDELTA_FIELDS = (
    "components", "nanoseconds", "unit", "value", "asm8",
    "delta", "resolution_string",
)

_PANDAS_PERIOD_FIELDS = _DATE_FIELDS + (
    "hour", "minute", "second", "freq", "freqstr", "ordinal",
    "start_time", "end_time", "qyear", "quarter", "week", "weekday",
    "weekofyear", "dayofweek", "day_of_week", "dayofyear", "day_of_year",
    "days_in_month", "daysinmonth", "is_leap_year",
)


class DefaultPropertyRegistry:
    """Mapping from a type to the field names intrinsic to it."""

    def __init__(self, entries: Optional[Dict[type, Iterable[str]]] = None):
        self._entries: Dict[type, FrozenSet[str]] = {}
        for registered_type, names in (entries or {}).items():
            self.register(registered_type, names)

    def register(self, registered_type: type, names: Iterable[str]) -> None:
        """Register (or extend) the intrinsic field names of a type."""
        existing = self._entries.get(registered_type, frozenset())
        self._entries[registered_type] = existing | frozenset(names)
        logger.debug(f"Registered default properties for {registered_type.__name__}")

    def unregister(self, registered_type: type) -> None:
        self._entries.pop(registered_type, None)

    def names_for_type(self, value_type: type) -> FrozenSet[str]:
        names: FrozenSet[str] = frozenset()
        for cls in value_type.__mro__:
            names |= self._entries.get(cls, frozenset())
        return names

    def names_for(self, value: Any) -> FrozenSet[str]:
        """Intrinsic field names of a value's runtime type, inherited entries included."""
        return self.names_for_type(type(value))

    def __contains__(self, registered_type: type) -> bool:
        return registered_type in self._entries

    def copy(self) -> "DefaultPropertyRegistry":
        return DefaultPropertyRegistry(dict(self._entries))


def build_default_registry() -> DefaultPropertyRegistry:
    return DefaultPropertyRegistry({
        datetime.date: _DATE_FIELDS,
        datetime.datetime: _DATE_FIELDS + _TIME_FIELDS,
        datetime.time: _TIME_FIELDS,
        datetime.timedelta: ("days", "seconds", "microseconds"),
        pd.Timestamp: _PANDAS_TIMESTAMP_FIELDS,
        pd.Timedelta: _PANDAS_TIMEDELTA_FIELDS,
        pd.Period: _PANDAS_PERIOD_FIELDS,
    })


default_registry = build_default_registry()
