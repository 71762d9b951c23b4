"""
Decorate objects with synthetic type names, extra fields and a default
display property set.

    >>> from types import SimpleNamespace
    >>> job = decorate(SimpleNamespace(name="nightly", status="ok"),
    ...                type_name="Build.Job", extra={"owner": "ci"},
    ...                display=["name", "owner"])
    >>> job.type_names[0]
    'Build.Job'
    >>> display_fields(job)
    {'name': 'nightly', 'owner': 'ci'}

Decorated objects expose their fields through ``__inspect_fields__``, so
flatten() and ObjectNode see the wrapped object's fields plus the extras.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from .classify import NodeKind, classify, iter_children
from .errors import IntrospectionFailure, InvalidArgumentError

logger = logging.getLogger(__name__)

_WRAPPER_ATTRIBUTES = ("_target", "_synthetic_types", "_extra", "_display")


class DecoratedObject:
    """Wrapper adding type names, extra fields and a display set to an object."""

    def __init__(self, target: Any, type_names: Iterable[str] = (),
                 extra: Optional[Mapping[str, Any]] = None,
                 display: Optional[Iterable[str]] = None):
        self._target = target
        self._synthetic_types = list(type_names)
        self._extra = dict(extra or {})
        self._display = list(display) if display is not None else None

    def __getattr__(self, name):
        # Only reached for names not set on the wrapper itself
        if name.startswith("__") or name in _WRAPPER_ATTRIBUTES:
            raise AttributeError(name)
        extra = self.__dict__.get("_extra", {})
        if name in extra:
            return extra[name]
        return getattr(self.__dict__["_target"], name)

    def __repr__(self):
        type_name = self.type_names[0]
        return f"<{type_name} {self.__inspect_fields__()!r}>"

    @property
    def target(self) -> Any:
        return self._target

    @property
    def type_names(self) -> List[str]:
        """Synthetic names first, then the wrapped object's class hierarchy."""
        names = list(self._synthetic_types)
        for cls in type(self._target).__mro__:
            qualified = f"{cls.__module__}.{cls.__qualname__}"
            if qualified not in names:
                names.append(qualified)
        return names

    @property
    def extra(self) -> Dict[str, Any]:
        return dict(self._extra)

    @property
    def display(self) -> Optional[List[str]]:
        return list(self._display) if self._display is not None else None

    def __inspect_fields__(self) -> List[Tuple[str, Any]]:
        fields = dict(_target_fields(self._target))
        fields.update(self._extra)
        return list(fields.items())


def _target_fields(target: Any) -> List[Tuple[str, Any]]:
    kind = classify(target)
    if kind not in (NodeKind.RECORD, NodeKind.MAP):
        return []
    try:
        return [(child.name, child.value) for child in iter_children(target, kind)]
    except IntrospectionFailure as e:
        logger.debug(f"Decorated target exposes no fields: {e}")
        return []


def decorate(obj: Any, type_name: Union[str, Iterable[str], None] = None,
             extra: Optional[Mapping[str, Any]] = None,
             display: Optional[Iterable[str]] = None) -> DecoratedObject:
    """
    Attach synthetic type names, extra fields and a default display set.

    Decorating an already decorated object layers the new settings on top:
    new type names go first, extras are merged, and ``display`` replaces the
    previous display set when given.

    Args:
        obj: Any object
        type_name: One synthetic type name or several, most specific first
        extra: Extra fields; they shadow wrapped fields of the same name
        display: Field names shown by display_fields()

    Raises:
        InvalidArgumentError: If a display name is not a field of the result
    """
    if isinstance(type_name, str):
        type_names = [type_name]
    else:
        type_names = list(type_name or [])
    if any(not isinstance(name, str) or not name for name in type_names):
        raise InvalidArgumentError("Type names must be non-empty strings")
    if extra is not None and any(not isinstance(key, str) for key in extra):
        raise InvalidArgumentError("Extra field names must be strings")

    if isinstance(obj, DecoratedObject):
        merged_extra = obj.extra
        merged_extra.update(extra or {})
        previous_types = [name for name in obj._synthetic_types if name not in type_names]
        decorated = DecoratedObject(
            obj.target,
            type_names + previous_types,
            merged_extra,
            display if display is not None else obj.display,
        )
    else:
        decorated = DecoratedObject(obj, type_names, extra, display)

    if decorated.display is not None:
        known = {name for name, _ in decorated.__inspect_fields__()}
        unknown = [name for name in decorated.display if name not in known]
        if unknown:
            raise InvalidArgumentError(f"Unknown display fields: {', '.join(unknown)}")
    return decorated


def display_fields(obj: Any) -> Dict[str, Any]:
    """Ordered mapping of the fields an object shows by default."""
    if isinstance(obj, DecoratedObject):
        fields = dict(obj.__inspect_fields__())
        if obj.display is None:
            return fields
        return {name: fields[name] for name in obj.display}
    return dict(_target_fields(obj))
