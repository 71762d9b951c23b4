"""
Node classification and child enumeration.

Every value met during a traversal is classified once into a NodeKind and its
direct children are enumerated according to that kind:

    SCALAR    no children
    SEQUENCE  one child per element, named by position
    MAP       one child per key
    RECORD    one child per public named field

A value that is both enumerable and has named fields (a namedtuple, a pandas
Series) is treated as enumerable.
"""

import dataclasses
import inspect
import logging
import numbers
import types
from collections.abc import Mapping, Sequence, Set
from dataclasses import dataclass
from enum import Enum
from pathlib import PurePath
from typing import Any, Iterator, List
from uuid import UUID

import numpy as np
import pandas as pd

from .errors import IntrospectionFailure

logger = logging.getLogger(__name__)

# Hook a type can define to supply its own (name, value) field pairs
INSPECT_FIELDS_HOOK = "__inspect_fields__"

_SCALAR_TYPES = (
    str,
    bytes,
    bytearray,
    memoryview,
    bool,
    numbers.Number,
    np.generic,
    Enum,
    UUID,
    PurePath,
    type,
    types.ModuleType,
    types.FunctionType,
    types.BuiltinFunctionType,
    types.MethodType,
    types.GeneratorType,
    types.CoroutineType,
    range,
)


class NodeKind(Enum):
    SCALAR = "scalar"
    SEQUENCE = "sequence"
    MAP = "map"
    RECORD = "record"


class Access(Enum):
    """How a child is reached from its parent."""
    FIELD = "field"
    INDEX = "index"
    KEY = "key"


@dataclass(frozen=True)
class Child:
    """A direct child of a composite value.

    ``name`` is the raw name used for pattern matching: the field name, the
    map key as a string, or the element position as a string.
    """
    name: str
    value: Any
    access: Access


def classify(value: Any) -> NodeKind:
    """Classify a value into one of the four node kinds."""
    if value is None or isinstance(value, _SCALAR_TYPES):
        return NodeKind.SCALAR
    if isinstance(value, (Mapping, pd.Series, pd.DataFrame)):
        return NodeKind.MAP
    if isinstance(value, np.ndarray):
        return NodeKind.SEQUENCE if value.ndim > 0 else NodeKind.SCALAR
    if isinstance(value, (Sequence, Set, pd.Index)):
        return NodeKind.SEQUENCE
    try:
        has_fields = bool(field_names(value))
    except IntrospectionFailure as e:
        logger.debug(f"Treating value as scalar: {e}")
        return NodeKind.SCALAR
    return NodeKind.RECORD if has_fields else NodeKind.SCALAR


def field_names(value: Any) -> List[str]:
    """
    List the named fields of a record-like value without reading them.

    Order: dataclass fields, then dynamic instance attributes, then slots and
    data descriptors (properties, C-level getters) declared on the type,
    most derived class first. Dunder names are never fields.

    Raises:
        IntrospectionFailure: if the value's attributes cannot be listed
    """
    value_type = type(value)
    if getattr(value_type, INSPECT_FIELDS_HOOK, None) is not None:
        return [name for name, _ in _hook_fields(value)]

    # Instance data keeps single-underscore names (JSON "_id"); type-level
    # descriptors only contribute public names
    names: List[str] = []
    try:
        if dataclasses.is_dataclass(value):
            names.extend(f.name for f in dataclasses.fields(value))

        instance_dict = getattr(value, "__dict__", None)
        if isinstance(instance_dict, Mapping):
            names.extend(name for name in instance_dict
                         if isinstance(name, str) and name not in names)
        names = [name for name in names if not _is_dunder(name)]

        for cls in value_type.__mro__:
            if cls is object:
                continue
            for name, attr in vars(cls).items():
                if name in names or name.startswith("_"):
                    continue
                if isinstance(attr, property) or inspect.isgetsetdescriptor(attr) \
                        or inspect.ismemberdescriptor(attr):
                    names.append(name)
    except Exception as e:
        raise IntrospectionFailure(value, e) from e

    return names


def _is_dunder(name: str) -> bool:
    return len(name) > 4 and name.startswith("__") and name.endswith("__")


def iter_children(value: Any, kind: NodeKind = None) -> Iterator[Child]:
    """
    Enumerate the direct children of a value.

    Args:
        value: Any value
        kind: Precomputed classification of ``value``

    Yields:
        Child entries in the value's natural order

    Raises:
        IntrospectionFailure: if enumeration itself fails
    """
    kind = kind or classify(value)
    if kind is NodeKind.SCALAR:
        return iter(())
    if kind is NodeKind.MAP:
        return _map_children(value)
    if kind is NodeKind.SEQUENCE:
        return _sequence_children(value)
    return _record_children(value)


def _map_children(value: Any) -> Iterator[Child]:
    try:
        items = [(str(key), item) for key, item in value.items()]
    except Exception as e:
        raise IntrospectionFailure(value, e) from e
    for key, item in items:
        yield Child(key, item, Access.KEY)


def _sequence_children(value: Any) -> Iterator[Child]:
    try:
        elements = list(value)
    except Exception as e:
        raise IntrospectionFailure(value, e) from e
    for index, element in enumerate(elements):
        yield Child(str(index), element, Access.INDEX)


def _record_children(value: Any) -> Iterator[Child]:
    if getattr(type(value), INSPECT_FIELDS_HOOK, None) is not None:
        for name, item in _hook_fields(value):
            yield Child(name, item, Access.FIELD)
        return

    for name in field_names(value):
        try:
            item = getattr(value, name)
        except Exception as e:
            # One failing getter drops that field only
            logger.debug(f"Skipping {type(value).__name__}.{name}: {e}")
            continue
        yield Child(name, item, Access.FIELD)


def _hook_fields(value: Any) -> List[tuple]:
    try:
        return [(str(name), item) for name, item in getattr(value, INSPECT_FIELDS_HOOK)()]
    except Exception as e:
        raise IntrospectionFailure(value, e) from e
