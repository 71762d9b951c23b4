import fnmatch
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Pattern, Tuple

from .classify import Access, NodeKind, classify, iter_children
from .constants import DEFAULT_EXCLUDE, DEFAULT_MAX_DEPTH, ROOT_NAME
from .default_properties import DefaultPropertyRegistry, default_registry
from .errors import IntrospectionFailure, InvalidArgumentError
from .paths import child_path
from .recursion_rules import DEFAULT_SKIP_RULES, first_matching_rule

logger = logging.getLogger(__name__)


def compile_patterns(patterns: Optional[Iterable[str]], ignore_case: bool = False,
                     argument: str = "pattern") -> Optional[Tuple[Pattern, ...]]:
    """
    Compile glob-style patterns (``*``, ``?``, ``[seq]``) into regular expressions.

    Args:
        patterns: Patterns to compile, a single string, or None
        ignore_case: Match case-insensitively
        argument: Argument name used in error messages

    Returns:
        Tuple of compiled expressions, or None when ``patterns`` is None

    Raises:
        InvalidArgumentError: If a pattern is not a string or cannot be compiled
    """
    if patterns is None:
        return None
    if isinstance(patterns, str):
        patterns = (patterns,)

    flags = re.IGNORECASE if ignore_case else 0
    compiled = []
    for pattern in patterns:
        if not isinstance(pattern, str):
            raise InvalidArgumentError(
                f"{argument} patterns must be strings, got {type(pattern).__name__}"
            )
        try:
            compiled.append(re.compile(fnmatch.translate(pattern), flags))
        except re.error as e:
            raise InvalidArgumentError(f"Malformed {argument} pattern {pattern!r}: {e}") from e
    return tuple(compiled)


def matches_any(patterns: Tuple[Pattern, ...], text: str) -> bool:
    return any(pattern.match(text) for pattern in patterns)


def _as_tuple(patterns):
    if patterns is None or isinstance(patterns, str):
        return patterns
    try:
        return tuple(patterns)
    except TypeError:
        raise InvalidArgumentError(f"Expected a list of patterns, got {type(patterns).__name__}")


@dataclass(frozen=True)
class FlattenConfig:
    """
    Read-only constraints applied at every step of one flatten call.

    Attributes:
        exclude: Name patterns dropped at every level
        exclude_default: Also drop the intrinsic field names of each value's type
        include: When set, only names matching one of these patterns are emitted
        value: When set, only values whose ``str()`` matches one of these are emitted
        max_depth: Deepest level that is emitted; root children are level 1
        root_name: First segment of every path
        ignore_case: Match all patterns case-insensitively
        skip_rules: Predicates that stop descent into a child
        registry: Intrinsic field names per type, used when ``exclude_default``
    """
    exclude: Tuple[str, ...] = DEFAULT_EXCLUDE
    exclude_default: bool = True
    include: Optional[Tuple[str, ...]] = None
    value: Optional[Tuple[str, ...]] = None
    max_depth: int = DEFAULT_MAX_DEPTH
    root_name: str = ROOT_NAME
    ignore_case: bool = False
    skip_rules: Tuple[Any, ...] = DEFAULT_SKIP_RULES
    registry: DefaultPropertyRegistry = field(default=default_registry, compare=False, repr=False)

    _exclude_patterns: Tuple[Pattern, ...] = field(init=False, repr=False, compare=False)
    _include_patterns: Optional[Tuple[Pattern, ...]] = field(init=False, repr=False, compare=False)
    _value_patterns: Optional[Tuple[Pattern, ...]] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        if isinstance(self.max_depth, bool) or not isinstance(self.max_depth, int):
            raise InvalidArgumentError(f"max_depth must be an integer, got {self.max_depth!r}")
        if self.max_depth < 1:
            raise InvalidArgumentError(f"max_depth must be at least 1, got {self.max_depth}")
        if not isinstance(self.root_name, str):
            raise InvalidArgumentError("root_name must be a string")

        exclude = _as_tuple(self.exclude)
        include = _as_tuple(self.include) or None
        value = _as_tuple(self.value) or None
        object.__setattr__(self, "exclude", exclude if exclude is not None else ())
        object.__setattr__(self, "include", include)
        object.__setattr__(self, "value", value)
        object.__setattr__(self, "skip_rules", tuple(self.skip_rules or ()))

        object.__setattr__(self, "_exclude_patterns",
                           compile_patterns(self.exclude, self.ignore_case, "exclude"))
        object.__setattr__(self, "_include_patterns",
                           compile_patterns(self.include, self.ignore_case, "include"))
        object.__setattr__(self, "_value_patterns",
                           compile_patterns(self.value, self.ignore_case, "value"))

    def default_names(self, value: Any) -> FrozenSet[str]:
        if not self.exclude_default:
            return frozenset()
        return self.registry.names_for(value)

    def is_excluded(self, name: str, default_names: FrozenSet[str] = frozenset()) -> bool:
        return name in default_names or matches_any(self._exclude_patterns, name)

    def accepts(self, name: str, value: Any) -> bool:
        """Whether a surviving child passes the include and value filters."""
        if self._include_patterns is not None and not matches_any(self._include_patterns, name):
            return False
        if self._value_patterns is not None and not matches_any(self._value_patterns, _value_text(value)):
            return False
        return True


def _value_text(value: Any) -> str:
    try:
        return str(value)
    except Exception as e:
        logger.debug(f"Cannot render {type(value).__name__} for value matching: {e}")
        return ""


def resolve_config(config: Optional[FlattenConfig], options: Dict[str, Any]) -> FlattenConfig:
    if config is not None and options:
        raise InvalidArgumentError("Pass either a FlattenConfig or keyword options, not both")
    if config is not None:
        if not isinstance(config, FlattenConfig):
            raise InvalidArgumentError(f"Expected FlattenConfig, got {type(config).__name__}")
        return config
    try:
        return FlattenConfig(**options)
    except TypeError as e:
        raise InvalidArgumentError(str(e)) from e


def flatten(root: Any, config: Optional[FlattenConfig] = None, **options) -> Dict[str, Any]:
    """
    Recursively flatten an object graph into a single-level mapping.

    Keys are access paths from the root (``root.catalog.book[0].author``),
    values are the objects found there. Composite values are emitted as
    their own entry and then descended into, so both ``root.b`` and
    ``root.b.c`` appear for ``b`` holding a record with field ``c``.

    Args:
        root: Any value; records, maps, sequences and scalars are all accepted
        config: Flatten settings; built from ``options`` when omitted
        **options: FlattenConfig fields (exclude, include, value, max_depth, ...)

    Returns:
        Dictionary of path -> value in traversal order

    Raises:
        InvalidArgumentError: If the configuration is malformed

    Examples:
        >>> from types import SimpleNamespace
        >>> flatten(SimpleNamespace(a=1, items=[10, 20]))
        {'root.a': 1, 'root.items': [10, 20], 'root.items[0]': 10, 'root.items[1]': 20}

        >>> flatten(SimpleNamespace(data={'k1': 'v1'}), include=['k1'])
        {"root.data['k1']": 'v1'}
    """
    config = resolve_config(config, options)
    result: Dict[str, Any] = {}
    _walk(root, classify(root), config.root_name, 0, (id(root),), config, result)
    logger.debug(f"Flattened {type(root).__name__} into {len(result)} entries")
    return result


def flatten_all(roots: Iterable[Any], config: Optional[FlattenConfig] = None,
                **options) -> List[Dict[str, Any]]:
    """Flatten each root independently, one result per root."""
    config = resolve_config(config, options)
    return [flatten(root, config) for root in roots]


def _walk(value: Any, kind: NodeKind, path: str, depth: int, ancestors: Tuple[int, ...],
          config: FlattenConfig, result: Dict[str, Any]) -> None:
    try:
        children = list(iter_children(value, kind))
    except IntrospectionFailure as e:
        logger.debug(f"Treating {path} as a leaf: {e}")
        return

    default_names = config.default_names(value)
    child_depth = depth + 1

    for child in children:
        if child.access is not Access.INDEX and config.is_excluded(child.name, default_names):
            continue

        path_of_child = child_path(path, child)
        if child_depth <= config.max_depth and config.accepts(child.name, child.value):
            result[path_of_child] = child.value

        if child_depth >= config.max_depth or child.value is None:
            continue
        rule = first_matching_rule(config.skip_rules, child.name, child.value, value)
        if rule is not None:
            logger.debug(f"Not descending into {path_of_child}: {getattr(rule, 'name', rule)}")
            continue
        if id(child.value) in ancestors:
            logger.debug(f"Not descending into {path_of_child}: refers to an ancestor")
            continue

        child_kind = classify(child.value)
        if child_kind is NodeKind.SCALAR:
            continue
        _walk(child.value, child_kind, path_of_child, child_depth,
              ancestors + (id(child.value),), config, result)
