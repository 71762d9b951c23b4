"""
Lazily expanded tree model over an object graph.

ObjectNode is the non-visual counterpart of a tree widget: each node knows its
value, name, path and depth, and computes its children only when they are
first asked for. Children follow the same naming, exclusion and skip rules as
flatten(), without the depth limit.
"""

import logging
from typing import Any, Iterator, List, Optional

from .classify import Access, Child, NodeKind, classify, iter_children
from .errors import IntrospectionFailure, InvalidArgumentError
from .flattener import FlattenConfig
from .paths import child_path
from .recursion_rules import first_matching_rule

logger = logging.getLogger(__name__)

_LABEL_VALUE_WIDTH = 60


class ObjectNode:
    """One position in an object graph."""

    def __init__(self, value: Any, name: Optional[str] = None, path: Optional[str] = None,
                 depth: int = 0, parent: Optional["ObjectNode"] = None,
                 config: Optional[FlattenConfig] = None, access: Access = Access.FIELD):
        self.config = config or FlattenConfig()
        self.value = value
        self.name = name if name is not None else self.config.root_name
        self.path = path if path is not None else self.name
        self.depth = depth
        self.parent = parent
        self.access = access
        self.kind = classify(value)
        self._children: Optional[List["ObjectNode"]] = None

    def __repr__(self):
        return f"ObjectNode({self.path!r}, kind={self.kind.value})"

    @property
    def is_expandable(self) -> bool:
        """Whether this node may have children; they are not computed here."""
        return self.kind is not NodeKind.SCALAR and not self._blocked()

    @property
    def is_expanded(self) -> bool:
        return self._children is not None

    @property
    def children(self) -> List["ObjectNode"]:
        return self.expand()

    @property
    def label(self) -> str:
        text = repr(self.value)
        if len(text) > _LABEL_VALUE_WIDTH:
            text = text[:_LABEL_VALUE_WIDTH - 3] + "..."
        return f"{self.name}: {type(self.value).__name__} = {text}"

    def expand(self) -> List["ObjectNode"]:
        """Compute the children once and cache them."""
        if self._children is None:
            self._children = self._load_children()
            logger.debug(f"Expanded {self.path} into {len(self._children)} children")
        return self._children

    def collapse(self) -> None:
        """Drop cached children; the next access enumerates again."""
        self._children = None

    def refresh(self) -> List["ObjectNode"]:
        self.kind = classify(self.value)
        self.collapse()
        return self.expand()

    def walk(self, max_depth: Optional[int] = None) -> Iterator["ObjectNode"]:
        """
        Yield this node and its descendants in pre-order.

        Args:
            max_depth: Deepest relative level to visit; None walks until the
                graph runs out (ancestor references are never re-entered)
        """
        if max_depth is not None and max_depth < 0:
            raise InvalidArgumentError("max_depth must not be negative")
        yield from self._walk(max_depth)

    def _walk(self, remaining: Optional[int]) -> Iterator["ObjectNode"]:
        yield self
        if remaining == 0:
            return
        for child in self.children:
            yield from child._walk(None if remaining is None else remaining - 1)

    def find(self, path: str) -> Optional["ObjectNode"]:
        """Find a descendant by its full path, expanding only along the way."""
        if path == self.path:
            return self
        if not path.startswith(self.path):
            return None
        for child in self.children:
            if path == child.path or path.startswith(child.path + ".") \
                    or path.startswith(child.path + "["):
                found = child.find(path)
                if found is not None:
                    return found
        return None

    def ancestors(self) -> Iterator["ObjectNode"]:
        node = self.parent
        while node is not None:
            yield node
            node = node.parent

    def _blocked(self) -> bool:
        if self.parent is None:
            return False
        if first_matching_rule(self.config.skip_rules, self.name, self.value, self.parent.value):
            return True
        return any(node.value is self.value for node in self.ancestors())

    def _load_children(self) -> List["ObjectNode"]:
        if not self.is_expandable:
            return []
        try:
            children = list(iter_children(self.value, self.kind))
        except IntrospectionFailure as e:
            logger.debug(f"Treating {self.path} as a leaf: {e}")
            return []

        default_names = self.config.default_names(self.value)
        return [
            self._make_child(child)
            for child in children
            if child.access is Access.INDEX or not self.config.is_excluded(child.name, default_names)
        ]

    def _make_child(self, child: Child) -> "ObjectNode":
        return ObjectNode(
            child.value,
            name=child.name,
            path=child_path(self.path, child),
            depth=self.depth + 1,
            parent=self,
            config=self.config,
            access=child.access,
        )
