"""
Object inspection toolkit.

Flatten nested object graphs into path -> value mappings, explore them as a
lazily expanded tree, and decorate objects with synthetic type names and
default display fields.

    >>> from types import SimpleNamespace
    >>> from objexplorer import flatten
    >>> flatten(SimpleNamespace(a=1, b=SimpleNamespace(c=2)), include=['a', 'c'])
    {'root.a': 1, 'root.b.c': 2}
"""

from objexplorer.classify import Access, Child, NodeKind, classify, iter_children
from objexplorer.decoration import DecoratedObject, decorate, display_fields
from objexplorer.default_properties import DefaultPropertyRegistry, default_registry
from objexplorer.errors import IntrospectionFailure, InvalidArgumentError, ObjExplorerError
from objexplorer.export import to_dataframe, write_sqlite
from objexplorer.flattener import FlattenConfig, flatten, flatten_all
from objexplorer.object_tree import ObjectNode
from objexplorer.recursion_rules import DEFAULT_SKIP_RULES, RecursionRule

__all__ = [
    # Flattening
    'FlattenConfig',
    'flatten',
    'flatten_all',
    # Classification
    'Access',
    'Child',
    'NodeKind',
    'classify',
    'iter_children',
    # Rules and registries
    'DefaultPropertyRegistry',
    'default_registry',
    'RecursionRule',
    'DEFAULT_SKIP_RULES',
    # Tree and decoration
    'ObjectNode',
    'DecoratedObject',
    'decorate',
    'display_fields',
    # Export
    'to_dataframe',
    'write_sqlite',
    # Errors
    'ObjExplorerError',
    'InvalidArgumentError',
    'IntrospectionFailure',
]

__version__ = '0.1.0'
