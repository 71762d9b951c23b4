"""
Constants for object flattening and path naming.

This module defines configuration constants used throughout the inspection toolkit,
particularly for turning a nested object graph into flat path strings.

Usage Patterns:
    - Record fields: order.customer.name → root.customer.name
    - Sequence elements: order.items[0] → root.items[0]
    - Map keys: order.meta["k1"] → root.meta['k1']
    - Odd field names: owner-link → root.'owner-link'

Example:
    Original nested structure (records shown as braces):
    {
        customer: {name: "John"},
        items: [10, 20],
        meta: dict(k1="v1")
    }

    Flattened structure:
    {
        "root.customer": {name: "John"},
        "root.customer.name": "John",
        "root.items": [10, 20],
        "root.items[0]": 10,
        "root.items[1]": 20,
        "root.meta": {"k1": "v1"},
        "root.meta['k1']": "v1"
    }
"""

import re

# Name given to the traversal root in every synthesized path
ROOT_NAME = "root"

# Delimiter placed before a record field name
# Example: root + customer → "root.customer"
FIELD_DELIMITER = "."

# Bracket notation for sequence indices and map keys
# Example: items + 0 → "items[0]", meta + k1 → "meta['k1']"
INDEX_TEMPLATE = "[{index}]"
KEY_TEMPLATE = "['{key}']"

# Field names containing anything outside this set get quoted: root.'owner-link'
# Backslashes and single quotes inside quoted segments are backslash-escaped
IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")
QUOTED_FIELD_TEMPLATE = "'{name}'"

# Default recursion ceiling for a flatten call
DEFAULT_MAX_DEPTH = 10

# Default exclusion list; the empty pattern only matches an empty field name
DEFAULT_EXCLUDE = ("",)

# Well-known self-referencing collection field
SYNC_ROOT_FIELD = "SyncRoot"
