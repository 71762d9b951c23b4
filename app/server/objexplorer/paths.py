"""Path string construction for traversal nodes."""

from .classify import Access, Child
from .constants import (
    FIELD_DELIMITER,
    IDENTIFIER_PATTERN,
    INDEX_TEMPLATE,
    KEY_TEMPLATE,
    QUOTED_FIELD_TEMPLATE,
)


def quote_text(text: str) -> str:
    """Escape backslashes and single quotes for a quoted path segment."""
    return text.replace("\\", "\\\\").replace("'", "\\'")


def format_segment(name: str, access: Access) -> str:
    """
    Format one path segment.

    Examples:
        >>> format_segment('author', Access.FIELD)
        '.author'
        >>> format_segment('owner-link', Access.FIELD)
        ".'owner-link'"
        >>> format_segment('0', Access.INDEX)
        '[0]'
        >>> format_segment('k1', Access.KEY)
        "['k1']"
        >>> print(format_segment("it's", Access.KEY))
        ['it\\'s']
    """
    if access is Access.INDEX:
        return INDEX_TEMPLATE.format(index=name)
    if access is Access.KEY:
        return KEY_TEMPLATE.format(key=quote_text(name))
    if IDENTIFIER_PATTERN.match(name):
        return FIELD_DELIMITER + name
    return FIELD_DELIMITER + QUOTED_FIELD_TEMPLATE.format(name=quote_text(name))


def child_path(parent_path: str, child: Child) -> str:
    return parent_path + format_segment(child.name, child.access)
