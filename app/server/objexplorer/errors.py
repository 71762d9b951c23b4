"""Exception types raised by the inspection toolkit."""


class ObjExplorerError(Exception):
    """Base class for all toolkit errors."""


class InvalidArgumentError(ObjExplorerError, ValueError):
    """Malformed configuration, rejected before any traversal starts."""


class IntrospectionFailure(ObjExplorerError):
    """A value's fields or keys could not be enumerated.

    Raised by the enumeration helpers and absorbed by traversal: the node is
    then treated as a leaf holding the value it already has.
    """

    def __init__(self, value, cause):
        self.value_type = type(value).__name__
        self.cause = cause
        super().__init__(f"Cannot enumerate children of {self.value_type}: {cause}")
