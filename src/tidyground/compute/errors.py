"""Errors raised by the compute engine nodes.

Every error is fatal to the plan being executed: nodes raise
them as soon as the problem is detected and they propagate
unchanged to whoever is consuming the batches.

All errors inherit from :class:`ReshapeError` so that callers
can handle any failure of a reshaping plan in a single place,
like the ``tidyground-reshape`` command does.
"""

__all__ = (
    "ReshapeError",
    "InvalidFieldType",
    "MalformedInput",
    "UnknownColumn",
    "UnknownColumnRange",
    "DuplicateColumn",
    "IOFailure",
)


class ReshapeError(Exception):
    """Base class for all errors raised while executing a plan."""


class InvalidFieldType(ReshapeError):
    """A column holds data of a type the node can't work with.

    For example splitting a numeric column on a delimiter,
    or summing a text column.
    """

    def __init__(self, column: str, actual_type: object, expected: str) -> None:
        self.column = column
        self.actual_type = actual_type
        self.expected = expected
        super().__init__(
            f"Column {column!r} is of type {actual_type}, expected {expected}"
        )


class MalformedInput(ReshapeError):
    """The source data can't be parsed as a table."""

    def __init__(self, source: str, reason: str) -> None:
        self.source = source
        self.reason = reason
        super().__init__(f"Unable to parse {source}: {reason}")


class UnknownColumn(ReshapeError):
    """A referenced column doesn't exist in the data."""

    def __init__(self, column: str, available: list[str]) -> None:
        self.column = column
        self.available = available
        super().__init__(
            f"Column {column!r} does not exist, available columns are {available}"
        )


class UnknownColumnRange(UnknownColumn):
    """A boundary of a column range doesn't exist in the data.

    As columns like indicators are generated from the data itself,
    this usually means that the token used as a boundary never
    appeared in the source.
    """

    def __init__(self, column: str, available: list[str]) -> None:
        super().__init__(column, available)
        self.args = (
            f"Column range boundary {column!r} does not exist, "
            f"available columns are {available}",
        )


class DuplicateColumn(ReshapeError):
    """A node would generate a column whose name is already taken."""

    def __init__(self, column: str) -> None:
        self.column = column
        super().__init__(f"Column {column!r} already exists")


class IOFailure(ReshapeError):
    """Reading the source or writing the destination failed."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"I/O failure on {path}: {reason}")
