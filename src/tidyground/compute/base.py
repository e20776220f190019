"""Base classes and interfaces for Compute Engine

This module defines the base components that are
necessary to represent a reshaping plan and execute it.
"""

import abc
from typing import Iterator

import pyarrow as pa

from .errors import UnknownColumn, UnknownColumnRange


class QueryPlanNode(abc.ABC):
    """A node of an execution plan.

    The plan is represented as a tree of nodes.
    Each node is a step in the execution and all
    previous steps are children of the last one.

    For example spreading a multi-value column
    involves loading data, splitting the cells,
    unnesting the tokens and pivoting them::

        CSVDataSource -> SplitNode -> UnnestNode -> PivotNode

    That would be a plan where the last step
    is the pivot, and the CSVDataSource is the leaf
    at the bottom of the chain.

    Each Node accepts :class:`pyarrow.RecordBatch`
    data as its input and emits a new
    :class:`pyarrow.RecordBatch` as its output.
    Nodes never modify the batches they receive,
    they always emit new ones.

    The base `QueryPlanNode` class does nothing
    and purely acts as the interface that all nodes
    must implement. Actual work will be done
    in the subclasses.

    For example a simple node that takes data
    and just forwards it as is after printing
    its content can be implemented as::

        class DebugDataNode(QueryPlanNode):
            def __init__(self, child):
                self.child = child

            def batches(self):
                for b in self.child.batches():
                    print(b)
                    yield b

            def __str__(self):
                return f"DebugDataNode()"
    """

    RecordBatchesGenerator = Iterator[pa.RecordBatch]

    @abc.abstractmethod
    def batches(self) -> RecordBatchesGenerator:
        """Emits the batches for the next node.

        Usually this happens by consuming data from its
        child nodes, transforming it somehow, and yielding
        it back to the next consumer.
        """
        ...

    @abc.abstractmethod
    def __str__(self) -> str:
        """Human readable representation of the node."""
        ...


class Expression(abc.ABC):
    """Expression to apply to a RecordBatch.

    Expressions are some form of operation that
    has to be applied to the data of a :class:`pyarrow.RecordBatch`
    to create new data.

    As our engine is Column Major, applying an expression
    always results in a new column, thus in a
    :class:`pyarrow.Array` that contains the data
    for that column.
    """

    @abc.abstractmethod
    def apply(self, batch: pa.RecordBatch) -> pa.Array:
        """Apply the expression to a RecordBatch."""
        ...

    @abc.abstractmethod
    def __str__(self) -> str:
        """Human readable representation of the expression."""
        ...


class ColumnRef(Expression):
    """References a column in a record batch.

    When applied to a record batch returns the data for
    the referenced column.
    """

    def __init__(self, name: str) -> None:
        """
        :param name: The name of the column being referenced.
        """
        self.name = name

    def apply(self, batch: pa.RecordBatch) -> pa.Array:
        """Get the data for the column."""
        if self.name not in batch.schema.names:
            raise UnknownColumn(self.name, batch.schema.names)
        return batch.column(self.name)

    def __str__(self) -> str:
        return f"ColumnRef({self.name})"


class ColumnRange:
    """References a contiguous span of columns.

    The span goes from ``start`` to ``end`` both included,
    following the order of the columns in the schema.
    It is the equivalent of ``Apr:Sept`` in a ``select``.

    Columns are looked up only when the range is resolved
    against a schema, as the columns generated by a pivot
    depend on the data and are not known in advance.

    >>> import pyarrow as pa
    >>> schema = pa.schema([("id", pa.int64()), ("Apr", pa.bool_()),
    ...                     ("Aug", pa.bool_()), ("Sept", pa.bool_())])
    >>> ColumnRange("Apr", "Sept").resolve(schema)
    ['Apr', 'Aug', 'Sept']
    """

    def __init__(self, start: str, end: str) -> None:
        """
        :param start: The name of the first column of the span.
        :param end: The name of the last column of the span.
        """
        self.start = start
        self.end = end

    def resolve(self, schema: pa.Schema) -> list[str]:
        """Get the names of the columns in the span.

        When ``end`` comes before ``start`` the same span
        is returned in reverse order.
        """
        names = schema.names
        for boundary in (self.start, self.end):
            if boundary not in names:
                raise UnknownColumnRange(boundary, names)

        start_idx = names.index(self.start)
        end_idx = names.index(self.end)
        if start_idx <= end_idx:
            return names[start_idx : end_idx + 1]
        return names[end_idx : start_idx + 1][::-1]

    def __str__(self) -> str:
        return f"ColumnRange({self.start}:{self.end})"

    __repr__ = __str__


col = ColumnRef
colrange = ColumnRange
