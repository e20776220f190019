"""Query plan nodes that perform sorting of data.

Summaries are easier to inspect when sorted,
for example by the number of interviews in each village
or by the smallest household of each group.

This module implements the sorting capabilities.
"""

import logging

import pyarrow as pa

from .base import QueryPlanNode
from .errors import UnknownColumn

log = logging.getLogger(__name__)


class SortNode(QueryPlanNode):
    """Sort data in-memory based on one or more columns.

    The node expects a list of columns and a list of
    sort directions. The data will be sorted based on
    the columns in the order they are provided.

    The sort directions are used to specify if the
    sorting should be ascending or descending.
    Missing values always come last and rows with
    the same values keep their order.

    >>> import pyarrow as pa
    >>> from tidyground.compute import PyArrowTableDataSource
    >>> data = pa.record_batch({"no_membrs": [3, 7, 10, 2]})
    >>> # Sort the data in descending order
    >>> sort = SortNode(["no_membrs"], [True], PyArrowTableDataSource(data))
    >>> next(sort.batches())
    pyarrow.RecordBatch
    no_membrs: int64
    ----
    no_membrs: [10,7,3,2]
    """

    def __init__(
        self, keys: list[str], descending: list[bool], child: QueryPlanNode
    ) -> None:
        """
        :param keys: The columns to sort by in the order they should be sorted.
        :param descending: If each columns should be sorted in a descending order.
        :param child: The node emitting the data to be sorted.
        """
        if len(keys) != len(descending):
            raise ValueError("Keys and descending must have the same length")

        self.sorting = list(
            zip(keys, ("descending" if desc else "ascending" for desc in descending))
        )
        self.child = child

    def __str__(self) -> str:
        return f"SortNode(sorting={self.sorting}, {self.child})"

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        """The sorting to the child node.

        Batches provided by child node are accumulated
        until they are all loaded in memory, than they
        are merged and sorted as an unique table.
        """
        batches = list(self.child.batches())
        if not batches:
            return

        names = batches[0].schema.names
        for key, _ in self.sorting:
            if key not in names:
                raise UnknownColumn(key, names)

        # Converting batches to a table is a zero-copy operation
        # and the table keeps them as chunks of its columns.
        table = pa.Table.from_batches(batches)
        table = table.sort_by(self.sorting)
        log.debug("Sorted %d rows by %s", table.num_rows, self.sorting)
        sorted_batches = table.combine_chunks().to_batches()
        if not sorted_batches:
            # Keep emitting the columns even when there are no rows.
            sorted_batches = [pa.RecordBatch.from_pylist([], schema=table.schema)]
        yield from sorted_batches
