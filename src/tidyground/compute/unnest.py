"""Query plan nodes that unnest lists into rows.

After a multi-value column was split into lists of tokens,
unnesting the lists moves the data to the "long" form:
one row for each (row, token) pair.

For example, given::

    id, items
    1,  [bicycle, radio]
    2,  [television]

unnesting ``items`` leads to::

    id, items,      items_logical
    1,  bicycle,    true
    1,  radio,      true
    2,  television, true

which is the explicit row -> token relationship
that was flattened in the original text cell.
The ``items_logical`` flag is what a following
:class:`tidyground.compute.PivotNode` spreads into
indicator columns.
"""

import logging

import pyarrow as pa
import pyarrow.compute as pc

from .base import QueryPlanNode
from .errors import DuplicateColumn, InvalidFieldType, UnknownColumn

log = logging.getLogger(__name__)


class UnnestNode(QueryPlanNode):
    """Emit one row for each element of a list column.

    All other columns are repeated for each element,
    the list column is replaced by the element itself and
    a new boolean ``flag`` column is appended.

    Rows whose list is empty have nothing to unnest.
    When ``keep_empty`` is set they are emitted once with a
    missing element and the flag set to ``false``, so that they
    are still there after a pivot, otherwise they are dropped.
    """

    def __init__(
        self,
        column: str,
        flag: str,
        child: QueryPlanNode,
        keep_empty: bool = True,
    ) -> None:
        """
        :param column: The list column to unnest.
        :param flag: Name of the boolean column marking the element as present.
        :param child: The node emitting the data to unnest.
        :param keep_empty: Preserve rows with empty lists.
        """
        self.column = column
        self.flag = flag
        self.child = child
        self.keep_empty = keep_empty

    def __str__(self) -> str:
        return f"UnnestNode({self.column!r}, flag={self.flag!r}, keep_empty={self.keep_empty}, {self.child})"

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        """Unnest the list column of each batch emitted by the child node."""
        for batch in self.child.batches():
            names = batch.schema.names
            if self.column not in names:
                raise UnknownColumn(self.column, names)
            if self.flag in names:
                raise DuplicateColumn(self.flag)

            tokens = batch.column(self.column)
            if not pa.types.is_list(tokens.type):
                raise InvalidFieldType(self.column, tokens.type, "list")

            if self.keep_empty:
                # Give empty lists a single missing element,
                # so their row gets emitted once like any other.
                lengths = pc.fill_null(pc.list_value_length(tokens), 0)
                empty = pc.equal(lengths, 0)
                tokens = pc.if_else(empty, pa.scalar([None], tokens.type), tokens)

            # For each element, the index of the row it came from.
            parents = pc.list_parent_indices(tokens)
            elements = pc.list_flatten(tokens)
            if self.keep_empty:
                present = pc.invert(pc.take(empty, parents))
            else:
                present = pa.repeat(pa.scalar(True), len(parents))

            columns = [
                elements if name == self.column else batch.column(name).take(parents)
                for name in names
            ]
            expanded = pa.record_batch(columns + [present], names=names + [self.flag])

            log.debug(
                "Unnested %d rows of %r into %d rows",
                batch.num_rows,
                self.column,
                expanded.num_rows,
            )
            yield expanded
