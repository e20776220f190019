"""Query plan nodes that implement projection of columns.

A common request when preparing data is to select specific
columns and project new columns based on expressions.
An example is ``select()`` and ``mutate()`` in dplyr.

This module implements the basic projection capabilities.
"""

import logging

import pyarrow as pa

from .base import ColumnRange, QueryPlanNode
from .errors import DuplicateColumn, UnknownColumn
from .expressions import Expression

log = logging.getLogger(__name__)


class ProjectNode(QueryPlanNode):
    """Project data by selecting specific columns and computing expressions.

    The projection expects a list of columns to select and a dictionary
    of column names and expressions to project new columns.

    Columns to select can be column names or :class:`ColumnRange`
    spans, which are resolved against the schema of each batch.

    >>> import pyarrow as pa
    >>> import pyarrow.compute as pc
    >>> from tidyground.compute import col, FunctionCallExpression, PyArrowTableDataSource
    >>> data = pa.record_batch({"no_membrs": [3, 7, 10], "rooms": [1, 1, 2]})
    >>> next(ProjectNode(["no_membrs"],
    ...                  {"people_per_room": FunctionCallExpression(pc.divide, col("no_membrs"), col("rooms"))},
    ...                  PyArrowTableDataSource(data)).batches())
    pyarrow.RecordBatch
    no_membrs: int64
    people_per_room: int64
    ----
    no_membrs: [3,7,10]
    people_per_room: [3,7,5]
    """

    def __init__(
        self,
        select: list[str | ColumnRange] | None,
        project: dict[str, Expression] | None,
        child: QueryPlanNode,
    ) -> None:
        """
        :param select: The list of columns or column ranges to select.
                       ``None`` means select all columns.
                       ``[]`` means select only the projected columns.
        :param project: The dict {name: Expression} to project new columns.
                        Expressions are applied in order, so an expression
                        can refer to a column projected before it.
        :param child: The node emitting the data to be projected.
        """
        self.select = select
        self.project = project or {}
        self.child = child

    def __str__(self) -> str:
        return f"ProjectNode(select={self.select}, project={self.project}, child={self.child})"

    def resolve_selection(self, schema: pa.Schema) -> list[str] | None:
        """Expand the selection into the list of column names to keep.

        Projected columns are always kept, after the selected ones.
        """
        if self.select is None:
            return None

        columns = []
        for entry in self.select:
            if isinstance(entry, ColumnRange):
                names = entry.resolve(schema)
            elif entry in schema.names:
                names = [entry]
            else:
                raise UnknownColumn(entry, schema.names)
            columns.extend(n for n in names if n not in columns)
        return columns + [n for n in self.project if n not in columns]

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        """Apply the projection to the child node.

        For each recordbatch yielded by the child node,
        sequentially apply the expressions to project new columns
        and then select the requested columns.
        """
        for batch in self.child.batches():
            for name, expr in self.project.items():
                if name in batch.schema.names:
                    raise DuplicateColumn(name)
                batch = batch.append_column(name, expr.apply(batch))

            restrict_columns = self.resolve_selection(batch.schema)
            if restrict_columns is not None:
                batch = batch.select(restrict_columns)

            log.debug("Projected %d rows into %s", batch.num_rows, batch.schema.names)
            yield batch
