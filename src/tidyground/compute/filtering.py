"""Query plan nodes that implement filtering of rows.

Before reshaping or summarising the data it is common
to keep only the rows of interest, like the interviews
of one village or the respondents that answered a question.

This module implements the basic filtering capabilities.
"""

import logging

import pyarrow as pa

from .base import Expression, QueryPlanNode
from .errors import InvalidFieldType

log = logging.getLogger(__name__)


class FilterNode(QueryPlanNode):
    """Filter data based on a predicate expression.

    The filter expects an expression that when applied
    to the batch of data being filtered returns ``true``
    or ``false`` for each row in the data to mark which
    rows have to be preserved and which rows have to be discarded.
    Rows where the predicate is missing are discarded.

    >>> import pyarrow as pa
    >>> import pyarrow.compute as pc
    >>> from tidyground.compute import col, FunctionCallExpression, PyArrowTableDataSource
    >>> data = pa.record_batch({"village": ["God", "Chirodzo", "Ruaca", "Chirodzo"]})
    >>> predicate = FunctionCallExpression(pc.equal, col("village"), "Chirodzo")
    >>> next(FilterNode(predicate, PyArrowTableDataSource(data)).batches())
    pyarrow.RecordBatch
    village: string
    ----
    village: ["Chirodzo","Chirodzo"]
    """

    def __init__(self, expression: Expression, child: QueryPlanNode) -> None:
        """
        :param expression: The predicate expression to filter with.
        :param child: The node emitting the data to be filtered.
        """
        self.expression = expression
        self.child = child

    def __str__(self) -> str:
        return f"FilterNode(filter={self.expression}, child={self.child})"

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        """Apply the filtering to the child node.

        For each recordbatch yielded by the child node,
        apply the expression and get back a mask
        (an array of only true/false values).

        Based on the mask filter the rows of the batch
        and return only those matching the filter.
        """
        for batch in self.child.batches():
            mask = self.expression.apply(batch)
            if not pa.types.is_boolean(mask.type):
                raise InvalidFieldType(str(self.expression), mask.type, "bool")
            filtered = batch.filter(mask)
            log.debug("Kept %d of %d rows", filtered.num_rows, batch.num_rows)
            yield filtered
