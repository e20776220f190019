"""Expressions executed by compute engine nodes.

Projections need an expression that computes the values
of the new column, for example the year of a date
or the ratio between two columns.

Summaries over the columns generated by a pivot need
an expression that works on a span of columns whose
names are only known once the data is available.

This module implements both.
"""

import functools
import logging

import pyarrow as pa
import pyarrow.compute as pc

from .base import ColumnRange, Expression
from .errors import InvalidFieldType

log = logging.getLogger(__name__)


def apply_expression_if_needed(batch: pa.RecordBatch, o: Expression | pa.Array) -> pa.Array:
    """Invoke Apply on expressions when needed

    If the provided object is an Expression,
    it will be applied to the target batch.

    Otherwise it will treat it as if it's
    already the result of an expression
    or a literal value.
    """
    if isinstance(o, Expression):
        o = o.apply(batch)
    return o


class FunctionCallExpression(Expression):
    """Call a compute function on its arguments.

    Given a compute function, and a set of arguments
    (other expressions, literals or data), execute
    the function on the provided arguments and return
    the resulting data.

    For example to extract the year of the interview date::

        FunctionCallExpression(pyarrow.compute.year, ColumnRef("interview_date"))
    """

    def __init__(self, func: callable, *args: Expression) -> None:
        """
        :param func: The function accepting the arguments.
        :param *args: The arguments for the function.
        """
        self.func = func
        self.args = args

    def __str__(self) -> str:
        func_name = f"{self.func.__module__}.{self.func.__name__}"
        return f"{func_name}({','.join(map(str, self.args))})"

    __repr__ = __str__

    def apply(self, batch: pa.RecordBatch) -> pa.Array:
        """Invoke the function resolving all arguments on the recordbatch."""
        args = tuple(apply_expression_if_needed(batch, arg) for arg in self.args)
        return self.func(*args)


class RowSumExpression(Expression):
    """Sum, for each row, the values of a span of columns.

    Boolean columns count as ``1`` when true and ``0``
    when false, so on indicator columns this is the number
    of indicators that are set.
    Numeric columns are summed as they are.
    A missing value in any of the columns makes the
    sum of that row missing too.

    For example, given::

        id, bicycle, radio, television
        1,  true,    true,  false
        2,  false,   false, true

    ``RowSumExpression(ColumnRange("bicycle", "television"))``
    results in ``[2, 1]``.
    """

    def __init__(self, columns: ColumnRange) -> None:
        """
        :param columns: The span of columns to sum.
        """
        self.columns = columns

    def __str__(self) -> str:
        return f"RowSum({self.columns})"

    __repr__ = __str__

    def apply(self, batch: pa.RecordBatch) -> pa.Array:
        """Resolve the span on the batch schema and sum its columns."""
        names = self.columns.resolve(batch.schema)
        log.debug("Summing columns %s", names)
        return functools.reduce(pc.add, (self._summable(batch, n) for n in names))

    def _summable(self, batch: pa.RecordBatch, name: str) -> pa.Array:
        values = batch.column(name)
        if pa.types.is_boolean(values.type):
            return values.cast(pa.int64())
        if pa.types.is_integer(values.type) or pa.types.is_floating(values.type):
            return values
        raise InvalidFieldType(name, values.type, "boolean or numeric")
