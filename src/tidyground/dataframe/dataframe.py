"""The Dataframe object itself."""
from typing import Self

import pyarrow as pa

from ..compute import (
    AggregateNode,
    ColumnRange,
    CSVDataSource,
    CSVSink,
    FilterNode,
    PivotNode,
    ProjectNode,
    PyArrowTableDataSource,
    RowCountAggregation,
    RowSumExpression,
    SortNode,
    SplitNode,
    UnnestNode,
)
from ..compute.aggregate import Aggregation
from ..compute.base import QueryPlanNode
from ..compute.expressions import Expression


class Dataframe:
  """Data structure that handles data in rows and columns.

  The Dataframe object allows to represent in-memory data
  and perform transformations over it.

  The tidyground dataframe object is lazy, which means that
  any transformation will be applied only when the
  ``.collect()`` method will be invoked and no data is kept
  in memory until that moment (unless it already was).
  """
  def __init__(self, node_or_table: QueryPlanNode|pa.Table) -> None:
    """
    :param node_or_table: A compute engine node expected to emit
                          the data for the dataframe or a `pyarrow.Table`.
    """
    if isinstance(node_or_table, (pa.Table, pa.RecordBatch)):
      node_or_table = PyArrowTableDataSource(node_or_table)

    if not isinstance(node_or_table, QueryPlanNode):
      raise ValueError("Invalid input, expected a QueryPlanNode or a PyArrow Table")

    self.node = node_or_table

  def __str__(self) -> str:
    return f"Dataframe({self.node})"

  @classmethod
  def open_csv(cls, filename: str, na: str|None = "NULL") -> Self:
    """Open a CSV file and create a Dataframe out of its data.

    :param filename: The path to a local CSV file.
    :param na: The text marking missing cells in the file.
               ``None`` to use the pyarrow defaults.
    """
    return cls(CSVDataSource(filename, null_values=None if na is None else [na]))

  def select(self, *columns: str|ColumnRange) -> Self:
    """Keep only some of the columns.

    :param columns: Names of the columns to keep or ranges of
                    columns like ``colrange("village", "respondent_wall_type")``.
    """
    return self.__class__(ProjectNode(list(columns), {}, self.node))

  def mutate(self, **expressions: Expression) -> Self:
    """Append new columns computed from the existing ones.

    For example ``mutate(year=FunctionCallExpression(pc.year, col("interview_date")))``
    """
    return self.__class__(ProjectNode(None, expressions, self.node))

  def filter(self, expression: Expression) -> Self:
    """Keep only the rows matching a predicate.

    :param expression: The expression representing the predicate,
                       for example ``FunctionCallExpression(pc.equal, col("village"), "Chirodzo")``.
    """
    return self.__class__(FilterNode(expression, self.node))

  def arrange(self, *columns: str, descending: bool|list[bool] = False) -> Self:
    """Sort the rows by one or more columns.

    :param columns: The columns to sort by, in order of importance.
    :param descending: Sort in descending order, either for all
                       the columns or one value for each column.
    """
    if isinstance(descending, bool):
      descending = [descending] * len(columns)
    return self.__class__(SortNode(list(columns), descending, self.node))

  def group_by(self, *keys: str) -> "GroupedDataframe":
    """Group the rows by the values of some columns.

    The groups are only useful to :meth:`GroupedDataframe.summarize` them.
    """
    return GroupedDataframe(self, list(keys))

  def count(self, *keys: str, sort: bool = False, name: str = "n") -> Self:
    """Count the rows for each combination of values of ``keys``.

    :param sort: Show the largest groups first.
    :param name: Name of the column with the counts.
    """
    df = self.group_by(*keys).summarize(**{name: RowCountAggregation()})
    if sort:
      df = df.arrange(name, descending=True)
    return df

  def spread(self, column: str, delimiter: str = ";",
             missing_column: str|None = None, value_column: str|None = None,
             keep_source: bool = True, trim: bool = False,
             keep_empty: bool = True, sort_columns: bool = True) -> Self:
    """Spread a multi-value text column into boolean indicator columns.

    Each distinct token found in the ``column`` cells becomes
    a column that is ``true`` for the rows that had the token.

    :param column: The text column holding the tokens joined by ``delimiter``.
    :param delimiter: The text separating tokens within a cell.
    :param missing_column: Name of the indicator for rows where
                           ``column`` is missing. When ``None``, those
                           rows get all indicators set to ``false``.
    :param value_column: Name of the intermediate presence flag,
                         defaults to ``{column}_logical``.
    :param keep_source: Keep the original text column in the result.
    :param trim: Strip whitespace around tokens.
    :param keep_empty: Keep rows without tokens, with all indicators ``false``.
    :param sort_columns: Add indicators in lexicographic order instead
                         of the order tokens were first seen.
    """
    key = f"split_{column}" if keep_source else column
    value = value_column or f"{column}_logical"
    node = SplitNode(column, self.node, delimiter=delimiter, into=key,
                     trim=trim, keep_missing=missing_column is not None)
    node = UnnestNode(key, value, node, keep_empty=keep_empty)
    node = PivotNode(key, value, node, missing_column=missing_column,
                     sort_columns=sort_columns)
    return self.__class__(node)

  def row_sums(self, name: str, start: str, end: str) -> Self:
    """Append a column summing for each row the columns from ``start`` to ``end``.

    On indicator columns this counts how many of them are ``true``.
    """
    return self.mutate(**{name: RowSumExpression(ColumnRange(start, end))})

  def collect(self) -> Self:
    """Collect all data of the dataframe in memory.

    Returns a new Dataframe that has all data from the
    previous dataframe eagerly loaded in memory.
    """
    return self.__class__(self.to_arrow())

  def to_arrow(self) -> pa.Table:
    """Collect all the data and return a pyarrow.Table"""
    batches = list(self.node.batches())
    if not batches:
      return pa.table({})
    return pa.Table.from_batches(batches)

  def write_csv(self, filename: str) -> int:
    """Write all the data to a CSV file.

    Returns the number of rows written.
    """
    return CSVSink(filename, self.node).write()


class GroupedDataframe:
  """A Dataframe whose rows were grouped by some columns.

  Created by :meth:`Dataframe.group_by`, it can only be summarized
  into a new Dataframe with one row for each group.
  """
  def __init__(self, df: Dataframe, keys: list[str]) -> None:
    self.df = df
    self.keys = keys

  def __str__(self) -> str:
    return f"GroupedDataframe(keys={self.keys}, {self.df})"

  def summarize(self, **aggregations: Aggregation) -> Dataframe:
    """Compute the aggregations for each group.

    For example ``summarize(mean_no_membrs=MeanAggregation("no_membrs"))``
    """
    return Dataframe(AggregateNode(self.keys, aggregations, self.df.node))
