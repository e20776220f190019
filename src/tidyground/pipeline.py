"""Reshaping pipelines described by their configuration.

A :class:`ReshapePipeline` gathers everything needed to turn
a table with multi-value text columns into its wide form:
which columns to spread, how to split them and which
row summaries to compute on the resulting indicator columns.

The pipeline always runs the steps in the same order:
all the spreads in the order they were provided, followed by all
the row sums in the order they were provided. That way a row sum
can refer to the indicator columns generated by any spread::

    pipeline = ReshapePipeline(
        "SAFI_clean.csv",
        spreads=[
            Spread("items_owned", missing_column="no_listed_items"),
            Spread("months_lack_food"),
        ],
        row_sums=[
            RowSum("number_months_lack_food", "Apr", "Sept"),
            RowSum("number_items", "bicycle", "television"),
        ],
    )
    pipeline.write_csv("interviews_plotting.csv")
"""

import logging

import pyarrow as pa

from .compute.base import QueryPlanNode
from .dataframe import Dataframe

log = logging.getLogger(__name__)


class Spread:
    """Configuration to spread one multi-value column into indicator columns.

    See :meth:`tidyground.dataframe.Dataframe.spread` for the
    meaning of each option.
    """

    def __init__(
        self,
        column: str,
        delimiter: str = ";",
        missing_column: str | None = None,
        value_column: str | None = None,
        keep_source: bool = True,
        trim: bool = False,
        keep_empty: bool = True,
        sort_columns: bool = True,
    ) -> None:
        self.column = column
        self.delimiter = delimiter
        self.missing_column = missing_column
        self.value_column = value_column
        self.keep_source = keep_source
        self.trim = trim
        self.keep_empty = keep_empty
        self.sort_columns = sort_columns

    def __str__(self) -> str:
        return f"Spread({self.column!r}, delimiter={self.delimiter!r}, missing_column={self.missing_column!r})"

    __repr__ = __str__

    def apply(self, df: Dataframe) -> Dataframe:
        return df.spread(
            self.column,
            delimiter=self.delimiter,
            missing_column=self.missing_column,
            value_column=self.value_column,
            keep_source=self.keep_source,
            trim=self.trim,
            keep_empty=self.keep_empty,
            sort_columns=self.sort_columns,
        )


class RowSum:
    """Configuration of a summary column counting values between two columns."""

    def __init__(self, name: str, start: str, end: str) -> None:
        """
        :param name: Name of the new column.
        :param start: First column to sum.
        :param end: Last column to sum, included.
        """
        self.name = name
        self.start = start
        self.end = end

    @classmethod
    def parse(cls, text: str) -> "RowSum":
        """Parse a ``name=start:end`` definition.

        >>> RowSum.parse("number_items=bicycle:television")
        RowSum('number_items', 'bicycle', 'television')
        """
        name, sep, span = text.partition("=")
        start, sep2, end = span.partition(":")
        if not (sep and sep2 and name and start and end):
            raise ValueError(f"Invalid row sum {text!r}, expected NAME=START:END")
        return cls(name, start, end)

    def __str__(self) -> str:
        return f"RowSum({self.name!r}, {self.start!r}, {self.end!r})"

    __repr__ = __str__

    def apply(self, df: Dataframe) -> Dataframe:
        return df.row_sums(self.name, self.start, self.end)


class ReshapePipeline:
    """Spread multi-value columns and summarise the resulting indicators.

    The source can be a path to a CSV file, an in-memory
    :class:`pyarrow.Table` or any plan node.
    Any failure aborts the whole pipeline and is raised
    as a :class:`tidyground.compute.ReshapeError`.
    """

    def __init__(
        self,
        source: str | pa.Table | QueryPlanNode,
        spreads: list[Spread],
        row_sums: list[RowSum] | None = None,
        na: str | None = "NULL",
    ) -> None:
        """
        :param source: Where to read the data from.
        :param spreads: The multi-value columns to spread, in order.
        :param row_sums: The summary columns to append, in order.
        :param na: Text marking missing cells when reading a CSV file.
        """
        self.source = source
        self.spreads = spreads
        self.row_sums = row_sums or []
        self.na = na

    def __str__(self) -> str:
        return f"ReshapePipeline(spreads={self.spreads}, row_sums={self.row_sums})"

    def dataframe(self) -> Dataframe:
        """Build the lazy dataframe that performs the pipeline."""
        if isinstance(self.source, str):
            df = Dataframe.open_csv(self.source, na=self.na)
        else:
            df = Dataframe(self.source)

        for step in [*self.spreads, *self.row_sums]:
            df = step.apply(df)
        return df

    def plan(self) -> QueryPlanNode:
        """The plan node emitting the reshaped data."""
        return self.dataframe().node

    def execute(self) -> pa.Table:
        """Run the pipeline and return the reshaped data."""
        log.info("Running %s", self)
        table = self.dataframe().to_arrow()
        log.info("Reshaped into %d rows and %d columns", table.num_rows, table.num_columns)
        return table

    def write_csv(self, filename: str) -> int:
        """Run the pipeline and store the reshaped data in a CSV file."""
        log.info("Running %s", self)
        num_rows = self.dataframe().write_csv(filename)
        log.info("Wrote %d rows to %s", num_rows, filename)
        return num_rows
