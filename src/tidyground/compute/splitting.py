"""Query plan nodes that split multi-value text cells.

Survey data frequently stores multiple answers in a single
cell, joined by a delimiter, like ``"bicycle;radio;cow_cart"``.
That is a one-to-many relationship flattened into text.

Splitting the cells is the first step to turn those
answers into something that can be analysed: each
cell becomes a list of tokens that can later be
unnested with :class:`tidyground.compute.UnnestNode`.
"""

import logging
import re

import pyarrow as pa
import pyarrow.compute as pc

from .base import QueryPlanNode
from .errors import DuplicateColumn, InvalidFieldType, UnknownColumn

log = logging.getLogger(__name__)


class SplitNode(QueryPlanNode):
    """Split a text column into a list of tokens for each row.

    Empty and missing cells contain no tokens, unless
    ``keep_missing`` is set, in which case a missing cell
    results in a single missing token. That allows the
    following steps to tell apart rows where the answer was
    missing from rows where the answer was empty.

    A delimiter at the end of a cell doesn't start a new token,
    so ``"bicycle;"`` only contains ``"bicycle"``.

    >>> import pyarrow as pa
    >>> from tidyground.compute import PyArrowTableDataSource
    >>> data = pa.record_batch({"items_owned": ["bicycle;radio", "", None]})
    >>> next(SplitNode("items_owned", PyArrowTableDataSource(data)).batches())
    pyarrow.RecordBatch
    items_owned: list<item: string>
      child 0, item: string
    ----
    items_owned: [["bicycle","radio"],[],[]]
    """

    def __init__(
        self,
        column: str,
        child: QueryPlanNode,
        delimiter: str = ";",
        into: str | None = None,
        trim: bool = False,
        keep_missing: bool = False,
    ) -> None:
        """
        :param column: The text column to split.
        :param child: The node emitting the data to split.
        :param delimiter: The text separating tokens within a cell.
        :param into: Name of the column where to store the tokens,
                     when ``None`` the tokens replace the text column.
        :param trim: Remove leading and trailing whitespace from each token.
        :param keep_missing: Missing cells result in one missing token
                             instead of no tokens.
        """
        if not delimiter:
            raise ValueError("Delimiter must be a non empty string")

        self.column = column
        self.child = child
        self.delimiter = delimiter
        self.into = into or column
        self.trim = trim
        self.keep_missing = keep_missing

    def __str__(self) -> str:
        return (
            f"SplitNode({self.column!r}, delimiter={self.delimiter!r}, into={self.into!r}, "
            f"trim={self.trim}, keep_missing={self.keep_missing}, {self.child})"
        )

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        """Split the cells of each batch emitted by the child node."""
        for batch in self.child.batches():
            if self.column not in batch.schema.names:
                raise UnknownColumn(self.column, batch.schema.names)

            tokens = self.split(batch.column(self.column))
            if self.into == self.column:
                idx = batch.schema.get_field_index(self.column)
                batch = pa.record_batch(
                    [tokens if i == idx else c for i, c in enumerate(batch.columns)],
                    names=batch.schema.names,
                )
            elif self.into in batch.schema.names:
                raise DuplicateColumn(self.into)
            else:
                batch = batch.append_column(self.into, tokens)

            log.debug("Split %d rows of %r", batch.num_rows, self.column)
            yield batch

    def split(self, values: pa.Array) -> pa.ListArray:
        """Split each cell of ``values`` into its tokens."""
        if pa.types.is_null(values.type) or pa.types.is_large_string(values.type):
            # A null column has no cell with a value,
            # which is the same as a column of missing text.
            values = values.cast(pa.string())
        elif not pa.types.is_string(values.type):
            raise InvalidFieldType(self.column, values.type, "string")

        missing = values.is_null()

        if self.trim:
            values = pc.utf8_trim_whitespace(values)
        # Like splitting a line, a trailing delimiter ends the last token
        # instead of starting an empty one: "bicycle;" is only "bicycle".
        values = pc.replace_substring_regex(
            values, pattern=re.escape(self.delimiter) + "$", replacement=""
        )

        # Splitting an empty string would give one empty token,
        # while an empty cell is meant to have none.
        values = pc.if_else(pc.equal(values, ""), pa.scalar(None, values.type), values)
        tokens = pc.split_pattern(values, pattern=self.delimiter)

        token_values = tokens.values
        if self.trim:
            token_values = pc.utf8_trim_whitespace(token_values)

        # Rebuilding the lists from their offsets turns missing lists into empty ones.
        tokens = pa.ListArray.from_arrays(tokens.offsets, token_values)
        if self.keep_missing:
            tokens = pc.if_else(missing, pa.scalar([None], tokens.type), tokens)
        return tokens
