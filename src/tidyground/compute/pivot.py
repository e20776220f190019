"""Query plan nodes that reshape data from long to wide form.

Pivoting is the inverse of unnesting: given a table with one row
for each (entity, token) pair, it produces one row for each entity
and one column for each token.

For example, given::

    id, items,      items_logical
    1,  bicycle,    true
    1,  radio,      true
    2,  television, true

pivoting ``items`` with values from ``items_logical`` leads to::

    id, bicycle, radio, television
    1,  true,    true,  false
    2,  false,   false, true

The columns of the result depend on the tokens found in the data,
so the schema of the result is only known after all the data was seen.
For this reason the pivot has to wait for its child to emit all the
batches before it can emit anything.
"""

import logging
import math

import pyarrow as pa

from .base import QueryPlanNode
from .errors import DuplicateColumn, InvalidFieldType, UnknownColumn

log = logging.getLogger(__name__)

# Stands for NaN in group keys, as NaN never equals itself.
_NAN = object()


def _group_value(value):
    if isinstance(value, float) and math.isnan(value):
        return _NAN
    return value


class PivotNode(QueryPlanNode):
    """Spread a key column into one boolean column for each distinct key.

    Rows are grouped by all columns except ``key`` and ``value``,
    two rows belong to the same group when all those columns
    have the same values, missing values being equal to each other.
    Values are compared as Python values: all ``NaN`` are equal
    to each other and ``-0.0`` is equal to ``0.0``.
    One row is emitted for each group, in the order groups were first seen.

    For each distinct key a boolean column is appended,
    set to ``true`` only when the group had a row with that key
    and a ``true`` value. Combinations that never appeared
    are ``false``, cells are never missing.

    Rows with a missing key and a ``true`` value are the rows
    where the original answer was missing; they are spread into
    the ``missing_column`` when one is provided. That column is
    always the last one and is emitted even if no answer was missing.
    Rows with a missing key and a ``false`` value only preserve their group.

    >>> import pyarrow as pa
    >>> from tidyground.compute import PyArrowTableDataSource
    >>> data = pa.record_batch({"id": [1, 1, 2], "items": ["radio", "bicycle", "radio"],
    ...                         "items_logical": [True, True, True]})
    >>> next(PivotNode("items", "items_logical", PyArrowTableDataSource(data)).batches())
    pyarrow.RecordBatch
    id: int64
    bicycle: bool
    radio: bool
    ----
    id: [1,2]
    bicycle: [true,false]
    radio: [true,true]
    """

    def __init__(
        self,
        key: str,
        value: str,
        child: QueryPlanNode,
        missing_column: str | None = None,
        sort_columns: bool = True,
    ) -> None:
        """
        :param key: The column whose values become the new columns.
        :param value: The boolean column whose values fill the new columns.
        :param child: The node emitting the long form data.
        :param missing_column: Name of the column for rows with a missing key.
        :param sort_columns: Add the new columns in lexicographic order,
                             otherwise add them in the order keys were first seen.
        """
        self.key = key
        self.value = value
        self.child = child
        self.missing_column = missing_column
        self.sort_columns = sort_columns

    def __str__(self) -> str:
        return (
            f"PivotNode(key={self.key!r}, value={self.value!r}, missing_column={self.missing_column!r}, "
            f"sort_columns={self.sort_columns}, {self.child})"
        )

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        """Collect all data from the child node and emit it pivoted.

        The groups and keys are looked up in Python
        as pyarrow grouping doesn't support all the types
        a group can be made of (like columns of only missing values).

        The wide form data is always emitted as a single batch,
        without rows when the child emitted no rows.
        Nothing is emitted when the child emitted no batches.
        """
        batches = list(self.child.batches())
        if not batches:
            return

        table = pa.Table.from_batches(batches)
        names = table.column_names
        for required in (self.key, self.value):
            if required not in names:
                raise UnknownColumn(required, names)
        if not pa.types.is_boolean(table.schema.field(self.value).type):
            raise InvalidFieldType(
                self.value, table.schema.field(self.value).type, "bool"
            )

        group_columns = [n for n in names if n not in (self.key, self.value)]

        # Assign each row to a group, groups are numbered
        # in the order they are first seen and for each group
        # we remember the first row where it appeared.
        #   groups = {(1, "Chirodzo"): 0, (2, "God"): 1}
        groups: dict[tuple, int] = {}
        first_rows: list[int] = []
        row_groups: list[int] = []
        group_values = zip(
            *(map(_group_value, table.column(n).to_pylist()) for n in group_columns)
        )
        for row_index, group_key in enumerate(group_values):
            group_id = groups.setdefault(group_key, len(groups))
            if group_id == len(first_rows):
                first_rows.append(row_index)
            row_groups.append(group_id)
        if not group_columns:
            # Without any column to group by, all rows are the same entity.
            first_rows = [0] if table.num_rows else []
            row_groups = [0] * table.num_rows

        # For each key, the groups where it is present.
        #   present = {"bicycle": {0}, "radio": {0, 1}}
        present: dict[str | None, set[int]] = {}
        keys = table.column(self.key).to_pylist()
        values = table.column(self.value).to_pylist()
        for group_id, key, value in zip(row_groups, keys, values):
            if key is not None:
                key = str(key)
            group_present = present.setdefault(key, set())
            if value is True:
                group_present.add(group_id)

        missing_present = present.pop(None, set())
        new_columns = list(present)
        if self.sort_columns:
            new_columns.sort()

        spread = [(k, present[k]) for k in new_columns]
        if self.missing_column is not None:
            spread.append((self.missing_column, missing_present))

        for column_name, _ in spread:
            if column_name in group_columns:
                raise DuplicateColumn(column_name)
        if self.missing_column is not None and self.missing_column in new_columns:
            raise DuplicateColumn(self.missing_column)

        indices = pa.array(first_rows, type=pa.int64())
        arrays = [table.column(n).take(indices).combine_chunks() for n in group_columns]
        arrays += [
            pa.array([g in groups_with_key for g in range(len(first_rows))], type=pa.bool_())
            for _, groups_with_key in spread
        ]
        result = pa.record_batch(arrays, names=group_columns + [n for n, _ in spread])

        log.debug(
            "Pivoted %d rows of %r into %d rows and %d new columns",
            table.num_rows,
            self.key,
            result.num_rows,
            len(spread),
        )
        yield result
