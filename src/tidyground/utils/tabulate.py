"""Format tabular data into a text table for print.

the `tabulate` function takes a `pyarrow.RecordBatch` or `pyarrow.Table`
and formats it into a text table.
It will truncate long strings, format floats to 2 decimal places,
write booleans the same way they are exported to CSV and limit the number of rows to display.

Example:

    >>> import pyarrow as pa
    >>> data = {
    ...     "village": ["God", "Chirodzo", "Ruaca"],
    ...     "bicycle": [True, False, None],
    ...     "number_items": [2, 0, 1],
    ... }
    >>> table = pa.RecordBatch.from_pydict(data)
    >>> print(tabulate(table))
    village  | bicycle | number_items
    -------- | ------- | ------------
    God      | TRUE    | 2
    Chirodzo | FALSE   | 0
    Ruaca    |         | 1
"""

from typing import Any

import pyarrow as pa


def tabulate(data: pa.RecordBatch | pa.Table, max_rows: int = 20) -> str:
    """Format a RecordBatch into a text table."""
    cols = data.column_names
    rows = [
        [format_value(row[c]) for c in cols]
        for row in data.slice(length=max_rows).to_pylist()
    ]

    colsizes = compute_max_colsize(cols, rows)
    header = [maketablerow(cols, colsizes=colsizes)]
    separator = [maketablerow(["-"] * len(cols), colsizes=colsizes, fillvalue="-")]
    textrows = [maketablerow(row, colsizes=colsizes) for row in rows]

    table = "\n".join(header + separator + textrows)
    if data.num_rows > max_rows:
        table += f"\n... and {data.num_rows - max_rows} more rows"
    return table


def compute_max_colsize(cols: list[str], rows: list[list[str]]) -> list[int]:
    """Compute the maximum size of each column in a table."""
    return [
        max([len(row[colidx]) for row in rows] + [len(cols[colidx])])
        for colidx, _ in enumerate(cols)
    ]


def maketablerow(cols: list[str], colsizes: list[int], fillvalue: str = " ") -> str:
    """Make a table row with the given column sizes.

    Trailing padding is stripped, so the last column never ends with spaces.
    """
    return " | ".join(
        [col.ljust(colsizes[idx], fillvalue) for idx, col in enumerate(cols)]
    ).rstrip(" ")


def format_value(v: Any) -> str:
    """Format a value to be printed in the table.

    Missing values are left blank, booleans are ``TRUE``/``FALSE``,
    floats have 2 decimal places and long strings are truncated.
    """
    if v is None:
        return ""
    elif isinstance(v, bool):
        return "TRUE" if v else "FALSE"
    elif isinstance(v, float):
        return f"{v:.2f}"

    v = str(v)
    if len(v) > 30:
        v = v[:27] + "..."
    return v
