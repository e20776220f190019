"""Sinks that store the data emitted by a plan.

Sinks are the opposite of data sources: they consume
the batches emitted by the last node of a plan
and persist them somewhere.

They are not plan nodes themselves, as nothing can
consume data after it has been stored.
"""

import csv
import logging
import os

import pyarrow as pa
import pyarrow.compute as pc

from .base import QueryPlanNode
from .errors import IOFailure

log = logging.getLogger(__name__)


class CSVSink:
    """Write the data emitted by a plan to a CSV file.

    The file starts with a header naming every column,
    boolean values are written as ``TRUE`` and ``FALSE``,
    missing values are written as empty fields and text
    is quoted only when it contains a comma, a quote or
    a line break.

    All the data is computed before the file is opened,
    so an error in the plan never leaves a truncated file behind.
    A file that failed while being written is removed.
    """

    def __init__(self, filename: str, child: QueryPlanNode) -> None:
        """
        :param filename: The path of the CSV file to write.
        :param child: The node emitting the data to write.
        """
        self.filename = filename
        self.child = child

    def __str__(self) -> str:
        return f"CSVSink({self.filename}, {self.child})"

    @staticmethod
    def format_batch(batch: pa.RecordBatch) -> pa.RecordBatch:
        """Convert boolean columns to their ``TRUE``/``FALSE`` text."""
        columns = [
            pc.if_else(c, "TRUE", "FALSE") if pa.types.is_boolean(c.type) else c
            for c in batch.columns
        ]
        return pa.record_batch(columns, names=batch.schema.names)

    def write(self) -> int:
        """Write the data to the file and return the number of rows written."""
        batches = [self.format_batch(b) for b in self.child.batches()]

        try:
            f = open(self.filename, "w", newline="")
        except OSError as e:
            raise IOFailure(self.filename, str(e)) from e

        num_rows = 0
        try:
            with f:
                # The csv module writes None as an empty field
                # and quotes only the fields that need it.
                writer = csv.writer(f, lineterminator="\n")
                if batches:
                    writer.writerow(batches[0].schema.names)
                for batch in batches:
                    writer.writerows(zip(*(c.to_pylist() for c in batch.columns)))
                    num_rows += batch.num_rows
        except OSError as e:
            os.unlink(self.filename)
            raise IOFailure(self.filename, str(e)) from e
        except BaseException:
            os.unlink(self.filename)
            raise

        log.debug("Wrote %d rows to %s", num_rows, self.filename)
        return num_rows
