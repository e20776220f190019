"""Query Plan nodes that load data

The datasource nodes are expected to fetch the data from some source,
convert it into the format accepted by the compute engine and forward it
to the next node in the plan.

Failures of the source are reported as :class:`.errors.IOFailure`
when the data can't be read at all and as :class:`.errors.MalformedInput`
when the data was read but doesn't form a valid table.
"""

import logging
from abc import abstractmethod

import pyarrow as pa
import pyarrow.compute as pc
import pyarrow.csv

from .base import QueryPlanNode
from .errors import IOFailure, MalformedInput

log = logging.getLogger(__name__)


class DataSourceNode(QueryPlanNode):
    """Base class for nodes that load data from a source."""

    @abstractmethod
    def poll_schema(self) -> pa.Schema:
        """Poll the schema of the data source without loading its content."""
        ...


class CSVDataSource(DataSourceNode):
    """Load data from a CSV file.

    Given a local CSV file path, load the content,
    convert it into Arrow format, and emit it
    for the next nodes of the plan to consume.

    The first row of the file must be a header
    naming every column. Cells matching one of
    the ``null_values`` are loaded as missing,
    text columns included. In columns that are not
    text, empty cells are loaded as missing too,
    as that is how :class:`.sinks.CSVSink` writes them.

    A file with only the header emits one batch without rows,
    so the following nodes still know the columns.
    """

    def __init__(
        self,
        filename: str,
        block_size: int | None = None,
        null_values: list[str] | None = None,
    ) -> None:
        """
        :param filename: The path of the local CSV file.
        :param block_size: How big to make batches of data,
                           Influences how many batches will be produced
        :param null_values: The markers of missing cells, like ``["NULL"]``.
                            ``None`` uses the pyarrow defaults, which
                            never turn text cells into missing ones.
        """
        self.filename = filename
        self.block_size = block_size
        self.null_values = null_values

    def __str__(self) -> str:
        return f"CSVDataSource({self.filename}, block_size={self.block_size}, null_values={self.null_values})"

    def _convert_options(self) -> pa.csv.ConvertOptions:
        if self.null_values is None:
            return pa.csv.ConvertOptions()
        # Text columns are converted without missing values,
        # the markers are looked up afterwards by _mark_missing_text
        # so that an empty text cell stays an empty string.
        return pa.csv.ConvertOptions(
            null_values=[*self.null_values, ""], strings_can_be_null=False
        )

    def _mark_missing_text(self, batch: pa.RecordBatch) -> pa.RecordBatch:
        if self.null_values is None:
            return batch
        markers = pa.array(self.null_values, type=pa.string())
        columns = []
        for column in batch.columns:
            if pa.types.is_string(column.type):
                missing = pc.is_in(column, value_set=markers)
                column = pc.if_else(missing, pa.scalar(None, column.type), column)
            columns.append(column)
        return pa.record_batch(columns, names=batch.schema.names)

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        """Open CSV file and emit the batches."""
        log.debug("Reading %s", self.filename)
        try:
            with pa.csv.open_csv(
                self.filename,
                read_options=pa.csv.ReadOptions(block_size=self.block_size),
                convert_options=self._convert_options(),
            ) as reader:
                emitted = False
                for batch in reader:
                    emitted = True
                    yield self._mark_missing_text(batch)
                if not emitted:
                    yield pa.RecordBatch.from_pylist([], schema=reader.schema)
        except pa.ArrowInvalid as e:
            # Parse errors like rows with a different number of columns
            # can surface from any block, not only the first one.
            raise MalformedInput(self.filename, str(e)) from e
        except OSError as e:
            raise IOFailure(self.filename, str(e)) from e

    def poll_schema(self) -> pa.Schema:
        """Poll the schema of the CSV file."""
        try:
            with pa.csv.open_csv(
                self.filename, convert_options=self._convert_options()
            ) as reader:
                return reader.schema
        except pa.ArrowInvalid as e:
            raise MalformedInput(self.filename, str(e)) from e
        except OSError as e:
            raise IOFailure(self.filename, str(e)) from e


class PyArrowTableDataSource(DataSourceNode):
    """Load data from an in-memory pyarrow.Table or pyarrow.RecordBatch.

    Given a :class:`pyarrow.Table` or `pyarrow.RecordBatch` object,
    allow to use its data in a plan.
    """

    def __init__(self, table: pa.Table | pa.RecordBatch) -> None:
        """
        :param table: The table or recordbatch with the data to read.
        """
        self.table = table
        self.is_recordbatch = isinstance(table, pa.RecordBatch)

    def __str__(self) -> str:
        return f"PyArrowTableDataSource(columns={self.table.column_names}, rows={self.table.num_rows})"

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        """Emit the data contained in the Table for consumption by other node."""
        if self.is_recordbatch:
            yield self.table
        else:
            batches = self.table.to_batches()
            if not batches:
                # A table without rows can have no chunks at all.
                batches = [pa.RecordBatch.from_pylist([], schema=self.table.schema)]
            yield from batches

    def poll_schema(self) -> pa.Schema:
        """Poll the schema of the Table."""
        return self.table.schema
