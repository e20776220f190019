"""Query plan nodes that compute aggregations.

After cleaning the survey data, the next question is usually
a summary of it: how many interviews were done in each village,
what is the average household size for members of an irrigation
association and so on.

The aggregate node groups the data by a set of columns
and computes the aggregations for each group,
projecting them as new columns.

For example, given the following data::

    village,  memb_assoc, no_membrs
    God,      no,         3
    God,      yes,        7
    Chirodzo, no,         10
    God,      no,         5

We could group by village and compute the average household size
to get::

    village,  mean_no_membrs
    Chirodzo, 10.0
    God,      5.0
"""

import abc
import logging
from typing import Any

import pyarrow as pa
import pyarrow.compute as pc

from .base import QueryPlanNode
from .errors import InvalidFieldType, UnknownColumn

__all__ = (
    "AggregateNode",
    "SumAggregation",
    "MinAggregation",
    "MaxAggregation",
    "MeanAggregation",
    "CountAggregation",
    "RowCountAggregation",
)

log = logging.getLogger(__name__)


class AggregateNode(QueryPlanNode):
    """Group data and compute aggregations.

    One row is emitted for each distinct combination
    of values of the ``keys`` columns, sorted by those values.
    Missing values form their own group, which comes last.

    >>> import pyarrow as pa
    >>> from tidyground.compute import PyArrowTableDataSource
    >>> data = pa.record_batch({
    ...    "village": pa.array(["God", "God", "Chirodzo", "God"]),
    ...    "no_membrs": pa.array([3, 7, 10, 5]),
    ... })
    >>> aggregate = AggregateNode(["village"], {"mean_no_membrs": MeanAggregation("no_membrs")},
    ...                           PyArrowTableDataSource(data))
    >>> next(aggregate.batches())
    pyarrow.RecordBatch
    village: string
    mean_no_membrs: double
    ----
    village: ["Chirodzo","God"]
    mean_no_membrs: [10,5]
    """

    def __init__(
        self,
        keys: list[str],
        aggregations: dict[str, "Aggregation"],
        child: QueryPlanNode,
    ) -> None:
        """
        :param keys: The columns to group by.
        :param aggregations: The aggregations to compute in the form of {"new_col_name": Aggregation}.
        :param child: The child node that will provide the data to aggregate.
        """
        if not keys:
            raise ValueError("At least one column to group by is required")
        self.keys = keys
        self.aggregations = aggregations
        self.child = child

    def __str__(self) -> str:
        return f"AggregateNode(keys={self.keys}, aggregations={self.aggregations}, {self.child})"

    def batches(self) -> QueryPlanNode.RecordBatchesGenerator:
        """Group the data of the child node and compute the aggregations.

        Each batch of the child node is aggregated on its own,
        then the partial results of all batches are reduced
        into the final result, which is emitted as a single batch.
        """
        if len(self.keys) == 1:
            chunks_data = self.single_key_aggregation()
        else:
            chunks_data = self.multi_key_aggregation()
        if chunks_data is None:
            return

        result = self.reduce_aggregations(*chunks_data)
        result = result.sort_by([(k, "ascending") for k in self.keys])
        log.debug("Aggregated into %d groups by %s", result.num_rows, self.keys)
        yield result

    def _check_batch(self, batch: pa.RecordBatch) -> None:
        names = batch.schema.names
        for column in [*self.keys, *(a.column for a in self.aggregations.values())]:
            if column is not None and column not in names:
                raise UnknownColumn(column, names)

    def single_key_aggregation(self) -> tuple[pa.Schema, dict] | None:
        """Compute the aggregation for a single key.

        This is an optimized path where we can rely on dictionary encoding
        to find the unique values of the key column and then filter the rows.
        """
        # Compute separate aggregation results for each batch.
        # This makes so that we need to keep in memory only one batch
        # at the time, and the aggregation results, which are far smaller
        #   chunks_data = {key_value: {aggr_name: [aggr_value1, aggr_value2, ...]}}
        schema = None
        chunks_data: dict[Any, dict[str, list[Any]]] = {}
        for batch in self.child.batches():
            self._check_batch(batch)
            schema = batch.schema

            # Dictionary encode the key column, so we can get the unique values
            # and we can know at which rows each value is.
            # Missing values are encoded too, so they get their own group.
            key_column = pc.dictionary_encode(
                batch.column(self.keys[0]), null_encoding="encode"
            )
            key_values = key_column.dictionary
            key_indices = key_column.indices

            # For each unique value, we lookup the rows that have that value
            # Then for the resulting batch of rows filtered by the unique key value
            # we compute the aggregation and add it to the aggregation results for
            # that key value in the current batch.
            for idx, keyval in enumerate(key_values.to_pylist()):
                group = chunks_data.setdefault((keyval,), {})
                filtered_batch = batch.filter(pc.equal(key_indices, idx))
                for name, aggregation in self.aggregations.items():
                    group.setdefault(name, []).append(
                        aggregation.compute_chunk(filtered_batch)
                    )

        if schema is None:
            return None
        return schema, chunks_data

    def multi_key_aggregation(self) -> tuple[pa.Schema, dict] | None:
        """Compute the aggregation for multiple keys.

        In this case we will have to manually implement the grouping
        as we can't rely on dictionary encoding to find the unique values
        """
        sorting_key = [(k, "ascending") for k in self.keys]
        schema = None
        chunks_data: dict[tuple, dict[str, list[Any]]] = {}
        for batch in self.child.batches():
            self._check_batch(batch)
            schema = batch.schema

            # First sort the data by the aggregation keys,
            # this makes sure that we can compute the aggregation in a single pass.
            # All the values for the same grouping key will be sequential
            # For example:
            #    Chirodzo, no, 10
            #    God, no, 3
            #    God, no, 5
            #    God, yes, 7
            # so until the key changes we can compute the aggregation.
            sorted_batch = batch.sort_by(sorting_key)
            row_keys = list(zip(*(sorted_batch.column(k).to_pylist() for k in self.keys)))
            chunk_start = 0
            for row_index in range(1, len(row_keys) + 1):
                if row_index < len(row_keys) and row_keys[row_index] == row_keys[chunk_start]:
                    continue
                # the key has changed, this means we finished a chunk of
                # rows with the same key, we can compute the aggregation for this chunk.
                chunk = sorted_batch.slice(chunk_start, row_index - chunk_start)
                group = chunks_data.setdefault(row_keys[chunk_start], {})
                for name, aggregation in self.aggregations.items():
                    group.setdefault(name, []).append(aggregation.compute_chunk(chunk))
                chunk_start = row_index

        if schema is None:
            return None
        return schema, chunks_data

    def reduce_aggregations(
        self, schema: pa.Schema, chunks_data: dict[tuple, dict[str, list[Any]]]
    ) -> pa.RecordBatch:
        """Reduce the partial aggregation results to the final aggregation results.

        Both single and multi key aggregation will end up computing the aggregations
        for each chunk separately, this method will reduce the partial aggregation
        results to the final aggregation results.

        For example if we had 3 chunks and the chunks_data is::

            {("God",): {"interviews": [10, 20, 30]}}

        The result will be::

            {("God",): {"interviews": 60}}
        """
        key_data: dict[str, list[Any]] = {k: [] for k in self.keys}
        aggregated_data: dict[str, list[pa.Scalar]] = {k: [] for k in self.aggregations}
        for keyvalue, aggregated_values in chunks_data.items():
            for key, value in zip(self.keys, keyvalue):
                key_data[key].append(value)
            for aggrname, aggregation in self.aggregations.items():
                aggregated_data[aggrname].append(
                    aggregation.reduce(aggregated_values[aggrname])
                )

        arrays = [pa.array(key_data[k], type=schema.field(k).type) for k in self.keys]
        for aggrname, aggregation in self.aggregations.items():
            scalars = aggregated_data[aggrname]
            result_type = scalars[0].type if scalars else aggregation.result_type(schema)
            arrays.append(pa.array([s.as_py() for s in scalars], type=result_type))
        return pa.record_batch(arrays, names=[*self.keys, *self.aggregations])


class Aggregation(abc.ABC):
    """Base class for aggregations.

    Every aggregation is expected to implement
    a method to compute any needed intermediate results
    on a single chunk of data and then provide a reduce method
    to combine the intermediate results into a final result.

    Missing values are skipped.
    """

    def __init__(self, column: str | None) -> None:
        self.column = column

    def __str__(self) -> str:
        return f"{self.__class__.__name__}({self.column})"

    __repr__ = __str__

    @abc.abstractmethod
    def compute_chunk(self, batch: pa.RecordBatch) -> Any: ...

    @abc.abstractmethod
    def reduce(self, chunks: list[Any]) -> pa.Scalar: ...

    def result_type(self, schema: pa.Schema) -> pa.DataType:
        """Type of the aggregated column when there are no groups."""
        return schema.field(self.column).type


class SimpleAggregation(Aggregation):
    """Provide a base implementation for simple aggregations like min,max,sum.

    Simple aggregations are those where the function applied to compute
    intermediate results for a single chunk of data is the same as the function
    applied to combine the intermediate results into the final.

    For example ``sum([1, 2, 3])`` is the same as ``sum([sum([1, 2]), 3])``.
    """

    def __init__(self, column: str) -> None:
        self.column = column

    @abc.abstractmethod
    def _aggregate(self, data: Any) -> Any: ...

    def compute_chunk(self, batch: pa.RecordBatch) -> Any:
        return self._aggregate(batch.column(self.column))

    def reduce(self, chunks: list[Any]) -> pa.Scalar:
        return self._aggregate(pa.array([c.as_py() for c in chunks], type=chunks[0].type))


class SumAggregation(SimpleAggregation):
    """Compute the sum of an aggregated column."""

    def _aggregate(self, data: Any) -> Any:
        return pc.sum(data)

    def result_type(self, schema: pa.Schema) -> pa.DataType:
        column_type = schema.field(self.column).type
        return pa.int64() if pa.types.is_boolean(column_type) else column_type


class MinAggregation(SimpleAggregation):
    """Compute the min of an aggregated column."""

    def _aggregate(self, data: Any) -> Any:
        return pc.min(data)


class MaxAggregation(SimpleAggregation):
    """Compute the max of an aggregated column."""

    def _aggregate(self, data: Any) -> Any:
        return pc.max(data)


class CountAggregation(Aggregation):
    """Compute the count of the values that are not missing in a column.

    This is based on computing the counts for each intermediate batch
    and then sum them to compute the final result.
    """

    def compute_chunk(self, batch: pa.RecordBatch) -> Any:
        """Compute the count of the column in a single batch."""
        return pc.count(batch.column(self.column))

    def reduce(self, chunks: list[Any]) -> pa.Scalar:
        """Sum the counts of all intermediate results to the final count."""
        return pa.scalar(sum(c.as_py() for c in chunks), type=pa.int64())

    def result_type(self, schema: pa.Schema) -> pa.DataType:
        return pa.int64()


class RowCountAggregation(CountAggregation):
    """Compute the number of rows in each group, missing values included."""

    def __init__(self) -> None:
        super().__init__(None)

    def __str__(self) -> str:
        return "RowCountAggregation()"

    __repr__ = __str__

    def compute_chunk(self, batch: pa.RecordBatch) -> Any:
        return pa.scalar(batch.num_rows, type=pa.int64())


class MeanAggregation(Aggregation):
    """Compute the mean of an aggregated column.

    This is based by computing count and sum of the column
    for each intermediate batch and then dividing
    the sum of all intermediate results by the count
    of all intermediate results.
    """

    def compute_chunk(self, batch: pa.RecordBatch) -> Any:
        """Compute the count and sum of the column in a single batch."""
        col = batch.column(self.column)
        if not (pa.types.is_integer(col.type) or pa.types.is_floating(col.type)):
            raise InvalidFieldType(self.column, col.type, "numeric")
        return (pc.count(col).as_py(), pc.sum(col).as_py())

    def reduce(self, chunks: list[tuple[int, Any]]) -> pa.Scalar:
        """Compute the mean of the column from the intermediate sums and counts."""
        count = sum(chunk[0] for chunk in chunks)
        if count == 0:
            return pa.scalar(None, type=pa.float64())
        total = sum(chunk[1] for chunk in chunks if chunk[1] is not None)
        return pa.scalar(total / count, type=pa.float64())

    def result_type(self, schema: pa.Schema) -> pa.DataType:
        return pa.float64()
