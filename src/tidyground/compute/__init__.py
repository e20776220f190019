"""The tidyground Compute Engine

The compute engine defines the in-memory
format for reshaping plans and the plan nodes
supported.

The compute engine is tightly bound to Apache Arrow,
thus the engine will expect to always deal with
:class:`pyarrow.RecordBatch` and emit a new RecordBatch
as the result of the node execution.

This allows to easily build pipelines like::

    (RecordBatch)-->Node1--(RecordBatch)-->Node2--(RecordBatch)-->...

Spreading a multi-value column into indicator columns
and counting the indicators set for each row is
a chain of four nodes:

>>> import pyarrow as pa
>>> from tidyground.compute import PyArrowTableDataSource, SplitNode, UnnestNode
>>> from tidyground.compute import PivotNode, ProjectNode, RowSumExpression, colrange
>>> data = pa.table({
...    "key_id": pa.array([1, 2, 3]),
...    "items_owned": pa.array(["bicycle;radio", "television", ""]),
... })
>>> plan = ProjectNode(
...     None,
...     {"number_items": RowSumExpression(colrange("bicycle", "television"))},
...     PivotNode(
...         "items_owned", "items_owned_logical",
...         UnnestNode(
...             "items_owned", "items_owned_logical",
...             SplitNode("items_owned", PyArrowTableDataSource(data)),
...         ),
...     ),
... )
>>> for data in plan.batches():
...     print(data.to_pydict())
{'key_id': [1, 2, 3], 'bicycle': [True, False, False], 'radio': [True, False, False], 'television': [False, True, False], 'number_items': [2, 1, 0]}
"""

from .aggregate import (
    AggregateNode,
    CountAggregation,
    MaxAggregation,
    MeanAggregation,
    MinAggregation,
    RowCountAggregation,
    SumAggregation,
)
from .base import ColumnRange, ColumnRef, col, colrange
from .datasources import CSVDataSource, PyArrowTableDataSource
from .errors import (
    DuplicateColumn,
    InvalidFieldType,
    IOFailure,
    MalformedInput,
    ReshapeError,
    UnknownColumn,
    UnknownColumnRange,
)
from .expressions import FunctionCallExpression, RowSumExpression
from .filtering import FilterNode
from .pivot import PivotNode
from .selection import ProjectNode
from .sinks import CSVSink
from .sorting import SortNode
from .splitting import SplitNode
from .unnest import UnnestNode

__all__ = (
    "CSVDataSource",
    "PyArrowTableDataSource",
    "CSVSink",
    "FunctionCallExpression",
    "RowSumExpression",
    "col",
    "colrange",
    "ColumnRef",
    "ColumnRange",
    "ProjectNode",
    "FilterNode",
    "SortNode",
    "AggregateNode",
    "SumAggregation",
    "MinAggregation",
    "MaxAggregation",
    "MeanAggregation",
    "CountAggregation",
    "RowCountAggregation",
    "SplitNode",
    "UnnestNode",
    "PivotNode",
    "ReshapeError",
    "InvalidFieldType",
    "MalformedInput",
    "UnknownColumn",
    "UnknownColumnRange",
    "DuplicateColumn",
    "IOFailure",
)
