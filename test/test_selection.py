import pyarrow as pa
import pyarrow.compute as pc
import pytest

from tidyground.compute import (
    FunctionCallExpression,
    PyArrowTableDataSource,
    RowSumExpression,
    col,
    colrange,
)
from tidyground.compute.errors import DuplicateColumn, UnknownColumn, UnknownColumnRange
from tidyground.compute.selection import ProjectNode


@pytest.fixture
def mock_data():
    """Create a mock PyArrow Table for testing."""
    data = {
        "village": ["God", "Chirodzo", "Ruaca"],
        "interview_date": ["2016-11-17", "2016-11-16", "2017-04-02"],
        "no_membrs": [3, 7, 10],
        "years_liv": [4, 9, 15],
        "respondent_wall_type": ["muddaub", "burntbricks", "cement"],
        "rooms": [1, 1, 2],
    }
    return pa.table(data)


def test_init_and_str(mock_data):
    """Test the initialization and string representation of ProjectNode."""
    expressions = {"total": FunctionCallExpression(pc.add, col("no_membrs"), col("rooms"))}
    project_node = ProjectNode(
        ["village", colrange("no_membrs", "years_liv")], expressions, PyArrowTableDataSource(mock_data)
    )
    assert str(project_node) == (
        "ProjectNode(select=['village', ColumnRange(no_membrs:years_liv)], "
        "project={'total': pyarrow.compute.add(ColumnRef(no_membrs),ColumnRef(rooms))}, "
        "child=PyArrowTableDataSource(columns=['village', 'interview_date', 'no_membrs', "
        "'years_liv', 'respondent_wall_type', 'rooms'], rows=3))"
    )


def test_select_columns(mock_data):
    """Test selecting specific columns."""
    project_node = ProjectNode(["village", "no_membrs", "years_liv"], {}, PyArrowTableDataSource(mock_data))
    batches = list(project_node.batches())
    assert len(batches) == 1
    batch = batches[0]
    assert batch.column_names == ["village", "no_membrs", "years_liv"]
    assert batch.column(1).to_pylist() == [3, 7, 10]


def test_select_column_range(mock_data):
    """Test selecting a series of connected columns."""
    project_node = ProjectNode(
        [colrange("village", "respondent_wall_type")], {}, PyArrowTableDataSource(mock_data)
    )
    batch = next(project_node.batches())
    assert batch.column_names == [
        "village",
        "interview_date",
        "no_membrs",
        "years_liv",
        "respondent_wall_type",
    ]


def test_select_overlapping_ranges(mock_data):
    """Columns selected more than once are kept only once."""
    project_node = ProjectNode(
        [colrange("village", "no_membrs"), "village", colrange("interview_date", "years_liv")],
        {},
        PyArrowTableDataSource(mock_data),
    )
    batch = next(project_node.batches())
    assert batch.column_names == ["village", "interview_date", "no_membrs", "years_liv"]


def test_project_columns(mock_data):
    """Test projecting new columns using expressions."""
    expressions = {
        "people_per_room": FunctionCallExpression(pc.divide, col("no_membrs"), col("rooms"))
    }
    project_node = ProjectNode(["village"], expressions, PyArrowTableDataSource(mock_data))
    batch = next(project_node.batches())
    assert batch.column_names == ["village", "people_per_room"]
    assert batch.column(1).to_pylist() == [3, 7, 5]


def test_project_keeps_all_columns(mock_data):
    """Projecting without a selection appends to the existing columns."""
    expressions = {"liv": RowSumExpression(colrange("no_membrs", "years_liv"))}
    project_node = ProjectNode(None, expressions, PyArrowTableDataSource(mock_data))
    batch = next(project_node.batches())
    assert batch.column_names == mock_data.column_names + ["liv"]
    assert batch.column("liv").to_pylist() == [7, 16, 25]


def test_multiple_project_columns(mock_data):
    """Expressions can refer to columns projected before them."""
    expressions = {
        "total": FunctionCallExpression(pc.add, col("no_membrs"), col("years_liv")),
        "double_total": FunctionCallExpression(pc.multiply, col("total"), 2),
    }
    project_node = ProjectNode([], expressions, PyArrowTableDataSource(mock_data))
    batch = next(project_node.batches())
    assert batch.column_names == ["total", "double_total"]
    assert batch.column(1).to_pylist() == [14, 32, 50]


def test_project_with_no_columns(mock_data):
    """Test projecting with no columns selected or projected."""
    project_node = ProjectNode([], {}, PyArrowTableDataSource(mock_data))
    batch = next(project_node.batches())
    assert batch.num_columns == 0


def test_select_unknown_column(mock_data):
    project_node = ProjectNode(["memb_assoc"], {}, PyArrowTableDataSource(mock_data))
    with pytest.raises(UnknownColumn):
        next(project_node.batches())


def test_select_unknown_range(mock_data):
    project_node = ProjectNode(
        [colrange("village", "memb_assoc")], {}, PyArrowTableDataSource(mock_data)
    )
    with pytest.raises(UnknownColumnRange):
        next(project_node.batches())


def test_project_existing_column(mock_data):
    expressions = {"rooms": FunctionCallExpression(pc.add, col("rooms"), 1)}
    project_node = ProjectNode(None, expressions, PyArrowTableDataSource(mock_data))
    with pytest.raises(DuplicateColumn):
        next(project_node.batches())
