import pyarrow as pa
import pytest

from tidyground.compute import PyArrowTableDataSource, SplitNode
from tidyground.compute.errors import DuplicateColumn, InvalidFieldType, UnknownColumn

TEST_DATA = pa.record_batch(
    {
        "key_id": pa.array([1, 2, 3, 4]),
        "items_owned": pa.array(["bicycle;radio", "television", "", None]),
    }
)


def test_split_in_place():
    node = SplitNode("items_owned", PyArrowTableDataSource(TEST_DATA))
    result = next(node.batches())

    assert result.column_names == ["key_id", "items_owned"]
    assert result.column(1).to_pylist() == [["bicycle", "radio"], ["television"], [], []]
    assert result.column(0).to_pylist() == [1, 2, 3, 4]


def test_split_into_new_column():
    node = SplitNode(
        "items_owned", PyArrowTableDataSource(TEST_DATA), into="split_items"
    )
    result = next(node.batches())

    assert result.column_names == ["key_id", "items_owned", "split_items"]
    assert result.column(1).to_pylist() == ["bicycle;radio", "television", "", None]
    assert result.column(2).to_pylist() == [["bicycle", "radio"], ["television"], [], []]


def test_split_keep_missing():
    node = SplitNode("items_owned", PyArrowTableDataSource(TEST_DATA), keep_missing=True)
    result = next(node.batches())

    # Only the missing cell gets a missing token, the empty one has no tokens.
    assert result.column(1).to_pylist() == [["bicycle", "radio"], ["television"], [], [None]]


def test_split_custom_delimiter():
    data = pa.record_batch({"months": ["Jan, Feb", "Mar"]})
    node = SplitNode("months", PyArrowTableDataSource(data), delimiter=",")
    result = next(node.batches())

    # whitespace is part of the token unless trimming is requested.
    assert result.column(0).to_pylist() == [["Jan", " Feb"], ["Mar"]]


def test_split_trim():
    data = pa.record_batch({"months": ["Jan , Feb", " Mar"]})
    node = SplitNode("months", PyArrowTableDataSource(data), delimiter=",", trim=True)
    result = next(node.batches())

    assert result.column(0).to_pylist() == [["Jan", "Feb"], ["Mar"]]


def test_split_keeps_empty_tokens_between_delimiters():
    data = pa.record_batch({"items": ["a;;b"]})
    node = SplitNode("items", PyArrowTableDataSource(data))
    result = next(node.batches())

    assert result.column(0).to_pylist() == [["a", "", "b"]]


@pytest.mark.parametrize(
    "cell, expected",
    [
        ("bicycle;", ["bicycle"]),
        ("bicycle;radio;", ["bicycle", "radio"]),
        ("bicycle;;", ["bicycle", ""]),
        (";bicycle", ["", "bicycle"]),
        (";", []),
    ],
)
def test_split_trailing_delimiter(cell, expected):
    data = pa.record_batch({"items": [cell]})
    node = SplitNode("items", PyArrowTableDataSource(data))
    result = next(node.batches())

    assert result.column(0).to_pylist() == [expected]


def test_split_trailing_delimiter_with_trim():
    data = pa.record_batch({"items": ["bicycle; "]})
    node = SplitNode("items", PyArrowTableDataSource(data), trim=True)
    result = next(node.batches())

    assert result.column(0).to_pylist() == [["bicycle"]]


def test_split_null_column():
    data = pa.record_batch({"items": pa.nulls(2)})
    node = SplitNode("items", PyArrowTableDataSource(data))
    result = next(node.batches())

    assert result.column(0).to_pylist() == [[], []]


def test_split_multiple_batches():
    table = pa.Table.from_batches([TEST_DATA.slice(0, 2), TEST_DATA.slice(2, 2)])
    node = SplitNode("items_owned", PyArrowTableDataSource(table))
    result = [b.column(1).to_pylist() for b in node.batches()]

    assert result == [[["bicycle", "radio"], ["television"]], [[], []]]


def test_split_non_text_column():
    node = SplitNode("key_id", PyArrowTableDataSource(TEST_DATA))
    with pytest.raises(InvalidFieldType) as exc:
        next(node.batches())

    assert exc.value.column == "key_id"
    assert "key_id" in str(exc.value)


def test_split_unknown_column():
    node = SplitNode("village", PyArrowTableDataSource(TEST_DATA))
    with pytest.raises(UnknownColumn):
        next(node.batches())


def test_split_into_existing_column():
    node = SplitNode("items_owned", PyArrowTableDataSource(TEST_DATA), into="key_id")
    with pytest.raises(DuplicateColumn):
        next(node.batches())


def test_split_empty_delimiter():
    with pytest.raises(ValueError):
        SplitNode("items_owned", PyArrowTableDataSource(TEST_DATA), delimiter="")


def test_split_node_str():
    node = SplitNode("items_owned", PyArrowTableDataSource(TEST_DATA))
    assert str(node) == (
        "SplitNode('items_owned', delimiter=';', into='items_owned', trim=False, keep_missing=False, "
        "PyArrowTableDataSource(columns=['key_id', 'items_owned'], rows=4))"
    )
