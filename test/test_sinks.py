import datetime

import pyarrow as pa
import pytest

from tidyground.compute import CSVSink, PyArrowTableDataSource, sinks
from tidyground.compute.base import QueryPlanNode
from tidyground.compute.errors import IOFailure, UnknownColumnRange

WIDE_DATA = pa.record_batch(
    {
        "key_id": pa.array([1, 2]),
        "village": pa.array(["God", "Chirodzo, East"]),
        "interview_date": pa.array([datetime.date(2016, 11, 17), None]),
        "bicycle": pa.array([True, False]),
        "rooms": pa.array([1, None]),
    }
)


class FailingNode(QueryPlanNode):
    def batches(self):
        raise UnknownColumnRange("television", ["key_id"])
        yield

    def __str__(self):
        return "FailingNode()"


def test_write_csv(tmp_path):
    path = tmp_path / "interviews_plotting.csv"
    sink = CSVSink(str(path), PyArrowTableDataSource(WIDE_DATA))

    assert sink.write() == 2
    lines = path.read_text().splitlines()
    assert lines[0] == "key_id,village,interview_date,bicycle,rooms"
    assert lines[1:] == [
        '1,God,2016-11-17,TRUE,1',
        '2,"Chirodzo, East",,FALSE,',
    ]


def test_write_csv_quotes_only_when_needed(tmp_path):
    path = tmp_path / "notes.csv"
    data = pa.record_batch(
        {"key_id": [1, 2, 3], "note": ['said "no"', "two\nlines", "bicycle;radio"]}
    )

    CSVSink(str(path), PyArrowTableDataSource(data)).write()

    assert path.read_text() == (
        'key_id,note\n1,"said ""no"""\n2,"two\nlines"\n3,bicycle;radio\n'
    )


def test_write_csv_no_rows(tmp_path):
    path = tmp_path / "empty.csv"
    data = pa.RecordBatch.from_pylist([], schema=WIDE_DATA.schema)

    assert CSVSink(str(path), PyArrowTableDataSource(data)).write() == 0
    assert path.read_text() == "key_id,village,interview_date,bicycle,rooms\n"


def test_format_batch():
    formatted = CSVSink.format_batch(WIDE_DATA)
    assert formatted.column("bicycle").to_pylist() == ["TRUE", "FALSE"]
    assert formatted.column("rooms").equals(WIDE_DATA.column("rooms"))


def test_write_csv_unwritable(tmp_path):
    path = tmp_path / "missing_dir" / "out.csv"
    sink = CSVSink(str(path), PyArrowTableDataSource(WIDE_DATA))
    with pytest.raises(IOFailure):
        sink.write()
    assert not path.exists()


def test_write_csv_failing_plan_writes_nothing(tmp_path):
    path = tmp_path / "out.csv"
    with pytest.raises(UnknownColumnRange):
        CSVSink(str(path), FailingNode()).write()
    assert not path.exists()


def test_sink_str(tmp_path):
    sink = CSVSink("out.csv", PyArrowTableDataSource(WIDE_DATA))
    assert str(sink) == (
        "CSVSink(out.csv, PyArrowTableDataSource(columns=['key_id', 'village', "
        "'interview_date', 'bicycle', 'rooms'], rows=2))"
    )


def test_write_csv_failing_write_removes_file(tmp_path, monkeypatch):
    class BrokenWriter:
        def __init__(self, f, **kwargs):
            self.f = f

        def writerow(self, row):
            self.f.write(",".join(row) + "\n")

        def writerows(self, rows):
            raise ValueError("unsupported value")

    monkeypatch.setattr(sinks.csv, "writer", BrokenWriter)
    path = tmp_path / "out.csv"

    with pytest.raises(ValueError):
        CSVSink(str(path), PyArrowTableDataSource(WIDE_DATA)).write()
    assert not path.exists()
