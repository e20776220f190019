import pyarrow as pa
import pyarrow.compute as pc
import pytest

from tidyground.compute import FunctionCallExpression, MeanAggregation, MinAggregation, PivotNode
from tidyground.compute.errors import UnknownColumnRange
from tidyground.dataframe import Dataframe, GroupedDataframe, col, colrange

INTERVIEWS = pa.table(
    {
        "key_id": [1, 2, 3],
        "village": ["God", "Chirodzo", "Ruaca"],
        "no_membrs": [3, 7, 10],
        "rooms": [1, 1, 2],
        "items_owned": ["bicycle;radio", "television", None],
    }
)


def test_dataframe_from_table():
    df = Dataframe(INTERVIEWS)
    assert df.to_arrow().equals(INTERVIEWS)


def test_dataframe_invalid_input():
    with pytest.raises(ValueError):
        Dataframe({"key_id": [1]})


def test_dataframe_is_lazy():
    df = Dataframe(INTERVIEWS).spread("items_owned")
    assert isinstance(df.node, PivotNode)
    assert str(df).startswith("Dataframe(PivotNode(key='split_items_owned'")


def test_dataframe_select_and_mutate():
    df = (
        Dataframe(INTERVIEWS)
        .mutate(people_per_room=FunctionCallExpression(pc.divide, col("no_membrs"), col("rooms")))
        .select("village", colrange("no_membrs", "rooms"), "people_per_room")
    )
    assert df.to_arrow().to_pydict() == {
        "village": ["God", "Chirodzo", "Ruaca"],
        "no_membrs": [3, 7, 10],
        "rooms": [1, 1, 2],
        "people_per_room": [3, 7, 5],
    }


def test_dataframe_spread():
    result = Dataframe(INTERVIEWS).spread("items_owned").to_arrow()

    assert result.column_names == [
        "key_id",
        "village",
        "no_membrs",
        "rooms",
        "items_owned",
        "bicycle",
        "radio",
        "television",
    ]
    assert result.column("bicycle").to_pylist() == [True, False, False]
    assert result.column("television").to_pylist() == [False, True, False]


def test_dataframe_spread_replacing_source():
    result = Dataframe(INTERVIEWS).spread(
        "items_owned", keep_source=False, missing_column="no_listed_items"
    ).to_arrow()

    assert "items_owned" not in result.column_names
    assert result.column("no_listed_items").to_pylist() == [False, False, True]


def test_dataframe_spread_custom_value_column():
    # The value column only exists between the unnest and the pivot.
    result = Dataframe(INTERVIEWS).spread("items_owned", value_column="owned").to_arrow()
    assert "owned" not in result.column_names


def test_dataframe_row_sums():
    result = (
        Dataframe(INTERVIEWS)
        .spread("items_owned")
        .row_sums("number_items", "bicycle", "television")
        .to_arrow()
    )
    assert result.column("number_items").to_pylist() == [2, 1, 0]


def test_dataframe_row_sums_unknown_boundary():
    df = Dataframe(INTERVIEWS).spread("items_owned").row_sums("n", "bicycle", "sofa_set")
    with pytest.raises(UnknownColumnRange):
        df.collect()


def test_dataframe_collect():
    df = Dataframe(INTERVIEWS).spread("items_owned").collect()
    assert df.to_arrow().num_rows == 3


def test_dataframe_open_and_write_csv(tmp_path):
    source = tmp_path / "interviews.csv"
    source.write_text("key_id,items_owned\n1,radio;bicycle\n2,NULL\n")
    output = tmp_path / "out.csv"

    written = (
        Dataframe.open_csv(str(source))
        .spread("items_owned", missing_column="no_listed_items")
        .write_csv(str(output))
    )

    assert written == 2
    lines = output.read_text().splitlines()
    assert lines[1:] == [
        "1,radio;bicycle,TRUE,TRUE,FALSE",
        "2,,FALSE,FALSE,TRUE",
    ]


def test_dataframe_spread_trailing_delimiter():
    table = pa.table({"key_id": [1, 2], "items_owned": ["bicycle;", "radio"]})
    result = Dataframe(table).spread("items_owned", keep_source=False).to_arrow()

    assert result.column_names == ["key_id", "bicycle", "radio"]


SURVEY = pa.table(
    {
        "village": ["God", "Chirodzo", "God", "Ruaca", "God", "Chirodzo"],
        "memb_assoc": ["no", "yes", None, "no", "yes", "no"],
        "no_membrs": [3, 7, 10, 12, 5, 2],
    }
)


def test_dataframe_filter():
    result = (
        Dataframe(SURVEY)
        .filter(FunctionCallExpression(pc.equal, col("village"), "Chirodzo"))
        .select("memb_assoc", "no_membrs")
        .to_arrow()
    )
    assert result.to_pydict() == {"memb_assoc": ["yes", "no"], "no_membrs": [7, 2]}


def test_dataframe_arrange():
    result = Dataframe(SURVEY).arrange("village", "no_membrs", descending=[False, True]).to_arrow()
    assert result.column("no_membrs").to_pylist() == [7, 2, 10, 5, 3, 12]


def test_dataframe_group_by_summarize():
    result = (
        Dataframe(SURVEY)
        .filter(FunctionCallExpression(pc.is_valid, col("memb_assoc")))
        .group_by("village", "memb_assoc")
        .summarize(
            mean_no_membrs=MeanAggregation("no_membrs"),
            min_membrs=MinAggregation("no_membrs"),
        )
        .arrange("min_membrs", descending=True)
        .to_arrow()
    )
    assert result.to_pydict() == {
        "village": ["Ruaca", "Chirodzo", "God", "God", "Chirodzo"],
        "memb_assoc": ["no", "yes", "yes", "no", "no"],
        "mean_no_membrs": [12.0, 7.0, 5.0, 3.0, 2.0],
        "min_membrs": [12, 7, 5, 3, 2],
    }


def test_dataframe_count():
    result = Dataframe(SURVEY).count("village").to_arrow()
    assert result.to_pydict() == {"village": ["Chirodzo", "God", "Ruaca"], "n": [2, 3, 1]}


def test_dataframe_count_sorted():
    result = Dataframe(SURVEY).count("village", sort=True).to_arrow()
    assert result.to_pydict() == {"village": ["God", "Chirodzo", "Ruaca"], "n": [3, 2, 1]}


def test_grouped_dataframe_str():
    grouped = Dataframe(SURVEY).group_by("village")
    assert isinstance(grouped, GroupedDataframe)
    assert str(grouped).startswith("GroupedDataframe(keys=['village'], Dataframe(")
