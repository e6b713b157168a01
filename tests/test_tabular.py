"""Tests for kureno.services.tabular."""

import csv
import io

from kureno.services.tabular import columns_for, flatten, parse_csv, to_csv, unflatten


class TestFlatten:
    def test_nested_and_arrays(self) -> None:
        flat = flatten({"a": 1, "b": {"c": 2, "d": [1, 2, 3]}})
        assert flat == {"a": 1, "b.c": 2, "b.d": "[1,2,3]"}

    def test_deep_nesting(self) -> None:
        flat = flatten({"x": {"y": {"z": "deep"}}})
        assert flat == {"x.y.z": "deep"}

    def test_none_becomes_empty(self) -> None:
        assert flatten({"a": None}) == {"a": ""}

    def test_array_of_objects_is_json_text(self) -> None:
        flat = flatten({"items": [{"name": "Mug", "qty": 2}]})
        assert flat == {"items": '[{"name":"Mug","qty":2}]'}

    def test_unflatten_restores_nesting(self) -> None:
        record = {"id": "1", "address": {"city": "Oslo", "zip": "0150"}}
        assert unflatten(flatten(record)) == record


class TestToCsv:
    def test_empty(self) -> None:
        assert to_csv([]) == ""

    def test_quotes_commas_and_quotes(self) -> None:
        out: str = to_csv([{"name": "Smith, John", "note": 'say "hi"'}])
        lines: list[str] = out.split("\n")
        assert lines[0] == "name,note"
        assert lines[1] == '"Smith, John","say ""hi"""'

    def test_no_trailing_newline(self) -> None:
        out: str = to_csv([{"a": 1}, {"a": 2}])
        assert out == "a\n1\n2"

    def test_column_union_keeps_row_widths(self) -> None:
        records = [
            {"id": "1", "address": {"city": "Oslo"}},
            {"id": "2", "phone": "555"},
        ]
        out: str = to_csv(records)
        rows: list[list[str]] = list(csv.reader(io.StringIO(out)))
        assert rows[0] == ["id", "address.city", "phone"]
        assert all(len(r) == 3 for r in rows)
        assert rows[1] == ["1", "Oslo", ""]
        assert rows[2] == ["2", "", "555"]

    def test_bools_and_integral_floats(self) -> None:
        out: str = to_csv([{"featured": True, "price": 20.0, "ratio": 0.5}])
        assert out.split("\n")[1] == "true,20,0.5"

    def test_columns_first_seen_order(self) -> None:
        assert columns_for([{"b": 1, "a": 2}, {"c": 3, "a": 4}]) == ["b", "a", "c"]


class TestParseCsv:
    def test_round_trip_with_to_csv(self) -> None:
        text: str = to_csv(
            [{"name": "Smith, John", "address": {"city": "Oslo"}, "tags": ["a", "b"]}]
        )
        rows = parse_csv(text)
        assert len(rows) == 1
        assert rows[0].error is None
        assert rows[0].to_record() == {
            "name": "Smith, John",
            "address": {"city": "Oslo"},
            "tags": '["a","b"]',
        }

    def test_field_count_mismatch_is_reported(self) -> None:
        rows = parse_csv("a,b\n1,2\n3\n4,5")
        assert [r.error is None for r in rows] == [True, False, True]
        assert rows[1].line == 3
        assert "Expected 2 fields" in (rows[1].error or "")

    def test_blank_lines_and_bom(self) -> None:
        rows = parse_csv("\ufeffname\n\nMug\n\n")
        assert [r.values for r in rows] == [{"name": "Mug"}]

    def test_empty_cells_are_absent(self) -> None:
        rows = parse_csv("name,phone\nMug,")
        assert rows[0].to_record() == {"name": "Mug"}

    def test_header_only(self) -> None:
        assert parse_csv("name,price") == []
