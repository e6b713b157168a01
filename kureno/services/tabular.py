"""Nested-record <-> flat CSV conversion.

Records are flattened into dotted-path columns (``address.city``). Arrays are
never spread over indexed columns: they are written as compact JSON text so
the column set stays stable across records with different array lengths.
"""

import csv
import io
import json
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

FlatRecord = dict[str, Any]


def _json_default(value: object) -> str:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def _json_array(value: Sequence[object]) -> str:
    return json.dumps(list(value), default=_json_default, separators=(",", ":"), ensure_ascii=False)


def flatten(obj: Mapping[str, Any], prefix: str = "") -> FlatRecord:
    """Flatten nested mappings into one level of dotted keys.

    >>> flatten({"a": 1, "b": {"c": 2, "d": [1, 2, 3]}})
    {'a': 1, 'b.c': 2, 'b.d': '[1,2,3]'}
    """
    flat: FlatRecord = {}
    for key, value in obj.items():
        new_key: str = f"{prefix}.{key}" if prefix else str(key)
        if value is None:
            flat[new_key] = ""
        elif isinstance(value, Mapping):
            flat.update(flatten(value, new_key))
        elif isinstance(value, (list, tuple)):
            flat[new_key] = _json_array(value)
        else:
            flat[new_key] = value
    return flat


def unflatten(flat: Mapping[str, Any]) -> dict[str, Any]:
    """Inverse of :func:`flatten` for dotted keys (arrays stay as text)."""
    nested: dict[str, Any] = {}
    for key, value in flat.items():
        parts: list[str] = key.split(".")
        node: dict[str, Any] = nested
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[parts[-1]] = value
    return nested


def _cell(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def columns_for(flat_records: Iterable[FlatRecord]) -> list[str]:
    """Union of keys in first-seen order."""
    seen: dict[str, None] = {}
    for record in flat_records:
        for key in record:
            seen.setdefault(key, None)
    return list(seen)


def to_csv(records: Sequence[Mapping[str, Any]]) -> str:
    """Encode records as CSV text: header row + one row per record.

    Fields holding a comma, quote or newline are quoted with inner quotes
    doubled. Rows are joined by ``\\n`` with no trailing newline.
    """
    if not records:
        return ""

    flat_records: list[FlatRecord] = [flatten(r) for r in records]
    headers: list[str] = columns_for(flat_records)

    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n", quoting=csv.QUOTE_MINIMAL)
    writer.writerow(headers)
    for flat in flat_records:
        writer.writerow([_cell(flat.get(h)) for h in headers])
    return buf.getvalue().removesuffix("\n")


# ------------------------------------------------------------------
# Decoding
# ------------------------------------------------------------------


@dataclass
class CsvRow:
    line: int
    values: dict[str, str] = field(default_factory=dict)
    error: str | None = None

    def to_record(self) -> dict[str, Any]:
        """Nested record; empty cells are treated as absent fields."""
        return unflatten({k: v for k, v in self.values.items() if v.strip() != ""})


def parse_csv(text: str) -> list[CsvRow]:
    """Parse CSV text with a header row.

    Blank lines are skipped. A row whose field count differs from the header
    is returned with ``error`` set instead of being dropped.
    """
    reader = csv.reader(io.StringIO(text.lstrip("\ufeff")))
    headers: list[str] | None = None
    rows: list[CsvRow] = []

    for values in reader:
        if not values or all(not v.strip() for v in values):
            continue
        if headers is None:
            headers = [h.strip() for h in values]
            continue
        if len(values) != len(headers):
            rows.append(
                CsvRow(
                    line=reader.line_num,
                    error=f"Expected {len(headers)} fields, found {len(values)}",
                )
            )
            continue
        rows.append(CsvRow(line=reader.line_num, values=dict(zip(headers, values))))

    return rows
