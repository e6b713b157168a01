"""Shared utilities for the service layer."""

import json
import re
from collections.abc import Mapping
from datetime import UTC, datetime
from uuid import uuid4

# JSON column types: sub-documents are dicts, tag/image columns are lists.
JsonDict = dict[str, object]
Serializable = Mapping[str, object] | list[Mapping[str, object]] | list[object]


def new_id() -> str:
    return str(uuid4())


def now_iso() -> str:
    return datetime.now(UTC).isoformat()


def today_iso() -> str:
    return datetime.now(UTC).date().isoformat()


def load_json(raw: str | None) -> JsonDict | None:
    """Deserialize a JSON TEXT sub-document column. Always a dict or None."""
    if not raw:
        return None
    result: object = json.loads(raw)
    if isinstance(result, dict):
        return dict(result)
    return None


def load_json_list(raw: str | None) -> list[object]:
    """Deserialize a JSON TEXT array column; anything else reads as empty."""
    if not raw:
        return []
    result: object = json.loads(raw)
    if isinstance(result, list):
        return list(result)
    return []


def dump_json(obj: Serializable) -> str:
    return json.dumps(obj, default=str)


def slugify(text: str) -> str:
    """Lowercase, hyphen-separated slug: "Summer Sale!" -> "summer-sale"."""
    text = text.lower().strip()
    text = re.sub(r"[^\w\s-]", "", text)
    text = re.sub(r"[\s_-]+", "-", text)
    return text.strip("-")
