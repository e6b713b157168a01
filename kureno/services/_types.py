"""Typed dicts for service-layer return values.

Keeps route-facing methods explicit about their shape instead of returning bare dicts.
"""

import sys

if sys.version_info >= (3, 12):
    from typing import TypedDict
else:
    from typing_extensions import TypedDict

# One exported/imported record: camelCase keys, arbitrary nesting.
RecordDict = dict[str, object]


class UserRefDict(TypedDict):
    id: str
    name: str
    email: str


# -- Export ----------------------------------------------------------------


class DateRangeDict(TypedDict):
    startDate: str | None
    endDate: str | None


class ExportInfoDict(TypedDict):
    exportedAt: str
    exportedBy: str
    entity: str
    format: str
    dateRange: DateRangeDict | None
    version: str


# -- Import ----------------------------------------------------------------


class RecordErrorDict(TypedDict):
    index: int
    reason: str


class ImportSummaryDict(TypedDict):
    totalRecords: int
    successCount: int
    errorCount: int
    errors: list[RecordErrorDict]
    entity: str
    mode: str
    validateOnly: bool


class ImportResponseDict(TypedDict):
    success: bool
    message: str
    summary: ImportSummaryDict


# -- Bulk actions ----------------------------------------------------------


class BulkActionResultDict(TypedDict):
    success: bool
    modifiedCount: int
    message: str


# -- Health ----------------------------------------------------------------


class DbInfoDict(TypedDict, total=False):
    backend_type: str
    database_url_or_path: str | None
    tables_present: list[str]
    tables_missing: list[str]
    schema_initialized: bool
    error: str
    pid: int
