"""Tests for kureno.services.importer and kureno.services.records."""

import io
import json

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from db.enums import EntityName, ExportFormat, ImportMode, UserRole
from db.models import AdminNotifications, BlogPosts, Categories, Products, Users
from kureno.services._helpers import load_json, load_json_list, new_id, now_iso
from kureno.services.errors import (
    MalformedFileError,
    PayloadTooLargeError,
    UnsupportedEntityError,
)
from kureno.services.export import ExportService
from kureno.services.importer import (
    ImportJob,
    ImportResult,
    ImportService,
    MalformedRecord,
    ParsedRecord,
    parse_upload,
    read_upload,
)
from kureno.services.records import get_writer, permissions_for_role


def _seed_category(session: Session, name: str = "Mugs") -> Categories:
    ts: str = now_iso()
    category = Categories(
        id=new_id(), name=name, slug=name.lower(), created_at=ts, updated_at=ts
    )
    session.add(category)
    session.flush()
    return category


def _count(session: Session, model: type) -> int:
    return session.scalar(select(func.count()).select_from(model)) or 0


def _product(sku: str, **overrides: object) -> dict[str, object]:
    record: dict[str, object] = {
        "sku": sku,
        "name": f"Product {sku}",
        "price": 10,
        "images": ["a.jpg"],
        "category": "mugs",
    }
    record.update(overrides)
    return record


def _job(
    records: list[ParsedRecord],
    entity: EntityName = EntityName.PRODUCTS,
    mode: ImportMode = ImportMode.CREATE,
    validate_only: bool = False,
) -> ImportJob:
    return ImportJob(entity=entity, mode=mode, validate_only=validate_only, records=records)


class TestImportRecords:
    def test_one_invalid_record_is_isolated(self, session: Session) -> None:
        _seed_category(session)
        records: list[ParsedRecord] = [
            _product("A"),
            _product("B", price=-5),
            _product("C"),
            _product("D"),
        ]
        result: ImportResult = ImportService(session).import_records(_job(records))
        assert result.total_records == 4
        assert result.success_count == 3
        assert result.error_count == 1
        assert result.errors[0]["index"] == 1
        assert "price" in result.errors[0]["reason"]
        assert _count(session, Products) == 3

    def test_unknown_category_is_record_error(self, session: Session) -> None:
        _seed_category(session)
        result = ImportService(session).import_records(
            _job([_product("A", category="nope"), _product("B")])
        )
        assert result.success_count == 1
        assert result.errors == [{"index": 0, "reason": "Unknown category: nope"}]

    def test_create_rejects_existing_key(self, session: Session) -> None:
        _seed_category(session)
        svc = ImportService(session)
        svc.import_records(_job([_product("A")]))
        result = svc.import_records(_job([_product("A", name="Again"), _product("B")]))
        assert result.success_count == 1
        assert result.errors[0]["index"] == 0
        assert "already exists" in result.errors[0]["reason"]
        assert _count(session, Products) == 2

    def test_create_rejects_duplicate_within_file(self, session: Session) -> None:
        _seed_category(session)
        result = ImportService(session).import_records(_job([_product("A"), _product("A")]))
        assert result.success_count == 1
        assert result.errors[0]["index"] == 1

    def test_upsert_updates_only_provided_fields(self, session: Session) -> None:
        _seed_category(session)
        svc = ImportService(session)
        svc.import_records(_job([_product("A", stock=7, description="first")]))

        result = svc.import_records(
            _job([{"sku": "A", "name": "Renamed", "price": 12, "images": ["b.jpg"],
                   "category": "mugs"}, _product("Z")], mode=ImportMode.UPSERT)
        )
        assert result.success_count == 2
        assert (result.created, result.updated) == (1, 1)

        product = session.scalars(select(Products).where(Products.sku == "A")).one()
        assert product.name == "Renamed"
        assert product.price == 12
        assert product.stock == 7
        assert product.description == "first"
        assert load_json_list(product.images) == ["b.jpg"]

    def test_malformed_rows_are_reported(self, session: Session) -> None:
        _seed_category(session)
        result = ImportService(session).import_records(
            _job([_product("A"), MalformedRecord("Line 3: Expected 5 fields, found 2")])
        )
        assert result.success_count == 1
        assert result.errors == [{"index": 1, "reason": "Line 3: Expected 5 fields, found 2"}]

    def test_all_records_failing_is_still_a_result(self, session: Session) -> None:
        result = ImportService(session).import_records(_job([{"name": "x"}, {"name": "y"}]))
        assert result.success_count == 0
        assert result.error_count == result.total_records == 2
        assert result.summary()["errorCount"] == 2

    def test_unsupported_entity(self, session: Session) -> None:
        with pytest.raises(UnsupportedEntityError):
            ImportService(session).import_records(_job([{}], entity=EntityName.ORDERS))


class TestValidateOnly:
    def test_never_changes_counts(self, session: Session) -> None:
        _seed_category(session)
        ImportService(session).import_records(_job([_product("A")]))
        before: int = _count(session, Products)

        result = ImportService(session).run(
            _job(
                [_product("A"), _product("B"), _product("C", images=[])],
                mode=ImportMode.UPSERT,
                validate_only=True,
            )
        )
        assert _count(session, Products) == before
        assert _count(session, AdminNotifications) == 0
        assert result.success_count == 2
        assert (result.created, result.updated) == (1, 1)
        assert result.errors[0]["index"] == 2

    def test_reports_existing_key_in_create_mode(self, session: Session) -> None:
        _seed_category(session)
        ImportService(session).import_records(_job([_product("A")]))
        result = ImportService(session).import_records(
            _job([_product("A")], validate_only=True)
        )
        assert result.error_count == 1


class TestCategoryKeys:
    def _run(self, session: Session, records: list[ParsedRecord], **kwargs: object) -> ImportResult:
        return ImportService(session).import_records(
            _job(records, entity=EntityName.CATEGORIES, **kwargs)  # type: ignore[arg-type]
        )

    def test_name_clash_in_file_matches_validate_only(self, session: Session) -> None:
        records: list[ParsedRecord] = [{"name": "Shoes"}, {"name": "Shoes", "slug": "other"}]
        dry: ImportResult = self._run(session, records, validate_only=True)
        real: ImportResult = self._run(session, records)

        expected = [{"index": 1, "reason": "name duplicated earlier in file: Shoes"}]
        assert dry.errors == real.errors == expected
        assert dry.success_count == real.success_count == 1
        assert _count(session, Categories) == 1

    def test_upsert_name_owned_by_other_row(self, session: Session) -> None:
        self._run(session, [{"name": "A", "slug": "a"}, {"name": "B", "slug": "b"}])
        records: list[ParsedRecord] = [{"name": "B", "slug": "a"}]

        for validate_only in (True, False):
            result = self._run(
                session, records, mode=ImportMode.UPSERT, validate_only=validate_only
            )
            assert result.success_count == 0
            assert result.errors == [
                {"index": 0, "reason": "name already used by another category: B"}
            ]

        names = dict(session.execute(select(Categories.slug, Categories.name)).all())
        assert names == {"a": "A", "b": "B"}

    def test_create_reports_existing_name(self, session: Session) -> None:
        self._run(session, [{"name": "Shoes"}])
        result = self._run(session, [{"name": "Shoes", "slug": "other"}])
        assert result.errors == [{"index": 0, "reason": "name already exists: Shoes"}]


class TestEntities:
    def test_users_get_role_permissions(self, session: Session) -> None:
        result = ImportService(session).import_records(
            _job(
                [{"name": "Kim", "email": "KIM@Example.com", "role": "manager",
                  "address": {"city": "Oslo", "zipCode": "0150"}}],
                entity=EntityName.USERS,
            )
        )
        assert result.success_count == 1
        user = session.scalars(select(Users)).one()
        assert user.email == "kim@example.com"
        assert load_json(user.permissions) == permissions_for_role(UserRole.MANAGER)
        assert load_json(user.address) == {
            "street": None,
            "city": "Oslo",
            "state": None,
            "zipCode": "0150",
            "country": None,
        }

    def test_invalid_email(self, session: Session) -> None:
        result = ImportService(session).import_records(
            _job([{"name": "Kim", "email": "not-an-email"}], entity=EntityName.USERS)
        )
        assert result.error_count == 1
        assert "email" in result.errors[0]["reason"]

    def test_blog_post_resolves_author_and_slug(self, session: Session) -> None:
        ImportService(session).import_records(
            _job([{"name": "Kim", "email": "kim@example.com"}], entity=EntityName.USERS)
        )
        result = ImportService(session).import_records(
            _job(
                [{"title": "Hello World", "content": "Body", "author": "kim@example.com",
                  "tags": ["news"], "published": True}],
                entity=EntityName.BLOG,
            )
        )
        assert result.success_count == 1
        post = session.scalars(select(BlogPosts)).one()
        assert post.slug == "hello-world"
        assert post.published_at is not None
        assert post.author.email == "kim@example.com"

    def test_category_slug_derived_from_name(self, session: Session) -> None:
        ImportService(session).import_records(
            _job([{"name": "Summer Sale!"}], entity=EntityName.CATEGORIES)
        )
        assert session.scalars(select(Categories.slug)).one() == "summer-sale"

    def test_writer_registry(self) -> None:
        assert get_writer(EntityName.PRODUCTS).key_field == "sku"
        with pytest.raises(UnsupportedEntityError):
            get_writer(EntityName.COMMENTS)


class TestRun:
    def test_leaves_admin_notification(self, session: Session) -> None:
        _seed_category(session)
        ImportService(session).run(_job([_product("A"), _product("B", price="x")]), actor="a@b.co")
        note = session.scalars(select(AdminNotifications)).one()
        assert note.title == "Data Import Completed"
        assert note.message == "Imported 1 of 2 products records"
        assert note.type == "warning"
        assert note.category == "system"


class TestParseUpload:
    def test_json_array(self) -> None:
        records = parse_upload(b'[{"name": "A"}, 3]', "p.json", "application/json",
                               EntityName.CATEGORIES)
        assert records[0] == {"name": "A"}
        assert isinstance(records[1], MalformedRecord)

    def test_json_bundle_uses_entity_key(self) -> None:
        body = json.dumps({"blogPosts": [{"title": "T"}], "users": []}).encode()
        records = parse_upload(body, "all.json", "application/json", EntityName.BLOG)
        assert records == [{"title": "T"}]

    def test_csv_rows_unflatten(self) -> None:
        body = b"name,address.city\nKim,Oslo\nBroken\n"
        records = parse_upload(body, "users.csv", "text/csv", EntityName.USERS)
        assert records[0] == {"name": "Kim", "address": {"city": "Oslo"}}
        assert isinstance(records[1], MalformedRecord)
        assert records[1].reason.startswith("Line 3")

    def test_rejects_unknown_type(self) -> None:
        with pytest.raises(MalformedFileError):
            parse_upload(b"[]", "data.xlsx", "application/vnd.ms-excel", EntityName.USERS)

    def test_rejects_corrupt_json(self) -> None:
        with pytest.raises(MalformedFileError):
            parse_upload(b"{not json", "x.json", "application/json", EntityName.USERS)

    def test_rejects_empty(self) -> None:
        with pytest.raises(MalformedFileError):
            parse_upload(b"[]", "x.json", "application/json", EntityName.USERS)
        with pytest.raises(MalformedFileError):
            parse_upload(b"name,email\n", "x.csv", "text/csv", EntityName.USERS)

    def test_size_limit(self) -> None:
        assert read_upload(io.BytesIO(b"x" * 10), max_bytes=10) == b"x" * 10
        with pytest.raises(PayloadTooLargeError):
            read_upload(io.BytesIO(b"x" * 11), max_bytes=10)


class TestRoundTrip:
    def test_product_csv_export_imports_back(self, session: Session) -> None:
        _seed_category(session)
        ImportService(session).import_records(
            _job([_product("A", images=["a.jpg", "b, c.jpg"], description="Mug, large")])
        )
        csv_body: str = ExportService(session).export(EntityName.PRODUCTS, ExportFormat.CSV).body

        records = parse_upload(csv_body.encode(), "p.csv", "text/csv", EntityName.PRODUCTS)
        result = ImportService(session).import_records(_job(records, mode=ImportMode.UPSERT))
        assert result.success_count == 1
        assert result.updated == 1

        product = session.scalars(select(Products)).one()
        assert load_json_list(product.images) == ["a.jpg", "b, c.jpg"]
        assert product.description == "Mug, large"

    def test_json_export_upserts_instead_of_duplicating(self, session: Session) -> None:
        ImportService(session).import_records(
            _job([{"name": "Kim", "email": "kim@example.com"}], entity=EntityName.USERS)
        )
        body: str = ExportService(session).export(EntityName.ALL, ExportFormat.JSON).body

        records = parse_upload(body.encode(), "all.json", "application/json", EntityName.USERS)
        result = ImportService(session).import_records(
            _job(records, entity=EntityName.USERS, mode=ImportMode.UPSERT)
        )
        assert result.updated == 1
        assert _count(session, Users) == 1
