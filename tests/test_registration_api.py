"""
tests/test_registration_api.py -- Registrant CRUD through /registration.

The duplicate-race tests disable the validator's uniqueness lookup so the
second write reaches the database exactly as it would if both requests had
passed the check before either committed; the partial unique index must
then turn the second write into a ConflictDuplicate.
"""
import pytest

from models.audit_log import AuditLog
from models.personnel import Personnel
from security.errors import ConflictDuplicate
from utils import registry
from utils.auth_context import RequestContext


def _record(**overrides):
    data = {
        "prefix": "Dr.",
        "first_name": "Joji",
        "last_name": "Frank",
        "mobile_number": "+1 555-1234",
        "email": "joji.frank@acme.com",
    }
    data.update(overrides)
    return data


@pytest.fixture
def create(client, auth_headers):
    def _create(**overrides):
        return client.post("/registration", json=_record(**overrides), headers=auth_headers)
    return _create


@pytest.fixture
def no_uniqueness_check(monkeypatch):
    monkeypatch.setattr("security.validation.exists_by", lambda column, value, exclude_id=None: False)


class TestAccess:
    def test_requires_token(self, client) -> None:
        assert client.get("/registration").status_code == 401
        assert client.post("/registration", json=_record()).status_code == 401

    def test_inactive_caller_forbidden(self, client, db, auth_headers) -> None:
        from models.user import User

        user = User.query.filter_by(email="officer@acme.com").one()
        user.is_active = False
        db.session.commit()

        assert client.get("/registration", headers=auth_headers).status_code == 403


class TestCreate:
    def test_creates_sanitized_record(self, create) -> None:
        resp = create(first_name="  Jo3ji ", email="  Joji.Frank@ACME.com ")

        assert resp.status_code == 201
        data = resp.get_json()["data"]
        assert data["first_name"] == "Joji"
        assert data["email"] == "joji.frank@acme.com"
        assert data["full_name"] == "Dr Joji Frank"
        assert "created_by" not in data

    def test_audit_fields_set_from_caller(self, db, create) -> None:
        from models.user import User

        resp = create()
        officer = User.query.filter_by(email="officer@acme.com").one()
        row = db.session.get(Personnel, resp.get_json()["data"]["id"])

        assert row.created_by == officer.id
        assert row.updated_by == officer.id
        assert AuditLog.query.filter_by(action="PERSONNEL_CREATE", entity_id=str(row.id)).count() == 1

    def test_invalid_record_reports_every_field(self, create) -> None:
        resp = create(prefix="", first_name="J", mobile_number="++1 555", email="nope")

        assert resp.status_code == 422
        assert set(resp.get_json()["errors"]) == {"prefix", "first_name", "mobile_number", "email"}
        audit = AuditLog.query.filter_by(action="PERSONNEL_VALIDATION_FAIL").one()
        assert "nope" not in audit.metadata_json

    def test_duplicate_email_rejected(self, create) -> None:
        assert create().status_code == 201
        resp = create(mobile_number="+1 555-9876")

        assert resp.status_code == 422
        assert resp.get_json()["errors"] == {"email": ["The email has already been taken."]}

    def test_soft_deleted_record_frees_its_values(self, client, auth_headers, create) -> None:
        first = create().get_json()["data"]
        client.delete(f"/registration/{first['id']}", headers=auth_headers)

        assert create().status_code == 201


class TestDuplicateRace:
    def test_second_concurrent_create_conflicts(self, create, no_uniqueness_check) -> None:
        assert create().status_code == 201
        resp = create(mobile_number="+1 555-9876")

        assert resp.status_code == 422
        assert resp.get_json()["errors"] == {"email": ["The email has already been taken."]}
        assert Personnel.query.filter_by(email="joji.frank@acme.com").count() == 1

    def test_pipeline_raises_conflict_duplicate(self, app, no_uniqueness_check) -> None:
        ctx = RequestContext(ip="127.0.0.1")
        registry.create_registrant(_record(), ctx)

        with pytest.raises(ConflictDuplicate) as excinfo:
            registry.create_registrant(_record(email="other@acme.com"), ctx)

        assert excinfo.value.field == "mobile_number"
        assert Personnel.query.count() == 1


class TestReadUpdateDelete:
    def test_get_by_id_is_audited(self, client, auth_headers, create) -> None:
        record_id = create().get_json()["data"]["id"]
        resp = client.get(f"/registration/{record_id}", headers=auth_headers)

        assert resp.status_code == 200
        assert resp.get_json()["data"]["email"] == "joji.frank@acme.com"
        assert AuditLog.query.filter_by(action="PERSONNEL_VIEW", entity_id=str(record_id)).count() == 1

    def test_missing_record_is_404(self, client, auth_headers) -> None:
        resp = client.get("/registration/999", headers=auth_headers)
        assert resp.status_code == 404
        assert resp.get_json() == {"error": "Registrant not found"}

    def test_partial_update(self, client, auth_headers, create) -> None:
        record_id = create().get_json()["data"]["id"]
        resp = client.put(f"/registration/{record_id}", json={"first_name": "Frankie"}, headers=auth_headers)

        assert resp.status_code == 200
        assert resp.get_json()["data"]["first_name"] == "Frankie"
        audit = AuditLog.query.filter_by(action="PERSONNEL_UPDATE").one()
        assert '"changed_fields": ["first_name"]' in audit.metadata_json

    def test_update_keeps_own_email(self, client, auth_headers, create) -> None:
        record_id = create().get_json()["data"]["id"]
        resp = client.put(
            f"/registration/{record_id}",
            json={"email": "joji.frank@acme.com", "mobile_number": "+1 555-1234"},
            headers=auth_headers,
        )
        assert resp.status_code == 200

    def test_update_to_anothers_email_rejected(self, client, auth_headers, create) -> None:
        create()
        other_id = create(email="ann@acme.com", mobile_number="+1 555-9876").get_json()["data"]["id"]

        resp = client.put(f"/registration/{other_id}", json={"email": "joji.frank@acme.com"}, headers=auth_headers)
        assert resp.status_code == 422
        assert "email" in resp.get_json()["errors"]

    def test_update_missing_record_is_404(self, client, auth_headers) -> None:
        resp = client.put("/registration/999", json={"first_name": "Frankie"}, headers=auth_headers)
        assert resp.status_code == 404

    def test_delete_is_soft(self, client, db, auth_headers, create) -> None:
        record_id = create().get_json()["data"]["id"]

        assert client.delete(f"/registration/{record_id}", headers=auth_headers).status_code == 200
        assert client.get(f"/registration/{record_id}", headers=auth_headers).status_code == 404
        assert client.delete(f"/registration/{record_id}", headers=auth_headers).status_code == 404

        db.session.expire_all()
        row = db.session.get(Personnel, record_id)
        assert row is not None and row.deleted_at is not None


class TestListing:
    @pytest.fixture
    def three(self, create):
        create()
        create(first_name="Ann", last_name="Santos", email="ann@acme.com", mobile_number="+63 917 555 0001")
        create(first_name="Ben", last_name="Reyes", email="ben@acme.com", mobile_number="+63 917 555 0002")

    def test_search_filters_results(self, client, auth_headers, three) -> None:
        resp = client.get("/registration?search=Santos", headers=auth_headers)

        results = resp.get_json()["results"]
        assert resp.status_code == 200
        assert [r["last_name"] for r in results["data"]] == ["Santos"]
        assert results["total"] == 1

    def test_sort_and_paginate(self, client, auth_headers, three) -> None:
        resp = client.get("/registration?sort_by=first_name&sort_order=asc&per_page=2", headers=auth_headers)

        results = resp.get_json()["results"]
        assert [r["first_name"] for r in results["data"]] == ["Ann", "Ben"]
        assert results["total"] == 3
        assert results["last_page"] == 2

    def test_unknown_sort_column_falls_back_and_is_audited(self, client, auth_headers, three) -> None:
        resp = client.get("/registration?sort_by=password_hash", headers=auth_headers)

        assert resp.status_code == 200
        assert AuditLog.query.filter_by(action="PERSONNEL_INVALID_SORT").count() == 1

    def test_invalid_parameters_rejected(self, client, auth_headers) -> None:
        resp = client.get("/registration?per_page=500&sort_order=sideways", headers=auth_headers)

        assert resp.status_code == 422
        assert resp.get_json()["error"] == "Invalid input parameters"

    def test_oversized_page_rejected(self, client, auth_headers) -> None:
        resp = client.get("/registration?page=99999999999999999999999", headers=auth_headers)

        assert resp.status_code == 422
        assert "page" in resp.get_json()["errors"]

    def test_page_past_the_end_is_empty(self, client, auth_headers, three) -> None:
        resp = client.get("/registration?page=2147483647", headers=auth_headers)

        assert resp.status_code == 200
        assert resp.get_json()["results"]["data"] == []

    def test_deleted_records_hidden(self, client, auth_headers, three) -> None:
        listing = client.get("/registration?search=ann", headers=auth_headers).get_json()["results"]
        client.delete(f"/registration/{listing['data'][0]['id']}", headers=auth_headers)

        resp = client.get("/registration", headers=auth_headers)
        assert resp.get_json()["results"]["total"] == 2

    def test_sql_keywords_in_search_are_harmless(self, client, auth_headers, three) -> None:
        resp = client.get("/registration", query_string={"search": "Ann union select"}, headers=auth_headers)

        assert resp.status_code == 200
        assert [r["first_name"] for r in resp.get_json()["results"]["data"]] == ["Ann"]
