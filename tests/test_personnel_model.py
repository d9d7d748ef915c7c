"""
tests/test_personnel_model.py -- Sanitize-on-assignment and display helpers.
"""
from models.personnel import Personnel


def _person(**overrides):
    fields = dict(prefix="Ms.", first_name="Jane", last_name="Doe",
                  mobile_number="+1 555-1234", email="john@acme.com")
    fields.update(overrides)
    return Personnel(**fields)


def test_fields_sanitized_on_construction() -> None:
    p = _person(first_name=" Ja3ne! ", mobile_number="+1 (555) 12ab34", email=" John@ACME.com ")

    assert p.prefix == "Ms"
    assert p.first_name == "Jane"
    assert p.mobile_number == "+1 (555) 1234"
    assert p.email == "john@acme.com"


def test_direct_assignment_is_sanitized() -> None:
    p = _person()
    p.last_name = "Doe2  Smith"
    assert p.last_name == "Doe Smith"


def test_full_name() -> None:
    assert _person().full_name == "Ms Jane Doe"


def test_masked_email_keeps_two_characters() -> None:
    assert _person().masked_email == "jo**@acme.com"
    assert _person(email="ab@acme.com").masked_email == "ab@acme.com"


def test_masked_mobile_keeps_outer_digits() -> None:
    assert _person().masked_mobile == "15****34"
    assert _person(mobile_number="1234").masked_mobile == "****"


def test_to_dict_hides_audit_columns() -> None:
    data = _person().to_dict()
    assert "created_by" not in data
    assert "updated_by" not in data
    assert data["full_name"] == "Ms Jane Doe"


def test_is_deleted() -> None:
    from utils import clock

    p = _person()
    assert not p.is_deleted
    p.deleted_at = clock.utcnow()
    assert p.is_deleted
