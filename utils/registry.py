"""
Registrant operations: sanitize -> validate -> persist -> audit.

Each write is one transaction. The validator's uniqueness check gives callers
a friendly error in the common case; the partial unique indexes catch the
race where two writers pass the check at the same time.
"""
import logging

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from models import db
from models.personnel import PERSONNEL_FIELDS
from security.errors import ConflictDuplicate, NotFound, Unexpected, ValidationFailed
from security.sanitize import sanitize_email, sanitize_mobile_number, sanitize_name, sanitize_search
from security.validation import validate_listing, validate_personnel
from utils import personnel_store
from utils.audit import log_event

logger = logging.getLogger(__name__)

_SANITIZERS = {
    "prefix": sanitize_name,
    "first_name": sanitize_name,
    "last_name": sanitize_name,
    "mobile_number": sanitize_mobile_number,
    "email": sanitize_email,
}


def sanitize_fields(data: dict) -> dict:
    """Keep only writable fields and normalize them the same way the model does."""
    return {k: _SANITIZERS[k](data[k]) for k in PERSONNEL_FIELDS if k in data}


def _unexpected(message: str, ctx, exc: Exception, **extra):
    db.session.rollback()
    logger.exception("%s: user_id=%s ip=%s error_class=%s %s",
                     message, ctx.actor_id, ctx.ip, type(exc).__name__, extra or "")
    return Unexpected(message)


def _duplicate_field(fields: dict, exclude_id=None):
    for column in personnel_store.UNIQUE_COLUMNS:
        if column in fields and personnel_store.exists_by(column, fields[column], exclude_id=exclude_id):
            return column
    return None


def _reject_invalid(errors: dict, ctx, personnel_id=None):
    log_event(
        "PERSONNEL_VALIDATION_FAIL", ctx,
        entity="personnel", entity_id=personnel_id,
        metadata={"failed_fields": sorted(errors)},
        level=logging.WARNING,
    )
    raise ValidationFailed(errors, "Validation failed")


def list_registrants(params: dict, ctx):
    max_per_page = current_app.config.get("REGISTRATION_MAX_PER_PAGE", 100)
    errors = validate_listing(params, max_per_page)
    if errors:
        raise ValidationFailed(errors, "Invalid input parameters")

    search = sanitize_search(params.get("search"))
    if search:
        log_event("PERSONNEL_SEARCH", ctx, metadata={"search_length": len(search)})

    sort_by = params.get("sort_by") or "created_at"
    if sort_by not in personnel_store.SORTABLE_COLUMNS:
        log_event("PERSONNEL_INVALID_SORT", ctx, metadata={"attempted_sort": sort_by},
                  level=logging.WARNING)
        sort_by = "created_at"

    sort_order = "asc" if (params.get("sort_order") or "desc").lower() == "asc" else "desc"
    per_page = min(int(params.get("per_page") or current_app.config.get("REGISTRATION_DEFAULT_PER_PAGE", 10)),
                   max_per_page)
    page = int(params.get("page") or 1)

    try:
        result = personnel_store.search(search, sort_by, sort_order, page, per_page)
    except SQLAlchemyError as exc:
        raise _unexpected("Unable to retrieve data", ctx, exc) from exc

    log_event("PERSONNEL_LIST", ctx, metadata={"records_count": len(result.items)})
    return result


def get_registrant(personnel_id, ctx):
    try:
        personnel = personnel_store.find_by_id(personnel_id)
    except SQLAlchemyError as exc:
        raise _unexpected("Unable to retrieve registrant", ctx, exc, personnel_id=personnel_id) from exc

    if personnel is None:
        log_event("PERSONNEL_NOT_FOUND", ctx, entity="personnel", entity_id=personnel_id,
                  level=logging.WARNING)
        raise NotFound()

    log_event("PERSONNEL_VIEW", ctx, entity="personnel", entity_id=personnel.id,
              metadata={"operation": "view"}, level=logging.WARNING)
    return personnel


def create_registrant(data: dict, ctx):
    fields = sanitize_fields(data)
    errors = validate_personnel(
        fields, check_deliverability=current_app.config.get("EMAIL_CHECK_DELIVERABILITY", True)
    )
    if errors:
        _reject_invalid(errors, ctx)

    try:
        personnel = personnel_store.create(fields, actor_id=ctx.actor_id)
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        column = _duplicate_field(fields)
        if column is None:
            raise _unexpected("Unable to create registrant", ctx, exc) from exc
        raise ConflictDuplicate(column) from exc
    except SQLAlchemyError as exc:
        raise _unexpected("Unable to create registrant", ctx, exc) from exc

    log_event("PERSONNEL_CREATE", ctx, entity="personnel", entity_id=personnel.id, metadata={
        "has_email": bool(personnel.email),
        "has_mobile": bool(personnel.mobile_number),
        "email": personnel.masked_email,
    })
    return personnel


def update_registrant(personnel_id, data: dict, ctx):
    personnel = personnel_store.find_by_id(personnel_id)
    if personnel is None:
        log_event("PERSONNEL_NOT_FOUND", ctx, entity="personnel", entity_id=personnel_id,
                  metadata={"operation": "update"}, level=logging.WARNING)
        raise NotFound("Registrant does not exist")

    record_id = personnel.id
    fields = sanitize_fields(data)
    errors = validate_personnel(
        fields, record_id=record_id, partial=True,
        check_deliverability=current_app.config.get("EMAIL_CHECK_DELIVERABILITY", True),
    )
    if errors:
        _reject_invalid(errors, ctx, personnel.id)

    try:
        changed = personnel_store.update(personnel, fields, actor_id=ctx.actor_id)
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        column = _duplicate_field(fields, exclude_id=record_id)
        if column is None:
            raise _unexpected("Unable to update registrant", ctx, exc, personnel_id=personnel_id) from exc
        raise ConflictDuplicate(column) from exc
    except SQLAlchemyError as exc:
        raise _unexpected("Unable to update registrant", ctx, exc, personnel_id=personnel_id) from exc

    log_event("PERSONNEL_UPDATE", ctx, entity="personnel", entity_id=personnel.id, metadata={
        "changed_fields": changed,
        "email_changed": "email" in changed,
        "mobile_changed": "mobile_number" in changed,
    })
    return personnel


def delete_registrant(personnel_id, ctx):
    personnel = personnel_store.find_by_id(personnel_id)
    if personnel is None:
        log_event("PERSONNEL_NOT_FOUND", ctx, entity="personnel", entity_id=personnel_id,
                  metadata={"operation": "delete"}, level=logging.WARNING)
        raise NotFound("Registrant does not exist")

    try:
        personnel_store.soft_delete(personnel, actor_id=ctx.actor_id)
        db.session.commit()
    except SQLAlchemyError as exc:
        raise _unexpected("Unable to delete registrant", ctx, exc, personnel_id=personnel_id) from exc

    log_event("PERSONNEL_DELETE", ctx, entity="personnel", entity_id=personnel.id,
              metadata={"soft_delete": True}, level=logging.WARNING)
