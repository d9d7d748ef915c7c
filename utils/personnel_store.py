"""Persistence boundary for personnel records. Soft-deleted rows are invisible here."""
from typing import Optional

from sqlalchemy import exists, or_, select

from models import db
from models.personnel import PERSONNEL_FIELDS, Personnel
from security.sanitize import escape_like
from utils import clock

SORTABLE_COLUMNS = ("id", "first_name", "last_name", "mobile_number", "email", "created_at", "updated_at")
UNIQUE_COLUMNS = ("email", "mobile_number")


def _live():
    return select(Personnel).where(Personnel.deleted_at.is_(None))


def find_by_id(personnel_id) -> Optional[Personnel]:
    try:
        personnel_id = int(personnel_id)
    except (TypeError, ValueError):
        return None
    return db.session.execute(_live().where(Personnel.id == personnel_id)).scalar_one_or_none()


def exists_by(column: str, value, exclude_id: Optional[int] = None) -> bool:
    if column not in UNIQUE_COLUMNS:
        raise ValueError(f"Uniqueness is not tracked for {column!r}")
    col = getattr(Personnel, column)
    clause = exists().where(col == value, Personnel.deleted_at.is_(None))
    if exclude_id is not None:
        clause = clause.where(Personnel.id != exclude_id)
    return bool(db.session.execute(select(clause)).scalar())


def search(term: Optional[str] = None, sort_by: str = "created_at", sort_order: str = "desc",
           page: int = 1, per_page: int = 10):
    """
    Page through live records. `term` must already be sanitized; `sort_by`
    must be one of SORTABLE_COLUMNS.
    """
    if sort_by not in SORTABLE_COLUMNS:
        raise ValueError(f"Unsupported sort column {sort_by!r}")

    query = _live()
    if term:
        pattern = f"%{escape_like(term)}%"
        query = query.where(or_(
            Personnel.first_name.ilike(pattern, escape="\\"),
            Personnel.last_name.ilike(pattern, escape="\\"),
            Personnel.mobile_number.ilike(pattern, escape="\\"),
            Personnel.email.ilike(pattern, escape="\\"),
        ))

    column = getattr(Personnel, sort_by)
    order = column.asc() if sort_order == "asc" else column.desc()
    query = query.order_by(order, Personnel.id.asc() if sort_order == "asc" else Personnel.id.desc())

    return db.paginate(query, page=page, per_page=per_page, error_out=False, count=True)


def create(fields: dict, actor_id: Optional[int] = None) -> Personnel:
    """Stages a new record; the caller commits."""
    personnel = Personnel(**{k: fields[k] for k in PERSONNEL_FIELDS if k in fields})
    personnel.created_by = actor_id
    personnel.updated_by = actor_id
    db.session.add(personnel)
    db.session.flush()
    return personnel


def update(personnel: Personnel, fields: dict, actor_id: Optional[int] = None) -> list:
    """Stages changes; returns the names of fields whose value actually changed."""
    changed = []
    for key in PERSONNEL_FIELDS:
        if key not in fields:
            continue
        before = getattr(personnel, key)
        setattr(personnel, key, fields[key])
        if getattr(personnel, key) != before:
            changed.append(key)
    personnel.updated_by = actor_id
    db.session.flush()
    return changed


def soft_delete(personnel: Personnel, actor_id: Optional[int] = None) -> Personnel:
    personnel.deleted_at = clock.utcnow()
    personnel.updated_by = actor_id
    db.session.flush()
    return personnel
