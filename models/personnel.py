import re

from sqlalchemy.orm import validates

from models.db import db
from security.sanitize import sanitize_email, sanitize_mobile_number, sanitize_name
from utils import clock

_NON_DIGIT = re.compile(r"\D")

PERSONNEL_FIELDS = ("prefix", "first_name", "last_name", "mobile_number", "email")


class Personnel(db.Model):
    __tablename__ = "personnel"
    __table_args__ = (
        # uniqueness only among live rows; soft-deleted rows may repeat values
        db.Index(
            "personnel_email_unique", "email", unique=True,
            sqlite_where=db.text("deleted_at IS NULL"),
            postgresql_where=db.text("deleted_at IS NULL"),
        ),
        db.Index(
            "personnel_mobile_unique", "mobile_number", unique=True,
            sqlite_where=db.text("deleted_at IS NULL"),
            postgresql_where=db.text("deleted_at IS NULL"),
        ),
    )

    id = db.Column(db.Integer, primary_key=True)

    prefix = db.Column(db.String(20), nullable=False)
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    mobile_number = db.Column(db.String(20), nullable=False)
    email = db.Column(db.String(255), nullable=False)

    created_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    updated_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    created_at = db.Column(db.DateTime, default=clock.utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=clock.utcnow, onupdate=clock.utcnow, nullable=False)
    deleted_at = db.Column(db.DateTime, nullable=True, index=True)

    creator = db.relationship("User", foreign_keys=[created_by])
    updater = db.relationship("User", foreign_keys=[updated_by])

    # Sanitize on assignment so direct mutation can't bypass it
    @validates("prefix", "first_name", "last_name")
    def _sanitize_name(self, key, value):
        return sanitize_name(value)

    @validates("mobile_number")
    def _sanitize_mobile(self, key, value):
        return sanitize_mobile_number(value)

    @validates("email")
    def _sanitize_email(self, key, value):
        return sanitize_email(value)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.prefix, self.first_name, self.last_name) if p).strip()

    @property
    def masked_email(self) -> str:
        if not self.email:
            return ""
        parts = self.email.split("@")
        if len(parts) != 2:
            return "***"
        username, domain = parts
        return username[:2] + "*" * max(0, len(username) - 2) + "@" + domain

    @property
    def masked_mobile(self) -> str:
        if not self.mobile_number:
            return ""
        digits = _NON_DIGIT.sub("", self.mobile_number)
        if len(digits) <= 4:
            return "*" * len(digits)
        return digits[:2] + "*" * (len(digits) - 4) + digits[-2:]

    def to_dict(self) -> dict:
        # created_by/updated_by stay server-side
        return {
            "id": self.id,
            "prefix": self.prefix,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "full_name": self.full_name,
            "mobile_number": self.mobile_number,
            "email": self.email,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
