from datetime import datetime
from typing import Optional

from models.db import db
from utils import clock

ROLE_OWNER = "owner"
ROLE_ADMIN = "admin"
ROLE_USER = "user"

ADMIN_ROLES = {ROLE_ADMIN, ROLE_OWNER}


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(20), default=ROLE_USER, nullable=False)  # owner, admin, user
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    # lockout state, only mutated through utils.account_store
    failed_login_attempts = db.Column(db.Integer, default=0, nullable=False)
    locked_until = db.Column(db.DateTime, nullable=True)
    last_failed_login = db.Column(db.DateTime, nullable=True)

    last_login = db.Column(db.DateTime, nullable=True)
    last_login_ip = db.Column(db.String(64), nullable=True)

    created_at = db.Column(db.DateTime, default=clock.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=clock.utcnow, onupdate=clock.utcnow, nullable=False)

    tokens = db.relationship("AccessToken", back_populates="user", cascade="all, delete-orphan")

    def is_locked_out(self, now: Optional[datetime] = None) -> bool:
        now = now or clock.utcnow()
        return self.locked_until is not None and self.locked_until > now

    def has_role(self, role: str) -> bool:
        return self.role == role

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES

    @property
    def is_owner(self) -> bool:
        return self.role == ROLE_OWNER

    def to_dict(self) -> dict:
        # password hash and the failed-attempt counter never leave the server
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "is_active": self.is_active,
            "last_login": self.last_login.isoformat() if self.last_login else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
