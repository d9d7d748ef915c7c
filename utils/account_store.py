from typing import Optional

from sqlalchemy import func, select, update

from models import db
from models.user import User
from utils import clock


def find_by_email(email: str) -> Optional[User]:
    if not email:
        return None
    return db.session.execute(
        select(User).where(func.lower(User.email) == email.strip().lower())
    ).scalar_one_or_none()


def increment_failed_attempts(user_id: int, now=None) -> int:
    """Atomic +1 on the counter; returns the value after the increment."""
    now = now or clock.utcnow()
    db.session.execute(
        update(User)
        .where(User.id == user_id)
        .values(failed_login_attempts=User.failed_login_attempts + 1, last_failed_login=now)
        .execution_options(synchronize_session=False)
    )
    return db.session.execute(
        select(User.failed_login_attempts).where(User.id == user_id)
    ).scalar_one()


def set_lock_until(user_id: int, until):
    db.session.execute(
        update(User)
        .where(User.id == user_id)
        .values(locked_until=until)
        .execution_options(synchronize_session=False)
    )


def reset_lockout_fields(user_id: int, ip: Optional[str], now=None):
    now = now or clock.utcnow()
    db.session.execute(
        update(User)
        .where(User.id == user_id)
        .values(failed_login_attempts=0, locked_until=None, last_login=now, last_login_ip=ip)
        .execution_options(synchronize_session=False)
    )
