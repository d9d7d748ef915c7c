from datetime import timedelta

from flask import current_app

from models import db
from models.user import User
from utils import account_store, clock

def is_locked(user: User) -> tuple[bool, int]:
    """
    Returns (locked, seconds_remaining)
    """
    now = clock.utcnow()
    if not user.is_locked_out(now):
        return False, 0

    seconds = int((user.locked_until - now).total_seconds())
    return True, max(seconds, 1)

def register_failure(user: User) -> tuple[int, bool]:
    """
    Increments the account's failure counter. Returns (fail_count, locked_now)
    """
    now = clock.utcnow()
    fail_count = account_store.increment_failed_attempts(user.id, now)

    max_attempts = current_app.config.get("MAX_LOGIN_ATTEMPTS", 5)
    lock_minutes = current_app.config.get("LOCKOUT_MINUTES", 30)

    locked_now = False
    if fail_count >= max_attempts:
        account_store.set_lock_until(user.id, now + timedelta(minutes=lock_minutes))
        locked_now = True

    db.session.commit()
    return fail_count, locked_now

def reset_attempts(user: User, ip: str):
    """
    Clears failure counter and lock after successful login, records last login.
    """
    account_store.reset_lockout_fields(user.id, ip, clock.utcnow())
    db.session.commit()
