"""
Per-source login throttle.

Windows live in the login_rate_limits table so they survive restarts and are
shared between workers. A window opens on the first hit and decays
`decay_seconds` later; counting is a SQL-side increment so concurrent
requests for the same key cannot undercount.
"""
from datetime import timedelta

from flask import current_app
from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError

from models import db
from models.login_rate_limit import LoginRateLimit
from utils import clock


def login_key(ip: str) -> str:
    # login_rate_limits.key is 128 chars
    return f"login_attempts:{(ip or 'unknown')[:64]}"


def _live_window(key: str):
    return db.session.execute(
        select(LoginRateLimit).where(
            LoginRateLimit.key == key,
            LoginRateLimit.expires_at > clock.utcnow(),
        )
    ).scalar_one_or_none()


def _increment(key: str, now) -> int:
    result = db.session.execute(
        update(LoginRateLimit)
        .where(LoginRateLimit.key == key, LoginRateLimit.expires_at > now)
        .values(attempts=LoginRateLimit.attempts + 1, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount


def hit(key: str, decay_seconds: int = None) -> int:
    """Record one attempt; returns the attempt count in the current window."""
    if decay_seconds is None:
        decay_seconds = current_app.config.get("LOGIN_RATE_DECAY_SECONDS", 900)
    now = clock.utcnow()

    if not _increment(key, now):
        # no live window: drop the stale one and open a fresh window
        db.session.execute(
            delete(LoginRateLimit)
            .where(LoginRateLimit.key == key, LoginRateLimit.expires_at <= now)
            .execution_options(synchronize_session=False)
        )
        db.session.add(LoginRateLimit(
            key=key,
            attempts=1,
            expires_at=now + timedelta(seconds=decay_seconds),
            updated_at=now,
        ))
        try:
            db.session.commit()
        except IntegrityError:
            # another request opened the window first
            db.session.rollback()
            _increment(key, now)
            db.session.commit()
    else:
        db.session.commit()

    return attempts(key)


def attempts(key: str) -> int:
    row = _live_window(key)
    return row.attempts if row else 0


def too_many_attempts(key: str, max_attempts: int = None) -> bool:
    if max_attempts is None:
        max_attempts = current_app.config.get("LOGIN_RATE_MAX_ATTEMPTS", 5)
    return attempts(key) >= max_attempts


def available_in(key: str) -> int:
    """Seconds until the window decays (0 when there is none)."""
    row = _live_window(key)
    if not row:
        return 0
    return max(int((row.expires_at - clock.utcnow()).total_seconds()), 1)


def clear(key: str):
    db.session.execute(
        delete(LoginRateLimit)
        .where(LoginRateLimit.key == key)
        .execution_options(synchronize_session=False)
    )
    db.session.commit()
