"""
Login, logout and current-user resolution.

Order of checks in login() matters: the per-IP throttle runs before anything
touches the accounts table, and every credential failure (unknown account,
inactive account, wrong password) takes the same path out: one bcrypt
comparison, a rate-limit hit and the same fixed delay.
"""
import logging
import time
from dataclasses import dataclass

from flask import current_app

from models.user import User
from security import bruteforce, rate_limit
from security.errors import (
    AccountLocked,
    CredentialsInvalid,
    Forbidden,
    RateLimited,
    Unauthenticated,
    ValidationFailed,
)
from security.password import burn_verification, verify_password
from security.session import issue_token, revoke_token
from security.validation import validate_login
from utils import account_store
from utils.audit import log_event


@dataclass
class LoginResult:
    token: str
    user: User
    expires_in: int

    def to_dict(self) -> dict:
        return {
            "message": "Login successful!",
            "token": self.token,
            "token_type": "Bearer",
            "expires_in": self.expires_in,
            "user": self.user.to_dict(),
        }


def _failure_delay():
    time.sleep(float(current_app.config.get("LOGIN_FAILURE_DELAY_SECONDS", 1.0)))


def _reject_credentials(key: str, decay: int):
    rate_limit.hit(key, decay)
    _failure_delay()
    raise CredentialsInvalid()


def login(data: dict, ctx) -> LoginResult:
    key = rate_limit.login_key(ctx.ip)
    max_attempts = current_app.config.get("LOGIN_RATE_MAX_ATTEMPTS", 5)
    decay = current_app.config.get("LOGIN_RATE_DECAY_SECONDS", 900)

    if rate_limit.too_many_attempts(key, max_attempts):
        seconds = rate_limit.available_in(key)
        log_event("LOGIN_RATE_LIMIT", ctx, metadata={"retry_after": seconds}, level=logging.WARNING)
        raise RateLimited(seconds)

    data = dict(data)
    if isinstance(data.get("email"), str):
        data["email"] = data["email"].strip().lower()

    errors = validate_login(data)
    if errors:
        log_event("LOGIN_VALIDATION_FAIL", ctx, metadata={"failed_fields": sorted(errors)})
        raise ValidationFailed(errors, "Invalid input provided.")

    email = data["email"]
    password = data["password"]

    user = account_store.find_by_email(email)
    if user is None or not user.is_active:
        burn_verification(password)
        log_event(
            "LOGIN_FAIL", ctx,
            user_id=user.id if user else None,
            metadata={"email": email, "reason": "inactive_account" if user else "user_not_found"},
            level=logging.WARNING,
        )
        _reject_credentials(key, decay)

    locked, seconds_left = bruteforce.is_locked(user)
    if locked:
        log_event("LOGIN_LOCKED", ctx, user_id=user.id,
                  metadata={"email": email, "seconds_left": seconds_left}, level=logging.WARNING)
        raise AccountLocked(seconds_left)

    if not verify_password(password, user.password_hash):
        fail_count, locked_now = bruteforce.register_failure(user)
        if locked_now:
            log_event("ACCOUNT_LOCKED", ctx, user_id=user.id,
                      metadata={"email": email, "failed_attempts": fail_count}, level=logging.CRITICAL)
        log_event(
            "LOGIN_FAIL", ctx,
            user_id=user.id,
            metadata={"email": email, "reason": "invalid_password", "failed_attempts": fail_count},
            level=logging.WARNING,
        )
        _reject_credentials(key, decay)

    bruteforce.reset_attempts(user, ctx.ip)
    rate_limit.clear(key)

    raw_token, _ = issue_token(user.id, ip=ctx.ip, user_agent=ctx.user_agent, abilities=["*"])
    log_event("LOGIN_SUCCESS", ctx, user_id=user.id, metadata={"email": email})

    lifetime = current_app.config.get("TOKEN_LIFETIME_SECONDS", 86400)
    return LoginResult(token=raw_token, user=user, expires_in=lifetime)


def logout(ctx) -> int:
    """Revokes only the token presented with this request."""
    if ctx.actor is None or not ctx.token:
        raise Unauthenticated()

    revoked = 1 if revoke_token(ctx.token) else 0
    log_event("LOGOUT", ctx, metadata={"tokens_revoked": revoked})
    return revoked


def current_user(ctx) -> User:
    user = ctx.actor
    if user is None:
        raise Unauthenticated()

    if not user.is_active:
        log_event("INACTIVE_USER_ACCESS", ctx, level=logging.WARNING)
        raise Forbidden()
    return user
