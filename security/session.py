import hashlib
import secrets
from datetime import timedelta
from typing import Optional, Tuple

from flask import current_app

from models import db
from models.access_token import AccessToken
from utils import clock

def _hash_token(token: str) -> str:
    # SHA-256 is fine for hashing random bearer tokens
    return hashlib.sha256(token.encode("utf-8")).hexdigest()

def issue_token(user_id: int, ip: Optional[str] = None, user_agent: Optional[str] = None,
                abilities=None, name: str = "api_token") -> Tuple[str, AccessToken]:
    """
    Creates a bearer token and returns (RAW token, row).
    Only the hash is stored in DB.
    """
    raw_token = secrets.token_urlsafe(40)

    lifetime = current_app.config.get("TOKEN_LIFETIME_SECONDS", 86400)
    expires_at = clock.utcnow() + timedelta(seconds=lifetime)

    row = AccessToken(
        user_id=user_id,
        name=name,
        token_hash=_hash_token(raw_token),
        abilities=list(abilities) if abilities else ["*"],
        expires_at=expires_at,
        ip=ip,
        user_agent=(user_agent or "")[:255],
    )
    db.session.add(row)
    db.session.commit()
    return raw_token, row

def resolve_token(raw_token: str) -> Optional[AccessToken]:
    if not raw_token:
        return None

    token = (
        AccessToken.query
        .filter_by(token_hash=_hash_token(raw_token), revoked=False)
        .first()
    )
    if not token:
        return None

    # Absolute expiry
    now = clock.utcnow()
    if token.expires_at <= now:
        return None

    token.last_used_at = now
    db.session.commit()
    return token

def revoke_token(raw_token: str) -> bool:
    if not raw_token:
        return False
    token = AccessToken.query.filter_by(token_hash=_hash_token(raw_token), revoked=False).first()
    if not token:
        return False
    token.revoked = True
    db.session.commit()
    return True
