from dataclasses import dataclass
from functools import wraps
from typing import Optional

from flask import g, request

from models.user import User
from security.errors import Forbidden, Unauthenticated
from security.session import resolve_token


@dataclass(frozen=True)
class RequestContext:
    """Who is acting and from where; passed explicitly into core operations."""

    ip: str
    user_agent: str = ""
    actor: Optional[User] = None
    token: Optional[str] = None

    @property
    def actor_id(self) -> Optional[int]:
        return self.actor.id if self.actor is not None else None


def client_ip() -> str:
    # ProxyFix has already replaced remote_addr when the app sits behind trusted proxies
    return request.remote_addr or "unknown"


def bearer_token() -> Optional[str]:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def load_current_user():
    raw_token = bearer_token()
    token = resolve_token(raw_token) if raw_token else None
    if not token:
        g.user = None
        g.token = None
        return
    g.token = raw_token
    g.user = token.user


def current_context() -> RequestContext:
    return RequestContext(
        ip=client_ip(),
        user_agent=(request.headers.get("User-Agent") or "")[:255],
        actor=getattr(g, "user", None),
        token=getattr(g, "token", None),
    )


def login_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if getattr(g, "user", None) is None:
            raise Unauthenticated()
        return fn(*args, **kwargs)
    return wrapper


def active_user_required(fn):
    @wraps(fn)
    @login_required
    def wrapper(*args, **kwargs):
        if not g.user.is_active:
            raise Forbidden()
        return fn(*args, **kwargs)
    return wrapper
