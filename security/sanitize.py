"""
Normalization of untrusted text before it reaches storage or a query.

These run independently of validation: the Personnel model applies the
record sanitizers on every attribute assignment, and the registry listing
applies sanitize_search to the free-text filter.
"""
import html
import re
from typing import Optional

import bleach

# letters only (\w minus digits and underscore)
_NOT_NAME_CHAR = re.compile(r"[^\w\s'-]|[\d_]")
_NOT_MOBILE_CHAR = re.compile(r"[^\d+\-\s()]", re.ASCII)
_NOT_EMAIL_CHAR = re.compile(r"[^A-Za-z0-9!#$%&'*+\-=?^_`{|}~@.\[\]]")
_WHITESPACE_RUN = re.compile(r"\s+")

_SQL_KEYWORDS = re.compile(r"\b(union|select|insert|update|delete)\b", re.IGNORECASE)
_SEARCH_LEFTOVERS = re.compile(r"[<>\"']")


def sanitize_name(value):
    """Used for prefix, first_name and last_name."""
    if not isinstance(value, str):
        return value
    value = _NOT_NAME_CHAR.sub("", value)
    return _WHITESPACE_RUN.sub(" ", value.strip())


def sanitize_mobile_number(value):
    if not isinstance(value, str):
        return value
    return _NOT_MOBILE_CHAR.sub("", value).strip()


def sanitize_email(value):
    if not isinstance(value, str):
        return value
    return _NOT_EMAIL_CHAR.sub("", value.strip().lower())


def _escape_quotes(value: str) -> str:
    return html.escape(value, quote=True).replace("&#x27;", "&#039;")


def sanitize_search(value: Optional[str]) -> Optional[str]:
    """
    Returns None for None/"" and "" for whitespace-only input.

    Tags are stripped (content kept), quotes become entities, SQL keywords
    are removed as whole words and stray angle brackets/quotes are dropped.
    """
    if not value:
        return None

    text = html.unescape(bleach.clean(value, tags=[], strip=True)).strip()
    text = _escape_quotes(text)
    text = _SQL_KEYWORDS.sub("", text)
    text = _SEARCH_LEFTOVERS.sub("", text)
    return text.strip()


def escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
