from email_validator import EmailNotValidError, validate_email

from models import db
from models.user import ROLE_OWNER, User
from security.password import hash_password
from utils import account_store


class SeedError(ValueError):
    pass


def seed_owner(email, password, name="Owner"):
    """
    Creates the owner account. Returns (user, created); an existing account
    with that email is left untouched.
    """
    email = (email or "").strip().lower()
    if not email or not password:
        raise SeedError("INITIAL_EMAIL and INITIAL_PASSWORD must be set.")

    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError as exc:
        raise SeedError("INITIAL_EMAIL must be a valid email address.") from exc

    if len(password) < 8:
        raise SeedError("INITIAL_PASSWORD must be at least 8 characters long.")

    existing = account_store.find_by_email(email)
    if existing:
        return existing, False

    user = User(
        name=name,
        email=email,
        password_hash=hash_password(password),
        role=ROLE_OWNER,
    )
    db.session.add(user)
    db.session.commit()
    return user, True
