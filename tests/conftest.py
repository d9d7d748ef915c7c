"""
tests/conftest.py -- Shared fixtures for the personnel registry tests.

Each test gets its own Flask app bound to a temp-file SQLite database, so
request handlers (own app context, own session) and test code (the fixture's
app context) see the same committed data without sharing a connection.

The fixed login-failure delay is replaced by a recorder: tests assert on the
requested durations instead of actually sleeping.
"""
from datetime import timedelta

import pytest

from app import create_app
from config import TestingConfig
from models import db as _db
from models.user import ROLE_ADMIN, User
from security.password import hash_password
from utils import clock

PASSWORD = "correct-horse-battery"


@pytest.fixture
def app(tmp_path):
    class _Config(TestingConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'registry.db'}"

    app = create_app(_Config)
    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db(app):
    return _db


@pytest.fixture(autouse=True)
def sleeps(monkeypatch):
    """Durations passed to time.sleep during the test."""
    calls = []
    monkeypatch.setattr("security.auth_session.time.sleep", calls.append)
    return calls


@pytest.fixture
def frozen_clock(monkeypatch):
    """Controllable clock: call .advance(**timedelta_kwargs) to move time forward."""

    class _Clock:
        def __init__(self):
            self.now = clock.utcnow()

        def __call__(self):
            return self.now

        def advance(self, **kwargs):
            self.now += timedelta(**kwargs)

    fake = _Clock()
    monkeypatch.setattr(clock, "utcnow", fake)
    return fake


@pytest.fixture
def make_user(app):
    def _make(email="officer@acme.com", password=PASSWORD, is_active=True, role=ROLE_ADMIN, name="Officer"):
        user = User(
            name=name,
            email=email,
            password_hash=hash_password(password),
            role=role,
            is_active=is_active,
        )
        _db.session.add(user)
        _db.session.commit()
        return user
    return _make


@pytest.fixture
def login(client):
    def _login(email="officer@acme.com", password=PASSWORD, ip="198.51.100.10"):
        return client.post(
            "/login",
            json={"email": email, "password": password},
            environ_base={"REMOTE_ADDR": ip},
        )
    return _login


@pytest.fixture
def auth_headers(make_user, login):
    """Bearer headers for a fresh active admin account."""
    make_user()
    resp = login()
    assert resp.status_code == 200
    return {"Authorization": f"Bearer {resp.get_json()['token']}"}


def reload(obj):
    """Fresh copy of a row after a request changed it in another session."""
    _db.session.expire_all()
    return _db.session.get(type(obj), obj.id)
