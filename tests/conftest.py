"""Shared pytest fixtures.

The environment is pinned before the app is imported: an in-memory SQLite
database, no Redis, rate limiting off and no external credentials, so
Pusher, Firebase, Xendit and SMTP all take their "not configured" paths
unless a test monkeypatches them.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "production"
os.environ["REDIS_ENABLED"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SEED_DEFAULTS"] = "true"
os.environ["SECRET_KEY"] = "test-secret"
for _name in (
    "PUSHER_APP_ID",
    "PUSHER_KEY",
    "PUSHER_SECRET",
    "XENDIT_SECRET_KEY",
    "FIREBASE_PROJECT_ID",
    "FIREBASE_CREDENTIALS_FILE",
    "SMTP_USER",
    "SMTP_PASSWORD",
):
    os.environ.pop(_name, None)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.exc import OperationalError  # noqa: E402

from app import rate_limiter  # noqa: E402
from app.cache import cache  # noqa: E402
from app.database import Base, SessionLocal, engine, get_db  # noqa: E402
from app.errors import error_tracker  # noqa: E402
from app.main import app  # noqa: E402
from app.models import User, UserSession  # noqa: E402
from app.security_utils import generate_session_token, hash_password_bcrypt, session_expiry  # noqa: E402
from app.seed import seed_defaults  # noqa: E402

# ── Database ─────────────────────────────────────────────────────────────────


@pytest.fixture(autouse=True)
def reset_state():
    """Fresh schema, seeded reference data and empty caches for every test"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        seed_defaults(db)
    finally:
        db.close()

    cache.clear_local()
    error_tracker.reset()
    with rate_limiter.cache_lock:
        rate_limiter.memory_cache.clear()

    yield

    app.dependency_overrides.clear()


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    """TestClient without lifespan so the payment-methods poller stays off"""
    return TestClient(app)


@pytest.fixture
def broken_db():
    """Route every get_db dependency to a session whose queries fail"""

    class BrokenSession:
        def query(self, *args, **kwargs):
            raise OperationalError("SELECT 1", {}, Exception("connection refused"))

        def rollback(self):
            pass

        def close(self):
            pass

    def override():
        yield BrokenSession()

    app.dependency_overrides[get_db] = override
    return BrokenSession


# ── Users and sessions ───────────────────────────────────────────────────────


@pytest.fixture
def make_user(db):
    def _make_user(
        email="customer@example.com",
        password="secret123",
        role="user",
        branch_location="Tumaga Branch",
        **extra,
    ) -> User:
        user = User(
            email=email,
            full_name=extra.pop("full_name", "Test User"),
            password=hash_password_bcrypt(password),
            role=role,
            branch_location=branch_location,
            **extra,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def auth_headers(db):
    """Bearer headers for a fresh session of the given user"""

    def _auth_headers(user: User) -> dict:
        session = UserSession(
            user_id=user.id,
            session_token=generate_session_token(),
            expires_at=session_expiry(),
        )
        db.add(session)
        db.commit()
        return {"Authorization": f"Bearer {session.session_token}"}

    return _auth_headers


@pytest.fixture
def admin_headers(make_user, auth_headers):
    admin = make_user(email="admin@example.com", role="admin")
    return auth_headers(admin)
