import os
import tempfile
from datetime import date

import pytest

# Set env before importing app components
_TMP_DIR = tempfile.mkdtemp(prefix="leavedesk-tests-")
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'app.db')}"
os.environ.setdefault("SMTP_ENABLED", "false")

from sqlalchemy.orm import sessionmaker

from leavedesk.database import build_engine, get_db, init_db
from leavedesk.models.user import User, UserRole
from leavedesk.services.leave_workflow import build_leave_service
from leavedesk.services.policy import PolicySettings

# Friday; every scenario date in January 2024 lies in the future
FIXED_TODAY = date(2023, 12, 1)


class RecordingEmail:
    """Email collaborator double that records every send."""

    def __init__(self, succeed: bool = True):
        self.sent = []
        self.succeed = succeed

    def send(self, template_id, recipient, variables):
        self.sent.append({"template_id": template_id, "recipient": recipient, "variables": variables})
        return self.succeed

    def templates(self):
        return [s["template_id"] for s in self.sent]


@pytest.fixture(scope="function")
def engine(tmp_path):
    """A fresh SQLite database file per test."""
    engine = build_engine(f"sqlite:///{tmp_path / 'test.db'}")
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture(scope="function")
def make_user(db_session):
    """Factory for users with configurable allocations."""
    counter = {"n": 0}

    def _make_user(role=UserRole.STAFF, **fields):
        counter["n"] += 1
        n = counter["n"]
        defaults = {
            "username": f"user{n}",
            "email": f"user{n}@example.com",
            "first_name": f"First{n}",
            "last_name": f"Last{n}",
            "department": "Ministry",
            "role": role,
        }
        defaults.update(fields)
        user = User(**defaults)
        db_session.add(user)
        db_session.commit()
        return user

    return _make_user


@pytest.fixture(scope="function")
def staff_user(make_user):
    return make_user(first_name="Sam", last_name="Staff", annual_leave=20, annual_leave_used=0)


@pytest.fixture(scope="function")
def hr_user(make_user):
    return make_user(role=UserRole.HR, first_name="Helen", last_name="Resources", email="hr@example.com")


@pytest.fixture(scope="function")
def policy(db_session):
    """Policy bound to the test session, with weekends excluded from day counts."""
    policy = PolicySettings(db_session)
    policy.set("weekend_counts_as_leave", False)
    db_session.commit()
    return policy


@pytest.fixture(scope="function")
def email():
    return RecordingEmail()


@pytest.fixture(scope="function")
def make_service(email):
    """Build a leave service around any session, pinned to FIXED_TODAY."""
    def _make_service(session, **kwargs):
        return build_leave_service(session, email=email, today=lambda: FIXED_TODAY, **kwargs)

    return _make_service


@pytest.fixture(scope="function")
def service(db_session, policy, make_service):
    return make_service(db_session)


@pytest.fixture(scope="function")
def client(session_factory, email):
    """A TestClient that uses the test database and the recording email double."""
    from fastapi.testclient import TestClient
    from leavedesk.main import app
    from leavedesk.routers.deps import get_email_service

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_email_service] = lambda: email
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
