import os
import tempfile

import pytest

# Point the app at a throwaway SQLite file before anything imports app.config
_db_dir = tempfile.mkdtemp(prefix="placement-portal-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_db_dir, 'test.db')}"
os.environ["JWT_SECRET"] = "test-secret"

from fastapi.testclient import TestClient  # noqa: E402

from app.database import Base, SessionLocal, engine  # noqa: E402
from app.models import Job, Student  # noqa: E402
from app.services import auth_service  # noqa: E402
from main import app  # noqa: E402


@pytest.fixture(autouse=True)
def setup_database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def admin(db):
    return auth_service.create_user(db, "admin", "secret123", "Placement Office")


@pytest.fixture
def auth_client(client, admin):
    token = auth_service.create_access_token(admin.id, admin.username)
    client.headers.update({"Authorization": f"Bearer {token}"})
    return client


@pytest.fixture
def make_student(db):
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        fields = dict(
            name=f"Student {counter['n']}",
            roll_number=f"2211{counter['n']:04d}",
            department="BTech AIDS",
            batch="2022-2026",
            section="A",
            cgpa=8.0,
            current_arrears=0,
            placement_status="OPTED_IN",
            can_sit_for_more=True,
        )
        fields.update(overrides)
        student = Student(**fields)
        db.add(student)
        db.commit()
        db.refresh(student)
        return student

    return _make


@pytest.fixture
def make_job(db):
    def _make(**overrides):
        fields = dict(
            company="Acme",
            title="Software Engineer",
            type="FTE",
            category="OTHER",
            status="OPEN",
        )
        fields.update(overrides)
        job = Job(**fields)
        db.add(job)
        db.commit()
        db.refresh(job)
        return job

    return _make
