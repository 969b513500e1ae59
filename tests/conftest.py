import os
import tempfile
import uuid
from datetime import datetime, timedelta, timezone

# Settings are read at import time, so the environment goes first
os.environ.setdefault("JWT_SECRET", "test-secret-for-lapor-api-0123456789abcdef")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="lapor-uploads-")
os.environ["SEED_CATEGORIES"] = "[]"
os.environ["PUBLIC_BASE_URL"] = "http://testserver"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from lapor.core.db import Base, SessionLocal  # noqa: E402
from lapor.core.security import hash_password, token_for_profile  # noqa: E402
from lapor.main import app as lapor_app  # noqa: E402
from lapor.models.category import Category  # noqa: E402
from lapor.models.profile import Profile, ProfileRole  # noqa: E402
from lapor.models.report import Report, ReportStatus  # noqa: E402

PASSWORD = "rahasia123"
_PASSWORD_HASH = hash_password(PASSWORD)


@pytest.fixture(scope="session")
def app():
    return lapor_app


@pytest.fixture()
def client(app):
    return TestClient(app)


@pytest.fixture(autouse=True)
def _clean_tables(app):
    yield
    with SessionLocal() as s:
        for table in reversed(Base.metadata.sorted_tables):
            s.execute(table.delete())
        s.commit()


@pytest.fixture()
def db_session():
    session = SessionLocal()
    yield session
    session.rollback()
    session.close()


@pytest.fixture()
def make_profile(db_session):
    def _make_profile(name: str = "Budi", role: ProfileRole = ProfileRole.USER, email: str | None = None):
        p = Profile(
            id=str(uuid.uuid4()),
            name=name,
            email=email or f"{uuid.uuid4().hex[:8]}@contoh.id",
            password_hash=_PASSWORD_HASH,
            role=role,
        )
        db_session.add(p)
        db_session.commit()
        return p

    return _make_profile


@pytest.fixture()
def auth_header():
    def _auth_header(profile: Profile) -> dict:
        token = token_for_profile(profile)
        return {"Authorization": f"Bearer {token}"}

    return _auth_header


@pytest.fixture()
def make_category(db_session):
    def _make_category(name: str = "Jalan Rusak"):
        c = Category(id=str(uuid.uuid4()), name=name)
        db_session.add(c)
        db_session.commit()
        return c

    return _make_category


@pytest.fixture()
def make_report(db_session, make_category):
    counter = {"n": 0}
    base = datetime(2026, 1, 1, tzinfo=timezone.utc)

    def _make_report(
        owner: Profile,
        status: ReportStatus = ReportStatus.OPEN,
        assigned_to: str | None = None,
        title: str = "Jalan berlubang",
        category: Category | None = None,
    ):
        counter["n"] += 1
        cat = category or make_category(name=f"Kategori {counter['n']}")
        created = base + timedelta(minutes=counter["n"])
        r = Report(
            id=str(uuid.uuid4()),
            user_id=owner.id,
            category_id=cat.id,
            title=title,
            description="Lubang besar di tengah jalan",
            location_text="Jl. Sudirman No. 1",
            status=status,
            assigned_to=assigned_to,
            created_at=created,
            updated_at=created,
        )
        db_session.add(r)
        db_session.commit()
        return r

    return _make_report
