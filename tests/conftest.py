import os
import tempfile

# Settings are read at import time; point them at a throwaway database first.
# A file database lets worker threads open their own connections.
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(tempfile.mkdtemp(), 'easybail-test.db')}"
os.environ["SCHEDULER_AUTOSTART"] = "false"
os.environ["MAIL_ENABLED"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from easybail.database import Base, SessionLocal, get_db, init_db
from easybail.main import app

init_db()


# Override dependency for test database session (rollback after each request)
def override_get_db() -> Session:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.rollback()
        db.close()

app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def clean_db():
    yield
    with SessionLocal() as db:
        for table in reversed(Base.metadata.sorted_tables):
            db.execute(table.delete())
        db.commit()


@pytest.fixture
def db() -> Session:
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client() -> TestClient:
    # Entering the context runs the lifespan, which builds app.state services
    with TestClient(app) as test_client:
        yield test_client
