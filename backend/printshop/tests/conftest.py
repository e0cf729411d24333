import os
import tempfile

_TMP_DIR = tempfile.mkdtemp(prefix="printshop-tests-")
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["STORAGE_DIR"] = os.path.join(_TMP_DIR, "storage")
os.environ["PUBLIC_STORAGE_URL"] = "http://testserver/storage"

import pytest
from fastapi.testclient import TestClient

from printshop.core.database import SessionLocal, engine
from printshop.core.security import issue_token_pair
from printshop.core.store import SqlStore
from printshop.main import app
from printshop.models import User
from printshop.models.base import Base


@pytest.fixture(autouse=True)
def schema():
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


def make_user(db, email: str, role: str) -> User:
    # Login is not exercised with these users, so no real hash is needed
    user = User(email=email, full_name=email.split("@")[0], hashed_password="x", role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def owner(db):
    return make_user(db, "owner@test.com", "owner")


@pytest.fixture
def operator(db):
    return make_user(db, "operador@test.com", "operador")


@pytest.fixture
def reader(db):
    return make_user(db, "lector@test.com", "lector")


@pytest.fixture
def store(db, owner):
    return SqlStore(db, owner)


@pytest.fixture
def api():
    return TestClient(app)


@pytest.fixture
def auth_headers():
    def headers(user: User) -> dict:
        access, _ = issue_token_pair(user.id)
        return {"Authorization": f"Bearer {access}"}

    return headers
