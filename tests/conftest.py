"""
Pytest configuration and fixtures

Everything runs against one in-memory SQLite database; tables are rebuilt
for every test.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient

from app.db.session import SessionLocal, engine, Base
from app.models import Admin, Project
from app.core.security import hash_password, create_token
from app.services import inventory
from main import app

ADMIN_PASSWORD = "testpass123"


@pytest.fixture(autouse=True)
def _tables():
    Base.metadata.drop_all(bind=engine)
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
    user = Admin(email="admin@test.local", password_hash=hash_password(ADMIN_PASSWORD), name="Test Admin")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def auth_headers(admin):
    token = create_token({"sub": str(admin.id), "type": "admin"})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def project(db):
    p = Project(
        title="Green Valley Phase 2",
        location="Wakad, Pune",
        status="ongoing",
        category="residential",
        brochure_url="https://cdn.example.com/green-valley.pdf",
    )
    db.add(p)
    db.commit()
    db.refresh(p)
    return p


@pytest.fixture
def make_apartment(db, project):
    def _make(total_units=10, apt_type="2BHK", price=5000000, **extra):
        values = {
            "project_id": project.id,
            "type": apt_type,
            "bedrooms": 2,
            "bathrooms": 2,
            "area_built_up": 1000,
            "price_base": price,
            "total_units": total_units,
        }
        values.update(extra)
        return inventory.create_apartment(db, values)
    return _make


@pytest.fixture
def apartment(make_apartment):
    return make_apartment(total_units=10)

