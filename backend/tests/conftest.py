import os
from pathlib import Path

from dotenv import load_dotenv
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Load environment variables for tests before the app reads its settings
os.environ.setdefault("PYTEST_RUN", "1")
load_dotenv(Path(__file__).resolve().parents[1] / '.env.test')

from app import models  # noqa: E402,F401
from app.models.base import BaseModel  # noqa: E402
from app.schemas.catalog import Addon, AddonTier, Facility, Procedure, Provider  # noqa: E402


def make_session_factory():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    BaseModel.metadata.create_all(engine)
    return sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
def db_session():
    Session = make_session_factory()
    db = Session()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def knee():
    return Procedure(id="1", name="Knee Replacement", category="knee", base_cost="180000", rating=4.8)


@pytest.fixture
def surgeon():
    return Provider(
        id="dr-1",
        name="Dr. Rajesh Kumar",
        specialization="Orthopedics",
        experience_years=15,
        rating=4.9,
        training_type="Fellowship",
        online_consultation=True,
        location="Mumbai",
        consultation_fee="1500",
    )


@pytest.fixture
def premium_implant():
    return Addon(id="knee-premium", name="Zimmer Persona", tier=AddonTier.PREMIUM, cost="285000")


@pytest.fixture
def hospital():
    return Facility(id="h-1", name="City Care Hospital", zone=2, base_price="45000", consumables_cost="15000")


@pytest.fixture
def session_factory():
    return make_session_factory()


@pytest.fixture
def client(session_factory):
    from fastapi.testclient import TestClient

    from app.api.dependencies import get_db
    from app.main import app

    def override_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_db
    yield TestClient(app)
    app.dependency_overrides.pop(get_db, None)
