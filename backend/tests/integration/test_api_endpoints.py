"""
Integration tests for the JSON API

Tests the read-only /api/v1 endpoints and the error body format
"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from simple_fm.db.base import Base
from simple_fm.db.session import Database, get_db
from simple_fm.main import create_app
from simple_fm.services.inventory_service import InventoryStore


# Create in-memory SQLite database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

app = create_app(Database("sqlite://"))


@pytest.fixture
def db_session():
    """Create a fresh database for each test"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db_session):
    """Create a test client with database override"""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def store(db_session):
    return InventoryStore(db_session)


@pytest.fixture
def inventory(store):
    """Two profiles, three spools"""
    petg = store.create_profile(vendor="Prusament", material="PETG", density=1.27)
    pla = store.create_profile(vendor="3D Jake", material="PLA")
    unused = store.create_profile(vendor="Polymaker", material="TPU", density=1.22)
    first = store.create_filament(name="Galaxy Black", profile_id=petg, color_hex="#1f1f1f",
                                  price_eur=29.99, weight_g=1193, spool_weight_g=193)
    second = store.create_filament(name="Orange", profile_id=pla, weight_g=1000, spool_weight_g=200,
                                   print_temp_min=190, print_temp_max=220)
    third = store.create_filament(name="Testspule", profile_id=pla, weight_g=450, spool_weight_g=250)
    store.record_usage(second, 180)
    return {"petg": petg, "pla": pla, "unused": unused, "filaments": [first, second, third]}


class TestHealth:
    """Test GET /health"""

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestProfilesApi:
    """Test GET /api/v1/profiles"""

    def test_empty(self, client):
        response = client.get("/api/v1/profiles")

        assert response.status_code == 200
        assert response.json() == {"total": 0, "items": []}

    def test_ordered_by_vendor_with_counts(self, client, inventory):
        response = client.get("/api/v1/profiles")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 3
        assert [p["vendor"] for p in data["items"]] == ["3D Jake", "Polymaker", "Prusament"]
        counts = {p["id"]: p["filament_count"] for p in data["items"]}
        assert counts == {inventory["pla"]: 2, inventory["unused"]: 0, inventory["petg"]: 1}

    def test_get_profile(self, client, inventory):
        response = client.get(f"/api/v1/profiles/{inventory['petg']}")

        assert response.status_code == 200
        data = response.json()
        assert data["vendor"] == "Prusament"
        assert data["density"] == 1.27
        assert data["diameter"] == 1.75
        assert data["filament_count"] == 1

    def test_get_unknown_profile(self, client):
        response = client.get("/api/v1/profiles/999")

        assert response.status_code == 404
        data = response.json()
        assert data["error"] == "NOT_FOUND"
        assert data["message"] == "Profile 999 not found"


class TestFilamentsApi:
    """Test GET /api/v1/filaments"""

    def test_newest_first(self, client, inventory):
        response = client.get("/api/v1/filaments")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 3
        assert [f["id"] for f in data["items"]] == list(reversed(inventory["filaments"]))

    def test_derived_values(self, client, inventory):
        response = client.get(f"/api/v1/filaments/{inventory['filaments'][1]}")

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Orange"
        assert data["remaining_g"] == 620
        assert data["percent_remaining"] == 78
        assert data["print_temp_min"] == 190
        assert data["profile"]["vendor"] == "3D Jake"
        assert data["created_at"] is not None

    def test_filter_by_profile(self, client, inventory):
        response = client.get(f"/api/v1/filaments?profile={inventory['petg']}")

        assert response.status_code == 200
        items = response.json()["items"]
        assert [f["name"] for f in items] == ["Galaxy Black"]
        assert items[0]["color_hex"] == "#1f1f1f"
        assert items[0]["price_eur"] == 29.99

    def test_listing_twice_is_identical(self, client, inventory):
        first = client.get("/api/v1/filaments").json()
        second = client.get("/api/v1/filaments").json()

        assert first == second

    def test_get_unknown_filament(self, client):
        response = client.get("/api/v1/filaments/999")

        assert response.status_code == 404
        assert response.json()["error"] == "NOT_FOUND"

    def test_bad_filter_is_422(self, client):
        response = client.get("/api/v1/filaments?profile=abc")

        assert response.status_code == 422
        data = response.json()
        assert data["error"] == "VALIDATION_ERROR"
        assert data["details"]["errors"][0]["field"] == "query.profile"
