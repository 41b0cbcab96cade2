"""
Integration tests for the server-rendered pages

Each test gets its own application lifespan, and with it a fresh in-memory
SQLite database created by Database.connect().
"""
import pytest
from fastapi.testclient import TestClient

from simple_fm.db.session import Database
from simple_fm.main import create_app
from simple_fm.models import Filament, Profile


app = create_app(Database("sqlite://"))


@pytest.fixture
def client():
    """Test client bound to a fresh database"""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db_session(client):
    """Session on the same database the app uses"""
    with app.state.database.session() as db:
        yield db


def create_profile(client, **overrides):
    data = {"vendor": "3D Jake", "material": "PETG", "density": "1.27", "diameter": "1.75"}
    data.update(overrides)
    response = client.post("/profiles/new", data=data, follow_redirects=False)
    assert response.status_code == 303
    return response


def create_filament(client, profile_id, **overrides):
    data = {
        "name": "Rolle #1",
        "profile_id": str(profile_id),
        "color_hex": "#ff6600",
        "price_eur": "19.99",
        "weight_g": "1000",
        "spool_weight_g": "200",
        "print_temp_min": "230",
        "print_temp_max": "250",
    }
    data.update(overrides)
    return client.post("/filaments/new", data=data, follow_redirects=False)


def only_profile_id(db_session):
    return db_session.query(Profile).one().id


class TestFilamentList:
    """Test GET /"""

    def test_empty_inventory(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]
        assert "No filaments yet" in response.text

    def test_lists_spools_with_derived_values(self, client, db_session):
        create_profile(client)
        profile_id = only_profile_id(db_session)
        create_filament(client, profile_id, name="Galaxy Black")
        filament_id = db_session.query(Filament).one().id
        client.post(f"/filaments/{filament_id}/usage", data={"grams": "180"}, follow_redirects=False)

        response = client.get("/")

        assert response.status_code == 200
        assert "Galaxy Black" in response.text
        assert "620 g" in response.text
        assert "78 %" in response.text
        assert "230-250 °C" in response.text
        assert "19.99 €" in response.text

    def test_filter_by_profile(self, client, db_session):
        create_profile(client, vendor="3D Jake", material="PETG")
        create_profile(client, vendor="Bambu Lab", material="PLA")
        profiles = {p.material: p.id for p in db_session.query(Profile).all()}
        create_filament(client, profiles["PETG"], name="PETG spool")
        create_filament(client, profiles["PLA"], name="PLA spool")

        response = client.get(f"/?profile={profiles['PLA']}")

        assert response.status_code == 200
        assert "PLA spool" in response.text
        assert "PETG spool" not in response.text

    def test_blank_filter_shows_everything(self, client, db_session):
        create_profile(client)
        create_filament(client, only_profile_id(db_session), name="Visible")

        response = client.get("/?profile=")

        assert response.status_code == 200
        assert "Visible" in response.text

    def test_malformed_filter_is_rejected(self, client):
        response = client.get("/?profile=abc")

        assert response.status_code == 400
        assert "not a valid profile id" in response.text


class TestCreateFilament:
    """Test GET/POST /filaments/new"""

    def test_form_without_profiles_links_to_profile_form(self, client):
        response = client.get("/filaments/new")

        assert response.status_code == 200
        assert "/profiles/new" in response.text

    def test_form_prefills_default_spool_weight(self, client, db_session):
        create_profile(client)

        response = client.get("/filaments/new")

        assert response.status_code == 200
        assert 'name="spool_weight_g" min="0" value="200"' in response.text

    def test_create_redirects_to_listing(self, client, db_session):
        create_profile(client)
        profile_id = only_profile_id(db_session)

        response = create_filament(client, profile_id)

        assert response.status_code == 303
        assert response.headers["location"] == "/"
        filament = db_session.query(Filament).one()
        assert filament.name == "Rolle #1"
        assert filament.remaining_g == 800
        assert filament.color_hex == "#ff6600"
        assert filament.created_at is not None

    def test_missing_name_rerenders_form(self, client, db_session):
        create_profile(client)

        response = create_filament(client, only_profile_id(db_session), name="")

        assert response.status_code == 400
        assert "name" in response.text
        assert 'action="/filaments/new"' in response.text
        assert db_session.query(Filament).count() == 0

    def test_unknown_profile_rejected_without_insert(self, client, db_session):
        create_profile(client)

        response = create_filament(client, 999)

        assert response.status_code == 400
        assert "Profile 999 does not exist" in response.text
        assert db_session.query(Filament).count() == 0

    def test_repeated_submit_creates_duplicates(self, client, db_session):
        create_profile(client)
        profile_id = only_profile_id(db_session)

        create_filament(client, profile_id)
        create_filament(client, profile_id)

        assert db_session.query(Filament).count() == 2


class TestEditFilament:
    """Test GET /filaments/{id}/edit and POST /filaments/{id}/update"""

    @pytest.fixture
    def filament_id(self, client, db_session):
        create_profile(client)
        create_filament(client, only_profile_id(db_session))
        return db_session.query(Filament).one().id

    def test_edit_form_shows_current_values(self, client, filament_id):
        response = client.get(f"/filaments/{filament_id}/edit")

        assert response.status_code == 200
        assert 'value="Rolle #1"' in response.text
        assert f'action="/filaments/{filament_id}/update"' in response.text

    def test_update_recomputes_remaining(self, client, db_session, filament_id):
        response = client.post(
            f"/filaments/{filament_id}/update",
            data={"name": "Rolle #1", "weight_g": "700", "spool_weight_g": "200"},
            follow_redirects=False,
        )

        assert response.status_code == 303
        db_session.expire_all()
        assert db_session.get(Filament, filament_id).remaining_g == 500

    def test_invalid_update_rerenders_form(self, client, db_session, filament_id):
        response = client.post(
            f"/filaments/{filament_id}/update",
            data={"name": "Rolle #1", "weight_g": "-1"},
            follow_redirects=False,
        )

        assert response.status_code == 400
        assert "weight_g" in response.text
        db_session.expire_all()
        assert db_session.get(Filament, filament_id).weight_g == 1000

    def test_blanked_optional_fields_are_cleared(self, client, db_session, filament_id):
        response = client.post(
            f"/filaments/{filament_id}/update",
            data={
                "name": "Rolle #1", "profile_id": str(only_profile_id(db_session)),
                "color_hex": "", "price_eur": "", "weight_g": "1000", "spool_weight_g": "200",
                "print_temp_min": "", "print_temp_max": "",
            },
            follow_redirects=False,
        )

        assert response.status_code == 303
        db_session.expire_all()
        filament = db_session.get(Filament, filament_id)
        assert filament.color_hex is None
        assert filament.price_eur is None
        assert filament.print_temp_min is None
        assert filament.print_temp_max is None
        assert filament.remaining_g == 800

    def test_blanked_name_is_rejected(self, client, db_session, filament_id):
        response = client.post(
            f"/filaments/{filament_id}/update",
            data={"name": "", "weight_g": "1000"},
            follow_redirects=False,
        )

        assert response.status_code == 400
        assert "name: field required" in response.text
        db_session.expire_all()
        assert db_session.get(Filament, filament_id).name == "Rolle #1"

    def test_edit_unknown_filament_is_404(self, client):
        response = client.get("/filaments/999/edit")

        assert response.status_code == 404
        assert "Filament 999 not found" in response.text

    def test_update_unknown_filament_is_404(self, client):
        response = client.post("/filaments/999/update", data={"name": "Ghost"}, follow_redirects=False)

        assert response.status_code == 404

    def test_non_numeric_id_is_rejected(self, client):
        response = client.get("/filaments/abc/edit")

        assert response.status_code == 400


class TestUsageAndDelete:
    """Test POST /filaments/{id}/usage and /filaments/{id}/delete"""

    @pytest.fixture
    def filament_id(self, client, db_session):
        create_profile(client)
        create_filament(client, only_profile_id(db_session))
        return db_session.query(Filament).one().id

    def test_usage_reduces_remaining(self, client, db_session, filament_id):
        response = client.post(f"/filaments/{filament_id}/usage", data={"grams": "50"}, follow_redirects=False)

        assert response.status_code == 303
        db_session.expire_all()
        assert db_session.get(Filament, filament_id).remaining_g == 750

    def test_negative_usage_rejected(self, client, filament_id):
        response = client.post(f"/filaments/{filament_id}/usage", data={"grams": "-5"}, follow_redirects=False)

        assert response.status_code == 400

    def test_delete_filament(self, client, db_session, filament_id):
        response = client.post(f"/filaments/{filament_id}/delete", follow_redirects=False)

        assert response.status_code == 303
        assert response.headers["location"] == "/"
        assert db_session.query(Filament).count() == 0

    def test_delete_unknown_filament_is_404(self, client):
        response = client.post("/filaments/999/delete", follow_redirects=False)

        assert response.status_code == 404


class TestProfiles:
    """Test the /profiles pages"""

    def test_profile_list_shows_counts(self, client, db_session):
        create_profile(client, vendor="3D Jake")
        create_profile(client, vendor="Polymaker", material="TPU")
        jake = db_session.query(Profile).filter(Profile.vendor == "3D Jake").one()
        create_filament(client, jake.id)

        response = client.get("/profiles")

        assert response.status_code == 200
        assert "3D Jake" in response.text
        assert "Polymaker" in response.text
        assert f'<a href="/?profile={jake.id}">1</a>' in response.text
        assert "in use" in response.text

    def test_new_profile_form_prefills_defaults(self, client):
        response = client.get("/profiles/new")

        assert response.status_code == 200
        assert 'value="1.24"' in response.text
        assert 'value="1.75"' in response.text

    def test_create_profile_redirects(self, client, db_session):
        response = create_profile(client)

        assert response.headers["location"] == "/profiles"
        profile = db_session.query(Profile).one()
        assert profile.vendor == "3D Jake"
        assert profile.density == 1.27

    def test_create_profile_with_non_positive_density(self, client, db_session):
        response = client.post(
            "/profiles/new",
            data={"vendor": "3D Jake", "material": "PLA", "density": "0", "diameter": "1.75"},
            follow_redirects=False,
        )

        assert response.status_code == 400
        assert "density" in response.text
        assert db_session.query(Profile).count() == 0

    def test_update_profile(self, client, db_session):
        create_profile(client)
        profile_id = only_profile_id(db_session)

        response = client.post(
            f"/profiles/{profile_id}/update",
            data={"vendor": "3DJake", "material": "PETG", "density": "1.27", "diameter": "2.85"},
            follow_redirects=False,
        )

        assert response.status_code == 303
        db_session.expire_all()
        profile = db_session.get(Profile, profile_id)
        assert profile.vendor == "3DJake"
        assert profile.diameter == 2.85

    def test_blanked_vendor_is_rejected(self, client, db_session):
        create_profile(client)
        profile_id = only_profile_id(db_session)

        response = client.post(
            f"/profiles/{profile_id}/update",
            data={"vendor": "", "material": "PETG", "density": "1.27", "diameter": "1.75"},
            follow_redirects=False,
        )

        assert response.status_code == 400
        assert "vendor: field required" in response.text
        db_session.expire_all()
        assert db_session.get(Profile, profile_id).vendor == "3D Jake"

    def test_update_unknown_profile_is_404(self, client):
        response = client.post("/profiles/999/update", data={"vendor": "Nobody"}, follow_redirects=False)

        assert response.status_code == 404

    def test_delete_unused_profile(self, client, db_session):
        create_profile(client)
        profile_id = only_profile_id(db_session)

        response = client.post(f"/profiles/{profile_id}/delete", follow_redirects=False)

        assert response.status_code == 303
        assert response.headers["location"] == "/profiles"
        assert db_session.query(Profile).count() == 0

    def test_delete_profile_in_use_is_refused(self, client, db_session):
        create_profile(client)
        profile_id = only_profile_id(db_session)
        create_filament(client, profile_id)

        response = client.post(f"/profiles/{profile_id}/delete", follow_redirects=False)

        assert response.status_code == 400
        assert "profile is in use" in response.text
        assert db_session.query(Profile).count() == 1
        assert db_session.query(Filament).count() == 1
