# ─────────────────────────────────────────────────────────────────────────────
# Cereal Endpoint Tests — /api/cereal CRUD, filtering, images
# ─────────────────────────────────────────────────────────────────────────────
# Demonstrates: dirty-equals for response shapes, TestClient against a real
# in-memory database (no mocks between route and SQL).
# ─────────────────────────────────────────────────────────────────────────────

import pytest
from dirty_equals import IsFloat, IsInt, IsList, IsPositiveInt, IsStr

from cereal_api.models import Cereal

JPEG_BYTES = b"\xff\xd8\xff\xe0fake-jpeg-body\xff\xd9"


def _payload(**overrides) -> dict:
    body = {
        "id": 0,
        "name": "Frosted Flakes",
        "mfr": "K",
        "type": "C",
        "calories": 110,
        "protein": 1,
        "fat": 0,
        "sodium": 200,
        "fiber": 1.0,
        "carbohydrates": 14.0,
        "sugars": 11,
        "potassium": 25,
        "vitamins": 25,
        "shelf": 1,
        "weight": 1.0,
        "cups": 0.75,
        "rating": 1.57,
        "imagePath": None,
    }
    body.update(overrides)
    return body


def _names(response) -> list[str]:
    return [c["name"] for c in response.json()]


# ── GET /api/cereal ─────────────────────────────────────────────────────────


class TestListCereals:
    """GET /api/cereal: anonymous, filterable, sortable."""

    def test_empty_database_returns_empty_list(self, client):
        response = client.get("/api/cereal")
        assert response.status_code == 200
        assert response.json() == []

    def test_default_order_is_id_ascending(self, client, seeded):
        response = client.get("/api/cereal")
        assert response.status_code == 200
        ids = [c["id"] for c in response.json()]
        assert ids == sorted(ids)
        assert len(ids) == 4

    def test_response_shape_is_camel_case(self, client, seeded):
        cereal = client.get("/api/cereal", params={"Name": "cheerios"}).json()[0]
        assert cereal == {
            "id": IsPositiveInt,
            "name": "Cheerios",
            "mfr": "G",
            "type": "C",
            "calories": 110,
            "protein": 6,
            "fat": IsInt,
            "sodium": IsInt,
            "fiber": IsFloat,
            "carbohydrates": IsFloat,
            "sugars": 1,
            "potassium": IsInt,
            "vitamins": IsInt,
            "shelf": IsInt,
            "weight": IsFloat,
            "cups": IsFloat,
            "rating": 2.54,
            "imagePath": IsStr(regex=r".*Cheerios"),
        }

    def test_name_is_case_insensitive_substring(self, client, seeded):
        response = client.get("/api/cereal", params={"Name": "BRAN"})
        assert _names(response) == ["All-Bran"]

    def test_mfr_is_case_insensitive_exact(self, client, seeded):
        response = client.get("/api/cereal", params={"Mfr": "k"})
        assert sorted(_names(response)) == ["All-Bran", "Corn Flakes"]

    def test_type_filter(self, client, seeded):
        response = client.get("/api/cereal", params={"Type": "h"})
        assert _names(response) == ["Maypo"]

    def test_numeric_bounds_are_inclusive(self, client, seeded):
        response = client.get("/api/cereal", params={"CaloriesMin": 100, "CaloriesMax": 100})
        assert sorted(_names(response)) == ["Corn Flakes", "Maypo"]

    def test_filters_combine_as_conjunction(self, client, seeded):
        response = client.get(
            "/api/cereal",
            params={"Mfr": "K", "CaloriesMax": 80, "ProteinMin": 4},
        )
        assert _names(response) == ["All-Bran"]

    def test_short_carbo_and_potass_filter_names(self, client, seeded):
        assert _names(client.get("/api/cereal", params={"PotassMin": 300})) == ["All-Bran"]
        assert len(_names(client.get("/api/cereal", params={"CarboMin": 21, "CarboMax": 21}))) == 4
        response = client.get("/api/cereal", params={"CarboMax": 1, "PotassMin": 100000})
        assert response.json() == []

    def test_unmatched_filters_return_empty_list(self, client, seeded):
        response = client.get("/api/cereal", params={"CaloriesMin": 1000})
        assert response.status_code == 200
        assert response.json() == []

    def test_sort_descending(self, client, seeded):
        response = client.get(
            "/api/cereal", params={"sortBy": "calories", "sortDescending": "true"}
        )
        calories = [c["calories"] for c in response.json()]
        assert calories == sorted(calories, reverse=True)

    def test_sort_ties_break_on_id(self, client, seeded):
        response = client.get("/api/cereal", params={"sortBy": "calories"})
        names = _names(response)
        # Corn Flakes and Maypo share 100 kcal; Corn Flakes was inserted first
        assert names.index("Corn Flakes") < names.index("Maypo")
        assert names[0] == "All-Bran"

    def test_sort_key_is_case_insensitive(self, client, seeded):
        response = client.get(
            "/api/cereal", params={"sortBy": "RATING", "sortDescending": "true"}
        )
        assert _names(response)[0] == "All-Bran"

    def test_unknown_sort_key_falls_back_to_id(self, client, seeded):
        response = client.get(
            "/api/cereal", params={"sortBy": "crunchiness", "sortDescending": "true"}
        )
        ids = [c["id"] for c in response.json()]
        assert ids == sorted(ids)

    def test_non_numeric_bound_is_400(self, client, seeded):
        response = client.get("/api/cereal", params={"CaloriesMin": "lots"})
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request payload."


# ── GET /api/cereal/{id} ────────────────────────────────────────────────────


class TestGetCereal:
    def test_returns_record(self, client, seeded):
        cereal_id = seeded["Maypo"]
        response = client.get(f"/api/cereal/{cereal_id}")
        assert response.status_code == 200
        assert response.json()["name"] == "Maypo"

    def test_missing_id_is_404(self, client, seeded):
        response = client.get("/api/cereal/9999")
        assert response.status_code == 404
        assert response.json() == {
            "error": "Cereal with ID 9999 not found.",
            "type": "CerealNotFoundError",
        }


# ── POST /api/cereal ────────────────────────────────────────────────────────


class TestCreateOrUpdate:
    def test_requires_authentication(self, client):
        response = client.post("/api/cereal", json=_payload())
        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"

    def test_invalid_token_is_401(self, client):
        response = client.post(
            "/api/cereal",
            json=_payload(),
            headers={"Authorization": "Bearer not-a-jwt"},
        )
        assert response.status_code == 401

    def test_unauthenticated_invalid_body_is_still_401(self, client):
        response = client.post("/api/cereal", json={"name": ""})
        assert response.status_code == 401

    def test_create_returns_201_with_location(self, client, auth_headers):
        response = client.post("/api/cereal", json=_payload(), headers=auth_headers)
        assert response.status_code == 201
        body = response.json()
        assert body["id"] == IsPositiveInt
        assert body["name"] == "Frosted Flakes"
        assert response.headers["location"].endswith(f"/api/cereal/{body['id']}")

        fetched = client.get(response.headers["location"])
        assert fetched.status_code == 200
        assert fetched.json() == body

    def test_update_existing_via_post_returns_200(self, client, seeded, auth_headers):
        cereal_id = seeded["Cheerios"]
        response = client.post(
            "/api/cereal",
            json=_payload(id=cereal_id, name="Honey Nut Cheerios", sugars=10),
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["id"] == cereal_id
        assert client.get(f"/api/cereal/{cereal_id}").json()["name"] == "Honey Nut Cheerios"

    def test_post_overwrites_every_field(self, client, seeded, auth_headers):
        """Omitted fields reset to defaults; image path is cleared."""
        cereal_id = seeded["Cheerios"]
        client.post(
            "/api/cereal",
            json={"id": cereal_id, "name": "Cheerios"},
            headers=auth_headers,
        )
        stored = client.get(f"/api/cereal/{cereal_id}").json()
        assert stored["calories"] == 0
        assert stored["mfr"] == ""
        assert stored["imagePath"] is None

    def test_unknown_nonzero_id_is_400(self, client, seeded, auth_headers):
        response = client.post("/api/cereal", json=_payload(id=4242), headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["error"] == (
            "Cereal with ID 4242 does not exist. ID cannot be chosen manually for creation."
        )
        assert client.get("/api/cereal/4242").status_code == 404

    @pytest.mark.parametrize(
        "body",
        [
            {"name": ""},
            {"name": "   "},
            {"name": "Kix", "calories": "plenty"},
            {"name": "Kix", "id": -1},
        ],
    )
    def test_invalid_body_is_400(self, client, auth_headers, body):
        response = client.post("/api/cereal", json=body, headers=auth_headers)
        assert response.status_code == 400
        data = response.json()
        assert data == {"error": "Invalid request payload.", "details": IsList(length=(1, ...))}
        assert data["details"][0] == {"loc": IsList(length=(1, ...)), "msg": IsStr}

    def test_snake_case_body_is_accepted(self, client, auth_headers):
        response = client.post(
            "/api/cereal",
            json={"name": "Kix", "image_path": "data/images/Kix"},
            headers=auth_headers,
        )
        assert response.status_code == 201
        assert response.json()["imagePath"] == "data/images/Kix"

    @pytest.mark.parametrize(
        "image_path",
        ["/etc/passwd", "../app.env.local", "data/../../cereal.db", "C:\\cereal.db", "\\\\host\\share\\x"],
    )
    def test_image_path_must_be_relative_inside_root(self, client, auth_headers, image_path):
        response = client.post(
            "/api/cereal",
            json={"name": "Kix", "imagePath": image_path},
            headers=auth_headers,
        )
        assert response.status_code == 400
        assert response.json()["details"][0]["loc"] == ["body", "imagePath"]
        assert client.get("/api/cereal", params={"Name": "Kix"}).json() == []


# ── PUT /api/cereal/{id} ────────────────────────────────────────────────────


class TestUpdate:
    def test_requires_authentication(self, client, seeded):
        cereal_id = seeded["Maypo"]
        response = client.put(f"/api/cereal/{cereal_id}", json=_payload(id=cereal_id))
        assert response.status_code == 401

    def test_updates_record(self, client, seeded, auth_headers):
        cereal_id = seeded["Maypo"]
        response = client.put(
            f"/api/cereal/{cereal_id}",
            json=_payload(id=cereal_id, name="Maypo Maple", type="H"),
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["name"] == "Maypo Maple"
        assert client.get(f"/api/cereal/{cereal_id}").json()["name"] == "Maypo Maple"

    def test_id_mismatch_is_400(self, client, seeded, auth_headers):
        cereal_id = seeded["Maypo"]
        response = client.put(
            f"/api/cereal/{cereal_id}",
            json=_payload(id=cereal_id + 1),
            headers=auth_headers,
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Cereal data is invalid or ID mismatch."

    def test_missing_record_is_404(self, client, seeded, auth_headers):
        response = client.put("/api/cereal/9999", json=_payload(id=9999), headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["error"] == "Cereal with ID 9999 not found."


# ── DELETE ──────────────────────────────────────────────────────────────────


class TestDelete:
    def test_requires_authentication(self, client, seeded):
        assert client.delete(f"/api/cereal/{seeded['Maypo']}").status_code == 401
        assert client.delete("/api/cereal/all").status_code == 401

    def test_delete_one(self, client, seeded, auth_headers):
        cereal_id = seeded["Maypo"]
        response = client.delete(f"/api/cereal/{cereal_id}", headers=auth_headers)
        assert response.status_code == 204
        assert response.content == b""
        assert client.get(f"/api/cereal/{cereal_id}").status_code == 404

    def test_delete_missing_is_404(self, client, seeded, auth_headers):
        response = client.delete("/api/cereal/9999", headers=auth_headers)
        assert response.status_code == 404

    def test_delete_all(self, client, seeded, auth_headers):
        response = client.delete("/api/cereal/all", headers=auth_headers)
        assert response.status_code == 204
        assert client.get("/api/cereal").json() == []

    def test_delete_all_on_empty_table_is_404(self, client, auth_headers):
        response = client.delete("/api/cereal/all", headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["error"] == "No cereals found in the database."


# ── GET /api/cereal/{id}/image ──────────────────────────────────────────────


class TestImage:
    def test_serves_record_image_after_probing(self, client, seeded, content_root):
        (content_root / "data" / "images" / "Cheerios.jpg").write_bytes(JPEG_BYTES)
        response = client.get(f"/api/cereal/{seeded['Cheerios']}/image")
        assert response.status_code == 200
        assert response.headers["content-type"] == "image/jpeg"
        assert response.content == JPEG_BYTES

    def test_falls_back_to_placeholder(self, client, seeded, content_root):
        response = client.get(f"/api/cereal/{seeded['Maypo']}/image")
        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"
        assert response.content == (content_root / "data" / "images" / "placeholder.png").read_bytes()

    def test_missing_record_file_uses_placeholder(self, client, seeded, content_root):
        """Cheerios points at an image that is not on disk."""
        response = client.get(f"/api/cereal/{seeded['Cheerios']}/image")
        assert response.status_code == 200
        assert response.content == (content_root / "data" / "images" / "placeholder.png").read_bytes()

    def test_no_image_and_no_placeholder_is_404(self, client, seeded, content_root):
        (content_root / "data" / "images" / "placeholder.png").unlink()
        response = client.get(f"/api/cereal/{seeded['Maypo']}/image")
        assert response.status_code == 404
        assert response.json()["error"] == "Image not found."

    def test_stored_path_outside_root_is_never_served(
        self, client, seeded, database, content_root, tmp_path_factory
    ):
        secret = tmp_path_factory.mktemp("outside") / "cereal.db"
        secret.write_bytes(b"TOP-SECRET-HASHES")
        with database.session() as session:
            cereal = session.get(Cereal, seeded["Maypo"])
            cereal.image_path = str(secret)
            session.commit()

        response = client.get(f"/api/cereal/{seeded['Maypo']}/image")
        assert response.status_code == 200
        assert response.content == (content_root / "data" / "images" / "placeholder.png").read_bytes()

    def test_unknown_cereal_is_404(self, client, seeded):
        response = client.get("/api/cereal/9999/image")
        assert response.status_code == 404
        assert response.json()["error"] == "Cereal with ID 9999 not found."


# ── Unhandled errors ────────────────────────────────────────────────────────


class TestUnhandledError:
    def test_internal_detail_not_leaked(self, app):
        from unittest.mock import patch

        from fastapi.testclient import TestClient

        from cereal_api.services.cereals import CerealService

        with (
            patch.object(CerealService, "search", side_effect=RuntimeError("disk on fire")),
            TestClient(app, raise_server_exceptions=False) as client,
        ):
            response = client.get("/api/cereal")
        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error", "type": "UnhandledError"}


# ── End-to-end scenario ─────────────────────────────────────────────────────


class TestFourCerealCatalogue:
    """Corn Flakes, Frosted Flakes, All-Bran (K) and Choco Puffs (P)."""

    @pytest.fixture
    def catalogue(self, client, auth_headers) -> dict[str, int]:
        ids = {}
        for name, mfr, calories in [
            ("Corn Flakes", "K", 100),
            ("Frosted Flakes", "K", 110),
            ("All-Bran", "K", 70),
            ("Choco Puffs", "P", 150),
        ]:
            response = client.post(
                "/api/cereal",
                json=_payload(name=name, mfr=mfr, calories=calories),
                headers=auth_headers,
            )
            assert response.status_code == 201
            ids[name] = response.json()["id"]
        return ids

    def test_fresh_unique_ids(self, catalogue):
        assert len(set(catalogue.values())) == 4

    def test_calorie_range(self, client, catalogue):
        response = client.get("/api/cereal", params={"CaloriesMin": 70, "CaloriesMax": 110})
        assert _names(response) == ["Corn Flakes", "Frosted Flakes", "All-Bran"]

    def test_lowercase_mfr(self, client, catalogue):
        response = client.get("/api/cereal", params={"Mfr": "k"})
        assert _names(response) == ["Corn Flakes", "Frosted Flakes", "All-Bran"]

    def test_name_fragment(self, client, catalogue):
        response = client.get("/api/cereal", params={"Name": "flak"})
        assert _names(response) == ["Corn Flakes", "Frosted Flakes"]

    def test_unknown_id(self, client, catalogue):
        assert client.get("/api/cereal/999").status_code == 404

    def test_mismatched_put_leaves_store_untouched(self, client, catalogue, auth_headers):
        before = client.get("/api/cereal").json()
        cereal_id = catalogue["All-Bran"]
        response = client.put(
            f"/api/cereal/{cereal_id}",
            json=_payload(id=catalogue["Corn Flakes"], name="Renamed"),
            headers=auth_headers,
        )
        assert response.status_code == 400
        assert client.get("/api/cereal").json() == before

    def test_failed_delete_leaves_store_untouched(self, client, catalogue, auth_headers):
        before = client.get("/api/cereal").json()
        assert client.delete("/api/cereal/999", headers=auth_headers).status_code == 404
        assert client.get("/api/cereal").json() == before
