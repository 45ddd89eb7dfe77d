# ─────────────────────────────────────────────────────────────────────────────
# Test Fixtures — shared across all tests
# ─────────────────────────────────────────────────────────────────────────────
# Every app gets its own in-memory SQLite database and its own limiter, so
# tests never share state. Paths resolve against a per-test tmp directory.
# ─────────────────────────────────────────────────────────────────────────────

from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from cereal_api.config import Settings
from cereal_api.db import Database
from cereal_api.main import create_app
from cereal_api.models import Cereal

# 1x1 transparent PNG
PNG_BYTES = bytes.fromhex(
    "89504e470d0a1a0a0000000d49484452000000010000000108060000001f15c489"
    "0000000d4944415478da63fccf00000001000105d0c77d0000000049454e44ae426082"
)

TEST_PASSWORD = "corn-flakes-2026"


def make_cereal(**overrides) -> Cereal:
    """Cereal with realistic defaults; keyword overrides win."""
    values = {
        "name": "Corn Flakes",
        "mfr": "K",
        "type": "C",
        "calories": 100,
        "protein": 2,
        "fat": 0,
        "sodium": 290,
        "fiber": 1.0,
        "carbohydrates": 21.0,
        "sugars": 2,
        "potassium": 35,
        "vitamins": 25,
        "shelf": 1,
        "weight": 1.0,
        "cups": 1.0,
        "rating": 2.29,
        "image_path": None,
    }
    values.update(overrides)
    return Cereal(**values)


@pytest.fixture
def content_root(tmp_path: Path) -> Path:
    """Content root with an images directory and a placeholder image."""
    images = tmp_path / "data" / "images"
    images.mkdir(parents=True)
    (images / "placeholder.png").write_bytes(PNG_BYTES)
    return tmp_path


@pytest.fixture
def test_settings(content_root: Path) -> Settings:
    """Settings configured for testing: in-memory DB, no seed import, no limiter."""
    return Settings(
        database_url="sqlite://",
        content_root=str(content_root),
        import_on_startup=False,
        rate_limit_enabled=False,
        allowed_origins="*",
        jwt_secret_key="test-signing-key-with-at-least-32-bytes!",
        log_json=False,
        log_level="DEBUG",
    )


@pytest.fixture
def app(test_settings: Settings) -> FastAPI:
    return create_app(test_settings)


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    """TestClient with the lifespan running (tables created)."""
    with TestClient(app) as client:
        yield client


@pytest.fixture
def database(app: FastAPI, client: TestClient) -> Database:
    return app.state.database


@pytest.fixture
def db_session(database: Database) -> Iterator[Session]:
    session = database.new_session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def seeded(database: Database) -> dict[str, int]:
    """Four cereals covering both types, three manufacturers, one image.

    Returns name → id.
    """
    cereals = [
        make_cereal(name="Corn Flakes", mfr="K", calories=100, rating=2.29, sugars=2),
        make_cereal(
            name="All-Bran",
            mfr="K",
            calories=70,
            protein=4,
            fiber=9.0,
            sugars=5,
            potassium=320,
            rating=2.97,
        ),
        make_cereal(
            name="Cheerios",
            mfr="G",
            calories=110,
            protein=6,
            sugars=1,
            rating=2.54,
            image_path="data/images/Cheerios",
        ),
        make_cereal(
            name="Maypo",
            mfr="A",
            type="H",
            calories=100,
            protein=4,
            sugars=3,
            rating=2.74,
        ),
    ]
    with database.session() as session:
        session.add_all(cereals)
        session.commit()
        return {c.name: c.id for c in cereals}


@pytest.fixture
def auth_headers(client: TestClient) -> dict[str, str]:
    """Bearer header for a freshly registered account."""
    credentials = {"username": "tester", "password": TEST_PASSWORD}
    assert client.post("/api/auth/register", json=credentials).status_code == 200
    token = client.post("/api/auth/login", json=credentials).json()["token"]
    return {"Authorization": f"Bearer {token}"}
