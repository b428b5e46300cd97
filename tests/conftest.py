"""Shared fixtures: temporary SQLite database, temporary picture storage and a test client."""

import io
from typing import Any

import pytest
from fastapi.testclient import TestClient
from PIL import Image
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from hotels_api import models  # noqa: F401
from hotels_api.database import Base, build_engine, get_db
from hotels_api.main import app
from hotels_api.services.storage_service import PictureStorage, get_picture_storage


def make_image(fmt: str = "PNG", size: tuple[int, int] = (120, 120), color: str = "teal") -> bytes:
    """Render a small picture in the given Pillow format."""
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format=fmt)
    return buffer.getvalue()


def picture_file(name: str = "photo.png", fmt: str = "PNG", content_type: str = "image/png", **kwargs: Any):
    return ("pictures[]", (name, make_image(fmt, **kwargs), content_type))


def hotel_fields(**overrides: Any) -> dict[str, str]:
    fields = {
        "name": "Hotel X",
        "address1": "12 rue de Rivoli",
        "address2": "Bâtiment B",
        "zipcode": "75001",
        "city": "Paris",
        "country": "France",
        "lat": "48.8566",
        "lng": "2.3522",
        "description": "A quiet hotel near the Louvre.",
        "max_capacity": "40",
        "price_per_night": "100",
    }
    fields.update({key: str(value) for key, value in overrides.items()})
    return fields


@pytest.fixture
def session_factory(tmp_path):
    """Session factory bound to a fresh SQLite file with the schema created."""
    database_path = tmp_path / "hotels.db"

    sync_engine = create_engine(f"sqlite:///{database_path}")
    Base.metadata.create_all(sync_engine)
    sync_engine.dispose()

    # NullPool: every request of the TestClient may run in its own event loop
    engine = build_engine(f"sqlite+aiosqlite:///{database_path}", poolclass=NullPool)
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
def storage(tmp_path) -> PictureStorage:
    return PictureStorage(tmp_path / "public", "hotels")


@pytest.fixture
def client(session_factory, storage):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_picture_storage] = lambda: storage
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def create_hotel(client):
    """Create a hotel through the API and return its JSON representation."""

    def _create(pictures: int = 2, **fields: Any) -> dict[str, Any]:
        files = [picture_file(f"photo{i}.png") for i in range(pictures)]
        response = client.post("/api/hotels", data=hotel_fields(**fields), files=files)
        assert response.status_code == 201, response.text
        return response.json()["hotel"]

    return _create
