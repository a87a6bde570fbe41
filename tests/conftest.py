from pathlib import Path
from typing import Generator
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pytest_mock import MockerFixture

from core.db import Database, get_db
from core.settings import Settings
from main import create_app
from pages.store import PageStore


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    path = tmp_path / "data"
    path.mkdir()
    return path


@pytest.fixture
def test_settings(tmp_path: Path, data_dir: Path) -> Settings:
    return Settings(
        data_dir=data_dir,
        port_file=tmp_path / "final-port.txt",
        database_url="postgresql://test@localhost:5432/test",
    )


@pytest.fixture
def page_store(data_dir: Path) -> PageStore:
    return PageStore(data_dir)


@pytest.fixture
def mock_db(mocker: MockerFixture) -> AsyncMock:
    db = mocker.AsyncMock(spec=Database)
    db.fetch_one.return_value = {"id": 1}
    return db


@pytest.fixture
def test_app(test_settings: Settings, mock_db: AsyncMock) -> FastAPI:
    app = create_app(test_settings)
    app.dependency_overrides[get_db] = lambda: mock_db
    return app


@pytest.fixture
def test_client(test_app: FastAPI) -> Generator[TestClient, None, None]:
    # Not entered as a context manager: the lifespan (and its DB pool) is skipped.
    client = TestClient(test_app, follow_redirects=False)
    yield client
    client.close()
