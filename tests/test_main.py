from pathlib import Path
from unittest.mock import AsyncMock

import asyncpg
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pytest_mock import MockerFixture

import main
from core.db import Database
from core.exceptions import StartupError
from core.settings import Settings


class TestSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in ("WIKI_FIND_OPEN_PORT", "WIKI_PORT", "DATABASE_URL", "WIKI_DATA_DIR", "LOG_LEVEL"):
            monkeypatch.delenv(name, raising=False)

        settings = main.load_settings([])

        assert settings.find_open_port is False
        assert settings.port == 8080
        assert settings.port_file == Path("final-port.txt")
        assert settings.data_dir == Path("data")
        assert settings.log_level == "INFO"

    def test_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("WIKI_FIND_OPEN_PORT", "true")
        monkeypatch.setenv("WIKI_PORT", "9090")
        monkeypatch.setenv("DATABASE_URL", "postgresql://env@db:5432/wiki")
        monkeypatch.setenv("LOG_LEVEL", "debug")

        settings = Settings.from_env()

        assert settings.find_open_port is True
        assert settings.port == 9090
        assert settings.database_url == "postgresql://env@db:5432/wiki"
        assert settings.log_level == "DEBUG"

    def test_invalid_numbers_fall_back_to_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("WIKI_PORT", "not-a-port")

        assert Settings.from_env().port == 8080

    def test_cli_flags_override_environment(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("DATABASE_URL", "postgresql://env@db:5432/wiki")
        monkeypatch.setenv("WIKI_FIND_OPEN_PORT", "0")

        settings = main.load_settings(
            ["--addr", "--dburl", "postgresql://cli@db/wiki", "--data-dir", str(tmp_path), "--log-level", "warning"]
        )

        assert settings.find_open_port is True
        assert settings.database_url == "postgresql://cli@db/wiki"
        assert settings.data_dir == tmp_path
        assert settings.log_level == "WARNING"

    def test_settings_are_immutable(self) -> None:
        settings = Settings()

        with pytest.raises(Exception):
            settings.port = 1  # type: ignore[misc]


class TestEphemeralPort:
    def test_bind_and_record_address(self, tmp_path: Path) -> None:
        port_file = tmp_path / "final-port.txt"
        sock = main.bind_ephemeral_socket()
        try:
            address = main.format_address(sock)
            main.write_port_file(port_file, address)
        finally:
            sock.close()

        host, port = port_file.read_text().split(":")
        assert host == "127.0.0.1"
        assert 0 < int(port) < 65536

    def test_write_port_file_failure_is_fatal(self, tmp_path: Path) -> None:
        with pytest.raises(StartupError):
            main.write_port_file(tmp_path / "missing" / "final-port.txt", "127.0.0.1:1234")


class TestLifespan:
    def test_startup_creates_pool_and_schema(
        self,
        test_settings: Settings,
        mock_db: AsyncMock,
        mocker: MockerFixture,
    ) -> None:
        connect = mocker.patch.object(Database, "connect", new=mocker.AsyncMock(return_value=mock_db))
        app = main.create_app(test_settings)

        with TestClient(app) as client:
            assert app.state.db is mock_db
            response = client.post("/person/", json={"name": "Alice", "age": 30, "eyeColor": "blue"})
            assert response.status_code == 200

        connect.assert_awaited_once_with(
            test_settings.database_url,
            min_size=test_settings.db_pool_min_size,
            max_size=test_settings.db_pool_max_size,
        )
        assert "CREATE TABLE person" in mock_db.execute.await_args.args[0]
        mock_db.close.assert_awaited_once()
        assert app.state.db is None

    def test_existing_table_is_not_fatal(
        self,
        test_settings: Settings,
        mock_db: AsyncMock,
        mocker: MockerFixture,
    ) -> None:
        mock_db.execute.side_effect = asyncpg.exceptions.DuplicateTableError('relation "person" already exists')
        mocker.patch.object(Database, "connect", new=mocker.AsyncMock(return_value=mock_db))

        with TestClient(main.create_app(test_settings)) as client:
            assert client.get("/health").status_code == 200

    def test_startup_creates_missing_data_dir(
        self,
        tmp_path: Path,
        mock_db: AsyncMock,
        mocker: MockerFixture,
    ) -> None:
        data_dir = tmp_path / "fresh"
        mocker.patch.object(Database, "connect", new=mocker.AsyncMock(return_value=mock_db))

        with TestClient(main.create_app(Settings(data_dir=data_dir))):
            assert data_dir.is_dir()

    def test_db_connect_failure_aborts_startup(
        self,
        test_settings: Settings,
        mocker: MockerFixture,
    ) -> None:
        mocker.patch("core.db.asyncpg.create_pool", side_effect=OSError("connection refused"))

        with pytest.raises(StartupError, match="connection refused"):
            with TestClient(main.create_app(test_settings)):
                pass

    def test_request_without_pool_fails(self, test_settings: Settings) -> None:
        app: FastAPI = main.create_app(test_settings)
        client = TestClient(app, raise_server_exceptions=False)

        response = client.post("/person/", json={"name": "Alice", "age": 30, "eyeColor": "blue"})

        assert response.status_code == 500


class TestMain:
    def test_startup_error_exits_nonzero(self, mocker: MockerFixture) -> None:
        mocker.patch("main.serve", side_effect=StartupError("bind failed"))

        assert main.main([]) == 1

    def test_failed_server_start_exits_nonzero(self, mocker: MockerFixture) -> None:
        mocker.patch("main.serve", return_value=False)

        assert main.main([]) == 1

    def test_clean_shutdown_exits_zero(self, mocker: MockerFixture) -> None:
        serve = mocker.patch("main.serve", return_value=True)

        assert main.main(["--port", "8181"]) == 0
        assert serve.call_args.args[0].port == 8181
