from __future__ import annotations

import argparse
import logging
import socket
import sys
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI, status
from fastapi.responses import RedirectResponse

from core.db import Database
from core.exceptions import PageStorageError, StartupError
from core.settings import Settings
from pages import router as pages_router
from pages.store import PageStore
from persons import repository as persons_repository
from persons import router as persons_router

FRONT_PAGE = "/view/FrontPage"

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings

    try:
        app.state.page_store.ensure_storage()
    except PageStorageError as exc:
        raise StartupError(str(exc)) from exc

    # Initialize the DB pool once per process; handlers share it via get_db.
    db = await Database.connect(
        settings.database_url,
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
    )
    app.state.db = db
    try:
        await persons_repository.create_person_table(db)
        yield
    finally:
        app.state.db = None
        await db.close()


def create_app(settings: Settings) -> FastAPI:
    # Page paths with a trailing slash are 404s, not redirects.
    app = FastAPI(lifespan=lifespan, redirect_slashes=False)
    app.state.settings = settings
    app.state.page_store = PageStore(settings.data_dir)
    app.state.db = None

    app.include_router(pages_router.router, tags=["pages"])
    app.include_router(persons_router.router, tags=["persons"])

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    @app.get("/")
    def root() -> RedirectResponse:
        return RedirectResponse(url=FRONT_PAGE, status_code=status.HTTP_302_FOUND)

    return app


def bind_ephemeral_socket(host: str = "127.0.0.1") -> socket.socket:
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((host, 0))
        # Listen before the address is published so early clients queue up.
        sock.listen()
    except OSError as exc:
        sock.close()
        raise StartupError(f"Failed to bind {host}:0: {exc}") from exc
    return sock


def format_address(sock: socket.socket) -> str:
    host, port = sock.getsockname()[:2]
    return f"{host}:{port}"


def write_port_file(path: Path, address: str) -> None:
    try:
        Path(path).write_text(address, encoding="utf-8")
    except OSError as exc:
        raise StartupError(f"Failed to write {path}: {exc}") from exc
    logger.info("port_file_written path=%s address=%s", path, address)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Flat-file wiki with a person API.")
    parser.add_argument(
        "--addr",
        action="store_true",
        default=None,
        help="find an open address and write it to the port file",
    )
    parser.add_argument("--dburl", default=None, help="PostgreSQL connection URL")
    parser.add_argument("--data-dir", type=Path, default=None, help="directory holding page files")
    parser.add_argument("--port", type=int, default=None, help="fixed port (ignored with --addr)")
    parser.add_argument("--log-level", default=None, help="root log level")
    return parser.parse_args(argv)


def load_settings(argv: list[str] | None = None) -> Settings:
    args = parse_args(argv)
    return Settings.from_env(
        find_open_port=args.addr,
        database_url=args.dburl,
        data_dir=args.data_dir,
        port=args.port,
        log_level=args.log_level.upper() if args.log_level else None,
    )


def serve(settings: Settings) -> bool:
    """
    Run the server until shutdown. Returns False if startup failed.
    """
    app = create_app(settings)

    if settings.find_open_port:
        sock = bind_ephemeral_socket()
        try:
            write_port_file(settings.port_file, format_address(sock))
            server = uvicorn.Server(uvicorn.Config(app, lifespan="on", log_level=settings.log_level.lower()))
            server.run(sockets=[sock])
        finally:
            sock.close()
    else:
        config = uvicorn.Config(
            app,
            host=settings.host,
            port=settings.port,
            lifespan="on",
            log_level=settings.log_level.lower(),
        )
        server = uvicorn.Server(config)
        server.run()

    return server.started


def main(argv: list[str] | None = None) -> int:
    settings = load_settings(argv)
    logging.basicConfig(level=settings.log_level, format="%(asctime)s - %(levelname)s - %(name)s - %(message)s")

    try:
        started = serve(settings)
    except StartupError as exc:
        logger.error("startup_failed detail=%s", exc)
        return 1

    if not started:
        logger.error("startup_failed detail=server did not start")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
