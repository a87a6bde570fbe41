"""
Flat-file page storage.

Each page lives in `<data_dir>/<title>.txt` and holds the raw page body.
Saves go through a temp file in the same directory followed by `os.replace`,
so a concurrent `load()` sees either the old body or the new one, never a
partial write.
"""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from core.exceptions import InvalidTitleError, PageNotFoundError, PageStorageError

from .routing import is_valid_title

PAGE_SUFFIX = ".txt"
PAGE_FILE_MODE = 0o600

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Page:
    title: str
    body: bytes = b""

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


class PageStore:
    def __init__(self, data_dir: Path | str):
        self.data_dir = Path(data_dir)

    def ensure_storage(self) -> None:
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise PageStorageError(f"Failed to create page directory {self.data_dir}: {exc}") from exc

    def _path_for(self, title: str) -> Path:
        # Must stay ahead of every path built from a title.
        if not is_valid_title(title):
            raise InvalidTitleError(title)
        return self.data_dir / f"{title}{PAGE_SUFFIX}"

    def load(self, title: str) -> Page:
        path = self._path_for(title)
        try:
            body = path.read_bytes()
        except FileNotFoundError as exc:
            raise PageNotFoundError(title) from exc
        except OSError as exc:
            raise PageStorageError(f"Failed to read page '{title}': {exc}") from exc
        return Page(title=title, body=body)

    def save(self, title: str, body: bytes) -> None:
        path = self._path_for(title)
        tmp_path: str | None = None
        try:
            fd, tmp_path = tempfile.mkstemp(prefix=f".{title}.", suffix=".tmp", dir=self.data_dir)
            with os.fdopen(fd, "wb") as fh:
                fh.write(body)
                fh.flush()
                os.fsync(fh.fileno())
            os.chmod(tmp_path, PAGE_FILE_MODE)
            os.replace(tmp_path, path)
            tmp_path = None
        except OSError as exc:
            raise PageStorageError(f"Failed to save page '{title}': {exc}") from exc
        finally:
            if tmp_path is not None:
                try:
                    os.unlink(tmp_path)
                except FileNotFoundError:
                    pass

        logger.debug("page_saved title=%s bytes=%s", title, len(body))
