"""
Route shape for wiki pages.

Titles are used directly as storage keys, so the allow-list below is applied
before any filesystem path is built from a title.
"""

from __future__ import annotations

import re

from starlette.convertors import Convertor, register_url_convertor

TITLE_PATTERN = "[a-zA-Z0-9]+"

_TITLE_RE = re.compile(TITLE_PATTERN)


def is_valid_title(title: str) -> bool:
    return isinstance(title, str) and _TITLE_RE.fullmatch(title) is not None


class TitleConvertor(Convertor):
    regex = TITLE_PATTERN

    def convert(self, value: str) -> str:
        return value

    def to_string(self, value: str) -> str:
        if not is_valid_title(value):
            raise ValueError(f"Invalid page title: {value!r}")
        return value


# Routes declared as `/view/{title:title}` only match allow-listed titles;
# anything else falls through to the 404 handler without reaching a view.
register_url_convertor("title", TitleConvertor())
