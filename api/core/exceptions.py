"""
Domain errors.

Feature code raises these; routers translate them into HTTP responses.
"""

from __future__ import annotations


class WikiError(RuntimeError):
    pass


class InvalidTitleError(WikiError):
    def __init__(self, title: str):
        self.title = title
        super().__init__(f"Invalid page title: {title!r}")


class PageNotFoundError(WikiError):
    def __init__(self, title: str):
        self.title = title
        super().__init__(f"Page '{title}' not found")


class PageStorageError(WikiError):
    pass


class PersonDecodeError(WikiError):
    pass


class PersonStorageError(WikiError):
    pass


# Fatal: the process exits when one of these reaches the entrypoint.
class StartupError(WikiError):
    pass
