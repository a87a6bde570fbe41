"""
Page dependencies for FastAPI routes.
"""

from __future__ import annotations

from fastapi import Request

from .store import PageStore


def get_page_store(request: Request) -> PageStore:
    return request.app.state.page_store
