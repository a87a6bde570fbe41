"""
Wiki page endpoints: view, edit and save.

Every route takes its title through the `title` path convertor, so a handler
is only ever called with an allow-listed title.
"""

from __future__ import annotations

from pathlib import Path

import jinja2
from fastapi import APIRouter, Depends, Form, HTTPException, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from core.exceptions import PageNotFoundError, PageStorageError

from . import routing  # noqa: F401  (registers the `title` path convertor)
from .dependencies import get_page_store
from .store import Page, PageStore

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

templates = Jinja2Templates(directory=TEMPLATES_DIR)

router = APIRouter()


def _render(request: Request, template_name: str, page: Page) -> HTMLResponse:
    try:
        return templates.TemplateResponse(request, template_name, {"page": page})
    except jinja2.TemplateError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url=url, status_code=status.HTTP_302_FOUND)


@router.get("/view/{title:title}", response_class=HTMLResponse)
def view_page(
    request: Request,
    title: str,
    store: PageStore = Depends(get_page_store),
):
    try:
        page = store.load(title)
    except PageNotFoundError:
        return _redirect(f"/edit/{title}")
    except PageStorageError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc
    return _render(request, "view.html", page)


@router.get("/edit/{title:title}", response_class=HTMLResponse)
def edit_page(
    request: Request,
    title: str,
    store: PageStore = Depends(get_page_store),
):
    """
    A missing page is the "new page" case: render the form with an empty body.
    """
    try:
        page = store.load(title)
    except PageNotFoundError:
        page = Page(title=title)
    except PageStorageError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc
    return _render(request, "edit.html", page)


@router.post("/save/{title:title}")
def save_page(
    title: str,
    body: str = Form(default=""),
    store: PageStore = Depends(get_page_store),
) -> RedirectResponse:
    try:
        store.save(title, body.encode("utf-8"))
    except PageStorageError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc
    return _redirect(f"/view/{title}")
