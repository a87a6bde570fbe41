"""
Person API endpoint.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status

from core.db import Database, get_db
from core.exceptions import PersonDecodeError, PersonStorageError

from . import schemas, service

router = APIRouter()


@router.post("/person/", response_model=schemas.SavePersonResponse)
async def create_person(
    request: Request,
    db: Database = Depends(get_db),
) -> schemas.SavePersonResponse:
    """
    Store one person from a JSON body: {"name": ..., "age": ..., "eyeColor": ...}.

    The body is decoded here rather than through a typed parameter so that a
    bad payload is reported the same way as a storage failure.
    """
    payload = await request.body()
    try:
        return await service.save_person(db, payload)
    except PersonDecodeError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Invalid Person request: {exc}",
        ) from exc
    except PersonStorageError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to save your person: {exc}",
        ) from exc
