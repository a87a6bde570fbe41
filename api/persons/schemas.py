"""
Pydantic schemas for person endpoints.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class PersonCreate(BaseModel):
    """
    Incoming person payload. An `id` in the JSON body is ignored; the
    database assigns it.
    """

    model_config = ConfigDict(populate_by_name=True, strict=True)

    name: str = Field(..., max_length=255)
    age: int
    eye_color: str = Field(..., alias="eyeColor", max_length=255)


class PersonResponse(PersonCreate):
    id: int


class SavePersonResponse(BaseModel):
    message: str
    person: PersonResponse
