"""
Person business logic: decode the request body, then store it.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from core.db import Database
from core.exceptions import PersonDecodeError

from . import repository, schemas

logger = logging.getLogger(__name__)


def decode_person(payload: bytes) -> schemas.PersonCreate:
    try:
        return schemas.PersonCreate.model_validate_json(payload)
    except ValidationError as exc:
        raise PersonDecodeError(str(exc)) from exc


async def save_person(db: Database, payload: bytes) -> schemas.SavePersonResponse:
    person = decode_person(payload)
    logger.info(
        "person_received name=%s age=%s eye_color=%s",
        person.name,
        person.age,
        person.eye_color,
    )

    person_id = await repository.insert_person(db, person)
    logger.debug("person_saved id=%s", person_id)

    return schemas.SavePersonResponse(
        message=f"We saved {person.name} for you",
        person=schemas.PersonResponse(id=person_id, **person.model_dump()),
    )
