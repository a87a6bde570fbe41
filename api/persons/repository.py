"""
Person persistence (raw SQL).
"""

from __future__ import annotations

import logging

import asyncpg

from core.db import Database
from core.exceptions import PersonStorageError

from .schemas import PersonCreate

logger = logging.getLogger(__name__)


async def create_person_table(db: Database) -> bool:
    """
    Create the `person` table. Returns False when it already exists.
    """
    try:
        await db.execute(
            """
            CREATE TABLE person (
              id serial PRIMARY KEY,
              name varchar(255) NOT NULL,
              age int,
              eye_color varchar(255)
            )
            """
        )
    except asyncpg.exceptions.DuplicateTableError as exc:
        logger.warning("person_table_exists detail=%s", exc)
        return False
    return True


async def insert_person(db: Database, person: PersonCreate) -> int:
    try:
        row = await db.fetch_one(
            """
            INSERT INTO person (name, age, eye_color)
            VALUES ($1, $2, $3)
            RETURNING id
            """,
            person.name,
            person.age,
            person.eye_color,
        )
    except (OSError, asyncpg.PostgresError, asyncpg.InterfaceError) as exc:
        raise PersonStorageError(str(exc)) from exc

    if row is None or "id" not in row:
        raise PersonStorageError("Insert returned no id.")
    return int(row["id"])
