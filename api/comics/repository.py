"""
Comic persistence (raw SQL).

The table name is singular (`comic`). Rows come back as plain dicts keyed by
column name; `comics.service` turns them into response models.
"""

from __future__ import annotations

from typing import Any

from core import db

from .schemas import ComicFields

_COLUMNS = "id, isbn, name, year, author, description, image, created_at, updated_at"


class ComicRepository:
    def __init__(self, database: db.Database) -> None:
        self.database = database

    async def find_all(self) -> list[dict[str, Any]]:
        return await self.database.fetch_all(
            f"""
            SELECT {_COLUMNS}
            FROM comic
            ORDER BY id
            """
        )

    async def find_by_isbn(self, isbn: str) -> dict[str, Any] | None:
        return await self.database.fetch_one(
            f"""
            SELECT {_COLUMNS}
            FROM comic
            WHERE isbn = $1
            LIMIT 1
            """,
            isbn,
        )

    async def create(self, fields: ComicFields) -> dict[str, Any]:
        """
        Insert a comic; the DB assigns `id`, `created_at` and `updated_at`.
        """
        row = await self.database.fetch_one(
            f"""
            INSERT INTO comic (isbn, name, year, author, description, image)
            VALUES ($1, $2, $3, $4, $5, $6)
            RETURNING {_COLUMNS}
            """,
            fields.isbn,
            fields.name,
            fields.year,
            fields.author,
            fields.description,
            fields.image,
        )
        if row is None:
            raise RuntimeError("Failed to insert comic.")
        return row

    async def update_by_isbn(self, isbn: str, fields: ComicFields) -> int:
        """
        Overwrite every editable column of the rows matching `isbn`.

        Timestamps are left as they are. Returns the affected row count.
        """
        rows = await self.database.fetch_all(
            """
            UPDATE comic
            SET isbn = $2,
                name = $3,
                year = $4,
                author = $5,
                description = $6,
                image = $7
            WHERE isbn = $1
            RETURNING id
            """,
            isbn,
            fields.isbn,
            fields.name,
            fields.year,
            fields.author,
            fields.description,
            fields.image,
        )
        return len(rows)

    async def delete_by_isbn(self, isbn: str) -> int:
        rows = await self.database.fetch_all(
            """
            DELETE FROM comic
            WHERE isbn = $1
            RETURNING id
            """,
            isbn,
        )
        return len(rows)
