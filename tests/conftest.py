"""Shared fixtures: an app wired to an in-memory comic store and a temp public dir."""
from __future__ import annotations

from dataclasses import asdict
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from comics.schemas import ComicFields
from core.settings import Settings
from main import create_app


class InMemoryComics:
    """Drop-in for ComicRepository that keeps rows in a dict."""

    def __init__(self) -> None:
        self.rows: dict[int, dict] = {}
        self.lookups: list[str] = []
        self._next_id = 1

    async def find_all(self) -> list[dict]:
        return [dict(self.rows[key]) for key in sorted(self.rows)]

    async def find_by_isbn(self, isbn: str) -> dict | None:
        self.lookups.append(isbn)
        for key in sorted(self.rows):
            if self.rows[key]["isbn"] == isbn:
                return dict(self.rows[key])
        return None

    async def create(self, fields: ComicFields) -> dict:
        now = datetime.now(timezone.utc)
        row = {"id": self._next_id, **asdict(fields), "created_at": now, "updated_at": now}
        self.rows[self._next_id] = row
        self._next_id += 1
        return dict(row)

    async def update_by_isbn(self, isbn: str, fields: ComicFields) -> int:
        affected = 0
        for row in self.rows.values():
            if row["isbn"] == isbn:
                row.update(asdict(fields))
                affected += 1
        return affected

    async def delete_by_isbn(self, isbn: str) -> int:
        doomed = [key for key, row in self.rows.items() if row["isbn"] == isbn]
        for key in doomed:
            del self.rows[key]
        return len(doomed)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(public_dir=tmp_path / "public")


@pytest.fixture
def comics() -> InMemoryComics:
    return InMemoryComics()


@pytest.fixture
def client(settings, comics):
    app = create_app(settings, comics=comics)
    with TestClient(app) as test_client:
        yield test_client
