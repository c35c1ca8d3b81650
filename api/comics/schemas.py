"""
Pydantic schemas for comic endpoints.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


@dataclass(frozen=True)
class ComicFields:
    """
    Editable columns of a comic row, as written by create/update.
    """

    isbn: str
    name: str
    year: str
    author: str
    description: str
    image: str = ""


@dataclass(frozen=True)
class UploadedImage:
    filename: str
    content_type: str | None
    data: bytes


@dataclass(frozen=True)
class ComicPayload:
    """
    Parsed request body for create/update (form fields + optional file).
    """

    values: dict[str, str]
    image: UploadedImage | None = None

    def field(self, name: str) -> str:
        return self.values.get(name, "")


class ComicResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    isbn: str
    name: str
    year: str
    author: str
    description: str
    # Public path (`<upload dir><filename>`), computed when the row is serialized.
    image: str
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")


class ComicEnvelope(BaseModel):
    status: str
    message: str
    data: ComicResponse | None = None
