"""
Comic business logic.

Every write follows the same pipeline, each step short-circuiting the next:
validate fields -> store the uploaded image (if any) -> write the row ->
build the response envelope.
"""

from __future__ import annotations

import logging
from typing import Any

from . import schemas, validation
from .images import ImageStore
from .repository import ComicRepository

logger = logging.getLogger(__name__)

ISBN_IN_USE = "ISBN already in use"
ISBN_NOT_FOUND = "ISBN not found"


def _isbn_unused(comics: ComicRepository) -> validation.Rule:
    async def check(isbn: str) -> bool:
        return await comics.find_by_isbn(isbn) is None

    return validation.Rule(check, ISBN_IN_USE)


def _isbn_exists(comics: ComicRepository) -> validation.Rule:
    async def check(isbn: str) -> bool:
        return await comics.find_by_isbn(isbn) is not None

    return validation.Rule(check, ISBN_NOT_FOUND)


def _isbn_rules(isbn_check: validation.Rule) -> list[validation.Rule]:
    return [validation.length(min_length=5), validation.numeric(), isbn_check]


def _detail_rules() -> validation.RuleSet:
    return [
        ("name", [validation.length(min_length=2)]),
        ("year", [validation.length(min_length=4, max_length=4), validation.numeric()]),
        ("author", [validation.length(min_length=2)]),
        ("description", [validation.length(min_length=10)]),
    ]


def create_rules(comics: ComicRepository) -> validation.RuleSet:
    return [("isbn", _isbn_rules(_isbn_unused(comics))), *_detail_rules()]


def update_rules(comics: ComicRepository) -> validation.RuleSet:
    return [("isbn", _isbn_rules(_isbn_exists(comics))), *_detail_rules()]


def delete_rules(comics: ComicRepository) -> validation.RuleSet:
    return [("isbn", _isbn_rules(_isbn_exists(comics)))]


def to_comic_response(row: dict[str, Any], images: ImageStore) -> schemas.ComicResponse:
    return schemas.ComicResponse(
        id=int(row["id"]),
        isbn=str(row["isbn"]),
        name=str(row["name"]),
        year=str(row["year"]),
        author=str(row["author"]),
        description=str(row["description"]),
        image=images.public_path(str(row.get("image") or "")),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


async def _store_image(payload: schemas.ComicPayload, images: ImageStore) -> str:
    if payload.image is None:
        return ""
    return await images.save(payload.image.filename, payload.image.data)


def _fields(payload: schemas.ComicPayload, image: str) -> schemas.ComicFields:
    return schemas.ComicFields(
        isbn=payload.field("isbn"),
        name=payload.field("name"),
        year=payload.field("year"),
        author=payload.field("author"),
        description=payload.field("description"),
        image=image,
    )


async def list_comics(comics: ComicRepository, images: ImageStore) -> list[schemas.ComicResponse]:
    rows = await comics.find_all()
    return [to_comic_response(row, images) for row in rows]


async def get_comic(isbn: str, comics: ComicRepository, images: ImageStore) -> schemas.ComicResponse | None:
    row = await comics.find_by_isbn(isbn)
    if row is None:
        return None
    return to_comic_response(row, images)


async def create_comic(
    payload: schemas.ComicPayload,
    comics: ComicRepository,
    images: ImageStore,
) -> schemas.ComicEnvelope:
    await validation.ensure_valid(create_rules(comics), payload.values, location="body")

    image = await _store_image(payload, images)
    row = await comics.create(_fields(payload, image))
    logger.info("comic_created id=%s isbn=%s image=%s", row["id"], row["isbn"], image or "-")

    return schemas.ComicEnvelope(
        status="success",
        message="comic added",
        data=to_comic_response(row, images),
    )


async def update_comic(
    payload: schemas.ComicPayload,
    comics: ComicRepository,
    images: ImageStore,
) -> schemas.ComicEnvelope:
    """
    Replace every editable field of the comic named by `isbn` in the body.

    Without an uploaded file the stored image is cleared; a replaced file is
    left on disk.
    """
    await validation.ensure_valid(update_rules(comics), payload.values, location="body")

    isbn = payload.field("isbn")
    image = await _store_image(payload, images)
    affected = await comics.update_by_isbn(isbn, _fields(payload, image))
    logger.info("comic_updated isbn=%s affected=%s image=%s", isbn, affected, image or "-")

    row = await comics.find_by_isbn(isbn)
    return schemas.ComicEnvelope(
        status="success",
        message="comic updated",
        data=to_comic_response(row, images) if row is not None else None,
    )


async def delete_comic(isbn: str, comics: ComicRepository) -> schemas.ComicEnvelope:
    await validation.ensure_valid(delete_rules(comics), {"isbn": isbn}, location="params")

    affected = await comics.delete_by_isbn(isbn)
    if affected:
        logger.info("comic_deleted isbn=%s affected=%s", isbn, affected)
        return schemas.ComicEnvelope(status="success", message="comic deleted", data=None)

    # Row vanished between the existence check and the delete.
    logger.warning("comic_delete_noop isbn=%s", isbn)
    return schemas.ComicEnvelope(status="error", message="Failed", data=None)
