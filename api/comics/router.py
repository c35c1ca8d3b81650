"""
FastAPI router for comic endpoints.
"""

from __future__ import annotations

import json
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from starlette.datastructures import UploadFile

from core.settings import Settings

from . import schemas, service
from .images import ImageStore, read_upload_bytes
from .repository import ComicRepository

router = APIRouter(prefix="/comic")

IMAGE_FIELD = "image"


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_comics(request: Request) -> ComicRepository:
    return request.app.state.comics


def get_images(request: Request) -> ImageStore:
    return request.app.state.images


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


async def _json_values(request: Request) -> dict[str, str]:
    try:
        body = await request.json()
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Request body is not valid JSON.") from exc
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Request body must be a JSON object.")
    return {key: _text(value) for key, value in body.items() if key != IMAGE_FIELD}


async def get_payload(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> schemas.ComicPayload:
    """
    Parse a multipart/urlencoded form or a JSON object into a ComicPayload.

    A file part with an empty filename is treated as "no file".
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        return schemas.ComicPayload(values=await _json_values(request))

    form = await request.form()
    values: dict[str, str] = {}
    image: schemas.UploadedImage | None = None
    for key, value in form.multi_items():
        if isinstance(value, UploadFile):
            if key == IMAGE_FIELD and image is None and value.filename:
                data = await read_upload_bytes(value, max_bytes=settings.max_upload_bytes)
                image = schemas.UploadedImage(
                    filename=value.filename,
                    content_type=value.content_type,
                    data=data,
                )
            continue
        values.setdefault(key, value)
    return schemas.ComicPayload(values=values, image=image)


@router.get("/", response_model=list[schemas.ComicResponse])
async def list_comics(
    comics: ComicRepository = Depends(get_comics),
    images: ImageStore = Depends(get_images),
) -> list[schemas.ComicResponse]:
    return await service.list_comics(comics, images)


@router.get("/{isbn}", response_model=schemas.ComicResponse | None)
async def get_comic(
    isbn: str,
    comics: ComicRepository = Depends(get_comics),
    images: ImageStore = Depends(get_images),
) -> schemas.ComicResponse | None:
    """
    Return the comic with this isbn, or `null` when there is none.
    """
    return await service.get_comic(isbn, comics, images)


@router.post("/", response_model=schemas.ComicEnvelope)
async def create_comic(
    payload: schemas.ComicPayload = Depends(get_payload),
    comics: ComicRepository = Depends(get_comics),
    images: ImageStore = Depends(get_images),
) -> schemas.ComicEnvelope:
    return await service.create_comic(payload, comics, images)


@router.put("/", response_model=schemas.ComicEnvelope)
async def update_comic(
    payload: schemas.ComicPayload = Depends(get_payload),
    comics: ComicRepository = Depends(get_comics),
    images: ImageStore = Depends(get_images),
) -> schemas.ComicEnvelope:
    return await service.update_comic(payload, comics, images)


@router.delete("/{isbn}", response_model=schemas.ComicEnvelope)
async def delete_comic(
    isbn: str,
    comics: ComicRepository = Depends(get_comics),
) -> schemas.ComicEnvelope:
    """
    Delete by isbn. Answers 200 with `status: error` when no row was removed.
    """
    return await service.delete_comic(isbn, comics)
