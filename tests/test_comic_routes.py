"""Tests for the /comic HTTP endpoints."""
from __future__ import annotations

import re

from fastapi.testclient import TestClient

from comics.images import ImageStore
from core.settings import Settings
from main import create_app

VALID_COMIC = {
    "isbn": "12345",
    "name": "AB",
    "year": "1999",
    "author": "CD",
    "description": "0123456789",
}


def _create(client, **overrides):
    return client.post("/comic/", data={**VALID_COMIC, **overrides})


def test_list_is_empty_array_without_comics(client):
    response = client.get("/comic/")

    assert response.status_code == 200
    assert response.json() == []


def test_create_then_get_round_trip(client):
    created = _create(client)

    assert created.status_code == 200
    body = created.json()
    assert body["status"] == "success"
    assert body["message"] == "comic added"

    fetched = client.get("/comic/12345")
    assert fetched.status_code == 200
    comic = fetched.json()
    for key, value in VALID_COMIC.items():
        assert comic[key] == value
    assert isinstance(comic["id"], int)
    assert comic["createdAt"]
    assert comic["updatedAt"]
    # No file uploaded: the path is just the upload dir.
    assert comic["image"] == "/img/"
    assert body["data"] == comic


def test_get_unknown_isbn_returns_null(client):
    response = client.get("/comic/99999")

    assert response.status_code == 200
    assert response.json() is None


def test_duplicate_isbn_is_rejected(client, comics):
    assert _create(client).status_code == 200

    response = _create(client, name="Other name")

    assert response.status_code == 422
    error = response.json()["errors"]["isbn"]
    assert error["msg"] == "ISBN already in use"
    assert error["param"] == "isbn"
    assert error["location"] == "body"
    assert len(comics.rows) == 1


def test_create_collects_errors_for_every_field(client, comics):
    response = client.post(
        "/comic/",
        data={"isbn": "12a", "name": "A", "year": "99", "author": "", "description": "short"},
    )

    assert response.status_code == 422
    errors = response.json()["errors"]
    assert set(errors) == {"isbn", "name", "year", "author", "description"}
    assert all(err["msg"] == "Invalid value" for err in errors.values())
    assert comics.rows == {}


def test_missing_fields_are_reported(client):
    response = client.post("/comic/", data={})

    assert response.status_code == 422
    assert set(response.json()["errors"]) == {"isbn", "name", "year", "author", "description"}
    assert all("value" not in err for err in response.json()["errors"].values())


def test_isbn_lookup_skipped_when_structural_checks_fail(client, comics):
    response = _create(client, isbn="abcde")

    assert response.status_code == 422
    assert response.json()["errors"]["isbn"]["msg"] == "Invalid value"
    assert comics.lookups == []


def test_year_must_be_exactly_four_digits(client):
    for year in ("199", "19999", "19a9"):
        response = _create(client, year=year)
        assert response.status_code == 422, year
        assert set(response.json()["errors"]) == {"year"}


def test_trailing_newline_is_not_numeric(client, comics):
    bad_year = _create(client, year="199\n")
    assert bad_year.status_code == 422
    assert set(bad_year.json()["errors"]) == {"year"}

    bad_isbn = _create(client, isbn="1234\n")
    assert bad_isbn.status_code == 422
    assert set(bad_isbn.json()["errors"]) == {"isbn"}

    assert comics.rows == {}


def test_description_length_boundary(client):
    too_short = _create(client, description="012345678")
    assert too_short.status_code == 422
    assert set(too_short.json()["errors"]) == {"description"}

    just_enough = _create(client, description="0123456789")
    assert just_enough.status_code == 200


def test_create_accepts_json_body(client):
    response = client.post("/comic/", json={**VALID_COMIC, "isbn": 54321})

    assert response.status_code == 200
    assert response.json()["data"]["isbn"] == "54321"


def test_malformed_json_is_a_bad_request(client):
    response = client.post(
        "/comic/",
        content=b"{not json",
        headers={"content-type": "application/json"},
    )

    assert response.status_code == 400


def test_upload_stores_file_under_random_name(client, settings):
    response = client.post(
        "/comic/",
        data=VALID_COMIC,
        files={"image": ("cover.PNG", b"fake-png-bytes", "image/png")},
    )

    assert response.status_code == 200
    image = response.json()["data"]["image"]
    match = re.fullmatch(r"/img/([0-9a-f]{32})\.PNG", image)
    assert match is not None, image
    stored = settings.upload_path / f"{match.group(1)}.PNG"
    assert stored.read_bytes() == b"fake-png-bytes"

    served = client.get(image)
    assert served.status_code == 200
    assert served.content == b"fake-png-bytes"


def test_uploads_never_share_a_filename(client):
    names = set()
    for isbn in ("11111", "22222", "33333"):
        response = client.post(
            "/comic/",
            data={**VALID_COMIC, "isbn": isbn},
            files={"image": ("cover.jpg", b"jpg", "image/jpeg")},
        )
        assert response.status_code == 200
        names.add(response.json()["data"]["image"])

    assert len(names) == 3


def test_file_not_written_when_validation_fails(client, settings):
    response = client.post(
        "/comic/",
        data={**VALID_COMIC, "year": "1"},
        files={"image": ("cover.jpg", b"jpg", "image/jpeg")},
    )

    assert response.status_code == 422
    assert list(settings.upload_path.iterdir()) == []


def test_upload_over_size_limit_is_rejected(tmp_path, comics):
    app = create_app(Settings(public_dir=tmp_path / "public", max_upload_bytes=4), comics=comics)
    with TestClient(app) as small_client:
        response = small_client.post(
            "/comic/",
            data=VALID_COMIC,
            files={"image": ("cover.jpg", b"0123456789", "image/jpeg")},
        )

    assert response.status_code == 413
    assert comics.rows == {}


def test_update_replaces_fields_of_existing_comic(client, comics):
    _create(client)
    _create(client, isbn="67890", name="Untouched")

    response = client.put(
        "/comic/",
        data={**VALID_COMIC, "name": "New name", "author": "New author"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "success"
    assert body["message"] == "comic updated"
    assert body["data"]["name"] == "New name"

    fetched = client.get("/comic/12345").json()
    assert fetched["name"] == "New name"
    assert fetched["author"] == "New author"
    assert client.get("/comic/67890").json()["name"] == "Untouched"


def test_update_without_file_clears_image(client):
    created = client.post(
        "/comic/",
        data=VALID_COMIC,
        files={"image": ("cover.gif", b"gif", "image/gif")},
    )
    assert created.json()["data"]["image"] != "/img/"

    response = client.put("/comic/", data=VALID_COMIC)

    assert response.json()["data"]["image"] == "/img/"


def test_update_with_file_sets_new_image(client):
    _create(client)

    response = client.put(
        "/comic/",
        data=VALID_COMIC,
        files={"image": ("new.webp", b"webp", "image/webp")},
    )

    assert re.fullmatch(r"/img/[0-9a-f]{32}\.webp", response.json()["data"]["image"])


def test_update_unknown_isbn_is_rejected(client, comics):
    _create(client)

    response = client.put("/comic/", data={**VALID_COMIC, "isbn": "99999", "name": "Changed"})

    assert response.status_code == 422
    assert response.json()["errors"]["isbn"]["msg"] == "ISBN not found"
    assert comics.rows[1]["name"] == "AB"


def test_delete_then_get_and_delete_again(client):
    _create(client)

    deleted = client.delete("/comic/12345")
    assert deleted.status_code == 200
    assert deleted.json() == {"status": "success", "message": "comic deleted", "data": None}

    assert client.get("/comic/12345").json() is None

    again = client.delete("/comic/12345")
    assert again.status_code == 422
    error = again.json()["errors"]["isbn"]
    assert error["msg"] == "ISBN not found"
    assert error["location"] == "params"


def test_delete_rejects_malformed_isbn(client):
    response = client.delete("/comic/12")

    assert response.status_code == 422
    assert response.json()["errors"]["isbn"]["msg"] == "Invalid value"


def test_delete_reports_error_when_nothing_removed(client, comics, monkeypatch):
    _create(client)

    async def remove_nothing(_isbn):
        return 0

    monkeypatch.setattr(comics, "delete_by_isbn", remove_nothing)

    response = client.delete("/comic/12345")

    assert response.status_code == 200
    assert response.json() == {"status": "error", "message": "Failed", "data": None}


def test_storage_failure_becomes_generic_500(client, comics, monkeypatch):
    async def unavailable():
        raise ConnectionRefusedError("db down")

    monkeypatch.setattr(comics, "find_all", unavailable)

    response = client.get("/comic/")

    assert response.status_code == 500
    assert response.json() == {"status": "error", "message": "Internal server error", "data": None}


def test_image_write_failure_becomes_500_without_row(client, comics, monkeypatch):
    def broken_write(self, path, data):
        raise PermissionError("read-only filesystem")

    monkeypatch.setattr(ImageStore, "_write", broken_write)

    response = client.post(
        "/comic/",
        data=VALID_COMIC,
        files={"image": ("cover.jpg", b"jpg", "image/jpeg")},
    )

    assert response.status_code == 500
    assert comics.rows == {}


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
