"""Tests for woodland/errors.py."""

from __future__ import annotations

from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient
from pydantic import BaseModel, Field

from woodland.errors import (
    GENERIC_ERROR_MESSAGE,
    field_errors,
    register_exception_handlers,
)


class Item(BaseModel):
    name: str = Field(..., min_length=1)


def _app() -> TestClient:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/teapot")
    def teapot():
        raise HTTPException(status_code=418, detail="No coffee here")

    @app.get("/boom")
    def boom():
        raise RuntimeError("secret internals")

    @app.post("/items")
    def create(item: Item):
        return item

    @app.get("/validate")
    def validate():
        Item.model_validate({"name": ""})

    return TestClient(app, raise_server_exceptions=False)


def test_http_exception_envelope():
    resp = _app().get("/teapot")
    assert resp.status_code == 418
    assert resp.json() == {"success": False, "message": "No coffee here"}


def test_unhandled_error_hides_details(caplog):
    resp = _app().get("/boom")
    assert resp.status_code == 500
    assert resp.json() == {"success": False, "message": GENERIC_ERROR_MESSAGE}
    assert "secret internals" not in resp.text
    assert "Unhandled error on GET /boom" in caplog.text


def test_request_validation_lists_fields():
    resp = _app().post("/items", json={"name": ""})
    body = resp.json()
    assert resp.status_code == 422
    assert list(body["errors"]) == ["name"]
    assert body["message"] == body["errors"]["name"]


def test_model_validation_inside_handler_is_422():
    resp = _app().get("/validate")
    assert resp.status_code == 422
    assert "name" in resp.json()["errors"]


def test_field_errors_strips_value_error_prefix():
    errors = [
        {"loc": ("body", "password"), "msg": "Value error, Too short"},
        {"loc": ("body", "password"), "msg": "second message is dropped"},
        {"loc": ("body", "images", 0, "filename"), "msg": "invalid filename"},
    ]
    assert field_errors(errors) == {
        "password": "Too short",
        "images.0.filename": "invalid filename",
    }
