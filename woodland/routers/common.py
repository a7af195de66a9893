"""Helpers shared by the content routers."""

from __future__ import annotations

import json
from contextlib import contextmanager

from fastapi import HTTPException, Query, Request, UploadFile

from woodland.services.images import ImageProcessingResult, process_images_with_resize
from woodland.services.pagination import clamp_page
from woodland.services.storage import FileUploader, UploadError


def parse_json_field(raw: str | None, field: str = "data") -> dict:
    """Decode a JSON document sent as a multipart form field."""
    if not raw:
        raise HTTPException(status_code=400, detail=f"Missing '{field}' field")
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise HTTPException(
            status_code=400, detail=f"'{field}' must be valid JSON"
        ) from exc
    if not isinstance(value, dict):
        raise HTTPException(status_code=400, detail=f"'{field}' must be an object")
    return value


def real_files(files: list[UploadFile] | None) -> list[UploadFile]:
    """Drop empty parts browsers send for untouched file inputs."""
    return [f for f in files or [] if f is not None and f.filename]


@contextmanager
def upload_errors():
    try:
        yield
    except UploadError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc


def uploader(request: Request, feature: str) -> FileUploader:
    return FileUploader.for_feature(request.app.state.settings, feature)


class PageParams:
    def __init__(
        self,
        page: int = Query(1, ge=1),
        limit: int | None = Query(None, ge=1),
    ) -> None:
        self.page, self.per_page = clamp_page(page, limit)


async def store_uploads(
    files_uploader: FileUploader, uploads: list[UploadFile], kept: int = 0
) -> list[dict]:
    """Validate the whole batch, then store it. ``kept`` counts existing files."""
    if not uploads:
        return []
    with upload_errors():
        files_uploader.validate_file_count(kept + len(uploads))
        await files_uploader.validate_files(uploads)
        stored = await files_uploader.upload_files(uploads)
    return [f.as_dict() for f in stored]


async def resize_uploads(
    images_uploader: FileUploader,
    files: list[UploadFile],
    kept: int = 0,
    feature: str = "images",
) -> ImageProcessingResult:
    """Resize a batch of photos; per-image failures end up in the result."""
    if not files:
        return ImageProcessingResult()
    with upload_errors():
        images_uploader.ensure_enabled()
        images_uploader.validate_file_count(kept + len(files))
    return await process_images_with_resize(
        files, images_uploader.policy, images_uploader.storage, feature=feature
    )


def tally_message(base: str, result: ImageProcessingResult) -> str:
    if not result.total:
        return base
    return f"{base} (images: {result.summary()} uploaded)"
