from __future__ import annotations

import mimetypes
import re
from datetime import UTC, datetime
from pathlib import Path
from urllib.parse import quote

from fastapi import HTTPException
from fastapi.responses import FileResponse

from woodland.observability.metrics import DOWNLOAD_COUNTER
from woodland.services.storage import is_safe_filename

_NON_ASCII = re.compile(r"[^\x20-\x7e]")


def content_disposition(display_name: str) -> str:
    """Attachment header with an ASCII fallback plus the RFC 5987 UTF-8 form."""
    fallback = _NON_ASCII.sub("_", display_name).replace('"', "_").replace("\\", "_")
    encoded = quote(display_name, safe="")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{encoded}"


def find_attachment(attachments: list[dict], filename: str) -> dict | None:
    for item in attachments or []:
        if isinstance(item, dict) and item.get("filename") == filename:
            return item
    return None


def record_download(stats: dict | None, filename: str) -> dict:
    """Return a new stats mapping with one more download of ``filename``."""
    updated = dict(stats or {})
    now = datetime.now(UTC).isoformat()
    entry = dict(updated.get(filename) or {})
    entry["count"] = int(entry.get("count", 0)) + 1
    entry.setdefault("firstDownloadAt", now)
    entry["lastDownloadAt"] = now
    updated[filename] = entry
    return updated


def attachment_response(
    directory: Path, filename: str, display_name: str, feature: str
) -> FileResponse:
    if not is_safe_filename(filename):
        raise HTTPException(status_code=400, detail="Invalid file name")
    path = directory / filename
    if not path.is_file():
        raise HTTPException(status_code=404, detail="File not found")
    media_type = mimetypes.guess_type(display_name)[0] or mimetypes.guess_type(
        filename
    )[0]
    DOWNLOAD_COUNTER.labels(feature).inc()
    return FileResponse(
        path,
        media_type=media_type or "application/octet-stream",
        headers={
            "Content-Disposition": content_disposition(display_name),
            "Cache-Control": "private, no-cache",
        },
    )
