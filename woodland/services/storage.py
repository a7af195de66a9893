from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from pathlib import Path

from fastapi import UploadFile

from woodland.config import UploadPolicy

logger = logging.getLogger(__name__)


class UploadError(Exception):
    """Raised when an upload violates its feature policy."""

    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


@dataclass
class UploadedFile:
    name: str
    filename: str
    size: int

    def as_dict(self) -> dict:
        return asdict(self)


def is_safe_filename(filename: str) -> bool:
    return bool(filename) and filename not in (".", "..") and not any(
        sep in filename for sep in ("/", "\\", "\x00")
    )


def get_file_extension(filename: str) -> str:
    """Lower-cased extension without the dot, or an empty string."""
    suffix = Path(filename or "").suffix
    return suffix[1:].lower() if suffix else ""


def format_file_size(size: int) -> str:
    if size <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    value = float(size)
    index = 0
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {units[index]}"


class StorageBackend(ABC):
    @abstractmethod
    async def save(self, data: bytes, filename: str) -> str: ...

    @abstractmethod
    async def delete(self, filename: str) -> bool: ...

    @abstractmethod
    async def get_url(self, filename: str) -> str: ...


class LocalStorage(StorageBackend):
    """Files stored flat inside one directory and served under ``base_url``."""

    def __init__(self, base_path: Path, base_url: str):
        self.base_path = base_path
        self.base_url = base_url.rstrip("/")
        self.base_path.mkdir(parents=True, exist_ok=True)

    def path_for(self, filename: str) -> Path:
        if not is_safe_filename(filename):
            raise UploadError("Invalid file name")
        return self.base_path / filename

    async def save(self, data: bytes, filename: str) -> str:
        self.path_for(filename).write_bytes(data)
        return await self.get_url(filename)

    async def delete(self, filename: str) -> bool:
        p = self.path_for(filename)
        if p.exists():
            p.unlink()
            return True
        return False

    async def get_url(self, filename: str) -> str:
        return f"{self.base_url}/{filename}"


class FileUploader:
    """Validate and store uploads for one feature.

    ``upload_file`` itself performs no validation; callers run the
    ``validate_*`` helpers first so every file of a batch is checked before
    any of them is written.
    """

    def __init__(self, policy: UploadPolicy, storage: LocalStorage) -> None:
        self.policy = policy
        self.storage = storage

    @classmethod
    def for_feature(cls, config, feature: str) -> FileUploader:
        policy = config.upload_policy(feature)
        return cls(policy, LocalStorage(config.upload_dir(feature), policy.url))

    def validate_file_size(self, size: int) -> None:
        if size > self.policy.max_file_size:
            raise UploadError(
                f"Files must be {self.policy.max_file_size_mb}MB or smaller"
            )

    def validate_file_type(self, content_type: str | None) -> None:
        if (content_type or "") not in self.policy.allowed_types:
            raise UploadError(
                "Unsupported file type. Allowed: "
                + ", ".join(self.policy.allowed_types)
            )

    def validate_file_count(self, count: int) -> None:
        if count > self.policy.max_files:
            raise UploadError(
                f"You can upload at most {self.policy.max_files} files"
            )

    def ensure_enabled(self) -> None:
        if not self.policy.enabled:
            raise UploadError("Uploads are disabled for this feature", 403)

    async def validate_files(self, files: list[UploadFile]) -> None:
        self.ensure_enabled()
        self.validate_file_count(len(files))
        for file in files:
            self.validate_file_type(file.content_type)
            self.validate_file_size(await _file_size(file))

    async def upload_file(self, file: UploadFile) -> UploadedFile:
        data = await file.read()
        original = file.filename or "file"
        extension = get_file_extension(original)
        stored_name = str(uuid.uuid4())
        if extension:
            stored_name = f"{stored_name}.{extension}"
        await self.storage.save(data, stored_name)
        logger.info(
            "Stored upload %s as %s (%d bytes)", original, stored_name, len(data)
        )
        return UploadedFile(name=original, filename=stored_name, size=len(data))

    async def upload_files(self, files: list[UploadFile]) -> list[UploadedFile]:
        return [await self.upload_file(file) for file in files]

    async def delete_file(self, filename: str) -> bool:
        try:
            return await self.storage.delete(filename)
        except UploadError:
            logger.warning("Refusing to delete unsafe path %r", filename)
            return False
        except OSError:
            logger.exception("Failed to delete %s", filename)
            return False

    async def delete_files(self, filenames: list[str]) -> int:
        deleted = 0
        for filename in filenames:
            if await self.delete_file(filename):
                deleted += 1
        return deleted


async def _file_size(file: UploadFile) -> int:
    if file.size is not None:
        return file.size
    data = await file.read()
    await file.seek(0)
    return len(data)
