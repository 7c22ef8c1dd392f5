"""
Opinion document storage.

Files are written below ``<storage dir>/drafts/<draft id>/`` with a unique
prefix. Text is extracted only for plain-text uploads.
"""

from __future__ import annotations

import re
import uuid
from pathlib import Path
from typing import Optional

from practiceflow.core.errors import PayloadTooLargeError, UnsupportedMediaTypeError, ValidationError
from practiceflow.core.logging_config import get_logger
from practiceflow.server.core.config import settings

logger = get_logger(__name__)

ALLOWED_CONTENT_TYPES = {
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/json",
    "text/plain",
    "text/markdown",
    "text/csv",
}
TEXT_EXTENSIONS = {".md", ".txt", ".csv", ".json"}

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def is_text_upload(file_name: str, content_type: str) -> bool:
    return content_type.startswith("text/") or Path(file_name).suffix.lower() in TEXT_EXTENSIONS


def is_allowed(file_name: str, content_type: str) -> bool:
    return content_type in ALLOWED_CONTENT_TYPES or is_text_upload(file_name, content_type)


def safe_file_name(file_name: str) -> str:
    name = _UNSAFE_CHARS.sub("_", Path(file_name).name).strip("._")
    return name or "document"


def extract_text(data: bytes, file_name: str, content_type: str) -> Optional[str]:
    if not is_text_upload(file_name, content_type):
        return None
    return data.decode("utf-8", errors="replace")


class DocumentStore:
    """Local file storage for draft documents."""

    def __init__(self, root: Optional[str | Path] = None, max_upload_size_mb: Optional[int] = None) -> None:
        config = settings.storage
        self.root = Path(root if root is not None else config.directory)
        self.max_bytes = (max_upload_size_mb if max_upload_size_mb is not None else config.max_upload_size_mb) * 1024 * 1024

    def validate(self, file_name: str, content_type: str, size: int) -> None:
        if not file_name:
            raise ValidationError("File required")
        if size > self.max_bytes:
            raise PayloadTooLargeError(
                f"File size exceeds maximum allowed size of {self.max_bytes // (1024 * 1024)}MB",
                details={"file_size": size},
            )
        if not is_allowed(file_name, content_type):
            raise UnsupportedMediaTypeError(
                "Invalid file type. Only PDF, Word and text files are allowed.",
                details={"file_type": content_type},
            )

    def save(self, draft_id: int, file_name: str, data: bytes) -> Path:
        directory = self.root / "drafts" / str(draft_id)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / f"{uuid.uuid4().hex}_{safe_file_name(file_name)}"
        path.write_bytes(data)
        logger.info(f"Stored document {file_name} for draft {draft_id} at {path}")
        return path

    def remove(self, file_path: str) -> bool:
        path = Path(file_path)
        if not path.is_file():
            logger.warning(f"Document file already missing: {path}")
            return False
        path.unlink()
        return True
