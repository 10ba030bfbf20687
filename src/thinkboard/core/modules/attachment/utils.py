"""Utility functions for attachment handling."""

import mimetypes
import re
from collections.abc import Sequence
from pathlib import Path

from thinkboard.core.modules.attachment.models import AttachmentUpload
from thinkboard.errors import ValidationError

MAX_FILE_SIZE = 10 * 1024 * 1024  # 10 MB per file
MAX_FILES_PER_REQUEST = 5
MULTIPART_OVERHEAD = 64 * 1024  # Boundaries and part headers
MAX_REQUEST_SIZE = MAX_FILES_PER_REQUEST * MAX_FILE_SIZE + MULTIPART_OVERHEAD

ALLOWED_MIME_TYPES = frozenset(
    {
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/gif",
        "image/webp",
        "application/pdf",
        "text/plain",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    }
)


def check_request_size(content_length: str | None) -> None:
    """Reject an upload by its declared body size, before any of the body is read.

    Raises:
        ValidationError: If the size is missing, malformed or above MAX_REQUEST_SIZE
    """
    if content_length is None:
        raise ValidationError("Content-Length header is required for uploads", field="files")
    try:
        size = int(content_length)
    except ValueError as e:
        raise ValidationError("Invalid Content-Length header", field="files") from e
    if size > MAX_REQUEST_SIZE:
        raise ValidationError(f"Upload exceeds {MAX_REQUEST_SIZE // (1024 * 1024)} MB request limit", field="files")


def check_upload_limits(count: int, sizes: Sequence[int | None], mime_types: Sequence[str]) -> None:
    """Reject an upload request before any file content is accepted.

    Sizes may be None when the transport does not announce them; those files
    are checked again once their content is read.

    Raises:
        ValidationError: If there are no files, too many files, a file is too large
            or has an unsupported type
    """
    if count == 0:
        raise ValidationError("No files uploaded", field="files")
    if count > MAX_FILES_PER_REQUEST:
        raise ValidationError(f"At most {MAX_FILES_PER_REQUEST} files per upload", field="files")
    for size in sizes:
        if size is not None and size > MAX_FILE_SIZE:
            raise ValidationError(f"File exceeds {MAX_FILE_SIZE // (1024 * 1024)} MB limit", field="files")
    for mime_type in mime_types:
        if mime_type not in ALLOWED_MIME_TYPES:
            raise ValidationError(f"Unsupported file type: {mime_type}", field="files")


def validate_uploads(uploads: Sequence[AttachmentUpload]) -> None:
    """Validate uploads whose content is already in memory."""
    check_upload_limits(len(uploads), [len(u.content) for u in uploads], [u.mime_type for u in uploads])


def guess_extension(mime_type: str, original_name: str) -> str:
    """File extension for a stored blob, preferring the uploader's extension."""
    suffix = Path(original_name).suffix.lower()
    if suffix and re.fullmatch(r"\.[a-z0-9]{1,10}", suffix):
        return suffix
    return mimetypes.guess_extension(mime_type) or ""


def sanitize_filename(filename: str) -> str:
    """Sanitize an uploaded filename for display and download headers.

    Removes path components and dangerous characters while preserving
    readability and file extensions.

    Args:
        filename: Original filename from user

    Returns:
        Sanitized filename
    """
    # Remove path components to prevent traversal attacks
    filename = Path(filename).name

    # Remove leading dots to prevent hidden files
    filename = filename.lstrip(".")

    # Allow only word characters, spaces, dots, and hyphens
    sanitized = re.sub(r"[^\w\s.-]", "_", filename)
    sanitized = re.sub(r"_+", "_", sanitized)
    sanitized = re.sub(r"\s+", " ", sanitized)

    # Limit length to 100 characters while preserving extension
    if len(sanitized) > 100:
        parts = sanitized.rsplit(".", 1)
        if len(parts) == 2:
            name, ext = parts
            max_name_len = 96 - len(ext)
            sanitized = f"{name[:max_name_len]}.{ext}" if max_name_len > 0 else f"file.{ext}"
        else:
            sanitized = sanitized[:100]

    if not sanitized or not re.sub(r"[\s._-]", "", sanitized):
        sanitized = "unnamed_file"

    return sanitized
