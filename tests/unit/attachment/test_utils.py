"""Tests for attachment upload checks and filename handling."""

import pytest

from thinkboard.core.modules.attachment.models import AttachmentUpload
from thinkboard.core.modules.attachment.utils import (
    MAX_FILE_SIZE,
    MAX_FILES_PER_REQUEST,
    MAX_REQUEST_SIZE,
    check_request_size,
    check_upload_limits,
    guess_extension,
    sanitize_filename,
    validate_uploads,
)
from thinkboard.errors import ValidationError


class TestCheckRequestSize:
    def test_within_limit(self):
        check_request_size(str(MAX_REQUEST_SIZE))

    def test_too_large(self):
        with pytest.raises(ValidationError) as exc_info:
            check_request_size(str(MAX_REQUEST_SIZE + 1))
        assert exc_info.value.field == "files"

    @pytest.mark.parametrize("content_length", [None, "", "lots"])
    def test_missing_or_malformed(self, content_length):
        with pytest.raises(ValidationError):
            check_request_size(content_length)


class TestCheckUploadLimits:
    def test_within_limits(self):
        check_upload_limits(MAX_FILES_PER_REQUEST, [MAX_FILE_SIZE] * 5, ["image/png"] * 5)

    def test_no_files(self):
        with pytest.raises(ValidationError, match="No files uploaded"):
            check_upload_limits(0, [], [])

    def test_too_many_files(self):
        with pytest.raises(ValidationError) as exc_info:
            check_upload_limits(6, [1] * 6, ["text/plain"] * 6)
        assert exc_info.value.field == "files"

    def test_file_too_large(self):
        with pytest.raises(ValidationError, match="10 MB"):
            check_upload_limits(1, [MAX_FILE_SIZE + 1], ["application/pdf"])

    def test_unknown_size_deferred(self):
        """Sizes the client did not announce are checked after reading."""
        check_upload_limits(1, [None], ["application/pdf"])

    @pytest.mark.parametrize("mime_type", ["application/zip", "text/html", "image/svg+xml", "application/x-msdownload"])
    def test_unsupported_type(self, mime_type):
        with pytest.raises(ValidationError, match="Unsupported file type"):
            check_upload_limits(1, [10], [mime_type])

    def test_validate_uploads_uses_content_length(self):
        upload = AttachmentUpload(filename="big.txt", mime_type="text/plain", content=b"x" * (MAX_FILE_SIZE + 1))
        with pytest.raises(ValidationError):
            validate_uploads([upload])


class TestGuessExtension:
    def test_uploader_extension_preferred(self):
        assert guess_extension("image/jpeg", "Photo.JPEG") == ".jpeg"

    def test_fallback_to_mime_type(self):
        assert guess_extension("application/pdf", "report") == ".pdf"

    def test_weird_suffix_ignored(self):
        assert guess_extension("text/plain", "notes.t x t") == ".txt"


class TestSanitizeFilename:
    """Uploaded names are shown in the UI and sent back in download headers."""

    def test_normal_names_unchanged(self):
        assert sanitize_filename("minutes 2024-01-05.pdf") == "minutes 2024-01-05.pdf"
        assert sanitize_filename("archive.tar.gz") == "archive.tar.gz"
        assert sanitize_filename("报告.docx") == "报告.docx"

    def test_path_components_removed(self):
        assert sanitize_filename("../../etc/passwd") == "passwd"
        assert sanitize_filename("../../../.hidden/secret.txt") == "secret.txt"

    def test_leading_dots_and_special_characters(self):
        assert sanitize_filename("..secret") == "secret"
        assert sanitize_filename("agenda:draft*?.txt") == "agenda_draft_.txt"
        assert sanitize_filename("file    name.txt") == "file name.txt"

    def test_long_name_keeps_extension(self):
        result = sanitize_filename("meeting_notes_" * 12 + ".docx")
        assert len(result) <= 100
        assert result.endswith(".docx")

    @pytest.mark.parametrize("name", ["", "...", "***", "   "])
    def test_empty_result_gets_default(self, name):
        assert sanitize_filename(name) == "unnamed_file"
