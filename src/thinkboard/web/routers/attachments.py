from urllib.parse import quote
from uuid import UUID

from fastapi import APIRouter, Request
from fastapi.responses import Response
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException
from starlette.formparsers import MultiPartException

from thinkboard.core.modules.attachment.models import AttachmentUpload
from thinkboard.core.modules.attachment.utils import (
    MAX_FILE_SIZE,
    MAX_FILES_PER_REQUEST,
    check_request_size,
    check_upload_limits,
)
from thinkboard.core.modules.note.models import Attachment
from thinkboard.errors import ValidationError
from thinkboard.web.deps import AppDep, AuthTokenDep, OptionalAuthTokenDep
from thinkboard.web.openapi import ErrorResponse

router = APIRouter(tags=["attachments"])

# The form is parsed inside the handler so limits apply while the body streams in
UPLOAD_REQUEST_BODY = {
    "required": True,
    "content": {
        "multipart/form-data": {
            "schema": {
                "type": "object",
                "required": ["files"],
                "properties": {
                    "files": {
                        "type": "array",
                        "items": {"type": "string", "format": "binary"},
                        "maxItems": MAX_FILES_PER_REQUEST,
                    }
                },
            }
        }
    },
}


@router.post(
    "/notes/{note_id}/attachments",
    summary="Upload attachments",
    description=(
        "Upload up to 5 files (10 MB each) to a note. Allowed types: JPEG, PNG, GIF, WebP, PDF, "
        "plain text, DOC and DOCX. Requires write access and a Content-Length header."
    ),
    operation_id="uploadAttachments",
    status_code=201,
    openapi_extra={"requestBody": UPLOAD_REQUEST_BODY},
    responses={
        201: {"description": "Attachments stored"},
        400: {"model": ErrorResponse, "description": "Too many files, file too large or unsupported type"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Note not found or access denied"},
    },
)
async def upload_attachments(note_id: UUID, request: Request, app: AppDep, auth_token: AuthTokenDep) -> list[Attachment]:
    check_request_size(request.headers.get("content-length"))
    try:
        form = await request.form(max_files=MAX_FILES_PER_REQUEST)
    except MultiPartException as e:
        raise ValidationError(e.message, field="files") from e
    except HTTPException as e:
        # Starlette reports multipart limits as a 400 when running inside an application
        raise ValidationError(str(e.detail), field="files") from e

    try:
        files = [f for f in form.getlist("files") if isinstance(f, UploadFile)]
        mime_types = [f.content_type or "application/octet-stream" for f in files]
        check_upload_limits(len(files), [f.size for f in files], mime_types)

        uploads: list[AttachmentUpload] = []
        for file, mime_type in zip(files, mime_types, strict=True):
            content = await file.read(MAX_FILE_SIZE + 1)
            if len(content) > MAX_FILE_SIZE:
                raise ValidationError(f"File exceeds {MAX_FILE_SIZE // (1024 * 1024)} MB limit", field="files")
            uploads.append(AttachmentUpload(filename=file.filename or "unnamed", mime_type=mime_type, content=content))
    finally:
        await form.close()
    return await app.add_attachments(auth_token, note_id, uploads)


@router.get(
    "/notes/{note_id}/attachments/{attachment_id}",
    summary="Download attachment",
    description="Download an attachment of a readable note. Works without a token for notes with an active public share.",
    operation_id="downloadAttachment",
    response_class=Response,
    responses={
        200: {"description": "Attachment file"},
        404: {"model": ErrorResponse, "description": "Note or attachment not found"},
    },
)
async def download_attachment(
    note_id: UUID, attachment_id: UUID, app: AppDep, auth_token: OptionalAuthTokenDep
) -> Response:
    result = await app.get_attachment_content(auth_token, note_id, attachment_id)
    disposition = f"attachment; filename*=UTF-8''{quote(result.attachment.original_name)}"
    return Response(
        content=result.content,
        media_type=result.attachment.mimetype,
        headers={"Content-Disposition": disposition},
    )


@router.delete(
    "/notes/{note_id}/attachments/{attachment_id}",
    summary="Delete attachment",
    description="Remove an attachment from a note. Requires write access.",
    operation_id="deleteAttachment",
    status_code=204,
    responses={
        204: {"description": "Attachment removed"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Note or attachment not found"},
    },
)
async def delete_attachment(note_id: UUID, attachment_id: UUID, app: AppDep, auth_token: AuthTokenDep) -> None:
    await app.remove_attachment(auth_token, note_id, attachment_id)
