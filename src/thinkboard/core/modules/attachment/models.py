from pydantic import BaseModel, Field

from thinkboard.core.modules.note.models import Attachment


class AttachmentUpload(BaseModel):
    """A file received from the client, not yet stored."""

    filename: str = Field(..., description="Filename as supplied by the client")
    mime_type: str = Field(..., description="Declared content type")
    content: bytes


class AttachmentContent(BaseModel):
    """Attachment metadata together with its bytes, for download."""

    attachment: Attachment
    content: bytes
