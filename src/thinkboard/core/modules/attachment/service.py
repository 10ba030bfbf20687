from collections.abc import Sequence
from uuid import UUID

import structlog

from thinkboard.core.core import Service
from thinkboard.core.modules.attachment.models import AttachmentContent, AttachmentUpload
from thinkboard.core.modules.attachment.utils import guess_extension, sanitize_filename, validate_uploads
from thinkboard.core.modules.note.models import Attachment, Note
from thinkboard.errors import AttachmentNotFound, BlobNotFoundError, BlobStoreError, StorageUnavailable

logger = structlog.get_logger(__name__)


class AttachmentService(Service):
    """Manages files attached to notes.

    Bytes live in the blob store, metadata is embedded in the note. A blob is
    written before its metadata and released after the metadata is gone, so a
    failure can leave an orphaned blob but never a dangling record.
    """

    async def _release(self, paths: Sequence[str]) -> None:
        for path in paths:
            try:
                await self.storage.blobs.delete(path)
            except BlobStoreError as e:
                logger.warning("blob_release_failed", path=path, error=str(e))

    async def add_attachments(self, actor: UUID, note_id: UUID, uploads: Sequence[AttachmentUpload]) -> list[Attachment]:
        """Store uploaded files and attach them to a note.

        Args:
            actor: Uploading user, must be able to write the note
            note_id: Target note
            uploads: Files with their content

        Returns:
            Metadata of the new attachments, in upload order

        Raises:
            NotFoundOrForbidden: If the note is missing or the actor cannot write it
            ValidationError: If the uploads break the count, size or type limits
        """
        note = await self.core.services.note.get_note(actor, note_id)
        self.core.services.access.ensure_can_write(actor, note)
        validate_uploads(uploads)

        attachments: list[Attachment] = []
        try:
            for upload in uploads:
                original_name = sanitize_filename(upload.filename)
                path = await self.storage.blobs.put(
                    upload.content, upload.mime_type, guess_extension(upload.mime_type, original_name)
                )
                attachments.append(
                    Attachment(
                        filename=path.rsplit("/", 1)[-1],
                        original_name=original_name,
                        mimetype=upload.mime_type,
                        size=len(upload.content),
                        storage_path=path,
                        uploaded_at=self.core.clock.now(),
                        uploaded_by=actor,
                    )
                )
        except BlobStoreError as e:
            await self._release([a.storage_path for a in attachments])
            logger.exception("attachment_store_failed", note_id=note_id, error=str(e))
            raise StorageUnavailable("Failed to store attachment") from e

        def mutation(current: Note) -> Note:
            self.core.services.access.ensure_can_write(actor, current)
            return current.model_copy(update={"attachments": [*current.attachments, *attachments]})

        try:
            await self.core.services.note.mutate(note_id, mutation)
        except Exception:
            await self._release([a.storage_path for a in attachments])
            raise

        logger.info("attachments_added", note_id=note_id, count=len(attachments))
        return attachments

    async def remove_attachment(self, actor: UUID, note_id: UUID, attachment_id: UUID) -> None:
        """Remove attachment metadata, then release its blob."""
        removed: list[Attachment] = []

        def mutation(current: Note) -> Note:
            self.core.services.access.ensure_can_write(actor, current)
            attachment = current.get_attachment(attachment_id)
            if attachment is None:
                raise AttachmentNotFound
            removed[:] = [attachment]
            return current.model_copy(update={"attachments": [a for a in current.attachments if a.id != attachment_id]})

        await self.core.services.note.mutate(note_id, mutation)
        await self._release([a.storage_path for a in removed])
        logger.info("attachment_removed", note_id=note_id, attachment_id=attachment_id)

    async def get_attachment_content(self, actor: UUID | None, note_id: UUID, attachment_id: UUID) -> AttachmentContent:
        """Attachment metadata and bytes, for anyone who can read the note."""
        note = await self.core.services.note.get_note(actor, note_id)
        attachment = note.get_attachment(attachment_id)
        if attachment is None:
            raise AttachmentNotFound

        try:
            content = await self.storage.blobs.get(attachment.storage_path)
        except BlobNotFoundError as e:
            logger.warning("attachment_blob_missing", note_id=note_id, attachment_id=attachment_id)
            raise AttachmentNotFound from e
        except BlobStoreError as e:
            raise StorageUnavailable("Failed to read attachment") from e
        return AttachmentContent(attachment=attachment, content=content)
