from abc import ABC


class UserError(ABC, Exception):
    """Base class for user-related errors.

    All errors that inherit from UserError will have their messages
    displayed to the user. These errors should not contain any
    sensitive information.
    """


class NotFoundError(UserError):
    """Raised when a requested resource is not found."""

    def __init__(self, message: str = "Document not found") -> None:
        super().__init__(message)


class NotFoundOrForbidden(NotFoundError):
    """Raised when a note is absent or the actor lacks the required permission.

    Both cases produce the same error so callers cannot learn about the
    existence of notes they are not allowed to see.
    """

    def __init__(self, message: str = "Note not found or access denied") -> None:
        super().__init__(message)


class VersionNotFound(NotFoundError):
    def __init__(self, message: str = "Version not found") -> None:
        super().__init__(message)


class ReminderNotFound(NotFoundError):
    def __init__(self, message: str = "Reminder not found") -> None:
        super().__init__(message)


class AttachmentNotFound(NotFoundError):
    def __init__(self, message: str = "Attachment not found") -> None:
        super().__init__(message)


class AuthenticationError(UserError):
    """Raised when authentication fails."""

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message)


class AccessDeniedError(UserError):
    """Raised when a user tries to access a resource they do not have permission for."""


class ValidationError(UserError):
    """Raised when user input fails validation.

    `field` names the offending input field when the failure is specific to one.
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class ConflictError(UserError):
    """Raised when a concurrent write changed the note between read and write.

    Callers should repeat the whole read-modify-write operation.
    """

    def __init__(self, message: str = "Note was modified concurrently, retry the operation") -> None:
        super().__init__(message)


class ExpiredError(UserError):
    """Raised when a share link is past its expiry."""

    def __init__(self, message: str = "Share link has expired") -> None:
        super().__init__(message)


class StorageUnavailable(UserError):
    """Raised when the backing store cannot be reached."""

    def __init__(self, message: str = "Storage is temporarily unavailable") -> None:
        super().__init__(message)


class TransportError(Exception):
    """Raised by email transports when a message could not be handed off.

    Internal only: never surfaced to user-facing callers.
    """


class BlobStoreError(Exception):
    """Raised by blob stores on I/O failures."""


class BlobNotFoundError(BlobStoreError):
    """Raised when a blob path does not exist."""
