"""Input validation for note fields, tags and reminders."""

from collections.abc import Iterable
from datetime import datetime

from thinkboard.errors import ValidationError
from thinkboard.utils import ensure_utc

TITLE_MAX_LENGTH = 200
CONTENT_MAX_LENGTH = 100_000
TAG_MAX_LENGTH = 50
REMINDER_TITLE_MAX_LENGTH = 200
REMINDER_DESCRIPTION_MAX_LENGTH = 1000


def validate_title(title: str) -> str:
    """Validate note title.

    Raises:
        ValidationError: If the title is blank or longer than TITLE_MAX_LENGTH
    """
    if not title or not title.strip():
        raise ValidationError("Title is required", field="title")
    if len(title) > TITLE_MAX_LENGTH:
        raise ValidationError(f"Title must be at most {TITLE_MAX_LENGTH} characters", field="title")
    return title


def validate_content(content: str) -> str:
    """Validate note content (HTML from the editor).

    Raises:
        ValidationError: If the content is blank or longer than CONTENT_MAX_LENGTH
    """
    if not content or not content.strip():
        raise ValidationError("Content is required", field="content")
    if len(content) > CONTENT_MAX_LENGTH:
        raise ValidationError(f"Content must be at most {CONTENT_MAX_LENGTH} characters", field="content")
    return content


def normalize_tags(tags: Iterable[str]) -> list[str]:
    """Trim, drop empty entries, lower-case and de-duplicate tags, keeping first-seen order.

    Raises:
        ValidationError: If a tag exceeds TAG_MAX_LENGTH after trimming
    """
    result: list[str] = []
    for raw in tags:
        tag = raw.strip().lower()
        if not tag:
            continue
        if len(tag) > TAG_MAX_LENGTH:
            raise ValidationError(f"Tag '{tag[:20]}...' exceeds {TAG_MAX_LENGTH} characters", field="tags")
        if tag not in result:
            result.append(tag)
    return result


def parse_reminder_date(value: datetime | str) -> datetime:
    """Parse reminder date into an aware UTC datetime.

    Accepts datetimes or ISO 8601 strings (with optional 'Z' suffix).
    Naive values are interpreted as UTC.

    Raises:
        ValidationError: If the value cannot be parsed
    """
    if isinstance(value, datetime):
        return ensure_utc(value)
    raw = value.strip()
    if not raw:
        raise ValidationError("Reminder date is required", field="reminder_date")
    if raw.endswith(("Z", "z")):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError as e:
        raise ValidationError(f"Invalid reminder date: {value}", field="reminder_date") from e
    return ensure_utc(parsed)


def validate_reminder_title(title: str) -> str:
    if not title or not title.strip():
        raise ValidationError("Reminder title is required", field="title")
    if len(title) > REMINDER_TITLE_MAX_LENGTH:
        raise ValidationError(f"Reminder title must be at most {REMINDER_TITLE_MAX_LENGTH} characters", field="title")
    return title.strip()


def validate_reminder_description(description: str | None) -> str | None:
    if description is None or not description.strip():
        return None
    if len(description) > REMINDER_DESCRIPTION_MAX_LENGTH:
        raise ValidationError(
            f"Reminder description must be at most {REMINDER_DESCRIPTION_MAX_LENGTH} characters", field="description"
        )
    return description.strip()
