"""Reminder email rendering."""

import structlog
from liquid import Environment

from thinkboard.core.modules.note.models import Note, Reminder
from thinkboard.core.modules.reminder.models import ReminderEmailContext
from thinkboard.core.modules.user.models import User

logger = structlog.get_logger(__name__)

REMINDER_EMAIL_TEMPLATE = """\
<div style="font-family: sans-serif; max-width: 600px; margin: 0 auto;">
  <h2>Reminder: {{ title | escape }}</h2>
  <p>Hello {{ username | escape }},</p>
  <p>This is a reminder for your note <strong>{{ note_title | escape }}</strong>.</p>
  <p><strong>When:</strong> {{ reminder_date }}</p>
  {% if description %}<p>{{ description | escape }}</p>{% endif %}
  <p><a href="{{ url }}">Open note</a></p>
</div>
"""

_env = Environment()


def reminder_subject(reminder: Reminder) -> str:
    return f"Reminder: {reminder.title}"


def render_reminder_email(
    note: Note, reminder: Reminder, owner: User, frontend_url: str, template: str = REMINDER_EMAIL_TEMPLATE
) -> str:
    """Render the HTML body of a reminder notification.

    Args:
        note: Note the reminder belongs to
        reminder: Reminder being notified
        owner: Recipient, the note's owner
        frontend_url: Base URL for the link back to the note
        template: Liquid template string to render

    Returns:
        Rendered HTML body

    Raises:
        ValueError: If template rendering fails
    """
    context = ReminderEmailContext(
        username=owner.username,
        note_title=note.title,
        title=reminder.title,
        description=reminder.description,
        reminder_date=reminder.reminder_date.strftime("%Y-%m-%d %H:%M %Z"),
        url=f"{frontend_url.rstrip('/')}/notes/{note.id}",
    )
    try:
        return _env.from_string(template).render(**context.model_dump(mode="json"))
    except Exception as e:
        logger.exception("template_render_failed", error=str(e), template=template[:100])
        raise ValueError(f"Failed to render template: {e}") from e
