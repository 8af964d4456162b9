"""Message template loading and rendering."""

from pathlib import Path

import yaml


_templates: dict | None = None


def load_templates() -> dict:
    """
    Load message templates from YAML file.

    Caches templates after first load.
    """
    global _templates
    if _templates is not None:
        return _templates

    yaml_path = Path(__file__).parent / "messages.yaml"
    with open(yaml_path) as f:
        _templates = yaml.safe_load(f)

    return _templates


def render_message(template: str, context: dict) -> str:
    """
    Render a message template with context variables.

    Raises:
        KeyError: If a required variable is missing from context
    """
    return template.format(**context)


def render_email(message_type: str, context: dict) -> tuple[str, str]:
    """
    Render the subject and body of an email message type.

    Args:
        message_type: e.g., "lecture_reminder_imminent"
        context: Variables to substitute

    Returns:
        (subject, body)
    """
    templates = load_templates()
    message_templates = templates[message_type]
    subject = render_message(message_templates["email_subject"], context)
    body = render_message(message_templates["email_body"], context)
    return subject.strip(), body
