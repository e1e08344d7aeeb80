"""Message template loading and rendering."""

from pathlib import Path

import yaml

from breakroom.enums import ResponseKind


_templates: dict | None = None

DEFAULT_CHANNEL = "discord"

# (response kind, message type) in display order
STATUS_SECTIONS = [
    (ResponseKind.accepted, "summary_accepted"),
    (ResponseKind.accepted_delayed, "summary_delayed"),
    (ResponseKind.denied, "summary_denied"),
]
COMPLETED_SECTIONS = [
    (ResponseKind.accepted, "completed_accepted"),
    (ResponseKind.accepted_delayed, "completed_delayed"),
]


def load_templates() -> dict:
    """
    Load message templates from YAML file.

    Caches templates after first load.
    """
    global _templates
    if _templates is not None:
        return _templates

    yaml_path = Path(__file__).parent / "messages.yaml"
    with open(yaml_path, encoding="utf-8") as f:
        _templates = yaml.safe_load(f)

    return _templates


def render_message(template: str, context: dict) -> str:
    """
    Render a message template with context variables.

    Args:
        template: String with {variable} placeholders
        context: Dict of variable names to values

    Returns:
        Rendered string

    Raises:
        KeyError: If a required variable is missing from context
    """
    return template.format(**context)


def get_message(
    message_type: str,
    channel: str = DEFAULT_CHANNEL,
    context: dict | None = None,
) -> str:
    """
    Get and render a message for a specific type and channel.

    Args:
        message_type: e.g., "session_invitation", "response_accepted"
        channel: e.g., "discord"
        context: Variables to substitute

    Returns:
        Rendered message string
    """
    templates = load_templates()
    template = templates[message_type][channel]
    return render_message(template, context or {})


def render_name_list(names: list[str]) -> str:
    """Render names as a bulleted list, one per line."""
    return "\n".join(get_message("summary_name", context={"name": n}) for n in names)


def _render_sections(
    groups: dict[ResponseKind, list[str]],
    sections: list[tuple[ResponseKind, str]],
) -> list[str]:
    return [
        get_message(message_type, context={"names": render_name_list(groups[kind])})
        for kind, message_type in sections
        if groups.get(kind)
    ]


def render_status_summary(groups: dict[ResponseKind, list[str]]) -> str:
    """
    Render the live /status summary.

    Returns the "nobody answered yet" line instead of empty sections.
    """
    parts = _render_sections(groups, STATUS_SECTIONS)
    if not parts:
        return get_message("summary_empty")
    return "\n\n".join([get_message("summary_header")] + parts)


def render_completed_summary(groups: dict[ResponseKind, list[str]]) -> str:
    """Render the past-tense summary sent when a break closes on its own."""
    parts = _render_sections(groups, COMPLETED_SECTIONS)
    if not parts:
        return get_message("completed_empty")
    return "\n\n".join([get_message("completed_header")] + parts)
