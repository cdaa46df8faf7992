"""Small input checks shared by the user and task services."""

from typing import Any

from taskdesk.core.errors import ValidationError


def is_actor_id(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def parse_user_id(raw: Any, message: str) -> int:
    """Accept an int or a numeric string; anything else raises ValidationError(message)."""
    if is_actor_id(raw):
        return raw
    if isinstance(raw, str):
        try:
            return int(raw.strip())
        except ValueError:
            pass
    raise ValidationError(message)


def like_pattern(term: str) -> str:
    """Substring pattern for ilike(..., escape="\\") with LIKE wildcards escaped."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"
