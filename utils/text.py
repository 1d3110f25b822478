"""Text coercion helpers for catalog payloads."""


def text_or_empty(value):
    """Return ``value`` as a string, or ``""`` when it is missing or falsy."""
    if value is None or value is False:
        return ""
    if isinstance(value, str):
        return value
    if not value:
        return ""
    return str(value)


def normalize_query(value):
    """Normalize a user search query for case-insensitive title matching."""
    if value is None:
        return ""
    return str(value).strip().lower()
