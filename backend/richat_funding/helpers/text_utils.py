"""Small text helpers shared by the query builders and schemas."""

from typing import Iterable, Optional

LIKE_ESCAPE = "\\"


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so user input matches literally."""
    return (
        value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def contains_pattern(value: str) -> str:
    """Build a ``%value%`` pattern for ILIKE substring matching."""
    return f"%{escape_like(value)}%"


def split_list(raw: Optional[str], separator: str) -> list[str]:
    """Split a delimited string into trimmed, non-empty, de-duplicated entries."""
    if not raw:
        return []
    return dedupe(part.strip() for part in raw.split(separator))


def dedupe(values: Iterable[str]) -> list[str]:
    """Drop blanks and repeats, keeping first-seen order."""
    seen: set[str] = set()
    result: list[str] = []
    for value in values:
        if value and value not in seen:
            seen.add(value)
            result.append(value)
    return result


def split_required_documents(raw: Optional[str]) -> list[str]:
    """Split an opportunity's semicolon-delimited required documents text."""
    return split_list(raw, ";")
