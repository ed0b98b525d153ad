"""Deadline parsing for free-text opportunity deadlines.

Stored deadlines are either calendar dates ("2025-03-31",
"2025-03-31T23:59:00Z", "31/03/2025") or descriptive phrases
("Soumission continue", "Aucune - Ouvert en continu").  :func:`parse_deadline`
turns the raw text into a tagged :class:`Deadline` so callers never have to
guess.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

# Phrases that mark a rolling / open-ended call even if they embed a date
ROLLING_MARKERS: tuple[str, ...] = ("continu", "aucune", "permanent", "soumissions")


@dataclass(frozen=True)
class Deadline:
    """A deadline that is either a calendar date or an opaque phrase."""

    raw: str
    parsed: Optional[date] = None

    @property
    def is_rolling(self) -> bool:
        return self.parsed is None


def _parse_date(text: str) -> Optional[date]:
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        pass
    # French day-first notation
    try:
        return datetime.strptime(text[:10], "%d/%m/%Y").date()
    except ValueError:
        return None


def parse_deadline(raw: Optional[str]) -> Deadline:
    """Parse a stored deadline string.

    Never raises: anything that is not an ISO or dd/mm/yyyy date, or that contains one of
    :data:`ROLLING_MARKERS`, comes back as a descriptive deadline.
    """
    text = (raw or "").strip()
    lowered = text.lower()
    if not text or any(marker in lowered for marker in ROLLING_MARKERS):
        return Deadline(raw=text)
    return Deadline(raw=text, parsed=_parse_date(text))
