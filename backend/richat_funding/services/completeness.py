"""Dossier completeness evaluation.

Derives presentation data for an application from its documents and
workflow status: which required documents are still missing, how far along
the submission pipeline the dossier is, and its viability rating.  Nothing
here touches the database or mutates the application.

The required-document catalog is configuration, not code: every function
takes it as a parameter, and :func:`load_required_documents` reads the
deployment's catalog from the ``REQUIRED_DOCUMENTS`` environment variable.
"""

import logging
import math
import os
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional, Sequence

from dotenv import load_dotenv

from richat_funding.helpers.text_utils import split_list

load_dotenv()

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------
DEFAULT_REQUIRED_DOCUMENTS: tuple[str, ...] = (
    "Statuts juridiques",
    "Budget prévisionnel",
    "Plan d'affaires/Business plan",
    "Pitch deck",
    "Lettre d'intention",
    "Étude de faisabilité",
    "Annexes",
    "Preuves de cofinancement",
    "Relevé d'identité bancaire",
    "Identité du représentant légal",
)

# Workflow status -> progress percentage. Statuses outside this table
# (including the short "En cours"/"Prêt"/... labels) map to 0.
PROGRESS_BANDS: dict[str, int] = {
    "En attente de documents": 20,
    "En cours d'analyse": 50,
    "Complet": 80,
    "Prêt pour soumission": 95,
    "Soumis au bailleur": 100,
    "Accepté": 100,
    "Refusé": 100,
}
APPLICATION_STATUSES: tuple[str, ...] = tuple(PROGRESS_BANDS)
DEFAULT_APPLICATION_STATUS = "En attente de documents"

# (minimum score, label), highest threshold first
COMPLETION_LABELS: tuple[tuple[int, str], ...] = (
    (80, "Prêt pour soumission"),
    (60, "Documents presque complets"),
    (40, "En cours de finalisation"),
    (0, "Documents incomplets"),
)

MAX_STARS = 5
MAX_SCORE = 100


def load_required_documents(raw: Optional[str] = None) -> tuple[str, ...]:
    """Read the required-document catalog.

    ``raw`` (or ``$REQUIRED_DOCUMENTS`` when omitted) is a semicolon-separated
    list; an empty value yields :data:`DEFAULT_REQUIRED_DOCUMENTS`.
    """
    if raw is None:
        raw = os.getenv("REQUIRED_DOCUMENTS", "")
    entries = split_list(raw, ";")
    if not entries:
        return DEFAULT_REQUIRED_DOCUMENTS
    logger.info("Using custom required-document catalog (%d entries)", len(entries))
    return tuple(entries)


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------


def _document_type(document: Any) -> Optional[str]:
    if isinstance(document, Mapping):
        return document.get("document_type", document.get("documentType"))
    return getattr(document, "document_type", None)


def submitted_document_types(documents: Iterable[Any]) -> set[str]:
    """Distinct document types among ``documents`` (ORM rows, models or dicts)."""
    return {t for t in (_document_type(d) for d in documents) if t}


def missing_documents(
    documents: Iterable[Any],
    catalog: Sequence[str] = DEFAULT_REQUIRED_DOCUMENTS,
) -> list[str]:
    """Catalog entries with no matching submitted document, in catalog order.

    Duplicate submissions collapse and types outside the catalog are ignored,
    so the result depends only on the set of submitted types.
    """
    submitted = submitted_document_types(documents)
    return [required for required in catalog if required not in submitted]


def progress_band(status: Optional[str]) -> int:
    """Progress percentage for a workflow status; unknown statuses give 0."""
    return PROGRESS_BANDS.get(status or "", 0)


def viability_stars(score: Optional[float]) -> int:
    """Map a 0-100 completion score to 0-5 stars, rounding halves up."""
    clamped = min(max(score or 0, 0), MAX_SCORE)
    return int(math.floor(clamped * MAX_STARS / MAX_SCORE + 0.5))


def completion_label(score: Optional[float]) -> str:
    """Readiness badge shown next to a dossier's completion score."""
    value = score or 0
    for threshold, label in COMPLETION_LABELS:
        if value >= threshold:
            return label
    return COMPLETION_LABELS[-1][1]


@dataclass
class DossierEvaluation:
    """Derived view of one application; never persisted."""

    missing_documents: list[str] = field(default_factory=list)
    submitted_document_types: list[str] = field(default_factory=list)
    progress_pct: int = 0
    stars: int = 0
    completion_label: str = COMPLETION_LABELS[-1][1]

    @property
    def is_complete(self) -> bool:
        return not self.missing_documents


def evaluate_dossier(
    application: Any,
    catalog: Sequence[str] = DEFAULT_REQUIRED_DOCUMENTS,
) -> DossierEvaluation:
    """Evaluate an application carrying ``documents``, ``status`` and
    ``completion_score`` attributes."""
    documents = list(getattr(application, "documents", None) or [])
    score = getattr(application, "completion_score", 0)
    return DossierEvaluation(
        missing_documents=missing_documents(documents, catalog),
        submitted_document_types=sorted(submitted_document_types(documents)),
        progress_pct=progress_band(getattr(application, "status", None)),
        stars=viability_stars(score),
        completion_label=completion_label(score),
    )
