from __future__ import annotations

import logging
import math
from typing import Any, Iterable, Sequence

from pydantic import ValidationError

from ..catalog.models import CatererRecord
from .models import (
    CatalogMismatch,
    GeneratedSet,
    RecommendationCandidate,
    RecommendationSet,
    ValidationReport,
)

logger = logging.getLogger(__name__)

MISSING_ID = "missing_id"
UNKNOWN_ID = "unknown_id"
INVALID_SHAPE = "invalid_shape"


def _normalize_rating(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value) if math.isfinite(value) else None


def _to_candidate(raw: dict[str, Any]) -> RecommendationCandidate | None:
    data = dict(raw)
    data["rating"] = _normalize_rating(data.get("rating"))
    try:
        return RecommendationCandidate.model_validate(data)
    except ValidationError as exc:
        logger.debug("Candidate %r failed shape checks: %s", raw.get("id"), exc)
        return None


def validate_recommendations(
    generated: GeneratedSet,
    catalog: Sequence[CatererRecord],
) -> ValidationReport:
    """
    Keep only catalog-faithful, well-formed candidates.

    Each candidate must carry the id of a caterer in ``catalog`` and have
    the full candidate shape; anything else is dropped and recorded as a
    ``CatalogMismatch``.  Ratings that are not finite numbers become
    ``None``.  Relative order is preserved and this function never raises.
    """
    catalog_ids = {record.id for record in catalog}
    kept: list[RecommendationCandidate] = []
    mismatches: list[CatalogMismatch] = []

    for index, raw in enumerate(generated.caterers):
        caterer_id = raw.get("id") if isinstance(raw, dict) else None

        if not isinstance(caterer_id, str) or not caterer_id:
            mismatches.append(CatalogMismatch(index=index, reason=MISSING_ID))
            continue
        if caterer_id not in catalog_ids:
            mismatches.append(
                CatalogMismatch(index=index, caterer_id=caterer_id, reason=UNKNOWN_ID)
            )
            continue

        candidate = _to_candidate(raw)
        if candidate is None:
            mismatches.append(
                CatalogMismatch(index=index, caterer_id=caterer_id, reason=INVALID_SHAPE)
            )
            continue
        kept.append(candidate)

    for mismatch in mismatches:
        logger.warning(
            "Dropped generated caterer #%d (id=%r): %s",
            mismatch.index, mismatch.caterer_id, mismatch.reason,
        )

    return ValidationReport(
        recommendations=RecommendationSet(caterers=kept),
        dropped=len(mismatches),
        mismatches=mismatches,
    )


def screen_partial(payload: dict[str, Any], catalog_ids: Iterable[str]) -> dict[str, Any]:
    """Keep only streamed candidates whose completed id is in the catalog.

    A candidate is held back until its id has fully arrived, so once shown
    it stays in every later snapshot.
    """
    known = set(catalog_ids)
    caterers = [
        item
        for item in payload.get("caterers") or []
        if isinstance(item, dict)
        and isinstance(item.get("id"), str)
        and item["id"] in known
    ]
    return {"caterers": caterers}
