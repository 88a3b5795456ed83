from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..catalog.models import Menu


class RecommendationCandidate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(
        ...,
        description="UUID of the caterer, copied verbatim from the catalog",
    )
    name: str
    location: str
    cuisines: list[str]
    menu: Menu
    rating: float | None = None
    match_reason: str = Field(
        ...,
        alias="matchReason",
        min_length=1,
        description="One or two sentences on why this caterer fits the request",
    )


class RecommendationSet(BaseModel):
    caterers: list[RecommendationCandidate] = Field(default_factory=list)


class GeneratedSet(BaseModel):
    """Envelope of a backend response.  Candidates are still untrusted."""

    caterers: list[Any]


class CatalogMismatch(BaseModel):
    index: int
    caterer_id: str | None = None
    reason: str


class ValidationReport(BaseModel):
    recommendations: RecommendationSet
    dropped: int = 0
    mismatches: list[CatalogMismatch] = Field(default_factory=list)


class RecommendationResult(BaseModel):
    recommendations: RecommendationSet
    dropped: int = 0
    note: str | None = None

    def to_payload(self) -> dict[str, Any]:
        payload = self.recommendations.model_dump(mode="json", by_alias=True)
        payload["dropped"] = self.dropped
        if self.note:
            payload["note"] = self.note
        return payload


class RecommendationSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    payload: dict[str, Any]
    final: bool = False


class GenerationPrompt(BaseModel):
    model_config = ConfigDict(frozen=True)

    system: str
    user: str
    json_schema: dict[str, Any]


def recommendation_json_schema() -> dict[str, Any]:
    """JSON schema the generation backend must follow."""
    return RecommendationSet.model_json_schema(by_alias=True)
