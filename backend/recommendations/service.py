from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import AsyncIterator

from ..analytics.store import (
    CATALOG_MISMATCH,
    GENERATION_FAILURE,
    RECOMMENDATION,
    record_event,
)
from ..catalog.models import CatererRecord
from ..catalog.store import CatalogStore, fetch_catalog
from ..errors import GenerationFailure
from ..llm.config import DEFAULT_LLM_CONFIG, LLMConfig
from ..llm.groq_client import generate_recommendations, stream_recommendations
from .config import DEFAULT_PROMPT_CONFIG, PromptConfig
from .models import (
    GeneratedSet,
    GenerationPrompt,
    RecommendationResult,
    RecommendationSet,
    RecommendationSnapshot,
)
from .prompt import Clock, compose_prompt, require_message
from .validator import screen_partial, validate_recommendations

logger = logging.getLogger(__name__)

EMPTY_CATALOG_NOTE = "No caterers are listed in the catalog right now."


@dataclass(frozen=True)
class PreparedRequest:
    catalog: list[CatererRecord]
    prompt: GenerationPrompt | None
    started_at: float

    @property
    def catalog_ids(self) -> set[str]:
        return {record.id for record in self.catalog}


async def prepare_request(
    message: str,
    store: CatalogStore,
    *,
    clock: Clock = datetime.now,
    prompt_config: PromptConfig = DEFAULT_PROMPT_CONFIG,
) -> PreparedRequest:
    """
    Validate the message, snapshot the catalog and compose the prompt.

    ``prompt`` is ``None`` when the catalog is empty, since nothing can be
    recommended and the backend need not be called.
    """
    started_at = time.time()
    message = require_message(message)
    catalog = await fetch_catalog(store)
    if not catalog:
        return PreparedRequest(catalog=[], prompt=None, started_at=started_at)
    prompt = compose_prompt(catalog, message, clock=clock, config=prompt_config)
    return PreparedRequest(catalog=catalog, prompt=prompt, started_at=started_at)


def _empty_result() -> RecommendationResult:
    return RecommendationResult(
        recommendations=RecommendationSet(caterers=[]),
        note=EMPTY_CATALOG_NOTE,
    )


def _finish(
    prepared: PreparedRequest,
    generated: GeneratedSet,
    mode: str,
) -> RecommendationResult:
    report = validate_recommendations(generated, prepared.catalog)
    for mismatch in report.mismatches:
        record_event(CATALOG_MISMATCH, {
            "caterer_id": mismatch.caterer_id,
            "reason": mismatch.reason,
        })

    elapsed_ms = round((time.time() - prepared.started_at) * 1000, 1)
    record_event(RECOMMENDATION, {
        "mode": mode,
        "catalog_size": len(prepared.catalog),
        "returned": len(report.recommendations.caterers),
        "dropped": report.dropped,
        "response_time_ms": elapsed_ms,
    })
    return RecommendationResult(
        recommendations=report.recommendations,
        dropped=report.dropped,
    )


def _record_failure(failure: GenerationFailure, mode: str) -> None:
    logger.error("Generation failed (%s): %s", failure.reason.value, failure)
    record_event(GENERATION_FAILURE, {"mode": mode, "reason": failure.reason.value})


async def recommend(
    prepared: PreparedRequest,
    *,
    llm_config: LLMConfig = DEFAULT_LLM_CONFIG,
) -> RecommendationResult:
    """Single-shot: wait for the complete generation, then validate it."""
    if prepared.prompt is None:
        return _empty_result()
    try:
        generated = await generate_recommendations(prepared.prompt, llm_config)
    except GenerationFailure as failure:
        _record_failure(failure, "single")
        raise
    return _finish(prepared, generated, "single")


async def stream_recommend(
    prepared: PreparedRequest,
    *,
    llm_config: LLMConfig = DEFAULT_LLM_CONFIG,
) -> AsyncIterator[RecommendationSnapshot]:
    """
    Streaming: yield screened partial payloads, then the validated result.

    The last snapshot carries ``final=True`` and the same payload the
    single-shot path would return for the same backend output.
    """
    if prepared.prompt is None:
        yield RecommendationSnapshot(payload=_empty_result().to_payload(), final=True)
        return

    catalog_ids = prepared.catalog_ids
    snapshots = stream_recommendations(prepared.prompt, llm_config)
    last: dict | None = None
    try:
        async for snapshot in snapshots:
            if snapshot.final:
                generated = GeneratedSet.model_validate(snapshot.payload)
                result = _finish(prepared, generated, "stream")
                yield RecommendationSnapshot(payload=result.to_payload(), final=True)
                return
            screened = screen_partial(snapshot.payload, catalog_ids)
            if screened != last:
                last = screened
                yield RecommendationSnapshot(payload=screened)
    except GenerationFailure as failure:
        _record_failure(failure, "stream")
        raise
    finally:
        await snapshots.aclose()
