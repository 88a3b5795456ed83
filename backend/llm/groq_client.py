from __future__ import annotations

import json
import logging
from typing import Any, AsyncIterator

from groq import AsyncGroq
from pydantic import ValidationError
from pydantic_core import from_json

from ..errors import GenerationFailure, GenerationFailureReason
from ..recommendations.models import GeneratedSet, GenerationPrompt, RecommendationSnapshot
from .config import DEFAULT_LLM_CONFIG, LLMConfig

logger = logging.getLogger(__name__)

_JSON_MODE = {"type": "json_object"}


def _messages(prompt: GenerationPrompt) -> list[dict[str, str]]:
    return [
        {"role": "system", "content": prompt.system},
        {"role": "user", "content": prompt.user},
    ]


def _client(config: LLMConfig) -> AsyncGroq:
    if not config.enabled or not config.api_key:
        raise GenerationFailure(
            GenerationFailureReason.disabled,
            "Recommendation generation is not configured.",
        )
    return AsyncGroq(api_key=config.api_key, timeout=config.timeout)


def parse_generated(content: str) -> GeneratedSet:
    """Parse complete backend output into the untrusted response envelope."""
    if not content or not content.strip():
        raise GenerationFailure(
            GenerationFailureReason.no_output,
            "The generation backend returned no content.",
            raw_output=content,
        )
    try:
        parsed = json.loads(content)
    except json.JSONDecodeError as exc:
        raise GenerationFailure(
            GenerationFailureReason.unparseable,
            f"Generated output is not valid JSON: {exc.msg}",
            raw_output=content,
        ) from exc
    try:
        return GeneratedSet.model_validate(parsed)
    except ValidationError as exc:
        raise GenerationFailure(
            GenerationFailureReason.schema_mismatch,
            "Generated output does not match the caterer schema.",
            raw_output=content,
        ) from exc


def parse_partial(content: str) -> dict[str, Any] | None:
    """
    Parse a prefix of streamed JSON.

    Returns ``{"caterers": [...]}`` once the array has started, with
    incomplete trailing strings left out, or ``None`` when nothing usable
    has arrived yet.
    """
    if not content.strip():
        return None
    try:
        parsed = from_json(content, allow_partial=True)
    except ValueError:
        return None
    if not isinstance(parsed, dict):
        return None
    caterers = parsed.get("caterers")
    if not isinstance(caterers, list):
        return None
    return {"caterers": caterers}


async def generate_recommendations(
    prompt: GenerationPrompt,
    config: LLMConfig = DEFAULT_LLM_CONFIG,
) -> GeneratedSet:
    """
    Call Groq once in JSON mode and return the complete response envelope.

    Raises ``GenerationFailure`` when the backend errors or its output
    cannot be parsed.  An empty ``caterers`` array is a valid result.
    """
    client = _client(config)
    try:
        response = await client.chat.completions.create(
            model=config.model,
            messages=_messages(prompt),
            max_tokens=config.max_tokens,
            temperature=config.temperature,
            response_format=_JSON_MODE,
        )
    except Exception as exc:
        logger.warning("Groq completion call failed", exc_info=True)
        raise GenerationFailure(
            GenerationFailureReason.backend_error,
            f"Generation backend call failed: {exc}",
        ) from exc
    finally:
        await client.close()

    content = response.choices[0].message.content if response.choices else None
    return parse_generated(content or "")


async def stream_recommendations(
    prompt: GenerationPrompt,
    config: LLMConfig = DEFAULT_LLM_CONFIG,
) -> AsyncIterator[RecommendationSnapshot]:
    """
    Stream progressively complete caterer payloads from Groq.

    Yields a snapshot each time the parsed prefix changes, then the complete
    payload exactly once with ``final=True``.  Closing the iterator early
    closes the backend stream and its client.
    """
    client = _client(config)
    try:
        try:
            stream = await client.chat.completions.create(
                model=config.model,
                messages=_messages(prompt),
                max_tokens=config.max_tokens,
                temperature=config.temperature,
                response_format=_JSON_MODE,
                stream=True,
            )
        except Exception as exc:
            logger.warning("Groq streaming call failed", exc_info=True)
            raise GenerationFailure(
                GenerationFailureReason.backend_error,
                f"Generation backend call failed: {exc}",
            ) from exc

        content = ""
        last: dict[str, Any] | None = None
        try:
            async for chunk in stream:
                delta = chunk.choices[0].delta.content if chunk.choices else None
                if not delta:
                    continue
                content += delta
                partial = parse_partial(content)
                if partial is not None and partial != last:
                    last = partial
                    yield RecommendationSnapshot(payload=partial)
        except Exception as exc:
            logger.warning("Groq stream broke after %d characters", len(content), exc_info=True)
            raise GenerationFailure(
                GenerationFailureReason.backend_error,
                f"Generation stream failed: {exc}",
                raw_output=content or None,
            ) from exc
        finally:
            await stream.close()
    finally:
        await client.close()

    generated = parse_generated(content)
    yield RecommendationSnapshot(payload=generated.model_dump(), final=True)
