from __future__ import annotations

import json
from datetime import datetime
from typing import Callable, Sequence

from ..catalog.models import CatererRecord
from ..errors import InputError
from .config import DEFAULT_PROMPT_CONFIG, PromptConfig
from .models import GenerationPrompt, recommendation_json_schema

Clock = Callable[[], datetime]

SYSTEM_PROMPT = (
    "You are an AI assistant for a catering company called {brand}. "
    "You help users find suitable caterers for their events.\n\n"
    "Recommend only caterers from the provided catalog and copy each "
    "caterer's id, name, location, cuisines, menu and rating exactly as "
    "given. Never invent caterers, ids or prices. For each recommended "
    "caterer add a brief 'matchReason' explaining why it suits the request. "
    "If no caterer matches, or the catalog is empty, return an empty array "
    "for 'caterers'.\n\n"
    "Return ONLY valid JSON that follows this JSON schema:\n{schema}"
)


def require_message(message: str | None) -> str:
    if not message or not message.strip():
        raise InputError("Message must not be empty.")
    return message


def serialize_catalog(catalog: Sequence[CatererRecord]) -> str:
    return json.dumps([record.model_dump(mode="json") for record in catalog])


def compose_prompt(
    catalog: Sequence[CatererRecord],
    message: str,
    *,
    clock: Clock = datetime.now,
    config: PromptConfig = DEFAULT_PROMPT_CONFIG,
) -> GenerationPrompt:
    """
    Build the generation request for one recommendation call.

    The prompt embeds the current date and time from ``clock``, the fixed
    deployment location, the full catalog snapshot as JSON and the user's
    message.  An empty catalog is valid and serializes as ``[]``.

    Raises ``InputError`` when the message is empty or whitespace.
    """
    message = require_message(message)
    now = clock()
    schema = recommendation_json_schema()

    user_content = "\n".join([
        f"Current date: {now.strftime('%Y-%m-%d')}.",
        f"Current time: {now.strftime('%H:%M')}.",
        f"Current location: {config.location}.",
        "",
        f"Here is the list of available caterers (JSON array): {serialize_catalog(catalog)}",
        "",
        "Based on the user's message, recommend only the caterers that closely "
        "match the user's requirements.",
        f"User message: {message}",
    ])

    return GenerationPrompt(
        system=SYSTEM_PROMPT.format(brand=config.brand, schema=json.dumps(schema)),
        user=user_content,
        json_schema=schema,
    )
