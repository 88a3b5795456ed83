from __future__ import annotations

import json
import logging
from typing import Any, AsyncIterator, TypeVar

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, ValidationError

from .analytics.aggregator import compute_analytics
from .analytics.store import get_events
from .catalog.store import CatalogStore
from .chat.models import ChatRequest
from .dependencies import (
    get_catalog_store,
    get_clock,
    get_llm_config,
    get_notifier,
    get_order_store,
)
from .errors import CatalogFetchError, GenerationFailure, InputError
from .llm.config import LLMConfig
from .notifications.sms import SmsNotifier
from .orders.fulfillment import fulfill_order
from .orders.models import FulfillmentOutcome, OrderRequest, OrderState
from .orders.store import OrderStore
from .recommendations.models import RecommendationSnapshot
from .recommendations.prompt import Clock
from .recommendations.service import prepare_request, recommend, stream_recommend

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

app = FastAPI(title="Kai Catering Matcher API", version="1.0.0")


# ── Error mapping ───────────────────────────────────────────────────────


@app.exception_handler(InputError)
async def input_error_handler(request: Request, exc: InputError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": str(exc)})


@app.exception_handler(CatalogFetchError)
async def catalog_error_handler(request: Request, exc: CatalogFetchError) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": str(exc)})


@app.exception_handler(GenerationFailure)
async def generation_failure_handler(request: Request, exc: GenerationFailure) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={
            "error": str(exc),
            "reason": exc.reason.value,
            "rawOutput": exc.raw_output,
        },
    )


async def _read_json(request: Request) -> Any:
    raw = await request.body()
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        logger.warning("Rejected request with invalid JSON body")
        raise InputError("Invalid JSON body in request.") from exc


def _parse(model: type[ModelT], data: Any) -> ModelT:
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'body'}: {err['msg']}"
            for err in exc.errors()
        )
        raise InputError(f"Invalid request: {problems}") from exc


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/analytics")
def analytics() -> dict:
    return compute_analytics(get_events())


# ── Recommendations ──────────────────────────────────────────────────────


def _ndjson_line(snapshot: RecommendationSnapshot) -> str:
    payload = dict(snapshot.payload)
    if snapshot.final:
        payload["final"] = True
    return json.dumps(payload) + "\n"


async def _ndjson(
    first: RecommendationSnapshot,
    rest: AsyncIterator[RecommendationSnapshot],
) -> AsyncIterator[str]:
    try:
        yield _ndjson_line(first)
        async for snapshot in rest:
            yield _ndjson_line(snapshot)
    except GenerationFailure as failure:
        # Headers are already sent; report the failure as the last line
        yield json.dumps({
            "error": str(failure),
            "reason": failure.reason.value,
            "final": True,
        }) + "\n"
    finally:
        await rest.aclose()


@app.post("/api/chat")
async def chat(
    request: Request,
    store: CatalogStore = Depends(get_catalog_store),
    llm_config: LLMConfig = Depends(get_llm_config),
    clock: Clock = Depends(get_clock),
):
    # 1. Parse and validate the body
    body = _parse(ChatRequest, await _read_json(request))

    # 2. Snapshot the catalog and compose the prompt
    prepared = await prepare_request(body.effective_message, store, clock=clock)

    # 3a. Single-shot
    if not body.stream:
        result = await recommend(prepared, llm_config=llm_config)
        return result.to_payload()

    # 3b. Streaming: wait for the first snapshot so that a backend call
    # that fails outright still maps to an error status
    snapshots = stream_recommend(prepared, llm_config=llm_config)
    try:
        first = await anext(snapshots)
    except GenerationFailure:
        await snapshots.aclose()
        raise
    return StreamingResponse(
        _ndjson(first, snapshots),
        media_type="application/x-ndjson",
    )


# ── Orders ───────────────────────────────────────────────────────────────


def _order_response(outcome: FulfillmentOutcome) -> JSONResponse:
    if outcome.state is OrderState.persist_failed or outcome.order is None:
        return JSONResponse(
            status_code=500,
            content={"error": outcome.error, "status": outcome.state.value},
        )

    content: dict[str, Any] = {
        "order": outcome.order.model_dump(mode="json"),
        "status": "confirmed",
    }
    if outcome.state is OrderState.notify_failed:
        content["status"] = "partial"
        content["error"] = outcome.error
        content["notification"] = outcome.notification.model_dump(mode="json")
    return JSONResponse(status_code=200, content=content)


@app.post("/api/order")
async def place_order(
    request: Request,
    store: OrderStore = Depends(get_order_store),
    notifier: SmsNotifier = Depends(get_notifier),
) -> JSONResponse:
    body = _parse(OrderRequest, await _read_json(request))
    outcome = await fulfill_order(body, store, notifier)
    return _order_response(outcome)
