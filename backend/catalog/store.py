from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Protocol

import pandas as pd
from pydantic import ValidationError

from ..errors import CatalogFetchError
from .config import DEFAULT_CATALOG_CONFIG, CatalogConfig
from .models import CatererRecord

logger = logging.getLogger(__name__)


class CatalogStore(Protocol):
    async def fetch_all(self) -> list[CatererRecord]:
        ...


def _clean_row(row: dict[str, Any]) -> dict[str, Any]:
    # Records missing a column come back from pandas as NaN
    return {
        key: value
        for key, value in row.items()
        if not (isinstance(value, float) and pd.isna(value))
    }


def records_from_frame(df: pd.DataFrame) -> list[CatererRecord]:
    """Turn a catalog DataFrame into CatererRecords, skipping malformed rows."""
    records: list[CatererRecord] = []
    for raw in df.to_dict(orient="records"):
        row = _clean_row(raw)
        if "id" in row:
            row["id"] = str(row["id"])
        try:
            records.append(CatererRecord(**row))
        except ValidationError:
            logger.warning("Skipping malformed catalog record %r", row.get("id"), exc_info=True)
    return records


class JsonCatalogStore:
    """Catalog backed by a JSON array of caterer records on disk.

    The file is re-read on every call so each request sees the current
    catalog; nothing is cached between requests.
    """

    def __init__(self, config: CatalogConfig = DEFAULT_CATALOG_CONFIG) -> None:
        self.path: Path = config.catalog_path

    def _load(self) -> list[CatererRecord]:
        df = pd.read_json(self.path, orient="records", dtype=False, convert_dates=False)
        return records_from_frame(df)

    async def fetch_all(self) -> list[CatererRecord]:
        try:
            return await asyncio.to_thread(self._load)
        except (OSError, ValueError) as exc:
            logger.error("Failed to read caterer catalog from %s", self.path, exc_info=True)
            raise CatalogFetchError(f"Failed to fetch caterers: {exc}") from exc


async def fetch_catalog(store: CatalogStore) -> list[CatererRecord]:
    """Return a point-in-time snapshot of the whole catalog."""
    try:
        snapshot = await store.fetch_all()
    except CatalogFetchError:
        raise
    except Exception as exc:
        logger.error("Catalog store raised an unexpected error", exc_info=True)
        raise CatalogFetchError(f"Failed to fetch caterers: {exc}") from exc
    logger.info("Fetched catalog snapshot with %d caterers", len(snapshot))
    return list(snapshot)
