"""Supabase-backed document store.

Each collection is a table with two columns:

    id   text primary key
    data jsonb

All methods use async/await with supabase-py v2.
"""

import json
from typing import Any

from supabase._async.client import AsyncClient

from storefront.errors import RemoteStoreError
from storefront.logging import get_logger, sanitize_id_for_logging

from .base import DocumentStore

logger = get_logger(__name__)


def _filter_value(value: Any) -> str:
    """Render a value the way ``data->>field`` returns it."""
    if isinstance(value, str):
        return value
    return json.dumps(value)


def _row_to_document(row: dict[str, Any]) -> dict[str, Any]:
    data = row.get("data") or {}
    return {**data, "id": row.get("id")}


class SupabaseDocumentStore(DocumentStore):
    """Document store over PostgREST tables via the async Supabase client."""

    def __init__(self, client: AsyncClient) -> None:
        self.client = client

    async def get_document(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        try:
            result = (
                await self.client.table(collection).select("data").eq("id", doc_id).execute()
            )
        except Exception as e:
            logger.error(
                "Failed to read %s/%s: %s", collection, sanitize_id_for_logging(doc_id), type(e).__name__
            )
            raise RemoteStoreError() from e
        if not result.data:
            return None
        return dict(result.data[0].get("data") or {})

    async def set_document(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        try:
            await self.client.table(collection).upsert({"id": doc_id, "data": fields}).execute()
        except Exception as e:
            logger.error(
                "Failed to write %s/%s: %s", collection, sanitize_id_for_logging(doc_id), type(e).__name__
            )
            raise RemoteStoreError() from e

    async def update_fields(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        # PostgREST cannot merge jsonb keys in place: read, merge, write back
        current = await self.get_document(collection, doc_id) or {}
        await self.set_document(collection, doc_id, {**current, **fields})

    async def delete_document(self, collection: str, doc_id: str) -> None:
        try:
            await self.client.table(collection).delete().eq("id", doc_id).execute()
        except Exception as e:
            logger.error(
                "Failed to delete %s/%s: %s", collection, sanitize_id_for_logging(doc_id), type(e).__name__
            )
            raise RemoteStoreError() from e

    async def query_where(self, collection: str, field: str, value: Any) -> list[dict[str, Any]]:
        try:
            result = (
                await self.client.table(collection)
                .select("id,data")
                .eq(f"data->>{field}", _filter_value(value))
                .execute()
            )
        except Exception as e:
            logger.error("Failed to query %s by %s: %s", collection, field, type(e).__name__)
            raise RemoteStoreError() from e
        return [_row_to_document(row) for row in result.data or []]

    async def list_documents(self, collection: str) -> list[dict[str, Any]]:
        try:
            result = await self.client.table(collection).select("id,data").execute()
        except Exception as e:
            logger.error("Failed to list %s: %s", collection, type(e).__name__)
            raise RemoteStoreError() from e
        return [_row_to_document(row) for row in result.data or []]
