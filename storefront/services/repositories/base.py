"""Document store interface and the repository base class.

Stores must be swappable: engines and repositories depend on this interface,
never on the Supabase client directly.
"""

from abc import ABC, abstractmethod
from typing import Any


class DocumentStore(ABC):
    """Remote document store: one JSON document per (collection, id).

    No transactions: each write is a single-document, non-transactional
    update. Backend failures are raised as RemoteStoreError.
    """

    @abstractmethod
    async def get_document(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        """Return the document fields, or None if not found."""
        ...

    @abstractmethod
    async def set_document(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        """Create or fully replace a document."""
        ...

    @abstractmethod
    async def update_fields(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        """Shallow-merge fields into a document, creating it if missing."""
        ...

    @abstractmethod
    async def delete_document(self, collection: str, doc_id: str) -> None:
        """Delete a document (no-op if missing)."""
        ...

    @abstractmethod
    async def query_where(self, collection: str, field: str, value: Any) -> list[dict[str, Any]]:
        """Return documents whose top-level field equals value (with ``id``)."""
        ...

    @abstractmethod
    async def list_documents(self, collection: str) -> list[dict[str, Any]]:
        """Return every document in the collection (with ``id``)."""
        ...


class BaseRepository:
    """Base class for typed repositories over a DocumentStore."""

    collection: str = ""

    def __init__(self, store: DocumentStore) -> None:
        self.store = store
