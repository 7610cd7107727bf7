"""Pytest configuration and fixtures"""
import copy
import os
from typing import Any, Optional
from unittest.mock import Mock

import pytest

# Set test environment variables
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test_key")
os.environ.setdefault("UPSTASH_REDIS_REST_URL", "https://test.upstash.io")
os.environ.setdefault("UPSTASH_REDIS_REST_TOKEN", "test_token")
os.environ.setdefault("UNSPLASH_ACCESS_KEY", "test_unsplash_key")
os.environ.setdefault("PAYMENT_SIMULATION_DELAY", "0")

from storefront.app import build_storefront  # noqa: E402
from storefront.auth import Identity, IdentityProvider  # noqa: E402
from storefront.cart import MergePolicy  # noqa: E402
from storefront.errors import ArtworkNotFound, CatalogUnavailable, NotAuthenticated, RemoteStoreError  # noqa: E402
from storefront.services.domains import ArtworkImageSource  # noqa: E402
from storefront.services.domains.catalog import to_catalog_artwork  # noqa: E402
from storefront.services.local_cache import LocalCache  # noqa: E402
from storefront.services.payments import FakePaymentGateway  # noqa: E402
from storefront.services.repositories import DocumentStore  # noqa: E402


class FakeDocumentStore(DocumentStore):
    """In-memory document store with failure injection.

    ``fail_writes`` fails every write, ``fail_write_ids`` only writes to
    those document ids. ``gate`` (an asyncio.Event) holds writes until set,
    ``read_gate`` does the same for reads.
    """

    def __init__(self):
        self.collections: dict[str, dict[str, dict]] = {}
        self.fail_reads = False
        self.fail_writes = False
        self.fail_write_ids: set[str] = set()
        self.gate = None
        self.read_gate = None
        self.write_count = 0

    async def _before_write(self, doc_id: str) -> None:
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_writes or doc_id in self.fail_write_ids:
            raise RemoteStoreError()
        self.write_count += 1

    async def _before_read(self) -> None:
        if self.read_gate is not None:
            await self.read_gate.wait()
        if self.fail_reads:
            raise RemoteStoreError()

    def seed(self, collection: str, doc_id: str, fields: dict) -> None:
        self.collections.setdefault(collection, {})[doc_id] = copy.deepcopy(fields)

    def peek(self, collection: str, doc_id: str) -> Optional[dict]:
        return self.collections.get(collection, {}).get(doc_id)

    async def get_document(self, collection, doc_id):
        await self._before_read()
        document = self.peek(collection, doc_id)
        return copy.deepcopy(document) if document is not None else None

    async def set_document(self, collection, doc_id, fields):
        await self._before_write(doc_id)
        self.seed(collection, doc_id, fields)

    async def update_fields(self, collection, doc_id, fields):
        await self._before_write(doc_id)
        current = self.peek(collection, doc_id) or {}
        self.seed(collection, doc_id, {**current, **fields})

    async def delete_document(self, collection, doc_id):
        await self._before_write(doc_id)
        self.collections.get(collection, {}).pop(doc_id, None)

    async def query_where(self, collection, field, value):
        await self._before_read()
        return [
            {**copy.deepcopy(document), "id": doc_id}
            for doc_id, document in self.collections.get(collection, {}).items()
            if document.get(field) == value
        ]

    async def list_documents(self, collection):
        await self._before_read()
        return [
            {**copy.deepcopy(document), "id": doc_id}
            for doc_id, document in self.collections.get(collection, {}).items()
        ]


class FakeLocalCache(LocalCache):
    """Dict-backed local cache."""

    def __init__(self):
        self.data: dict[str, str] = {}
        self.fail_writes = False

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value):
        if self.fail_writes:
            raise OSError("local storage full")
        self.data[key] = value

    def remove(self, key):
        self.data.pop(key, None)


class FakeIdentityProvider(IdentityProvider):
    """Email/password provider backed by a dict of accounts."""

    def __init__(self):
        super().__init__()
        self.accounts: dict[str, tuple[str, str]] = {}
        self._next_id = 1

    def register(self, email: str, password: str, user_id: str) -> None:
        self.accounts[email] = (password, user_id)

    async def emit(self, identity: Optional[Identity]) -> None:
        await self._emit(identity)

    async def sign_in(self, email, password):
        account = self.accounts.get(email)
        if account is None or account[0] != password:
            raise NotAuthenticated("Invalid email or password")
        identity = Identity.authenticated(account[1], email)
        await self._emit(identity)
        return identity

    async def sign_up(self, email, password):
        user_id = f"new-user-{self._next_id}"
        self._next_id += 1
        self.register(email, password, user_id)
        identity = Identity.authenticated(user_id, email)
        await self._emit(identity)
        return identity

    async def sign_out(self):
        await self._emit(None)


class FakeCatalog(ArtworkImageSource):
    """Catalog serving fixed Unsplash-shaped records."""

    def __init__(self, records: list[dict[str, Any]]):
        self.records = {record["id"]: record for record in records}
        self.unavailable = False

    async def search(self, page=1, per_page=30):
        if self.unavailable:
            raise CatalogUnavailable()
        records = list(self.records.values())
        start = (page - 1) * per_page
        return [to_catalog_artwork(record) for record in records[start:start + per_page]]

    async def get_artwork(self, artwork_id):
        if self.unavailable:
            raise CatalogUnavailable()
        if artwork_id not in self.records:
            raise ArtworkNotFound(artwork_id)
        return to_catalog_artwork(self.records[artwork_id])


@pytest.fixture
def unsplash_photo():
    """Unsplash search result record"""
    return {
        "id": "Dwu85P9SOIk",
        "created_at": "2024-05-02T12:00:00Z",
        "alt_description": "abstract blue painting on white wall",
        "urls": {
            "raw": "https://images.unsplash.com/photo-1?ixid=raw",
            "full": "https://images.unsplash.com/photo-1?ixid=full",
            "regular": "https://images.unsplash.com/photo-1?w=1080",
            "small": "https://images.unsplash.com/photo-1?w=400",
            "thumb": "https://images.unsplash.com/photo-1?w=200",
        },
        "user": {"id": "unsplash-user-9", "name": "Jane Painter"},
        "tags": [{"title": "art"}, {"title": "abstract"}],
    }


@pytest.fixture
def sample_artwork():
    """Published artist artwork as stored in the artworks collection"""
    return {
        "id": "art-1",
        "owner_id": "artist-1",
        "title": "Sunset Over Water",
        "price": "1200",
        "image_ref": "https://cdn.example.com/sunset.jpg",
        "thumbnail_ref": "https://cdn.example.com/sunset-small.jpg",
        "dimensions": {"width": 80, "height": 120},
        "tags": "landscape, sea",
        "artist": {"name": "Ada Artist", "location": "Lisbon", "photo": ""},
        "is_published": True,
    }


@pytest.fixture
def other_artwork():
    return {
        "id": "art-2",
        "title": "Night Forest",
        "price": 800,
        "image_ref": "https://cdn.example.com/forest.jpg",
        "artist_name": "Bo Brush",
    }


@pytest.fixture
def document_store():
    return FakeDocumentStore()


@pytest.fixture
def local_cache():
    return FakeLocalCache()


@pytest.fixture
def identity_provider():
    provider = FakeIdentityProvider()
    provider.register("ada@example.com", "secret", "artist-1")
    provider.register("bob@example.com", "secret", "user-bob")
    return provider


@pytest.fixture
def catalog(unsplash_photo):
    return FakeCatalog([unsplash_photo])


@pytest.fixture
def storefront(document_store, local_cache, identity_provider, catalog):
    """Fully wired storefront on in-memory adapters"""
    return build_storefront(
        store=document_store,
        cache=local_cache,
        provider=identity_provider,
        catalog=catalog,
        gateway=FakePaymentGateway(delay=0),
        merge_policy=MergePolicy.AUTHORITATIVE,
    )


@pytest.fixture
def mock_supabase_client():
    """Mock Supabase client"""
    client = Mock()

    table_mock = Mock()
    table_mock.select.return_value = table_mock
    table_mock.upsert.return_value = table_mock
    table_mock.delete.return_value = table_mock
    table_mock.eq.return_value = table_mock

    client.table.return_value = table_mock
    return client
