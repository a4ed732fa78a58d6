import logging
from typing import Optional

from supabase import acreate_client, AsyncClient

from app.config import settings
from app.db.identity import (
    IdentityProvider,
    MemoryIdentityProvider,
    SupabaseIdentityProvider,
)
from app.db.memory_store import MemoryDocumentStore
from app.db.store import DocumentStore
from app.db.supabase_store import SupabaseDocumentStore

logger = logging.getLogger(__name__)

service_client: Optional[AsyncClient] = None
document_store: Optional[DocumentStore] = None
identity_provider: Optional[IdentityProvider] = None


async def init_supabase_service_client():
    global service_client
    if not service_client:
        service_client = await acreate_client(
            settings.supabase_url, settings.supabase_service_key
        )
        logger.info("Initialized Supabase service client")


async def init_backend(backend: Optional[str] = None):
    """Build the document store and identity provider for the configured backend."""
    global document_store, identity_provider
    backend = backend or settings.store_backend

    if backend == "memory":
        document_store = MemoryDocumentStore()
        identity_provider = MemoryIdentityProvider()
    elif backend == "supabase":
        await init_supabase_service_client()
        document_store = SupabaseDocumentStore(service_client)
        identity_provider = SupabaseIdentityProvider(service_client)
    else:
        raise ValueError(f"Unknown store backend: {backend}")

    logger.info(f"Initialized {backend} backend")


def get_document_store() -> DocumentStore:
    if not document_store:
        raise Exception("document store not initialized")
    return document_store


def get_identity_provider() -> IdentityProvider:
    if not identity_provider:
        raise Exception("identity provider not initialized")
    return identity_provider
