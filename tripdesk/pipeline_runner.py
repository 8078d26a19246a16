"""Production wiring: settings -> store, clients, repository, orchestrator."""

from __future__ import annotations

from tripdesk.config import Settings, load_env_file
from tripdesk.contracts import RetryPolicy
from tripdesk.document_store import DocumentStore, SqliteDocumentStore
from tripdesk.generation import GenerationClient
from tripdesk.image_tool import ImageEnricher, UnsplashClient
from tripdesk.orchestrator import TripOrchestrator
from tripdesk.repository import TripRepository


def build_orchestrator(
    settings: Settings | None = None,
    *,
    store: DocumentStore | None = None,
) -> TripOrchestrator:
    resolved = settings or Settings.from_env()

    unsplash = None
    if resolved.unsplash_access_key:
        unsplash = UnsplashClient(
            resolved.unsplash_access_key,
            timeout_seconds=resolved.image_timeout_seconds,
        )

    repository = TripRepository(
        store or SqliteDocumentStore(resolved.db_path),
        collection=resolved.collection,
        retry_policy=RetryPolicy(
            max_attempts=resolved.retry_attempts,
            base_delay_seconds=resolved.retry_base_delay_seconds,
        ),
        list_timeout_seconds=resolved.list_timeout_seconds,
    )
    return TripOrchestrator(
        generator=GenerationClient(api_key=resolved.gemini_api_key, model=resolved.gemini_model),
        enricher=ImageEnricher(unsplash),
        repository=repository,
    )


def load_orchestrator(env_path: str = ".env") -> TripOrchestrator:
    load_env_file(env_path)
    return build_orchestrator(Settings.from_env())
