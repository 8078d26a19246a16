"""Trip persistence and retrieval over the document store."""

from __future__ import annotations

from datetime import datetime, timezone
import json
import logging
from typing import Any, Callable
from uuid import uuid4

from pydantic import ValidationError

from tripdesk.config import DEFAULT_LIST_TIMEOUT_SECONDS
from tripdesk.contracts import EnrichedTrip, ItineraryPlan, PersistedTrip, RetryPolicy, TripPage
from tripdesk.document_store import Document, DocumentNotFoundError, DocumentPage, DocumentStore, Query
from tripdesk.errors import PersistenceFailed, RetriesExhausted, TimeoutExceeded
from tripdesk.resilience import ResilientInvoker, call_with_deadline
from tripdesk.telemetry import set_span_attribute, start_span


Clock = Callable[[], datetime]
IdFactory = Callable[[], str]

DEFAULT_RETRY_POLICY = RetryPolicy(max_attempts=3, base_delay_seconds=1.0)

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid4().hex


class TripRepository:
    """Append-only trip records.

    Writes happen once and are never retried. Reads go through a
    `ResilientInvoker`; `list` is additionally bounded by a wall-clock deadline
    and degrades to an empty page instead of raising.
    A negative `limit` or `offset` is a caller error and raises `ValueError`
    before the store is touched.
    """

    def __init__(
        self,
        store: DocumentStore,
        *,
        collection: str = "trips",
        invoker: ResilientInvoker | None = None,
        retry_policy: RetryPolicy = DEFAULT_RETRY_POLICY,
        list_timeout_seconds: float = DEFAULT_LIST_TIMEOUT_SECONDS,
        clock: Clock | None = None,
        id_factory: IdFactory | None = None,
    ) -> None:
        self._store = store
        self._collection = collection
        self._invoker = invoker or ResilientInvoker()
        self._retry_policy = retry_policy
        self._list_timeout_seconds = list_timeout_seconds
        self._clock = clock or _utc_now
        self._id_factory = id_factory or _new_id

    def persist(self, trip: EnrichedTrip, requester_id: str) -> PersistedTrip:
        created_at = self._clock()
        fields = {
            "tripDetail": trip.plan.to_document_json(),
            "createdAt": created_at.isoformat(),
            "imageUrls": list(trip.image_urls),
            "userId": requester_id,
        }
        with start_span("trip.persist", **{"store.collection": self._collection}) as span:
            try:
                document = self._store.create_document(self._collection, self._id_factory(), fields)
            except Exception as exc:
                logger.error("Failed to save trip for %s: %s", requester_id, exc)
                raise PersistenceFailed(f"Trip write failed: {exc}") from exc
            set_span_attribute(span, "trip.id", document.id)

        logger.info("Trip saved with id %s", document.id)
        return PersistedTrip(
            id=document.id,
            created_at=created_at,
            requester_id=requester_id,
            plan=trip.plan,
            image_urls=list(trip.image_urls),
        )

    def get_by_id(self, trip_id: str) -> PersistedTrip | None:
        def lookup() -> Document | None:
            try:
                return self._store.get_document(self._collection, trip_id)
            except DocumentNotFoundError:
                return None

        with start_span("trip.get", **{"trip.id": trip_id}):
            try:
                document = self._invoker.execute(lookup, self._retry_policy)
            except RetriesExhausted as exc:
                logger.error("Failed to fetch trip %s: %s", trip_id, exc)
                return None

        if document is None or not document.id:
            logger.info("Trip %s not found", trip_id)
            return None

        trip = _decode_document(document)
        if trip is None:
            logger.warning("Trip %s has an undecodable tripDetail", trip_id)
        return trip

    def list(self, limit: int = 8, offset: int = 0, *, requester_id: str | None = None) -> TripPage:
        queries = [Query.limit(limit), Query.offset(offset), Query.order_desc("createdAt")]
        if requester_id:
            queries.append(Query.equal("userId", requester_id))

        def fetch() -> DocumentPage:
            return self._invoker.execute(
                lambda: self._store.list_documents(self._collection, queries),
                self._retry_policy,
            )

        with start_span("trip.list", **{"store.collection": self._collection}) as span:
            try:
                page = call_with_deadline(fetch, self._list_timeout_seconds)
            except TimeoutExceeded as exc:
                logger.error("Listing trips timed out: %s", exc)
                set_span_attribute(span, "trip.degraded", exc.code)
                return TripPage(trips=[], total=0, warnings=[str(exc)])
            except RetriesExhausted as exc:
                logger.error("Failed to fetch trips after retries: %s", exc)
                set_span_attribute(span, "trip.degraded", exc.code)
                return TripPage(trips=[], total=0, warnings=[str(exc)])
            set_span_attribute(span, "trip.total", page.total)

        if page.total == 0:
            logger.info("No trips found (empty collection)")
            return TripPage(trips=[], total=0)

        trips: list[PersistedTrip] = []
        warnings: list[str] = []
        for document in page.documents:
            trip = _decode_document(document)
            if trip is None:
                logger.warning("Skipping trip %s with undecodable tripDetail", document.id)
                warnings.append(f"Trip {document.id} could not be decoded.")
                continue
            trips.append(trip)
        return TripPage(trips=trips, total=page.total, warnings=warnings)


def _decode_document(document: Document) -> PersistedTrip | None:
    fields: dict[str, Any] = document.fields
    try:
        detail = fields.get("tripDetail")
        plan_payload = json.loads(detail) if isinstance(detail, str) else detail
        plan = ItineraryPlan.model_validate(plan_payload)
        return PersistedTrip(
            id=document.id,
            created_at=fields.get("createdAt"),
            requester_id=fields.get("userId"),
            plan=plan,
            image_urls=list(fields.get("imageUrls") or []),
        )
    except (ValueError, TypeError, ValidationError):
        return None
