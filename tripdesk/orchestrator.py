"""Create-trip sequencing and browse delegation."""

from __future__ import annotations

import logging
from typing import Any

from tripdesk.contracts import EnrichedTrip, PersistedTrip, TripPage, TripRequest
from tripdesk.generation import GenerationClient
from tripdesk.image_tool import ImageEnricher, build_image_query
from tripdesk.repository import TripRepository
from tripdesk.telemetry import set_span_attribute, start_span


logger = logging.getLogger(__name__)


class TripOrchestrator:
    """generate -> enrich -> persist for creation; plain delegation for browsing."""

    def __init__(
        self,
        generator: GenerationClient,
        enricher: ImageEnricher,
        repository: TripRepository,
    ) -> None:
        self._generator = generator
        self._enricher = enricher
        self._repository = repository

    def create_trip(self, request: TripRequest | dict[str, Any]) -> str:
        """Generate, enrich and store one trip. Returns the new trip id.

        Generation and persistence errors propagate as `TripPipelineError`
        subclasses; image lookup failures only leave the trip without photos.
        """
        trip_request = request if isinstance(request, TripRequest) else TripRequest.from_payload(request)

        with start_span(
            "trip.create",
            **{"trip.country": trip_request.country, "trip.days": trip_request.number_of_days},
        ) as span:
            with start_span("trip.generate"):
                plan = self._generator.generate(trip_request)

            with start_span("trip.enrich") as enrich_span:
                image_urls = self._enricher.fetch_images(build_image_query(trip_request))
                set_span_attribute(enrich_span, "trip.images", len(image_urls))

            persisted = self._repository.persist(
                EnrichedTrip(plan=plan, image_urls=image_urls),
                trip_request.requester_id,
            )
            set_span_attribute(span, "trip.id", persisted.id)

        logger.info("Created trip %s (%d image(s))", persisted.id, len(image_urls))
        return persisted.id

    def list_trips(self, limit: int = 8, offset: int = 0, *, requester_id: str | None = None) -> TripPage:
        return self._repository.list(limit, offset, requester_id=requester_id)

    def list_trips_page(self, page: int = 1, limit: int = 8, *, requester_id: str | None = None) -> TripPage:
        if page < 1:
            raise ValueError("page must be >= 1")
        return self.list_trips(limit, (page - 1) * limit, requester_id=requester_id)

    def get_trip(self, trip_id: str) -> PersistedTrip | None:
        return self._repository.get_by_id(trip_id)
