from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from tripdesk.contracts import EnrichedTrip, ItineraryPlan, PersistedTrip, TripRequest
from tripdesk.errors import InvalidTripRequest


def test_trip_request_accepts_camel_case_body_and_is_frozen() -> None:
    request = TripRequest.from_payload(
        {
            "country": " Italy ",
            "numberOfDays": "4",
            "travelStyle": "Adventure",
            "interests": "Hiking",
            "budget": "Budget",
            "groupType": "Friends",
            "userId": "u9",
        }
    )

    assert request.country == "Italy"
    assert request.number_of_days == 4
    assert request.requester_id == "u9"
    with pytest.raises(ValidationError):
        request.country = "Spain"  # type: ignore[misc]


def test_trip_request_accepts_requester_id_key() -> None:
    request = TripRequest.from_payload({"country": "Peru", "numberOfDays": 2, "requesterId": "r1"})
    assert request.requester_id == "r1"


def test_trip_request_missing_fields_raise_typed_error() -> None:
    with pytest.raises(InvalidTripRequest) as exc_info:
        TripRequest.from_payload({"country": "Peru"})

    assert exc_info.value.code == "invalid_request"
    assert "numberOfDays" in str(exc_info.value)
    assert "userId" in str(exc_info.value)


def test_itinerary_plan_keeps_model_written_entries_as_is() -> None:
    plan = ItineraryPlan.model_validate(
        {
            "name": "Trip",
            "estimatedPrice": "$900",
            "location": {"city": "Cusco", "mapLink": "https://osm.org/cusco"},
            "itinerary": [{"day": 1, "activities": [{"time": "Evening", "description": "🌃 Plaza"}]}],
        }
    )
    dumped = plan.model_dump(by_alias=True)

    assert dumped["estimatedPrice"] == "$900"
    assert dumped["location"] == {"city": "Cusco", "mapLink": "https://osm.org/cusco"}
    assert dumped["itinerary"][0]["activities"][0]["time"] == "Evening"
    location = plan.trip_location()
    assert location is not None
    assert location.model_dump(by_alias=True)["openStreetMap"] == "https://osm.org/cusco"


def test_enriched_trip_allows_at_most_three_images() -> None:
    plan = ItineraryPlan.model_validate({"name": "Trip", "itinerary": [{"day": 1}]})

    assert EnrichedTrip(plan=plan).image_urls == []
    with pytest.raises(ValidationError):
        EnrichedTrip(plan=plan, image_urls=["a", "b", "c", "d"])


def test_persisted_trip_summary_keeps_record_fields_over_plan_extras() -> None:
    plan = ItineraryPlan.model_validate({"name": "Trip", "id": "model-made", "itinerary": [{"day": 1}]})
    trip = PersistedTrip(
        id="stored-1",
        created_at=datetime(2026, 3, 1, tzinfo=timezone.utc),
        requester_id="u1",
        plan=plan,
        image_urls=["https://img/1"],
    )

    summary = trip.to_summary()

    assert summary["id"] == "stored-1"
    assert summary["createdAt"] == "2026-03-01T00:00:00+00:00"
    assert summary["imageUrls"] == ["https://img/1"]
