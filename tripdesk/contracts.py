"""Structured data contracts for trip generation, enrichment and storage."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from tripdesk.errors import InvalidTripRequest


MAX_TRIP_IMAGES = 3

ViewT = TypeVar("ViewT", bound=BaseModel)


class TripRequest(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, str_strip_whitespace=True)

    country: str = Field(min_length=1)
    number_of_days: int = Field(gt=0, alias="numberOfDays")
    travel_style: str = Field(default="", alias="travelStyle")
    interests: str = ""
    budget: str = ""
    group_type: str = Field(default="", alias="groupType")
    requester_id: str = Field(
        min_length=1,
        alias="userId",
        validation_alias=AliasChoices("userId", "requesterId", "requester_id"),
    )

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "TripRequest":
        """Build a request from a camelCase request body, failing with a typed error."""
        try:
            return cls.model_validate(payload)
        except ValidationError as exc:
            fields = sorted({".".join(str(part) for part in err["loc"]) for err in exc.errors()})
            raise InvalidTripRequest(
                f"Invalid or missing trip request field(s): {', '.join(fields)}."
            ) from exc


class Activity(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    time_of_day: Any = Field(default=None, alias="time")
    description: Any = None


class DayPlan(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    day: Any = None
    location: Any = None
    activities: list[Activity] = Field(default_factory=list)

    @field_validator("activities", mode="before")
    @classmethod
    def _missing_activities(cls, value: Any) -> Any:
        return [] if value is None else value


class TripLocation(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    city: Any = None
    coordinates: Any = None
    map_link: Any = Field(
        default=None,
        alias="openStreetMap",
        validation_alias=AliasChoices("openStreetMap", "mapLink", "map_link"),
    )


class ItineraryPlan(BaseModel):
    """Model-written plan. Only `name` and `itinerary` are checked; the rest is trusted."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: str
    description: Any = None
    estimated_price: Any = Field(default=None, alias="estimatedPrice")
    duration: Any = None
    budget: Any = None
    travel_style: Any = Field(default=None, alias="travelStyle")
    country: Any = None
    interests: Any = None
    group_type: Any = Field(default=None, alias="groupType")
    best_time_to_visit: Any = Field(default=None, alias="bestTimeToVisit")
    weather_info: Any = Field(default=None, alias="weatherInfo")
    location: Any = None
    itinerary: list[Any] = Field(min_length=1)

    def day_plans(self) -> list[DayPlan | None]:
        """Typed view per itinerary entry, None where the entry has another shape."""
        return [_view(DayPlan, entry) for entry in self.itinerary]

    def trip_location(self) -> TripLocation | None:
        return _view(TripLocation, self.location)

    def to_document_json(self) -> str:
        return self.model_dump_json(by_alias=True)


def _view(model: type[ViewT], value: Any) -> ViewT | None:
    if not isinstance(value, dict):
        return None
    try:
        return model.model_validate(value)
    except ValidationError:
        return None


class EnrichedTrip(BaseModel):
    plan: ItineraryPlan
    image_urls: list[str] = Field(default_factory=list, max_length=MAX_TRIP_IMAGES)


class PersistedTrip(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    created_at: datetime
    requester_id: str | None = None
    plan: ItineraryPlan
    image_urls: list[str] = Field(default_factory=list)

    def to_summary(self) -> dict[str, Any]:
        return {
            **self.plan.model_dump(mode="json", by_alias=True),
            "id": self.id,
            "createdAt": self.created_at.isoformat(),
            "userId": self.requester_id,
            "imageUrls": list(self.image_urls),
        }


class TripPage(BaseModel):
    trips: list[PersistedTrip] = Field(default_factory=list)
    total: int = Field(default=0, ge=0)
    warnings: list[str] = Field(default_factory=list)


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    base_delay_seconds: float = 1.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay_seconds < 0:
            raise ValueError("base_delay_seconds must be >= 0")

    def delay_after(self, attempt: int) -> float:
        return self.base_delay_seconds * attempt
