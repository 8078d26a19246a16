"""Itinerary generation through Gemini (Datapizza client) with minimal output checks."""

from __future__ import annotations

import json
import logging
import os
import re
from typing import Any, Protocol

from tripdesk.config import DEFAULT_GEMINI_MODEL
from tripdesk.contracts import ItineraryPlan, TripRequest
from tripdesk.errors import (
    IncompleteModelOutput,
    MalformedModelOutput,
    MissingCredential,
    ModelInvocationFailed,
    TripPipelineError,
)


GENERATION_TEMPERATURE = 0.8
SEASON_ENTRY_COUNT = 4

logger = logging.getLogger(__name__)

_JSON_FENCE = re.compile(r"^\s*```(?:json)?\s*\n(.*?)\n\s*```\s*$", re.DOTALL)

_EMOJI_HINTS = """Use one contextually appropriate emoji for activities like:
- 🏰 🏛️ ⛪ for historic sites and monuments
- 🖼️ 🎨 🎭 for museums and art galleries
- 🍽️ 🍷 ☕ 🍕 for dining and food experiences
- 🏖️ 🏞️ 🌊 ⛰️ for nature and beaches
- 🛍️ 🏬 for shopping
- 🚶 🚴 🚠 for walking tours and transportation
- 🌆 🌃 🎆 for evening activities and nightlife
- 🎪 🎡 🎢 for entertainment venues
- 🏨 💤 for accommodation and rest"""


class TripModelClient(Protocol):
    def generate_json(self, prompt: str) -> str:
        ...


class DatapizzaGeminiModel:
    """Gemini text generation in JSON response mode via the Datapizza Google client."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        *,
        temperature: float = GENERATION_TEMPERATURE,
    ) -> None:
        resolved_api_key = api_key or os.getenv("GEMINI_API_KEY")
        if not resolved_api_key:
            raise MissingCredential("GEMINI_API_KEY is required for trip generation.")

        self.model_name = model or os.getenv("TRIPDESK_GEMINI_MODEL", DEFAULT_GEMINI_MODEL)
        self._temperature = temperature
        from datapizza.clients.factory import ClientFactory

        self._client = ClientFactory.create(
            provider="google",
            api_key=resolved_api_key,
            model=self.model_name,
            system_prompt="You are a travel planner. Reply with a single JSON object only.",
            temperature=temperature,
        )

    def generate_json(self, prompt: str) -> str:
        response = self._client.invoke(
            input=prompt,
            temperature=self._temperature,
            response_mime_type="application/json",
        )
        return response.text or ""


class GenerationClient:
    """Builds the itinerary prompt, calls the model once, decodes and gates the output."""

    def __init__(
        self,
        model_client: TripModelClient | None = None,
        *,
        api_key: str | None = None,
        model: str | None = None,
    ) -> None:
        self._model_client = model_client
        self._api_key = api_key
        self._model = model

    def _get_model_client(self) -> TripModelClient:
        if self._model_client is None:
            self._model_client = DatapizzaGeminiModel(api_key=self._api_key, model=self._model)
        return self._model_client

    def generate(self, request: TripRequest) -> ItineraryPlan:
        prompt = build_trip_prompt(request)
        model_client = self._get_model_client()
        logger.info("Requesting %d-day itinerary for %s", request.number_of_days, request.country)
        try:
            raw_text = model_client.generate_json(prompt)
        except TripPipelineError:
            raise
        except Exception as exc:
            raise ModelInvocationFailed(f"Generative model call failed: {exc}") from exc

        payload = decode_model_output(raw_text)
        return validate_itinerary(payload)


def build_trip_prompt(request: TripRequest) -> str:
    days = request.number_of_days
    schema = {
        "name": "Trip title",
        "description": "Brief description (max 100 words)",
        "estimatedPrice": "$amount",
        "duration": days,
        "budget": request.budget,
        "travelStyle": request.travel_style,
        "country": request.country,
        "interests": request.interests,
        "groupType": request.group_type,
        "bestTimeToVisit": [
            "🌸 Spring (March to May): reason",
            "☀️ Summer (June to August): reason",
            "🍁 Fall (September to November): reason",
            "❄️ Winter (December to February): reason",
        ],
        "weatherInfo": [
            "☀️ Spring: 10-20°C (50-68°F)",
            "🌦️ Summer: 20-30°C (68-86°F)",
            "🌧️ Fall: 10-20°C (50-68°F)",
            "❄️ Winter: 0-10°C (32-50°F)",
        ],
        "location": {
            "city": "Main city name",
            "coordinates": ["latitude", "longitude"],
            "openStreetMap": "https://osm.org/link",
        },
        "itinerary": [
            {
                "day": 1,
                "location": "City Name",
                "activities": [
                    {"time": "Morning", "description": "🏰 Activity description with relevant emoji"},
                    {"time": "Afternoon", "description": "🍽️ Activity description with relevant emoji"},
                    {"time": "Evening", "description": "🌆 Activity description with relevant emoji"},
                ],
            }
        ],
    }
    return (
        f"Generate a {days}-day travel itinerary for {request.country} based on:\n"
        f"Budget: {request.budget}\n"
        f"Interests: {request.interests}\n"
        f"Travel Style: {request.travel_style}\n"
        f"Group Type: {request.group_type}\n"
        "\n"
        "Return a JSON object with this exact structure. "
        f"The itinerary must contain {days} day entries, bestTimeToVisit exactly "
        f"{SEASON_ENTRY_COUNT} entries and weatherInfo exactly {SEASON_ENTRY_COUNT} entries. "
        "IMPORTANT: Add relevant emojis at the start of all activity descriptions "
        "to make them visually appealing:\n"
        f"{json.dumps(schema, ensure_ascii=False, indent=2)}\n"
        "\n"
        f"{_EMOJI_HINTS}"
    )


def decode_model_output(raw_text: str) -> Any:
    text = raw_text or ""
    fenced = _JSON_FENCE.match(text)
    if fenced:
        text = fenced.group(1)
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        logger.error("Model returned non-JSON output (%d chars)", len(raw_text or ""))
        raise MalformedModelOutput(
            f"Invalid JSON response from AI: {exc.msg}", raw_text=raw_text or ""
        ) from exc


def validate_itinerary(payload: Any) -> ItineraryPlan:
    if not isinstance(payload, dict):
        raise IncompleteModelOutput("AI returned a non-object trip payload.")

    name = payload.get("name")
    itinerary = payload.get("itinerary")
    missing: list[str] = []
    if not isinstance(name, str) or not name.strip():
        missing.append("name")
    if not isinstance(itinerary, list) or not itinerary:
        missing.append("itinerary")
    if missing:
        logger.error("Model output is missing %s", ", ".join(missing))
        raise IncompleteModelOutput(f"AI returned incomplete trip data (missing {', '.join(missing)}).")

    return ItineraryPlan.model_validate(payload)
