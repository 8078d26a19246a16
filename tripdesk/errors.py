"""Typed error taxonomy for the trip pipeline."""

from __future__ import annotations

from typing import Any


class TripPipelineError(RuntimeError):
    """Base error carrying a machine-readable code and a user-facing message."""

    code = "pipeline_error"
    user_message = "Failed to generate trip."

    def to_payload(self) -> dict[str, Any]:
        return {
            "error": self.user_message,
            "code": self.code,
            "details": str(self),
        }


class InvalidTripRequest(TripPipelineError):
    code = "invalid_request"
    user_message = "The trip request is missing required fields."


class MissingCredential(TripPipelineError):
    code = "configuration_error"
    user_message = "Server configuration error. Please check your API keys and try again."


class ModelInvocationFailed(TripPipelineError):
    code = "generation_failed"
    user_message = "The itinerary generator is unavailable. Please try again."


class MalformedModelOutput(TripPipelineError):
    code = "malformed_model_output"
    user_message = "Invalid JSON response from AI."

    def __init__(self, message: str, *, raw_text: str = "") -> None:
        super().__init__(message)
        self.raw_text = raw_text


class IncompleteModelOutput(TripPipelineError):
    code = "incomplete_model_output"
    user_message = "AI returned incomplete trip data."


class PersistenceFailed(TripPipelineError):
    code = "persistence_failed"
    user_message = "The trip could not be saved. Please try again."


class RetriesExhausted(TripPipelineError):
    code = "retries_exhausted"
    user_message = "The trip store did not respond. Please try again later."

    def __init__(self, attempts: int, last_error: BaseException) -> None:
        super().__init__(f"Operation failed after {attempts} attempt(s): {last_error}")
        self.attempts = attempts
        self.last_error = last_error


class TimeoutExceeded(TripPipelineError):
    code = "timeout_exceeded"
    user_message = "Loading trips took too long."

    def __init__(self, timeout_seconds: float) -> None:
        super().__init__(f"Request timeout after {timeout_seconds:g}s")
        self.timeout_seconds = timeout_seconds
