from __future__ import annotations

import json

from tripdesk import cli
from tripdesk.document_store import InMemoryDocumentStore
from tripdesk.generation import GenerationClient
from tripdesk.image_tool import ImageEnricher
from tripdesk.orchestrator import TripOrchestrator
from tripdesk.repository import TripRepository


class _Model:
    def __init__(self, text: str) -> None:
        self.text = text

    def generate_json(self, prompt: str) -> str:
        return self.text


PLAN = {
    "name": "Lisbon Light",
    "description": "Tiles and tarts.",
    "itinerary": [
        {
            "day": 1,
            "location": "Lisbon",
            "activities": [{"time": "Morning", "description": "🥐 Pastel de nata in Belém"}],
        }
    ],
}


def _install(monkeypatch, model_text: str) -> InMemoryDocumentStore:  # type: ignore[no-untyped-def]
    store = InMemoryDocumentStore()
    orchestrator = TripOrchestrator(
        generator=GenerationClient(model_client=_Model(model_text)),
        enricher=ImageEnricher(None),
        repository=TripRepository(store),
    )
    monkeypatch.setattr(cli, "build_orchestrator", lambda: orchestrator)
    return store


def _create_args() -> list[str]:
    return [
        "create",
        "--country",
        "Portugal",
        "--days",
        "1",
        "--interests",
        "Food",
        "--user-id",
        "u1",
    ]


def test_cli_create_then_show_and_list(monkeypatch, capsys) -> None:
    _install(monkeypatch, json.dumps(PLAN))

    assert cli.main(_create_args()) == 0
    trip_id = json.loads(capsys.readouterr().out)["id"]

    assert cli.main(["show", trip_id]) == 0
    shown = json.loads(capsys.readouterr().out)
    assert shown["id"] == trip_id
    assert shown["name"] == "Lisbon Light"
    assert shown["userId"] == "u1"
    assert shown["imageUrls"] == []

    assert cli.main(["list", "--page", "1", "--limit", "8"]) == 0
    listed = json.loads(capsys.readouterr().out)
    assert listed["total"] == 1
    assert listed["page"] == 1
    assert listed["trips"][0]["id"] == trip_id


def test_cli_show_text_format(monkeypatch, capsys) -> None:
    _install(monkeypatch, json.dumps(PLAN))
    cli.main(_create_args())
    trip_id = json.loads(capsys.readouterr().out)["id"]

    assert cli.main(["show", trip_id, "--format", "text"]) == 0
    output = capsys.readouterr().out

    assert output.startswith("Lisbon Light")
    assert "Day 1 - Lisbon" in output
    assert "  - Morning: 🥐 Pastel de nata in Belém" in output
    assert "{" not in output


def test_cli_create_reports_typed_error(monkeypatch, capsys) -> None:
    store = _install(monkeypatch, "{}")

    assert cli.main(_create_args()) == 1
    payload = json.loads(capsys.readouterr().out)

    assert payload["code"] == "incomplete_model_output"
    assert payload["error"] == "AI returned incomplete trip data."
    assert store.list_documents("trips").total == 0


def test_cli_show_missing_trip_exits_nonzero(monkeypatch, capsys) -> None:
    _install(monkeypatch, json.dumps(PLAN))

    assert cli.main(["show", "missing"]) == 1
    assert json.loads(capsys.readouterr().out)["code"] == "not_found"


def test_cli_show_text_renders_plain_string_days(monkeypatch, capsys) -> None:
    loose = {**PLAN, "itinerary": ["Day 1: Alfama walk", {"day": 2, "location": "Sintra", "activities": None}]}
    _install(monkeypatch, json.dumps(loose))
    cli.main(_create_args())
    trip_id = json.loads(capsys.readouterr().out)["id"]

    assert cli.main(["show", trip_id, "--format", "text"]) == 0
    output = capsys.readouterr().out

    assert "Day 1: Alfama walk" in output
    assert "Day 2 - Sintra" in output


def test_cli_list_bad_paging_reports_invalid_request(monkeypatch, capsys) -> None:
    _install(monkeypatch, json.dumps(PLAN))

    assert cli.main(["list", "--page", "0", "--limit", "0"]) == 1
    assert json.loads(capsys.readouterr().out)["code"] == "invalid_request"

    assert cli.main(["list", "--limit", "-2"]) == 1
    assert "limit must be >= 0" in json.loads(capsys.readouterr().out)["error"]
