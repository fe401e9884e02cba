"""API tests for the page summary endpoints."""
import json

import pytest
from fastapi.testclient import TestClient

from app import create_app
from tests.fakes import make_article

URL = "https://example.com/post"


@pytest.fixture
def client(state):
    with TestClient(create_app(state=state, log_to_files=False)) as test_client:
        yield test_client


def live_body(**overrides):
    body = {
        "url": URL,
        "live_document": {"text": make_article(), "title": "Live Title"},
        "request_id": "req-1",
        "user_id": "user-7",
    }
    body.update(overrides)
    return body


def ndjson(response):
    return [json.loads(line) for line in response.text.splitlines() if line.strip()]


def test_health(client):
    assert client.get("/healthz").json() == {"status": "ok"}


def test_summary_from_live_document(client, backend):
    response = client.post("/api/v1/summary", json=live_body())

    assert response.status_code == 200
    data = response.json()
    assert data["request_id"] == "req-1"
    assert data["user_id"] == "user-7"
    assert data["url"] == URL
    assert data["bullets"] == ["First point", "Second point", "Third point"]
    assert data["source"] == "tab"
    assert data["title"] == "Live Title"
    assert data["cached"] is False
    assert backend.backend_calls == 1


def test_repeat_summary_is_cached(client, backend):
    client.post("/api/v1/summary", json=live_body())
    data = client.post("/api/v1/summary", json=live_body(request_id=None)).json()

    assert data["cached"] is True
    assert data["request_id"]
    assert backend.backend_calls == 1


@pytest.mark.parametrize("url", ["", "   "])
def test_blank_url_is_bad_request(client, url):
    response = client.post("/api/v1/summary", json=live_body(url=url))

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid URL for summary"


def test_missing_url_fails_validation(client):
    assert client.post("/api/v1/summary", json={"request_id": "x"}).status_code == 422


def test_content_unavailable_is_422(client):
    response = client.post("/api/v1/summary", json={"url": "chrome://newtab"})

    assert response.status_code == 422
    assert response.json()["detail"] == "Page content unavailable"


def test_summarizer_unavailable_is_503(client, backend):
    backend.availability_status = "unavailable"

    response = client.post("/api/v1/summary", json=live_body())

    assert response.status_code == 503
    assert response.json()["detail"] == "Summarizer API unavailable"


def test_summarization_failure_is_502(client, backend):
    backend.summarize_error = RuntimeError("Summarize LLM service unavailable. Please try again later.")

    response = client.post("/api/v1/summary", json=live_body())

    assert response.status_code == 502
    assert response.json()["detail"] == "Summarize LLM service unavailable. Please try again later."


def test_stream_one_shot_backend_sends_final_event(client):
    response = client.post("/api/v1/summary/stream", json=live_body())

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/x-ndjson")
    events = ndjson(response)
    assert len(events) == 1
    assert events[0]["done"] is True
    assert events[0]["request_id"] == "req-1"
    assert events[0]["bullets"] == ["First point", "Second point", "Third point"]


def test_stream_sends_partials_before_final(client, backend):
    backend.streaming = True
    backend.chunks = ["- Alpha\n", "- Beta\n", "- Gamma\n", "- Delta\n"]

    events = ndjson(client.post("/api/v1/summary/stream", json=live_body()))

    assert [e["done"] for e in events][-1] is True
    assert sum(1 for e in events if e["done"]) == 1
    assert any(not e["done"] for e in events)
    assert all(len(e["bullets"]) <= 3 for e in events)
    assert events[-1]["bullets"] == ["Alpha", "Beta", "Gamma"]


def test_stream_failure_is_reported_as_last_line(client, backend):
    backend.availability_status = "unavailable"

    events = ndjson(client.post("/api/v1/summary/stream", json=live_body()))

    assert events[-1]["error"] == "Summarizer API unavailable"
    assert events[-1]["status"] == 503


def test_stream_rejects_blank_url_up_front(client):
    response = client.post("/api/v1/summary/stream", json=live_body(url=""))

    assert response.status_code == 400


def test_config_reports_effective_settings(client):
    data = client.get("/api/v1/summary/config").json()

    assert data["cache"]["page_cache_limit"] == 24
    assert data["cache"]["summary_cache_ttl"] == 900
    assert data["resolver"]["high_confidence_score"] == 5
    assert data["engine"]["options"]["summary_type"] == "key-points"
    assert data["engine"]["display_bullets"] == 3
    assert data["stats"]["in_flight"] == 0


def test_shutdown_closes_state(state, backend, fetcher):
    with TestClient(create_app(state=state, log_to_files=False)) as test_client:
        test_client.post("/api/v1/summary", json=live_body())

    assert backend.closed
    assert fetcher.closed
