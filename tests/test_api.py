"""
HTTP API Tests

Exercises the FastAPI app end to end with the store, cache, embedder and
completion client replaced through dependency overrides.
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient
from pydantic import ValidationError

from course_rag.api.dependencies import (
    get_embedder,
    get_index_cache,
    get_kv_store,
    get_llm_client,
    get_settings,
)
from course_rag.api.models import OperationResult
from course_rag.config import Settings
from course_rag.llm.client import LLMClient
from course_rag.main import create_app

from conftest import FakeEmbedder

ADMIN = {"X-Admin-Token": "secret"}
INTRO_TEXT = "a" * 1500 + "b" * 1000


@pytest.fixture
def config(tmp_path):
    return Settings(
        openai_api_key="sk-test",
        admin_token="secret",
        syllabus_path=str(tmp_path / "syllabus.md"),
        rag_min_score=0.20,
        rag_top_k=3,
        strict_rag=True,
    )


@pytest.fixture
def llm():
    mock = AsyncMock(spec=LLMClient)
    mock.complete.return_value = "Intro covers the basics."
    return mock


@pytest.fixture
def app(store, cache, embedder, llm, config):
    app = create_app()
    app.dependency_overrides[get_settings] = lambda: config
    app.dependency_overrides[get_kv_store] = lambda: store
    app.dependency_overrides[get_index_cache] = lambda: cache
    app.dependency_overrides[get_embedder] = lambda: embedder
    app.dependency_overrides[get_llm_client] = lambda: llm
    yield app
    app.dependency_overrides = {}


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


def ingest(client, *items):
    return client.post("/ingest", json={"items": list(items)}, headers=ADMIN)


class TestAdminAuth:

    @pytest.mark.parametrize("path", ["/ingest", "/retitle", "/wipe", "/stats"])
    def test_admin_routes_require_token(self, client, path):
        assert client.post(path, json={}).status_code == 401
        assert client.post(path, json={}, headers={"X-Admin-Token": "wrong"}).status_code == 401

    def test_bearer_token_accepted(self, client):
        resp = client.post("/stats", headers={"Authorization": "Bearer  secret "})
        assert resp.status_code == 200

    def test_admin_disabled_without_configured_token(self, client, config):
        config.admin_token = Settings(admin_token="").admin_token
        assert client.post("/stats", headers={"X-Admin-Token": ""}).status_code == 401


class TestCorpusRoutes:

    def test_ingest_then_stats(self, client):
        resp = ingest(client, {"id": "L1", "title": "Intro", "text": INTRO_TEXT})

        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"
        assert resp.json()["count"] == 2

        stats = client.post("/stats", headers=ADMIN)
        assert stats.status_code == 200
        assert stats.json() == {"lectureCount": 1, "chunkCount": 2, "sampleTitles": ["Intro"]}

        assert client.get("/stats", headers=ADMIN).json()["chunkCount"] == 2

    def test_retitle(self, client):
        ingest(client, {"id": "L1", "title": "Intro", "text": "abc"})

        resp = client.post("/retitle", json={"id": "L1", "title": "Welcome"}, headers=ADMIN)

        assert resp.status_code == 200
        assert resp.json() == {"status": "updated", "count": 1, "details": None}
        assert client.post("/stats", headers=ADMIN).json()["sampleTitles"] == ["Welcome"]

    def test_retitle_unknown_is_404(self, client):
        resp = client.post("/retitle", json={"id": "nope", "title": "X"}, headers=ADMIN)

        assert resp.status_code == 404
        assert resp.json()["error"] == "not_found"

    def test_retitle_requires_fields(self, client):
        resp = client.post("/retitle", json={"id": "L1"}, headers=ADMIN)
        assert resp.status_code == 422

    def test_separator_in_document_id_is_422(self, client, store):
        resp = ingest(client, {"id": "L\x1f1", "title": "Intro", "text": "abc"})
        assert resp.status_code == 422
        assert len(store) == 0

        resp = client.post("/retitle", json={"id": "L\x1f1", "title": "X"}, headers=ADMIN)
        assert resp.status_code == 422

    def test_wipe(self, client):
        ingest(client, {"id": "L1", "title": "Intro", "text": INTRO_TEXT})

        resp = client.post("/wipe", headers=ADMIN)

        assert resp.status_code == 200
        assert resp.json()["status"] == "deleted"
        assert resp.json()["count"] == 3
        assert client.post("/stats", headers=ADMIN).json() == {
            "lectureCount": 0,
            "chunkCount": 0,
            "sampleTitles": [],
        }

    def test_embedding_failure_is_502(self, app, client, store):
        app.dependency_overrides[get_embedder] = lambda: FakeEmbedder(fail_after=0)

        resp = ingest(client, {"id": "L1", "title": "Intro", "text": "abc"})

        assert resp.status_code == 502
        assert resp.json()["error"] == "upstream_failure"

    def test_store_outage_is_503(self, client, store):
        store.offline = True

        resp = client.post("/stats", headers=ADMIN)

        assert resp.status_code == 503
        assert resp.json()["error"] == "store_unavailable"


class TestChat:

    def test_no_corpus_and_not_found_are_distinguishable(self, client):
        empty = client.post("/chat", json={"query": "What is covered?"})
        assert empty.status_code == 200
        assert empty.json()["outcome"] == "no_corpus"

        ingest(client, {"id": "L1", "title": "Intro", "text": "aaaa"})

        miss = client.post("/chat", json={"query": "ddd"})
        assert miss.status_code == 200
        assert miss.json()["outcome"] == "not_found"
        assert miss.json()["answer"] != empty.json()["answer"]

    def test_answer_with_sources(self, client, llm):
        ingest(client, {"id": "L1", "title": "Intro", "text": INTRO_TEXT})

        resp = client.post("/chat", json={"query": "bbb"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["outcome"] == "answered"
        assert body["sources"] == ["Intro"]
        assert "Sources: Intro" in body["answer"]
        llm.complete.assert_awaited_once()

    def test_root_path_also_answers(self, client):
        resp = client.post("/", json={"query": "anything"})
        assert resp.status_code == 200
        assert resp.json()["outcome"] == "no_corpus"

    def test_empty_query_is_400(self, client):
        resp = client.post("/chat", json={"query": "   "})
        assert resp.status_code == 400

    def test_missing_api_key_is_500(self, client, config):
        config.openai_api_key = Settings(openai_api_key="").openai_api_key
        resp = client.post("/chat", json={"query": "hi"})
        assert resp.status_code == 500
        assert resp.json()["detail"] == "Missing OpenAI API key"


def test_health(client):
    assert client.get("/health").json() == {"status": "ok", "version": "1.0.0"}


def test_cors_preflight(client):
    resp = client.options(
        "/chat",
        headers={
            "Origin": "https://course.example.edu",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "Content-Type",
        },
    )
    assert resp.status_code == 200
    assert resp.headers["access-control-allow-origin"] in ("*", "https://course.example.edu")


@pytest.mark.parametrize("status", ["ok", "updated", "deleted"])
def test_operation_result_statuses(status):
    assert OperationResult(status=status).status == status


def test_operation_result_rejects_unknown_status():
    with pytest.raises(ValidationError):
        OperationResult(status="created")
