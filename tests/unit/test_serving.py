"""Unit tests for the serving layer."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from langchain_core.language_models.fake_chat_models import FakeListChatModel

from pdf_rag.config import Settings
from pdf_rag.serving.app import create_app
from pdf_rag.serving.container import ServiceContainer


def _settings(tmp_path: Path, **overrides: object) -> Settings:
    values: dict[str, object] = {
        "local_download_dir": str(tmp_path / "downloads"),
        "vector_index_name": "docs",
        "chunk_size": 100,
        "chunk_overlap": 20,
        "max_upload_bytes": 1024,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture()
def make_client(tmp_path, gateway, memory_store, fake_storage, loader):  # noqa: ANN001, ANN201
    def _make(llm=None, **overrides: object) -> tuple[TestClient, ServiceContainer]:  # noqa: ANN001
        container = ServiceContainer.build(
            _settings(tmp_path, **overrides),
            embedder=gateway,
            store=memory_store,
            storage=fake_storage,
            llm=llm or FakeListChatModel(responses=["Hello! How can I help?"]),
            loader=loader,
        )
        return TestClient(create_app(container)), container

    return _make


@pytest.fixture()
def client(make_client) -> TestClient:  # noqa: ANN001
    return make_client()[0]


class TestProbes:
    def test_root(self, client: TestClient) -> None:
        response = client.get("/")
        assert response.status_code == 200
        assert response.text == "Welcome to the PDF RAG Chatbot API!"

    def test_health_endpoint(self, client: TestClient) -> None:
        """GET /health should return 200 with status ok."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "vector_store": True}

    def test_health_degraded(self, client: TestClient, memory_store) -> None:  # noqa: ANN001
        memory_store.available = False
        assert client.get("/health").json()["status"] == "degraded"


class TestMessages:
    def test_hello_grows_history_from_one_to_three(self, make_client) -> None:  # noqa: ANN001
        client, container = make_client()
        response = client.post("/messages", json={"text": "hello", "rag": False})

        assert response.status_code == 200
        assert response.json() == {"text": "Hello! How can I help?", "session_id": "default"}
        assert len(container.sessions.get("default")) == 3

    def test_sessions_are_independent(self, make_client) -> None:  # noqa: ANN001
        client, container = make_client()
        client.post("/messages", json={"text": "hi", "session_id": "alice"})
        client.post("/messages", json={"text": "hi", "session_id": "alice"})
        client.post("/messages", json={"text": "hi", "session_id": "bob"})
        assert len(container.sessions.get("alice")) == 5
        assert len(container.sessions.get("bob")) == 3

    @pytest.mark.parametrize("body", [{}, {"text": ""}, {"text": "   "}, {"rag": True}])
    def test_missing_text_is_400(self, client: TestClient, body: dict) -> None:
        response = client.post("/messages", json=body)
        assert response.status_code == 400
        assert response.json() == {"error": "Message is required"}

    def test_model_failure_is_generic_500(self, make_client) -> None:  # noqa: ANN001
        llm = MagicMock()
        llm.ainvoke = AsyncMock(side_effect=RuntimeError("secret upstream detail"))
        client, container = make_client(llm=llm)

        response = client.post("/messages", json={"text": "hello"})
        assert response.status_code == 500
        assert response.json() == {"error": "Model invocation failed."}
        assert len(container.sessions.get("default")) == 1

    def test_rag_with_unreachable_store_still_answers(self, client: TestClient, memory_store) -> None:  # noqa: ANN001
        memory_store.available = False
        response = client.post("/messages", json={"text": "hello", "rag": True})
        assert response.status_code == 200


class TestEmbed:
    def test_ingests_the_named_object(self, client: TestClient, fake_storage, memory_store) -> None:  # noqa: ANN001
        fake_storage.objects["pdfs/policy.pdf"] = ("coverage " * 30).encode()
        response = client.post("/embed", json={"fileName": "policy.pdf"})

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "succeeded"
        assert body["outcome"] == "downloaded"
        assert body["source_path"] == "gs://test-bucket/pdfs/"
        assert body["documents_loaded"] == 1
        assert body["records_written"] == body["chunks_produced"] == memory_store.count(index_name="docs")

    def test_reingest_does_not_duplicate(self, client: TestClient, fake_storage, memory_store) -> None:  # noqa: ANN001
        fake_storage.objects["pdfs/policy.pdf"] = ("coverage " * 30).encode()
        first = client.post("/embed", json={"fileName": "pdfs/policy.pdf"}).json()
        client.post("/embed", json={"fileName": "pdfs/policy.pdf"})
        assert memory_store.count(index_name="docs") == first["records_written"]

    def test_missing_object_is_nothing_to_do(self, client: TestClient) -> None:
        response = client.post("/embed", json={"fileName": "missing.pdf"})
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "nothing_to_do"
        assert body["outcome"] == "no_matching_object"
        assert body["documents_loaded"] == 0
        assert body["message"] == "No documents found. Nothing to do."

    def test_missing_object_can_be_an_error(self, make_client) -> None:  # noqa: ANN001
        client, _ = make_client(missing_object_is_error=True)
        response = client.post("/embed", json={"fileName": "missing.pdf"})
        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "Ingestion pipeline execution failed."
        assert body["stage"] == "loading"
        assert "missing.pdf" in body["details"]

    def test_file_name_is_required(self, client: TestClient) -> None:
        response = client.post("/embed", json={})
        assert response.status_code == 400
        assert response.json() == {"error": "fileName is required"}

    def test_storage_failure_is_500(self, client: TestClient, fake_storage) -> None:  # noqa: ANN001
        fake_storage.fail = True
        response = client.post("/embed", json={"fileName": "policy.pdf"})
        assert response.status_code == 500
        assert response.json()["details"] == "bucket unreachable"

    def test_store_failure_reports_stage(self, client: TestClient, fake_storage, memory_store) -> None:  # noqa: ANN001
        fake_storage.objects["pdfs/policy.pdf"] = b"some text"
        memory_store.available = False
        response = client.post("/embed", json={"fileName": "policy.pdf"})
        assert response.status_code == 500
        assert response.json()["stage"] == "embedding_and_upserting"

    def test_invalid_chunking_is_config_failure(self, make_client, fake_storage) -> None:  # noqa: ANN001
        client, _ = make_client(chunk_size=50, chunk_overlap=50)
        fake_storage.objects["pdfs/policy.pdf"] = b"some text"
        response = client.post("/embed", json={"fileName": "policy.pdf"})
        assert response.status_code == 500
        assert response.json()["stage"] == "config"

    def test_download_directory_is_cleaned_up(self, client: TestClient, fake_storage, tmp_path: Path) -> None:  # noqa: ANN001
        fake_storage.objects["pdfs/policy.pdf"] = b"some text"
        client.post("/embed", json={"fileName": "policy.pdf"})
        assert list((tmp_path / "downloads").iterdir()) == []


class TestUpload:
    def test_upload_stores_under_prefix(self, client: TestClient, fake_storage) -> None:  # noqa: ANN001
        response = client.post("/upload", files={"file": ("report.pdf", b"%PDF-1.4", "application/pdf")})
        assert response.status_code == 200
        assert response.json() == {"message": "File uploaded successfully", "filename": "pdfs/report.pdf"}
        assert fake_storage.objects["pdfs/report.pdf"] == b"%PDF-1.4"

    def test_oversized_upload_is_413(self, client: TestClient, fake_storage) -> None:  # noqa: ANN001
        response = client.post("/upload", files={"file": ("big.pdf", b"x" * 2048, "application/pdf")})
        assert response.status_code == 413
        assert fake_storage.objects == {}

    def test_missing_file_is_400(self, client: TestClient) -> None:
        assert client.post("/upload").status_code == 400

    def test_storage_failure_is_500(self, client: TestClient, fake_storage) -> None:  # noqa: ANN001
        fake_storage.fail = True
        response = client.post("/upload", files={"file": ("report.pdf", b"%PDF", "application/pdf")})
        assert response.status_code == 500
        assert "permission denied" in response.json()["error"]


class TestLifespan:
    def test_injected_container_is_not_closed(self, make_client, fake_storage) -> None:  # noqa: ANN001
        client, _ = make_client()
        with client:
            assert client.get("/").status_code == 200
        assert fake_storage.closed is False

    def test_container_close_releases_clients(self, make_client, fake_storage) -> None:  # noqa: ANN001
        _, container = make_client()
        container.sessions.get("a")
        container.close()
        assert fake_storage.closed is True
        assert len(container.sessions) == 0
