"""Error envelope and status mapping as seen by API clients."""

from unittest.mock import AsyncMock, Mock, patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.adapters.kv import get_kv_store
from app.api.deps import get_llm
from app.core.app_factory import create_app
from app.core.errors import (
    AppError,
    AuthenticationAppError,
    ConfigurationAppError,
    LLMAppError,
    StoreAppError,
    ValidationAppError,
)
from app.core.exception_handlers import status_for_error


@pytest.mark.parametrize(
    ("error_cls", "status"),
    [
        (ValidationAppError, 400),
        (AuthenticationAppError, 403),
        (LLMAppError, 502),
        (StoreAppError, 503),
        (ConfigurationAppError, 503),
        (AppError, 400),
    ],
)
def test_status_for_error(error_cls: type[AppError], status: int) -> None:
    assert status_for_error(error_cls(code="x", message="y")) == status


@pytest.fixture
def llm() -> Mock:
    client = Mock()
    client.generate_json = AsyncMock(return_value={"name": "Myrcene"})
    return client


@pytest.fixture
def app(llm: Mock) -> FastAPI:
    application = create_app()
    # No store: quotas are off, so every request reaches the tool.
    application.dependency_overrides[get_kv_store] = lambda: None
    application.dependency_overrides[get_llm] = lambda: llm
    return application


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app, raise_server_exceptions=False)


class TestToolErrorResponses:
    def test_missing_fields_envelope(self, client: TestClient) -> None:
        resp = client.post("/api/compare", json={"strain1": "Blue Dream", "strain2": "  "})

        assert resp.status_code == 400
        error = resp.json()["error"]
        assert error["code"] == "missing_fields"
        assert error["message"] == "Missing required fields: strain2"
        assert error["details"] == {"tool": "strain-compare", "missing_fields": ["strain2"]}
        assert error["request_id"] == resp.headers["X-Request-ID"]

    def test_generator_failure_is_bad_gateway(self, client: TestClient, llm: Mock) -> None:
        llm.generate_json.side_effect = LLMAppError(
            code="llm_request_failed",
            message="OpenAI API error: timeout",
            details={"model": "gpt-4o-mini"},
        )

        resp = client.post("/api/terpene-guide", json={"terpene": "Limonene"})

        assert resp.status_code == 502
        assert resp.json()["error"]["code"] == "llm_request_failed"
        assert resp.json()["error"]["details"] == {"model": "gpt-4o-mini"}

    def test_unconfigured_generator_is_unavailable(self, app: FastAPI, client: TestClient) -> None:
        def missing_key():
            raise ConfigurationAppError(
                code="llm_missing_api_key",
                message="Service temporarily unavailable",
                details={"hint": "Set the LLM_API_KEY environment variable"},
            )

        app.dependency_overrides[get_llm] = missing_key

        resp = client.post("/api/cbd-vs-thc", json={"goal": "sleep"})

        assert resp.status_code == 503
        assert resp.json()["error"]["message"] == "Service temporarily unavailable"
        assert "details" in resp.json()["error"]

    def test_envelope_omits_empty_details(self, app: FastAPI, client: TestClient) -> None:
        broken = Mock()
        broken.get = AsyncMock(side_effect=StoreAppError(code="store_unreachable", message="down"))
        app.dependency_overrides[get_kv_store] = lambda: broken

        resp = client.post("/api/cbd-vs-thc", json={"goal": "sleep"})

        assert resp.status_code == 503
        assert resp.json()["error"].keys() == {"code", "message", "request_id"}

    def test_unexpected_failure_is_generic(self, client: TestClient, llm: Mock) -> None:
        llm.generate_json.side_effect = RuntimeError("pool exhausted at 10.0.0.12:5432")

        resp = client.post("/api/terpene-guide", json={"terpene": "Limonene"})

        assert resp.status_code == 500
        error = resp.json()["error"]
        assert error["code"] == "internal_server_error"
        assert "request_id" in error
        assert "10.0.0.12" not in resp.text
        assert "RuntimeError" not in resp.text


class TestErrorLogging:
    def test_client_faults_log_as_warning(self, client: TestClient) -> None:
        with patch("app.core.exception_handlers.logger") as logger:
            client.post("/api/grow-timeline", json={"strain_type": "indica"})

        logger.error.assert_not_called()
        event, = logger.warning.call_args.args
        extra = logger.warning.call_args.kwargs["extra"]
        assert event == "app_error_handled"
        assert extra["status_code"] == 400
        assert extra["request_path"] == "/api/grow-timeline"

    def test_upstream_faults_log_as_error(self, client: TestClient, llm: Mock) -> None:
        llm.generate_json.side_effect = LLMAppError(code="llm_empty_response", message="LLM returned empty response")

        with patch("app.core.exception_handlers.logger") as logger:
            client.post("/api/terpene-guide", json={"terpene": "Pinene"})

        logger.warning.assert_not_called()
        assert logger.error.call_args.kwargs["extra"]["error_code"] == "llm_empty_response"
