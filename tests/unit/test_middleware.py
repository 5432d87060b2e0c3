"""
Unit tests for middleware components.
"""

from __future__ import annotations

import pytest
import structlog
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from stay_settlement.middleware import RequestIDMiddleware


@pytest.fixture
def app_with_middleware() -> FastAPI:
    """Create FastAPI app with RequestIDMiddleware for testing."""
    app = FastAPI()
    app.add_middleware(RequestIDMiddleware)

    @app.get("/test")
    async def test_endpoint(request: Request) -> dict[str, str]:
        """Test endpoint that returns the request ID and the bound log context."""
        context = structlog.contextvars.get_contextvars()
        return {"request_id": request.state.request_id, "logged": context.get("request_id", "")}

    return app


@pytest.fixture
def client(app_with_middleware: FastAPI) -> TestClient:
    return TestClient(app_with_middleware)


@pytest.mark.unit
def test_request_id_header_matches_state(client: TestClient) -> None:
    response = client.get("/test")

    assert response.status_code == 200
    assert response.headers["X-Request-ID"] == response.json()["request_id"]


@pytest.mark.unit
def test_request_id_is_bound_for_logging(client: TestClient) -> None:
    response = client.get("/test")

    body = response.json()
    assert body["logged"] == body["request_id"]


@pytest.mark.unit
def test_incoming_request_id_is_reused(client: TestClient) -> None:
    response = client.get("/test", headers={"X-Request-ID": "gateway-123"})

    assert response.headers["X-Request-ID"] == "gateway-123"


@pytest.mark.unit
def test_request_ids_are_unique(client: TestClient) -> None:
    ids = {client.get("/test").headers["X-Request-ID"] for _ in range(5)}

    assert len(ids) == 5
