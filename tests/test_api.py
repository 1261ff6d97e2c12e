"""
Tests for the HTTP surface

Tests request/response flow including:
- POST /api/chat success, validation and failure responses
- GET / and GET /health
"""

import pytest
from fastapi.testclient import TestClient

from partsbot.agents.prompts import APOLOGY_MESSAGE, TIMEOUT_MESSAGE
from partsbot.agents.tools import CHECK_COMPATIBILITY
from partsbot.exceptions import LanguageModelError
from partsbot.main import create_app
from partsbot.models.schemas import ToolCall
from tests.fakes import ScriptedLLM, tool_response


def _client(service) -> TestClient:
    return TestClient(create_app(chat_service=service))


def _chat_payload(content: str, **extra) -> dict:
    return {"messages": [{"id": "1", "role": "user", "content": content, "timestamp": 0}], **extra}


@pytest.mark.unit
class TestChatEndpoint:
    """Test POST /api/chat"""

    def test_chat_returns_message_and_products(self, make_chat_service):
        """Test a successful turn returns the answer and retained products"""
        llm = ScriptedLLM([
            tool_response(ToolCall(
                name=CHECK_COMPATIBILITY,
                args={"partNumber": "WPW10730972", "modelNumber": "LFSS2612TF0"},
            )),
            "Yes, WPW10730972 fits your LFSS2612TF0.",
        ])
        client = _client(make_chat_service(llm))

        response = client.post(
            "/api/chat",
            json=_chat_payload(
                "Is WPW10730972 compatible with LFSS2612TF0?",
                partNumber="WPW10730972",
                modelNumber="LFSS2612TF0",
            ),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"]["role"] == "assistant"
        assert body["message"]["content"] == "Yes, WPW10730972 fits your LFSS2612TF0."
        assert body["message"]["id"]
        assert body["message"]["timestamp"] > 0
        assert [p["partNumber"] for p in body["productResults"]] == ["WPW10730972"]
        assert body["productResults"][0]["modelCompatibilityUnknown"] is False

    def test_out_of_scope_message(self, make_chat_service):
        """Test an out-of-scope message returns the redirect without products"""
        client = _client(make_chat_service(ScriptedLLM()))
        response = client.post("/api/chat", json=_chat_payload("Which microwave should I buy?"))

        assert response.status_code == 200
        assert "refrigerator and dishwasher" in response.json()["message"]["content"]
        assert response.json()["productResults"] == []

    def test_no_user_message(self, make_chat_service):
        """Test a conversation without a user message is a bad request"""
        client = _client(make_chat_service(ScriptedLLM()))
        response = client.post(
            "/api/chat",
            json={"messages": [{"role": "assistant", "content": "How can I help?"}]},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "No user message found"}

    def test_model_failure_returns_apology(self, make_chat_service):
        """Test an upstream failure returns a friendly assistant message"""
        client = _client(make_chat_service(ScriptedLLM([LanguageModelError("secret upstream detail")])))
        response = client.post("/api/chat", json=_chat_payload("My fridge is warm"))

        assert response.status_code == 500
        body = response.json()
        assert body["message"]["content"] == APOLOGY_MESSAGE
        assert "secret upstream detail" not in response.text

    def test_timeout_returns_timeout_message(self, make_chat_service):
        """Test a turn that exceeds its budget returns 504"""
        service = make_chat_service(ScriptedLLM(["late"], delay=1.0), turn_timeout=0.05)
        response = _client(service).post("/api/chat", json=_chat_payload("My fridge is warm"))

        assert response.status_code == 504
        assert response.json()["message"]["content"] == TIMEOUT_MESSAGE


@pytest.mark.unit
class TestServiceEndpoints:
    """Test GET / and GET /health"""

    def test_root(self, make_chat_service):
        """Test the root endpoint reports the service"""
        response = _client(make_chat_service(ScriptedLLM())).get("/")
        assert response.status_code == 200
        assert response.json()["status"] == "running"

    def test_health(self, make_chat_service, product_index):
        """Test health reflects the product index"""
        client = _client(make_chat_service(ScriptedLLM()))
        assert client.get("/health").json()["status"] == "healthy"

        product_index.healthy = False
        body = client.get("/health").json()
        assert body["status"] == "degraded"
        assert body["services"]["product_index"] is False
