"""
Tests for the LLM mock endpoints.

Tests cover:
- Health and model listing
- Non-streaming and streaming chat completions
- Invalid request bodies
- CORS preflight and headers
- Unknown routes
"""

import time

import httpx
import pytest
from fastapi.testclient import TestClient
from structlog.testing import capture_logs

from mock_servers import llm_server
from mock_servers.config import LLMMockSettings


class TestStaticEndpoints:
    """Tests for GET /health and GET /v1/models"""

    def test_health(self, llm_client):
        response = llm_client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}
        assert response.headers["access-control-allow-origin"] == "*"

    def test_models(self, llm_client):
        response = llm_client.get("/v1/models")

        assert response.status_code == 200
        data = response.json()
        assert data["object"] == "list"
        assert len(data["data"]) == 1
        model = data["data"][0]
        assert model["id"] == "mock-gpt-4"
        assert model["object"] == "model"
        assert model["owned_by"] == "mock"
        assert isinstance(model["created"], int)

    def test_model_id_is_configurable(self):
        client = TestClient(llm_server.create_app(LLMMockSettings(MOCK_MODEL_ID="mock-local")))
        assert client.get("/v1/models").json()["data"][0]["id"] == "mock-local"


class TestChatCompletion:
    """Tests for POST /v1/chat/completions without streaming"""

    def test_echoes_last_user_message(self, llm_client, chat_request_data):
        response = llm_client.post("/v1/chat/completions", json=chat_request_data)

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"
        data = response.json()
        assert data["id"].startswith("mock-")
        assert data["object"] == "chat.completion"
        assert data["model"] == "mock-gpt-4"
        assert data["choices"] == [
            {
                "index": 0,
                "message": {"role": "assistant", "content": "Mock response to: hi"},
                "finish_reason": "stop",
            }
        ]

    def test_usage_heuristic(self, llm_client, chat_request_data):
        data = llm_client.post("/v1/chat/completions", json=chat_request_data).json()

        # "hi" -> 2 chars, "Mock response to: hi" -> 20 chars
        assert data["usage"] == {
            "prompt_tokens": 0.5,
            "completion_tokens": 5,
            "total_tokens": 5.5,
        }

    def test_long_message_is_truncated(self, llm_client):
        content = "0123456789" * 12
        response = llm_client.post(
            "/v1/chat/completions",
            json={"model": "mock-gpt-4", "messages": [{"role": "user", "content": content}]},
        )

        data = response.json()
        assert data["choices"][0]["message"]["content"] == f"Mock response to: {content[:100]}..."
        assert data["usage"]["prompt_tokens"] == 30

    def test_tool_fields_are_accepted(self, llm_client, chat_request_data):
        chat_request_data["tools"] = [{"type": "function", "function": {"name": "noop"}}]
        chat_request_data["tool_choice"] = "auto"
        chat_request_data["temperature"] = 0.2

        response = llm_client.post("/v1/chat/completions", json=chat_request_data)

        assert response.status_code == 200
        assert response.json()["choices"][0]["message"]["content"] == "Mock response to: hi"

    def test_stream_false_returns_json(self, llm_client, chat_request_data):
        chat_request_data["stream"] = False
        response = llm_client.post("/v1/chat/completions", json=chat_request_data)

        assert response.headers["content-type"].startswith("application/json")


class TestChatCompletionStreaming:
    """Tests for POST /v1/chat/completions with stream=true"""

    def test_stream_frames(self, llm_client, chat_request_data, parse_sse, decode_sse):
        chat_request_data["stream"] = True

        started = time.perf_counter()
        response = llm_client.post("/v1/chat/completions", json=chat_request_data)
        elapsed = time.perf_counter() - started

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        assert response.headers["cache-control"] == "no-cache"
        assert response.headers["access-control-allow-origin"] == "*"

        frames = parse_sse(response.text)
        # role + 4 words + stop + [DONE]
        assert len(frames) == 4 + 3
        assert frames[-1] == "[DONE]"

        chunks = decode_sse(frames)
        assert chunks[0]["choices"][0]["delta"] == {"role": "assistant"}
        assert [chunk["choices"][0]["delta"]["content"] for chunk in chunks[1:-1]] == [
            "Mock ",
            "response ",
            "to: ",
            "hi ",
        ]
        assert chunks[-1]["choices"][0]["finish_reason"] == "stop"
        assert all(chunk["model"] == "mock-gpt-4" for chunk in chunks)

        # Stop frame is scheduled at 50 ms * 4 words + 100 ms
        assert elapsed >= 0.3

    @pytest.mark.asyncio
    async def test_stream_over_async_client(self, chat_request_data, parse_sse):
        app = llm_server.create_app(LLMMockSettings(STREAM_WORD_DELAY_MS=0, STREAM_FINISH_DELAY_MS=0))
        chat_request_data["stream"] = True

        async with httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://test"
        ) as client:
            response = await client.post("/v1/chat/completions", json=chat_request_data)

        assert response.status_code == 200
        assert parse_sse(response.text)[-1] == "[DONE]"


class TestInvalidRequests:
    """Tests for malformed chat completion bodies"""

    def test_unparsable_body(self, llm_client):
        response = llm_client.post(
            "/v1/chat/completions",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json() == {
            "error": {"message": "Invalid request", "type": "invalid_request_error"}
        }
        assert response.headers["access-control-allow-origin"] == "*"
        assert "data:" not in response.text

    def test_unparsable_streaming_body_never_streams(self, llm_client):
        response = llm_client.post(
            "/v1/chat/completions",
            content=b'{"stream": true, "messages": [',
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert not response.headers["content-type"].startswith("text/event-stream")
        assert "data:" not in response.text

    def test_missing_messages(self, llm_client):
        response = llm_client.post("/v1/chat/completions", json={"model": "mock-gpt-4", "stream": True})

        assert response.status_code == 400
        assert response.json()["error"]["type"] == "invalid_request_error"

    def test_empty_body(self, llm_client):
        response = llm_client.post("/v1/chat/completions")

        assert response.status_code == 400


class TestCorsAndRouting:
    """Tests for preflight handling and unknown routes"""

    def test_preflight_on_any_path(self, llm_client):
        for path in ("/v1/chat/completions", "/does/not/exist"):
            response = llm_client.options(path)

            assert response.status_code == 204
            assert response.headers["access-control-allow-origin"] == "*"
            assert response.headers["access-control-allow-methods"] == "GET, POST, OPTIONS"
            assert response.headers["access-control-allow-headers"] == "Content-Type, Authorization"

    def test_unknown_path(self, llm_client):
        response = llm_client.get("/v1/unknown")

        assert response.status_code == 404
        assert response.json() == {"error": "Not found"}
        assert response.headers["access-control-allow-origin"] == "*"

    def test_trailing_slash_is_not_found(self, llm_client):
        for path in ("/health/", "/v1/models/", "/v1/chat/completions/"):
            response = llm_client.get(path, follow_redirects=False)

            assert response.status_code == 404
            assert response.json() == {"error": "Not found"}

    def test_wrong_method_is_not_found(self, llm_client):
        response = llm_client.get("/v1/chat/completions")

        assert response.status_code == 404
        assert response.json() == {"error": "Not found"}

    def test_correlation_id_is_echoed(self, llm_client):
        response = llm_client.get("/health", headers={"X-Correlation-ID": "test-correlation"})

        assert response.headers["x-correlation-id"] == "test-correlation"

    def test_stream_log_keeps_correlation_id(self, chat_request_data):
        client = TestClient(
            llm_server.create_app(LLMMockSettings(STREAM_WORD_DELAY_MS=0, STREAM_FINISH_DELAY_MS=0))
        )
        chat_request_data["stream"] = True

        with capture_logs() as logs:
            response = client.post(
                "/v1/chat/completions",
                json=chat_request_data,
                headers={"X-Correlation-ID": "stream-correlation"},
            )

        assert response.status_code == 200
        finished = [entry for entry in logs if entry["event"] == "completion_stream_finished"]
        assert len(finished) == 1
        assert finished[0]["correlation_id"] == "stream-correlation"
