"""
Pytest configuration and shared fixtures for the mock server tests.

Every fixture builds a fresh application, so each test gets its own
in-memory tables and no state leaks between tests.
"""

import json
from typing import Dict, List

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from mock_servers import llm_server, opencode_server
from mock_servers.config import LLMMockSettings, OpenCodeMockSettings


@pytest.fixture
def llm_settings() -> LLMMockSettings:
    """LLM mock settings with the default streaming schedule."""
    return LLMMockSettings()


@pytest.fixture
def llm_app(llm_settings) -> FastAPI:
    return llm_server.create_app(llm_settings)


@pytest.fixture
def llm_client(llm_app) -> TestClient:
    """Synchronous client for the LLM mock."""
    return TestClient(llm_app)


@pytest.fixture
def opencode_settings() -> OpenCodeMockSettings:
    """Session backend settings without the startup seed session."""
    return OpenCodeMockSettings(SEED_SESSION=False)


@pytest.fixture
def opencode_app(opencode_settings) -> FastAPI:
    return opencode_server.create_app(opencode_settings)


@pytest.fixture
def opencode_client(opencode_app) -> TestClient:
    """Synchronous client for the session backend mock."""
    return TestClient(opencode_app)


@pytest.fixture
def chat_request_data() -> Dict:
    """Provide a minimal chat completion request."""
    return {
        "model": "mock-gpt-4",
        "messages": [
            {"role": "system", "content": "You are a test assistant."},
            {"role": "user", "content": "hi"},
        ],
    }


@pytest.fixture
def parse_sse():
    """Provide a parser that splits an event-stream body into its ``data:`` payloads."""
    return parse_sse_frames


@pytest.fixture
def decode_sse():
    """Provide a decoder for every frame except the ``[DONE]`` sentinel."""
    return decode_chunks


def parse_sse_frames(body: str) -> List[str]:
    frames = []
    for block in body.split("\n\n"):
        if not block:
            continue
        assert block.startswith("data: ")
        frames.append(block[len("data: "):])
    return frames


def decode_chunks(frames: List[str]) -> List[Dict]:
    return [json.loads(frame) for frame in frames if frame != "[DONE]"]
