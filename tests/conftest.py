#!/usr/bin/env python3
"""
Pytest configuration and shared fixtures
"""

import os
import re
import sys
import json
import time
import asyncio
import pytest
from unittest.mock import MagicMock, AsyncMock, patch

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from completion_client import CompletionResult
from config import MemoryConfig, OutputKind
from swarm.memory import MemoryStore


@pytest.fixture
def mock_api_key():
    """Fixture to provide a mock API key"""
    return "test_api_key_12345"


@pytest.fixture
def mock_env_with_key(mock_api_key):
    """Fixture to set up environment with mock API key"""
    with patch.dict(os.environ, {"FLOW_STUDIO_API_KEY": mock_api_key}, clear=False):
        yield mock_api_key


@pytest.fixture
def mock_openai_client(mock_env_with_key):
    """Fixture to provide a mocked AsyncOpenAI client"""
    with patch('completion_client.AsyncOpenAI') as mock_async:
        mock_async_instance = MagicMock()
        mock_async_instance.chat.completions.create = AsyncMock()
        mock_async.return_value = mock_async_instance

        yield {
            'async': mock_async_instance,
            'async_class': mock_async,
            'create': mock_async_instance.chat.completions.create,
        }


def make_chat_response(content, finish_reason="stop"):
    """Build a chat completion response object"""
    mock_response = MagicMock()
    mock_response.choices = [MagicMock()]
    mock_response.choices[0].message.content = content
    mock_response.choices[0].finish_reason = finish_reason
    mock_response.usage = MagicMock()
    mock_response.usage.prompt_tokens = 10
    mock_response.usage.completion_tokens = 5
    mock_response.usage.total_tokens = 15
    mock_response.model = "gpt-4o"
    return mock_response


@pytest.fixture
def sample_chat_response():
    """Fixture to provide a sample chat completion response"""
    return make_chat_response("Test response")


@pytest.fixture
def memory_store(tmp_path):
    """Memory store writing into a temporary directory"""
    return MemoryStore(MemoryConfig(memory_dir=str(tmp_path / "memory")))


def prompt_context(request):
    """Decode the JSON context block an agent embedded in its prompt"""
    if "Context:\n" not in request.prompt:
        return {}
    body = request.prompt.split("Context:\n", 1)[1]
    return json.loads(body.split("\n\n", 1)[0])


class ScriptedClient:
    """
    Completion client double keyed by agent name.

    responses maps an agent name ("Stylist") to a reply value, a callable
    taking the request, or an exception to raise.
    """

    def __init__(self, responses=None, delay=0.0):
        self.responses = responses or {}
        self.delay = delay
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0

    @staticmethod
    def agent_name(request):
        match = re.match(r"You are (\w+),", request.system_prompt or "")
        return match.group(1) if match else ""

    async def send(self, request):
        name = self.agent_name(request)
        call = {"agent": name, "request": request, "start": time.monotonic(), "end": None}
        self.calls.append(call)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)

        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            reply = self.responses.get(name, f"{name} response")
            if isinstance(reply, Exception):
                raise reply
            if callable(reply):
                reply = reply(request)
        finally:
            self.in_flight -= 1
            call["end"] = time.monotonic()

        usage = {"prompt_tokens": 3, "completion_tokens": 2, "total_tokens": 5}
        if request.output is OutputKind.STRUCTURED:
            return CompletionResult(
                text=json.dumps(reply), parsed=reply, usage=usage,
                output=OutputKind.STRUCTURED,
            )
        return CompletionResult(text=str(reply), usage=usage, output=OutputKind.TEXT)

    def calls_for(self, name):
        return [c for c in self.calls if c["agent"] == name]


@pytest.fixture
def scripted_client():
    """Factory for ScriptedClient instances"""
    return ScriptedClient
