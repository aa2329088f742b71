"""
PyTest configuration and fixtures
"""
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx
import pytest

# Add parent directory to path
sys.path.append(str(Path(__file__).parent.parent))

# Disable logging during tests
logging.getLogger().setLevel(logging.WARNING)

from cgpt import cli
from cgpt.config import get_settings
from cgpt.services.chat_client import ChatClient

ENV_VARS = [
    "CGPT_TOKEN",
    "OPENAI_API_KEY",
    "CGPT_MODEL",
    "CGPT_TIMEOUT",
    "SAVE_PATH",
    "CGPT_CONFIG_PATH",
    "LOG_DIR",
    "LOG_LEVEL",
]


def make_completion(*contents: str, completion_id: str = "chatcmpl-test") -> Dict[str, Any]:
    """Build a chat completion body with one assistant choice per content"""
    return {
        "id": completion_id,
        "object": "chat.completion",
        "created": 1700000000,
        "model": "gpt-3.5-turbo-0613",
        "choices": [
            {
                "index": i,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
            for i, content in enumerate(contents)
        ],
        "usage": {"prompt_tokens": 9, "completion_tokens": 12, "total_tokens": 21},
    }


class FakeAPI:
    """
    Stand-in for the completions endpoint
    Records every request and answers with the queued body, status or exception
    """

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.status_code = 200
        self.body: Any = make_completion("Hi there")
        self.error: Optional[Exception] = None

    def reply(self, *contents: str) -> None:
        self.status_code = 200
        self.body = make_completion(*contents)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if isinstance(self.body, (bytes, str)):
            return httpx.Response(self.status_code, content=self.body)
        return httpx.Response(self.status_code, json=self.body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def sent_payloads(self) -> List[Dict[str, Any]]:
        return [json.loads(r.content) for r in self.requests]

    @property
    def sent_messages(self) -> List[Dict[str, str]]:
        return self.sent_payloads[-1]["messages"]


@pytest.fixture
def fake_api():
    """Fake completions endpoint"""
    return FakeAPI()


@pytest.fixture
def client(fake_api):
    """Chat client wired to the fake endpoint"""
    return ChatClient("test-token", transport=fake_api.transport)


@pytest.fixture
def cli_env(tmp_path, monkeypatch, fake_api):
    """
    Isolated environment for CLI runs: everything lives under tmp_path
    and the CLI's client talks to the fake endpoint
    """
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)

    paths = {
        "save_dir": tmp_path / "chats",
        "config": tmp_path / "config" / "config.json",
        "log_dir": tmp_path / "logs",
    }
    monkeypatch.setenv("CGPT_TOKEN", "test-token")
    monkeypatch.setenv("SAVE_PATH", str(paths["save_dir"]))
    monkeypatch.setenv("CGPT_CONFIG_PATH", str(paths["config"]))
    monkeypatch.setenv("LOG_DIR", str(paths["log_dir"]))
    monkeypatch.chdir(tmp_path)

    def _create_client(settings, token):
        return ChatClient(token, model=settings.CGPT_MODEL, transport=fake_api.transport)

    monkeypatch.setattr(cli, "create_client", _create_client)

    get_settings.cache_clear()
    yield paths
    get_settings.cache_clear()
