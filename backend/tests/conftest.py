import json
import pathlib
import sys
from typing import Callable, Dict, List, Optional

import httpx
import pytest

BASE_DIR = pathlib.Path(__file__).resolve().parents[1]
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

from fastapi.testclient import TestClient  # noqa: E402

from agentflow.app import create_app  # noqa: E402
from agentflow.config import Settings  # noqa: E402

UPSTREAM_BASE = "https://llm.example.test/v1"


def completion(content) -> dict:
    return {"choices": [{"index": 0, "message": {"role": "assistant", "content": content}}]}


def echo_first_line(request: httpx.Request) -> httpx.Response:
    """Answers each chat request with the first line of its user message."""
    body = json.loads(request.content)
    first_line = body["messages"][-1]["content"].splitlines()[0]
    return httpx.Response(200, json=completion(f"answer to {first_line}"))


class FakeUpstream:
    """Stands in for the chat-completion API and any fetched web pages."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.chat_handler: Callable[[httpx.Request], httpx.Response] = echo_first_line
        self.pages: Dict[str, httpx.Response] = {}

    def handler(self, request: httpx.Request):
        self.requests.append(request)
        if request.url.path.endswith("/chat/completions"):
            return self.chat_handler(request)
        page = self.pages.get(str(request.url))
        if page is None:
            return httpx.Response(404, text="not found")
        return page

    @property
    def chat_calls(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith("/chat/completions")]

    def chat_bodies(self) -> List[dict]:
        return [json.loads(r.content) for r in self.chat_calls]

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


def make_settings(**overrides) -> Settings:
    values = dict(openai_api_key="test-key", openai_base_url=UPSTREAM_BASE)
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def make_client(upstream):
    def _make(settings: Optional[Settings] = None, **overrides) -> TestClient:
        app = create_app(settings or make_settings(**overrides), http_client=upstream.client())
        return TestClient(app)

    return _make


@pytest.fixture
def client(make_client) -> TestClient:
    return make_client()
