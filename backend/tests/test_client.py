import asyncio
import json

import httpx
import pytest

from agentflow.client import ProxyClient
from agentflow.errors import TransportError, UpstreamError
from agentflow.prompts import build_template_set
from agentflow.schemas import FormPayload
from agentflow.services.composer import Composer
from conftest import completion

BASE = "http://agentflow.local:3000"


def run_with(handler, coro_fn):
    async def _run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
            return await coro_fn(ProxyClient(BASE + "/", http_client=http_client))

    return asyncio.run(_run())


def test_send_posts_to_relay_and_returns_content():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"content": "spec text"})

    result = run_with(handler, lambda c: c.send({"model": "m", "messages": []}))

    assert result == "spec text"
    assert str(seen[0].url) == BASE + "/api/agentflow"
    assert json.loads(seen[0].content) == {"model": "m", "messages": []}


def test_send_falls_back_to_raw_completion_shape():
    handler = lambda request: httpx.Response(200, json=completion({"main_instruction": "x"}))
    assert run_with(handler, lambda c: c.send({})) == '{"main_instruction": "x"}'


def test_send_error_carries_status_and_body():
    handler = lambda request: httpx.Response(403, json={"error": "bad key"})

    with pytest.raises(UpstreamError) as info:
        run_with(handler, lambda c: c.send({}))

    assert info.value.status_code == 403
    assert info.value.message.startswith("OpenAI API error (403): ")
    assert json.loads(info.value.message.split(": ", 1)[1]) == {"error": "bad key"}


def test_send_connection_failure():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(TransportError):
        run_with(handler, lambda c: c.send({}))


def test_summarize_returns_trimmed_summary():
    seen = []

    def handler(request):
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"summary": "  Acme sells widgets. "})

    assert run_with(handler, lambda c: c.summarize("https://acme.example")) == "Acme sells widgets."
    assert seen == [{"url": "https://acme.example"}]


def test_composer_over_proxy_client():
    def handler(request):
        if request.url.path == "/api/summarize":
            return httpx.Response(400, json={"error": "Invalid URL protocol"})
        return httpx.Response(200, json={"content": "ok"})

    async def _compose(client):
        composer = Composer(
            send=client.send,
            summarize=client.summarize,
            templates=build_template_set(),
            model="gpt-4o-mini",
        )
        return await composer.compose(FormPayload(main_goal="Support", business_url="https://acme.example"))

    output = run_with(handler, _compose)

    assert output["main"] == "ok"
