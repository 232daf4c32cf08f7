import json
from typing import Any, Optional

import httpx

from .errors import TransportError, UpstreamError
from .services.relay import extract_message_content


class ProxyClient:
    """Talks to a running AgentFlow relay the same way the browser form does."""

    def __init__(self, base_url: str, *, http_client: Optional[httpx.AsyncClient] = None):
        self.base_url = base_url.rstrip("/")
        self._http_client = http_client

    async def _post(self, path: str, body: Any) -> Any:
        client = self._http_client or httpx.AsyncClient()
        try:
            response = await client.post(f"{self.base_url}{path}", json=body)
        except httpx.HTTPError as exc:
            raise TransportError(str(exc))
        finally:
            if self._http_client is None:
                await client.aclose()

        if response.is_error:
            detail = response.text or response.reason_phrase
            raise UpstreamError(
                f"OpenAI API error ({response.status_code}): {detail}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError:
            return {}

    async def send(self, request: dict) -> str:
        data = await self._post("/api/agentflow", request)
        content = (data.get("content") if isinstance(data, dict) else None) or extract_message_content(data) or ""
        if isinstance(content, str):
            return content
        return json.dumps(content)

    async def summarize(self, url: str) -> str:
        data = await self._post("/api/summarize", {"url": url})
        summary = data.get("summary") if isinstance(data, dict) else None
        return (summary or "").strip() if isinstance(summary, str) else ""
