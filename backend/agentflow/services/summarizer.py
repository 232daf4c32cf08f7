import asyncio
import logging
import re
from typing import Mapping, Optional

import httpx
from bs4 import BeautifulSoup
from openai import AsyncOpenAI

from ..config import Settings
from ..errors import ConfigurationError, TransportError, ValidationError
from ..prompts import build_summary_request
from .relay import MISSING_KEY_MESSAGE, relay_chat_completion

logger = logging.getLogger(__name__)

USER_AGENT = "AgentFlow/1.0"

_SPACE_RE = re.compile(r"\s+")


def validate_url(url: Optional[str]) -> str:
    if not url or not str(url).strip():
        raise ValidationError("Missing url")
    try:
        parsed = httpx.URL(str(url).strip())
    except httpx.InvalidURL:
        raise ValidationError("Invalid URL")
    if parsed.scheme not in ("http", "https"):
        raise ValidationError("Invalid URL protocol")
    if not parsed.host:
        raise ValidationError("Invalid URL")
    return str(parsed)


def strip_html(html: str) -> str:
    if not html:
        return ""
    soup = BeautifulSoup(html, "lxml")
    for tag in soup(["script", "style"]):
        tag.decompose()
    return _SPACE_RE.sub(" ", soup.get_text(" ")).strip()


async def _read_text(client: httpx.AsyncClient, url: str, limit: int) -> str:
    async with client.stream("GET", url, headers={"User-Agent": USER_AGENT}) as response:
        if response.is_error:
            raise TransportError(f"Fetch failed {response.status_code}")
        text = ""
        async for chunk in response.aiter_text():
            text += chunk
            if len(text) >= limit:
                break
    return text[:limit]


async def fetch_text_with_limit(
    url: str,
    *,
    limit: int,
    timeout: float,
    http_client: Optional[httpx.AsyncClient] = None,
) -> str:
    """Fetch at most ``limit`` characters of ``url``, giving up after ``timeout`` seconds overall."""
    try:
        if http_client is not None:
            return await asyncio.wait_for(_read_text(http_client, url, limit), timeout)
        async with httpx.AsyncClient(follow_redirects=True) as client:
            return await asyncio.wait_for(_read_text(client, url, limit), timeout)
    except asyncio.TimeoutError:
        raise TransportError(f"Fetch timed out after {timeout:g}s")
    except httpx.HTTPError as exc:
        raise TransportError(f"Fetch failed: {exc}")


async def summarize_site(
    url: Optional[str],
    *,
    settings: Settings,
    templates: Mapping[str, str],
    llm_client: Optional[AsyncOpenAI],
    http_client: Optional[httpx.AsyncClient] = None,
) -> str:
    target = validate_url(url)
    if llm_client is None:
        raise ConfigurationError(MISSING_KEY_MESSAGE)
    page = await fetch_text_with_limit(
        target,
        limit=settings.site_fetch_limit,
        timeout=settings.site_fetch_timeout,
        http_client=http_client,
    )
    text = strip_html(page)[: settings.site_text_limit]
    logger.info("Summarizing %s (%d characters of page text)", target, len(text))
    request = build_summary_request(text, templates, model=settings.openai_model)
    summary = await relay_chat_completion(request, client=llm_client)
    return summary.strip()
