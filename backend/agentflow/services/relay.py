import json
import logging
from typing import Any, Optional

import httpx
import openai
from openai import AsyncOpenAI

from ..config import Settings
from ..errors import ConfigurationError, TransportError, UpstreamError
from ..formatting import normalize_content

logger = logging.getLogger(__name__)

MISSING_KEY_MESSAGE = "Server missing OPENAI_API_KEY. Set it in your environment."


def build_client(settings: Settings, http_client: Optional[httpx.AsyncClient] = None) -> AsyncOpenAI:
    if not settings.openai_api_key:
        raise ConfigurationError(MISSING_KEY_MESSAGE)
    # No retries: every upstream failure is terminal for the submission
    return AsyncOpenAI(
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url,
        max_retries=0,
        http_client=http_client,
    )


def upstream_message(status_code: int, error: Any) -> str:
    detail = error if isinstance(error, str) else json.dumps(error, ensure_ascii=False, default=str)
    return f"OpenAI API error ({status_code}): {detail}"


def extract_message_content(data: Any) -> Any:
    if not isinstance(data, dict):
        return None
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return None
    message = choices[0].get("message")
    if not isinstance(message, dict):
        return None
    return message.get("content")


async def relay_chat_completion(payload: Any, *, client: Optional[AsyncOpenAI]) -> str:
    """Forward ``payload`` to the chat-completion endpoint and return the normalized message text.

    The body is sent exactly as received; only the bearer credential is added.
    Upstream failures keep their status code and error payload. ``client`` is
    None when no API key is configured.
    """
    if client is None:
        raise ConfigurationError(MISSING_KEY_MESSAGE)
    try:
        response = await client.post("/chat/completions", cast_to=httpx.Response, body=payload)
    except openai.APIStatusError as exc:
        logger.warning("Chat completion failed upstream with status %s", exc.status_code)
        try:
            exc.response.json()
        except ValueError:
            logger.error("Chat completion returned status %s with a non-JSON body", exc.status_code)
            raise TransportError(f"Upstream returned {exc.status_code} with a non-JSON body")
        error = exc.body if exc.body is not None else exc.message
        raise UpstreamError(upstream_message(exc.status_code, error), status_code=exc.status_code, payload=error)
    except openai.APIError as exc:
        logger.exception("Chat completion request failed")
        raise TransportError(str(exc))

    try:
        data = response.json()
    except (ValueError, RecursionError):
        logger.exception("Chat completion returned a non-JSON body")
        raise TransportError("Upstream returned invalid JSON")
    return normalize_content(extract_message_content(data))
