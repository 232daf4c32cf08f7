from typing import Mapping, Optional

import httpx
from fastapi import APIRouter, Depends, Request
from openai import AsyncOpenAI
from pydantic import ValidationError as PydanticValidationError

from ..config import Settings
from ..deps import get_http_client, get_llm_client, get_settings, get_templates
from ..errors import ValidationError
from ..schemas import SummarizeRequest
from ..services.relay import relay_chat_completion
from ..services.summarizer import summarize_site
from ..utils import read_json_body

router = APIRouter()


@router.post("/agentflow")
async def agentflow(
    request: Request,
    settings: Settings = Depends(get_settings),
    http_client: Optional[httpx.AsyncClient] = Depends(get_http_client),
    llm_client: Optional[AsyncOpenAI] = Depends(get_llm_client),
):
    payload = await read_json_body(request, limit=settings.max_body_bytes)
    content = await relay_chat_completion(payload, client=llm_client)
    return {"content": content}


@router.post("/summarize")
async def summarize(
    request: Request,
    settings: Settings = Depends(get_settings),
    templates: Mapping[str, str] = Depends(get_templates),
    http_client: Optional[httpx.AsyncClient] = Depends(get_http_client),
    llm_client: Optional[AsyncOpenAI] = Depends(get_llm_client),
):
    body = await read_json_body(request, limit=settings.max_body_bytes)
    try:
        data = SummarizeRequest.model_validate(body)
    except PydanticValidationError:
        raise ValidationError("Missing url")
    summary = await summarize_site(
        data.url, settings=settings, templates=templates, llm_client=llm_client, http_client=http_client
    )
    return {"summary": summary}
