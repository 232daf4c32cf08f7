from typing import Mapping, Optional

import httpx
from fastapi import APIRouter, Depends, Request
from openai import AsyncOpenAI
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from ..config import Settings
from ..deps import get_classifier, get_http_client, get_llm_client, get_settings, get_templates
from ..errors import AgentFlowError, ValidationError
from ..prompts import IntentClassifier
from ..schemas import FormPayload, GenerateResponse
from ..services.composer import Composer
from ..services.relay import relay_chat_completion
from ..services.summarizer import summarize_site
from ..utils import read_json_body

router = APIRouter()


@router.post("/generate", response_model=GenerateResponse)
async def generate(
    request: Request,
    settings: Settings = Depends(get_settings),
    templates: Mapping[str, str] = Depends(get_templates),
    classifier: IntentClassifier = Depends(get_classifier),
    http_client: Optional[httpx.AsyncClient] = Depends(get_http_client),
    llm_client: Optional[AsyncOpenAI] = Depends(get_llm_client),
):
    body = await read_json_body(request, limit=settings.max_body_bytes)
    try:
        form = FormPayload.model_validate(body)
    except PydanticValidationError as exc:
        raise ValidationError(f"Invalid form: {exc.errors()[0].get('msg', 'bad input')}")

    async def _send(chat_request: dict) -> str:
        return await relay_chat_completion(chat_request, client=llm_client)

    async def _summarize(url: str) -> str:
        return await summarize_site(
            url, settings=settings, templates=templates, llm_client=llm_client, http_client=http_client
        )

    composer = Composer(
        send=_send,
        summarize=_summarize,
        templates=templates,
        model=settings.openai_model,
        classifier=classifier,
        default_variant=settings.variant,
    )
    machine = composer.new_machine(form)
    try:
        output = await composer.compose(form, machine)
    except AgentFlowError as exc:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.public_message, "sections": machine.output.as_dict()},
        )
    return GenerateResponse(variant=composer.variant_for(form), sections=output.as_dict())
