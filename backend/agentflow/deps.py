from typing import Mapping, Optional

import httpx
from fastapi import Request
from openai import AsyncOpenAI

from .config import Settings
from .prompts import IntentClassifier


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_templates(request: Request) -> Mapping[str, str]:
    return request.app.state.templates


def get_http_client(request: Request) -> Optional[httpx.AsyncClient]:
    return request.app.state.http_client


def get_llm_client(request: Request) -> Optional[AsyncOpenAI]:
    return request.app.state.llm_client


def get_classifier(request: Request) -> IntentClassifier:
    return request.app.state.classifier
