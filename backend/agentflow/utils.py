import json
from typing import Any

from fastapi import Request

from .errors import SizeLimitError, ValidationError


async def read_body(request: Request, *, limit: int) -> bytes:
    """Read the request body, refusing anything larger than ``limit`` bytes."""
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > limit:
        raise SizeLimitError()

    received = 0
    chunks = []
    async for chunk in request.stream():
        received += len(chunk)
        if received > limit:
            raise SizeLimitError()
        chunks.append(chunk)
    return b"".join(chunks)


async def read_json_body(request: Request, *, limit: int) -> Any:
    body = await read_body(request, limit=limit)
    if not body.strip():
        return {}
    try:
        return json.loads(body)
    except ValueError:
        raise ValidationError("Invalid JSON body")
