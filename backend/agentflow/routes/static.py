import logging
import pathlib

from fastapi import APIRouter
from fastapi.responses import JSONResponse, Response

logger = logging.getLogger(__name__)

STATIC_DIR = pathlib.Path(__file__).resolve().parents[1] / "static"

ROUTES = {
    "/": "index.html",
    "/index.html": "index.html",
    "/styles.css": "styles.css",
    "/agentflow.js": "agentflow.js",
}

CONTENT_TYPES = {
    ".html": "text/html",
    ".css": "text/css",
    ".js": "application/javascript",
}

router = APIRouter()


def serve_file(filename: str, static_dir: pathlib.Path = STATIC_DIR) -> Response:
    path = static_dir / filename
    content_type = CONTENT_TYPES.get(path.suffix, "text/plain")
    try:
        content = path.read_bytes()
    except OSError:
        logger.exception("Static serve error for %s", path)
        return JSONResponse(status_code=500, content={"error": "Failed to load file."})
    return Response(content=content, media_type=content_type)


def _make_endpoint(filename: str):
    async def endpoint() -> Response:
        return serve_file(filename)

    return endpoint


for _path, _filename in ROUTES.items():
    router.add_api_route(_path, _make_endpoint(_filename), methods=["GET"], include_in_schema=False)
