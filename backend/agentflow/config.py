import logging
import os
import pathlib
from dataclasses import dataclass, field
from typing import List, Optional

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

BACKEND_ROOT = pathlib.Path(__file__).resolve().parents[1]

DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_BASE_URL = "https://api.openai.com/v1"
VARIANTS = ("basic", "extended")


@dataclass(frozen=True)
class Settings:
    openai_api_key: Optional[str]
    openai_model: str = DEFAULT_MODEL
    openai_base_url: str = DEFAULT_BASE_URL
    host: str = "0.0.0.0"
    port: int = 3000
    cors_allow_origins: List[str] = field(default_factory=lambda: ["*"])
    max_body_bytes: int = 1_000_000
    site_fetch_timeout: float = 7.0
    site_fetch_limit: int = 15_000
    site_text_limit: int = 8_000
    variant: str = "extended"
    prompts: dict = field(default_factory=dict)


def load_env_file(path: Optional[str] = None) -> bool:
    """Load key=value pairs from a .env file without overriding the environment."""
    if os.getenv("DOTENV_DISABLED", "false").lower() in {"1", "true", "yes"}:
        return False
    dotenv_path = path or str(BACKEND_ROOT / ".env")
    if not os.path.isfile(dotenv_path):
        dotenv_path = None
    # Falls back to searching from the working directory when no backend/.env exists
    return load_dotenv(dotenv_path=dotenv_path, override=False)


def load_settings() -> Settings:
    cors_env = os.getenv("CORS_ALLOW_ORIGINS", "*")
    cors = [o.strip() for o in cors_env.split(",") if o.strip()] or ["*"]

    variant = os.getenv("AGENTFLOW_VARIANT", "extended").strip().lower()
    if variant not in VARIANTS:
        logger.warning("Unknown AGENTFLOW_VARIANT %r; using 'extended'", variant)
        variant = "extended"

    return Settings(
        openai_api_key=os.getenv("OPENAI_API_KEY") or None,
        openai_model=os.getenv("OPENAI_MODEL", DEFAULT_MODEL),
        openai_base_url=os.getenv("OPENAI_BASE_URL", DEFAULT_BASE_URL),
        host=os.getenv("HOST", "0.0.0.0"),
        port=_int_env("PORT", 3000),
        cors_allow_origins=cors,
        max_body_bytes=_int_env("MAX_BODY_BYTES", 1_000_000),
        site_fetch_timeout=_float_env("SITE_FETCH_TIMEOUT", 7.0),
        site_fetch_limit=_int_env("SITE_FETCH_LIMIT", 15_000),
        site_text_limit=_int_env("SITE_TEXT_LIMIT", 8_000),
        variant=variant,
        prompts=_load_prompts(os.getenv("AGENTFLOW_PROMPTS")),
    )


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    try:
        return float(raw) if raw else default
    except ValueError:
        return default


def _load_prompts(path: Optional[str] = None) -> dict:
    # Template overrides live in prompts.yml in the backend root unless AGENTFLOW_PROMPTS says otherwise
    prompts_path = pathlib.Path(path) if path else BACKEND_ROOT / "prompts.yml"
    try:
        with open(prompts_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        return {}
    except (OSError, yaml.YAMLError):
        logger.exception("Failed to read prompt overrides from %s", prompts_path)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring prompt overrides in %s: expected a mapping", prompts_path)
        return {}
    return data
