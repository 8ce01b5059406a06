"""
Resume Matcher Configuration
=============================
Centralized configuration with environment variable overrides.
Secrets, limits, model names and feature flags live here.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Tuple

from dotenv import load_dotenv

backend_root = Path(__file__).parent.parent
env_path = backend_root / ".env"


ALLOWED_UPLOAD_TYPES = ("application/pdf",)
UPLOAD_KINDS = ("resume", "jd")

# ATS strength bands used by the match view (lower bound → label)
STRENGTH_BANDS: Tuple[Tuple[int, str], ...] = (
    (80, "Excellent"),
    (60, "Good"),
    (40, "Fair"),
    (0, "Weak"),
)

# Upper bounds the roadmap prompt asks the model for
MAX_CERTIFIED_COURSES = 5
MAX_FREE_RESOURCES = 7

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"


@dataclass(frozen=True)
class Settings:
    """Tuning knobs and credentials for the API service."""

    # Auth
    jwt_secret: str = "your-secret-key-change-in-production"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60          # No refresh: expiry forces re-login
    bcrypt_rounds: int = 10

    # Uploads
    max_upload_bytes: int = 5 * 1024 * 1024
    allowed_upload_types: Tuple[str, ...] = ALLOWED_UPLOAD_TYPES

    # Storage (empty = in-memory degraded mode)
    database_url: str = ""

    # External model
    llm_provider: str = "gemini"          # gemini | groq
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.0-flash"
    groq_api_key: str = ""
    groq_model: str = "llama-3.3-70b-versatile"
    llm_timeout_seconds: float = 60.0
    llm_temperature: float = 0.2

    # Learning-resource link validation
    validate_video_links: bool = True
    max_link_regenerations: int = 2
    oembed_url: str = "https://www.youtube.com/oembed"
    link_check_timeout_seconds: float = 5.0

    # HTTP
    allowed_origins: Tuple[str, ...] = field(default=("*",))


def _as_bool(val: str) -> bool:
    return val.strip().lower() in ("1", "true", "yes", "on")


def _as_origins(val: str) -> Tuple[str, ...]:
    origins = tuple(o.strip() for o in val.split(",") if o.strip())
    return origins or ("*",)


def load_settings() -> Settings:
    """Load settings with environment variable overrides."""
    load_dotenv(dotenv_path=env_path)
    overrides = {}
    env_map = {
        "JWT_SECRET": ("jwt_secret", str),
        "JWT_ALGORITHM": ("jwt_algorithm", str),
        "JWT_EXPIRE_MINUTES": ("jwt_expire_minutes", int),
        "BCRYPT_ROUNDS": ("bcrypt_rounds", int),
        "MAX_UPLOAD_BYTES": ("max_upload_bytes", int),
        "DATABASE_URL": ("database_url", str),
        "LLM_PROVIDER": ("llm_provider", lambda v: v.strip().lower()),
        "GEMINI_API_KEY": ("gemini_api_key", str),
        "GEMINI_MODEL": ("gemini_model", str),
        "GROQ_API_KEY": ("groq_api_key", str),
        "GROQ_MODEL": ("groq_model", str),
        "LLM_TIMEOUT_SECONDS": ("llm_timeout_seconds", float),
        "LLM_TEMPERATURE": ("llm_temperature", float),
        "VALIDATE_VIDEO_LINKS": ("validate_video_links", _as_bool),
        "MAX_LINK_REGENERATIONS": ("max_link_regenerations", int),
        "OEMBED_URL": ("oembed_url", str),
        "ALLOWED_ORIGINS": ("allowed_origins", _as_origins),
    }
    for env_key, (field_name, cast_fn) in env_map.items():
        val = os.getenv(env_key)
        if val is not None:
            try:
                overrides[field_name] = cast_fn(val)
            except (ValueError, TypeError):
                pass
    return Settings(**overrides)
