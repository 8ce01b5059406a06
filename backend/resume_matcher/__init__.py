"""
Resume Matcher Package v1.0
============================
Resume / job-description matching service.

Architecture:
- config.py        → Settings, limits, env overrides
- models.py        → Pydantic models (stored documents, API contracts)
- errors.py        → Error taxonomy with HTTP status mapping
- store.py         → User store (Postgres JSONB or in-memory)
- security.py      → bcrypt hashing, JWT signing
- auth.py          → Signup / login / per-request authentication
- ingestion.py     → PDF → text with upload limits
- llm.py           → External model client (Gemini or Groq)
- prompts.py       → Prompt templates
- decoder.py       → Strict decoding of model replies
- pipeline.py      → Keyword analysis and roadmap curation
- retry.py         → Bounded regenerate-until-valid decorator
- resources.py     → Video link validation via oEmbed
- metrics.py       → In-memory counters and histograms
- presentation.py  → Client store, view models, page flow
- client.py        → HTTP client driving the page flow
- main.py          → FastAPI application (HTTP layer)
"""

from .config import Settings, load_settings
from .errors import (
    AuthError,
    TokenError,
    ConflictError,
    ExternalServiceError,
    ExtractionError,
    MalformedResponseError,
    MatcherError,
    NotFoundError,
    PayloadTooLargeError,
    ServerError,
    UnsupportedFormatError,
    ValidationError,
)
from .models import Analysis, AnalysisResult, AnalysisStatus, LearningResources, User
from .auth import AuthService
from .ingestion import extract_text
from .pipeline import AnalysisPipeline
from .retry import regenerate_until_valid
from .store import InMemoryUserStore, PostgresUserStore, UserStore
from .presentation import AnalysisStore, MatchView, RoadmapView, SuggestionsView

__all__ = [
    "Settings",
    "load_settings",
    "AuthError",
    "TokenError",
    "ConflictError",
    "ExternalServiceError",
    "ExtractionError",
    "MalformedResponseError",
    "MatcherError",
    "NotFoundError",
    "PayloadTooLargeError",
    "ServerError",
    "UnsupportedFormatError",
    "ValidationError",
    "Analysis",
    "AnalysisResult",
    "AnalysisStatus",
    "LearningResources",
    "User",
    "AuthService",
    "extract_text",
    "AnalysisPipeline",
    "regenerate_until_valid",
    "InMemoryUserStore",
    "PostgresUserStore",
    "UserStore",
    "AnalysisStore",
    "MatchView",
    "RoadmapView",
    "SuggestionsView",
]
