"""
Presentation Layer
===================
Client-side state and view models for the page sequence

    Landing → Login/Signup → Upload → Match → Suggestions → Roadmap

State lives in one explicit `AnalysisStore` that is handed to every view,
holding a single typed `CurrentAnalysis`. Writing new resume or JD text
invalidates whatever result and roadmap were cached for the old pair, and a
cached result is always tied to the analysis id it was computed for.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from .config import STRENGTH_BANDS
from .models import AnalysisResult, Course, FreeResource, LearningResources, Recommendation

logger = logging.getLogger(__name__)


class NoAnalysisError(Exception):
    """A view needs an analysis and the store has none."""

    def __init__(self, message: str = "No analysis found. Upload a resume and job description first."):
        self.message = message
        super().__init__(message)


# ── Scoring ───────────────────────────────────────────────────────

def match_score(result: AnalysisResult) -> int:
    """Share of relevant keywords the resume already covers, 0–100."""
    matched = len(result.matched_keywords)
    total = matched + len(result.missing_keywords)
    if total == 0:
        return 0
    return round(100 * matched / total)


def strength_label(score: int) -> str:
    for lower_bound, label in STRENGTH_BANDS:
        if score >= lower_bound:
            return label
    return STRENGTH_BANDS[-1][1]


# ── Store ─────────────────────────────────────────────────────────

@dataclass
class CurrentAnalysis:
    resume_text: str = ""
    job_description_text: str = ""
    analysis_id: Optional[str] = None
    result: Optional[AnalysisResult] = None
    resources: Optional[LearningResources] = None

    @property
    def ready(self) -> bool:
        return bool(self.resume_text.strip() and self.job_description_text.strip())


class AnalysisStore:

    def __init__(self):
        self.token: Optional[str] = None
        self.profile: Dict[str, str] = {}
        self._current: Optional[CurrentAnalysis] = None

    # Session

    @property
    def authenticated(self) -> bool:
        return self.token is not None

    def sign_in(self, token: str, profile: Dict[str, str]):
        self.token = token
        self.profile = dict(profile)

    def sign_out(self):
        self.token = None
        self.profile = {}
        self._current = None

    # Current analysis

    @property
    def current(self) -> Optional[CurrentAnalysis]:
        return self._current

    def _ensure_current(self) -> CurrentAnalysis:
        if self._current is None:
            self._current = CurrentAnalysis()
        return self._current

    def _invalidate(self):
        current = self._ensure_current()
        current.analysis_id = None
        current.result = None
        current.resources = None

    def set_resume_text(self, text: str):
        self._invalidate()
        self._current.resume_text = text

    def set_job_description_text(self, text: str):
        self._invalidate()
        self._current.job_description_text = text

    def set_analysis_id(self, analysis_id: str):
        current = self._ensure_current()
        if current.analysis_id != analysis_id:
            current.result = None
            current.resources = None
        current.analysis_id = analysis_id

    def cache_result(self, result: AnalysisResult, analysis_id: Optional[str]):
        current = self.require_current()
        if analysis_id != current.analysis_id:
            logger.info("Discarding result computed for a different analysis")
            return
        current.result = result
        current.resources = None

    def cache_resources(self, resources: LearningResources):
        self.require_current().resources = resources

    def require_current(self) -> CurrentAnalysis:
        if self._current is None or not self._current.ready:
            raise NoAnalysisError()
        return self._current


# ── View models ───────────────────────────────────────────────────

@dataclass
class MatchView:
    score: int
    strength: str
    matched_keywords: List[str]
    missing_keywords: List[str]

    @classmethod
    def from_result(cls, result: AnalysisResult) -> "MatchView":
        score = match_score(result)
        return cls(
            score=score,
            strength=strength_label(score),
            matched_keywords=list(result.matched_keywords),
            missing_keywords=list(result.missing_keywords),
        )


@dataclass
class SuggestionsView:
    recommendations: List[Recommendation]
    missing_keywords: List[str]

    @classmethod
    def from_result(cls, result: AnalysisResult) -> "SuggestionsView":
        return cls(
            recommendations=list(result.recommendations),
            missing_keywords=list(result.missing_keywords),
        )


@dataclass
class RoadmapView:
    skills_to_learn: List[str] = field(default_factory=list)
    certified_courses: List[Course] = field(default_factory=list)
    free_resources: List[FreeResource] = field(default_factory=list)

    @classmethod
    def from_resources(cls, resources: LearningResources) -> "RoadmapView":
        return cls(
            skills_to_learn=list(resources.skills_to_learn),
            certified_courses=list(resources.certified_courses),
            free_resources=list(resources.free_resources),
        )


# ── Page flow ─────────────────────────────────────────────────────

class View(str, Enum):
    LANDING = "landing"
    LOGIN = "login"
    SIGNUP = "signup"
    UPLOAD = "upload"
    MATCH = "match"
    SUGGESTIONS = "suggestions"
    ROADMAP = "roadmap"


PUBLIC_VIEWS = {View.LANDING, View.LOGIN, View.SIGNUP}
ANALYSIS_VIEWS = {View.MATCH, View.SUGGESTIONS, View.ROADMAP}

NEXT_VIEW = {
    View.LANDING: View.LOGIN,
    View.LOGIN: View.UPLOAD,
    View.SIGNUP: View.UPLOAD,
    View.UPLOAD: View.MATCH,
    View.MATCH: View.SUGGESTIONS,
    View.SUGGESTIONS: View.ROADMAP,
    View.ROADMAP: View.ROADMAP,
}


def resolve_view(requested: View, store: AnalysisStore) -> View:
    """The view that should actually render for a navigation request."""
    if requested in PUBLIC_VIEWS:
        return requested
    if not store.authenticated:
        return View.LOGIN
    if requested in ANALYSIS_VIEWS and (store.current is None or not store.current.ready):
        return View.UPLOAD
    return requested
