"""
Model Reply Decoder
====================
Strict, schema-validating decoding of external model replies.

Decoders never raise. They return either `Decoded(value)` or
`DecodeFailure(reason)`; the caller decides what a failure means.

Steps for every reply:
1. Collect `{ ... }` spans (first opening brace to last closing brace):
   inside the first code fence, then across the whole reply
2. json.loads the first span that parses
3. Reject it unless it is an object
4. Validate the shape with a pydantic payload model
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Generic, List, Optional, TypeVar, Union

from pydantic import BaseModel, StrictStr, ValidationError, field_validator

from .config import MAX_CERTIFIED_COURSES, MAX_FREE_RESOURCES
from .models import (
    AnalysisResult,
    Course,
    FreeResource,
    LearningResources,
    Recommendation,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)
_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


@dataclass(frozen=True)
class Decoded(Generic[T]):
    value: T
    ok = True


@dataclass(frozen=True)
class DecodeFailure:
    reason: str
    ok = False


DecodeResult = Union[Decoded[T], DecodeFailure]


# ── Payload schemas (wire shape of the model's JSON) ──────────────

class _RecommendationPayload(BaseModel):
    explanation: StrictStr
    snippet: Optional[StrictStr] = ""


class _AnalysisPayload(BaseModel):
    matched_keywords: List[StrictStr]
    missing_keywords: List[StrictStr]
    recommendations: List[Union[StrictStr, _RecommendationPayload]]


class _ResourceFields(BaseModel):
    """Optional text fields; models sometimes send numbers for duration/price."""

    @field_validator("*", mode="before")
    @classmethod
    def _numbers_as_text(cls, v):
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        if v is None:
            return ""
        return v


class _CoursePayload(_ResourceFields):
    title: StrictStr
    provider: StrictStr = ""
    url: StrictStr = ""
    duration: StrictStr = ""
    level: StrictStr = ""
    price: StrictStr = ""


class _FreeResourcePayload(_ResourceFields):
    title: StrictStr
    creator: StrictStr = ""
    platform: StrictStr = ""
    url: StrictStr = ""
    duration: StrictStr = ""


class _LearningPayload(BaseModel):
    skillsToLearn: List[StrictStr]
    certifiedCourses: List[_CoursePayload]
    freeResources: List[_FreeResourcePayload]


# ── Helpers ───────────────────────────────────────────────────────

def _json_spans(text: str) -> List[str]:
    """Candidate `{...}` spans: the fenced block's first, then the whole reply's."""
    spans = []
    if not text:
        return spans
    fenced = _FENCE_RE.search(text)
    if fenced:
        m = _OBJECT_RE.search(fenced.group(1))
        if m:
            spans.append(m.group(0))
    m = _OBJECT_RE.search(text)
    if m and m.group(0) not in spans:
        spans.append(m.group(0))
    return spans


def extract_json_span(text: str) -> Optional[str]:
    """First `{...}` span in a reply, preferring the body of a code fence."""
    spans = _json_spans(text)
    return spans[0] if spans else None


def _load_object(text: str) -> DecodeResult[dict]:
    spans = _json_spans(text)
    if not spans:
        return DecodeFailure("no JSON object in reply")
    # Backticks inside string values can cut a fenced span short
    failure = None
    for span in spans:
        try:
            data = json.loads(span)
        except json.JSONDecodeError as e:
            failure = DecodeFailure(f"invalid JSON: {e.msg}")
            continue
        if not isinstance(data, dict):
            return DecodeFailure("reply JSON is not an object")
        return Decoded(data)
    return failure


def _schema_failure(e: ValidationError) -> DecodeFailure:
    first = e.errors()[0]
    where = ".".join(str(p) for p in first.get("loc", ())) or "reply"
    return DecodeFailure(f"{where}: {first.get('msg', 'invalid')}")


def _unique(items: List[str]) -> List[str]:
    seen = set()
    out = []
    for item in items:
        key = item.strip()
        if key and key not in seen:
            seen.add(key)
            out.append(key)
    return out


# ── Decoders ──────────────────────────────────────────────────────

def decode_analysis(text: str) -> DecodeResult[AnalysisResult]:
    loaded = _load_object(text)
    if not loaded.ok:
        return loaded
    try:
        payload = _AnalysisPayload.model_validate(loaded.value)
    except ValidationError as e:
        return _schema_failure(e)

    recommendations = []
    for rec in payload.recommendations:
        if isinstance(rec, str):
            recommendations.append(Recommendation(explanation=rec))
        else:
            recommendations.append(
                Recommendation(explanation=rec.explanation, snippet=rec.snippet or "")
            )
    return Decoded(AnalysisResult(
        matched_keywords=_unique(payload.matched_keywords),
        missing_keywords=_unique(payload.missing_keywords),
        recommendations=recommendations,
    ))


def decode_learning_resources(text: str) -> DecodeResult[LearningResources]:
    loaded = _load_object(text)
    if not loaded.ok:
        return loaded
    try:
        payload = _LearningPayload.model_validate(loaded.value)
    except ValidationError as e:
        return _schema_failure(e)

    return Decoded(LearningResources(
        skills_to_learn=_unique(payload.skillsToLearn),
        certified_courses=[
            Course(**c.model_dump()) for c in payload.certifiedCourses[:MAX_CERTIFIED_COURSES]
        ],
        free_resources=[
            FreeResource(**r.model_dump()) for r in payload.freeResources[:MAX_FREE_RESOURCES]
        ],
    ))


def decode_free_resource(text: str) -> DecodeResult[FreeResource]:
    """A single replacement resource: either the object itself or {"resource": {...}}."""
    loaded = _load_object(text)
    if not loaded.ok:
        return loaded
    data = loaded.value
    if isinstance(data.get("resource"), dict):
        data = data["resource"]
    try:
        payload = _FreeResourcePayload.model_validate(data)
    except ValidationError as e:
        return _schema_failure(e)
    return Decoded(FreeResource(**payload.model_dump()))
