"""
Resume Matcher Models
======================
Pydantic models for stored documents, transient analysis output and API
contracts. Wire names follow the camelCase keys the web client already uses.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid4().hex


# ── Enums ─────────────────────────────────────────────────────────

class AnalysisStatus(str, Enum):
    """Declared lifecycle of a stored analysis. Nothing drives it yet."""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class UploadKind(str, Enum):
    RESUME = "resume"
    JD = "jd"


# ── Stored documents ──────────────────────────────────────────────

class DocumentPart(BaseModel):
    """One side of an analysis: the resume or the job description."""
    model_config = ConfigDict(populate_by_name=True)

    text: str = ""
    file_url: str = Field("", alias="fileUrl")
    file_type: str = Field("", alias="fileType")
    file_name: str = Field("", alias="fileName")
    uploaded_at: datetime = Field(default_factory=utcnow, alias="uploadedAt")


class Analysis(BaseModel):
    """A resume/JD pairing embedded in its owner's user document."""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=new_id, alias="_id")
    resume: DocumentPart = Field(default_factory=DocumentPart)
    job_description: DocumentPart = Field(default_factory=DocumentPart, alias="jobDescription")
    match_score: float = Field(0, alias="matchScore")
    status: AnalysisStatus = AnalysisStatus.PENDING
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class UserProfile(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    first_name: str = Field(alias="firstName")
    last_name: str = Field(alias="lastName")
    email: str


class User(BaseModel):
    """Account record. `password` always holds the bcrypt hash."""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=new_id, alias="_id")
    first_name: str = Field(alias="firstName")
    last_name: str = Field(alias="lastName")
    email: str
    phone_num: str = Field(alias="phoneNum")
    password: str
    analyses: List[Analysis] = Field(default_factory=list)

    @field_validator("phone_num", mode="before")
    @classmethod
    def _phone_as_text(cls, v):
        return str(v) if isinstance(v, int) else v

    def profile(self) -> UserProfile:
        return UserProfile(first_name=self.first_name, last_name=self.last_name, email=self.email)


# ── Transient analysis output ─────────────────────────────────────

class Recommendation(BaseModel):
    explanation: str
    snippet: str = ""


class AnalysisResult(BaseModel):
    """Keyword match produced by one model call. Never persisted."""
    matched_keywords: List[str] = Field(default_factory=list)
    missing_keywords: List[str] = Field(default_factory=list)
    recommendations: List[Recommendation] = Field(default_factory=list)


class Course(BaseModel):
    title: str
    provider: str = ""
    url: str = ""
    duration: str = ""
    level: str = ""
    price: str = ""


class FreeResource(BaseModel):
    title: str
    creator: str = ""
    platform: str = ""
    url: str = ""
    duration: str = ""


class LearningResources(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    skills_to_learn: List[str] = Field(default_factory=list, alias="skillsToLearn")
    certified_courses: List[Course] = Field(default_factory=list, alias="certifiedCourses")
    free_resources: List[FreeResource] = Field(default_factory=list, alias="freeResources")


# ── API request models ────────────────────────────────────────────
# Fields are optional so that missing input surfaces as our own 400
# instead of FastAPI's 422.

class SignUpRequest(BaseModel):
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    email: Optional[str] = None
    phoneNum: Optional[Union[int, str]] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class DocumentInput(BaseModel):
    text: Optional[str] = None
    fileUrl: str = ""
    fileType: str = ""
    fileName: str = ""


class SaveAnalysisRequest(BaseModel):
    resume: Optional[DocumentInput] = None
    jobDescription: Optional[DocumentInput] = None


class AnalyzeRequest(BaseModel):
    resumeText: Optional[str] = None
    jobDescriptionText: Optional[str] = None
    analysisId: Optional[str] = None


class RoadmapRequest(BaseModel):
    missingSkills: List[str] = Field(default_factory=list)


# ── API response models ───────────────────────────────────────────

class AuthResponse(BaseModel):
    message: str
    token: str
    user: Dict[str, str]


class AnalyzeResponse(BaseModel):
    result: AnalysisResult
    matchScore: int
    analysisId: Optional[str] = None


class HealthResponse(BaseModel):
    """API response for GET /health."""
    status: str
    service: str = "resume-matcher"
    version: str = "1.0.0"
    database: str = "unknown"
    store: str = "memory"
    llm_provider: str = ""
    llm_configured: bool = False
    metrics_summary: Dict[str, Any] = Field(default_factory=dict)
