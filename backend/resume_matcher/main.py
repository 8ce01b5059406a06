"""
Resume Matcher API
===================
Accounts, PDF ingestion, analysis records and the model-backed analysis
endpoints.

  POST /SignUp                          create account → token
  POST /login                           credentials → token
  GET  /me                              profile of the token's user
  POST /api/upload/extract-text         PDF → text, appended as an analysis
  POST /api/upload/extract-text-only    PDF → text, nothing stored
  GET  /api/upload/analyses             caller's analysis history
  POST /api/upload/save-analysis        store a resume/JD pair
  POST /api/analysis/submit             store a resume/JD pair (legacy shape)
  GET  /api/analysis/my-analyses        caller's history (legacy shape)
  POST /api/analysis/analyze            keyword match via the external model
  POST /api/analysis/roadmap            learning resources for missing skills

Storage: Postgres when DATABASE_URL is set, otherwise an in-memory store
(degraded mode; data is lost on restart).
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

import httpx
from fastapi import Depends, FastAPI, File, Query, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from starlette.concurrency import run_in_threadpool

from .auth import AuthService
from .config import UPLOAD_KINDS, Settings, load_settings
from .errors import MatcherError, NotFoundError, ValidationError
from .ingestion import check_declared_size, check_upload, extract_pdf_text
from .llm import LLMClient
from .metrics import MetricsCollector
from .models import (
    Analysis,
    AnalyzeRequest,
    AnalyzeResponse,
    DocumentInput,
    DocumentPart,
    HealthResponse,
    LoginRequest,
    RoadmapRequest,
    SaveAnalysisRequest,
    SignUpRequest,
    User,
)
from .pipeline import AnalysisPipeline
from .presentation import match_score
from .resources import LinkValidator
from .store import InMemoryUserStore, PostgresUserStore, UserStore, create_pool

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)
logger = logging.getLogger("resume_matcher")

# Multipart framing around the file; the real size check runs on the bytes
MULTIPART_OVERHEAD_BYTES = 64 * 1024

security = HTTPBearer(auto_error=False)


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[UserStore] = None,
    llm=None,
    link_http_client: Optional[httpx.AsyncClient] = None,
) -> FastAPI:
    """Build the application. Arguments override what settings would create."""
    settings = settings or load_settings()
    metrics = MetricsCollector()
    store_injected = store is not None

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        pg_store = None
        if not store_injected and settings.database_url:
            try:
                pool = await create_pool(settings.database_url)
                pg_store = PostgresUserStore(pool)
                await pg_store.ensure_schema()
                app.state.store = pg_store
                app.state.auth.store = pg_store
                logger.info("✅ Database pool created (2–10 connections)")
            except Exception as e:
                logger.error(f"❌ Database pool failed: {e} — using in-memory store")
        elif not store_injected:
            logger.warning("⚠️  DATABASE_URL not set — running with in-memory store")

        if not getattr(app.state.llm, "configured", True):
            logger.warning(f"⚠️  {settings.llm_provider} API key not set — analysis endpoints will fail")

        yield

        if pg_store is not None:
            await pg_store.close()

    app = FastAPI(
        title="Resume Matcher API",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.metrics = metrics
    app.state.store = store or InMemoryUserStore()
    app.state.auth = AuthService(app.state.store, settings)
    app.state.llm = llm or LLMClient(settings, metrics)
    app.state.pipeline = AnalysisPipeline(
        app.state.llm,
        settings,
        LinkValidator(settings, app.state.llm, http_client=link_http_client),
    )

    # ── CORS ───────────────────────────────────────────────────────
    allow_all = settings.allowed_origins == ("*",)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.allowed_origins),
        allow_credentials=not allow_all,  # credentials + '*' is invalid
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Request logging ────────────────────────────────────────────
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = datetime.now()
        path = request.url.path
        method = request.method
        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(f"{method} {path} ERROR: {e}")
            raise
        dt = (datetime.now() - start).total_seconds()
        metrics.record_request(method, path, dt * 1000)
        logger.info(f"{method} {path} -> {response.status_code} ({dt:.2f}s)")
        return response

    _register_error_handlers(app)
    _register_routes(app)
    return app


# ══════════════════════════════════════════════════════════════════
#  Error handling
# ══════════════════════════════════════════════════════════════════

def _error_response(request: Request, status_code: int, message: str,
                    key: Optional[str] = None) -> JSONResponse:
    # Account routes answer with "message", the /api routes and the token guard with "error"
    if key is None:
        key = "error" if request.url.path.startswith("/api/") else "message"
    return JSONResponse(status_code=status_code, content={key: message})


def _register_error_handlers(app: FastAPI):

    @app.exception_handler(MatcherError)
    async def matcher_error_handler(request: Request, exc: MatcherError):
        app.state.metrics.record_error(type(exc).__name__)
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path}: {type(exc).__name__}: {exc.message}")
        return _error_response(request, exc.status_code, exc.message, exc.body_key)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        app.state.metrics.record_error("ValidationError")
        errors = exc.errors()
        detail = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
        return _error_response(request, 400, f"Invalid request: {detail}")

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        app.state.metrics.record_error("ServerError")
        logger.exception(f"{request.method} {request.url.path} failed")
        return _error_response(request, 500, "Internal server error")


# ══════════════════════════════════════════════════════════════════
#  Dependencies
# ══════════════════════════════════════════════════════════════════

async def current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> User:
    token = credentials.credentials if credentials else None
    return await request.app.state.auth.authenticate(token)


def _parse_kind(kind: str) -> str:
    if kind not in UPLOAD_KINDS:
        raise ValidationError("type must be 'resume' or 'jd'")
    return kind


async def _read_upload(request: Request, file: Optional[UploadFile]) -> bytes:
    """Size and type checks; the PDF parser never sees rejected bytes."""
    settings: Settings = request.app.state.settings
    check_declared_size(
        request.headers.get("content-length"),
        settings.max_upload_bytes + MULTIPART_OVERHEAD_BYTES,
    )
    if file is None:
        raise ValidationError("No file uploaded")
    data = await file.read()
    check_upload(data, file.content_type, settings.max_upload_bytes, settings.allowed_upload_types)
    return data


def _document_part(doc: Optional[DocumentInput], required: bool, label: str) -> DocumentPart:
    if doc is None or (required and not (doc.text or "").strip()):
        if required:
            raise ValidationError(f"{label} text is required")
        doc = DocumentInput()
    return DocumentPart(
        text=doc.text or "",
        file_url=doc.fileUrl,
        file_type=doc.fileType,
        file_name=doc.fileName,
    )


# ══════════════════════════════════════════════════════════════════
#  Routes
# ══════════════════════════════════════════════════════════════════

def _register_routes(app: FastAPI):

    # ── Health & root ──────────────────────────────────────────────

    @app.get("/")
    async def root(request: Request):
        store: UserStore = request.app.state.store
        connected = store.kind != "memory" and store.connected
        return {"database": "connected" if connected else "disconnected"}

    @app.get("/health", response_model=HealthResponse)
    async def health_check(request: Request):
        state = request.app.state
        store: UserStore = state.store
        connected = store.kind != "memory" and store.connected
        return HealthResponse(
            status="healthy" if connected else "degraded",
            database="connected" if connected else "disconnected",
            store=store.kind,
            llm_provider=state.settings.llm_provider,
            llm_configured=getattr(state.llm, "configured", True),
            metrics_summary=state.metrics.health_summary(),
        )

    # ── Auth ───────────────────────────────────────────────────────

    @app.post("/SignUp", status_code=201)
    @app.post("/signup", status_code=201, include_in_schema=False)
    async def sign_up(payload: SignUpRequest, request: Request):
        token, user = await request.app.state.auth.signup(
            payload.firstName, payload.lastName, payload.email,
            payload.phoneNum, payload.password,
        )
        return {"message": "User signed up successfully", "token": token, "user": user}

    @app.post("/login")
    async def login(payload: LoginRequest, request: Request):
        token, user = await request.app.state.auth.login(payload.email, payload.password)
        return {"message": "Login successful", "token": token, "user": user}

    @app.get("/me")
    async def me(request: Request, user: User = Depends(current_user)):
        # Re-read so a user removed after authentication answers 404
        fresh = await request.app.state.store.get_by_email(user.email)
        if fresh is None:
            raise NotFoundError()
        return {"user": AuthService.profile(fresh)}

    # ── Upload ─────────────────────────────────────────────────────

    @app.post("/api/upload/extract-text")
    async def extract_text_and_save(
        request: Request,
        file: Optional[UploadFile] = File(None),
        kind: str = Query("resume", alias="type"),
        user: User = Depends(current_user),
    ):
        kind = _parse_kind(kind)
        data = await _read_upload(request, file)
        text = await run_in_threadpool(extract_pdf_text, data)
        request.app.state.metrics.record_extraction(kind)

        part = DocumentPart(text=text, file_type=file.content_type, file_name=file.filename or "")
        analysis = Analysis(resume=part) if kind == "resume" else Analysis(job_description=part)
        analysis_id = await request.app.state.store.append_analysis(user.email, analysis)
        return {
            "text": text,
            "message": "Text extracted and saved successfully",
            "analysisId": analysis_id,
        }

    @app.post("/api/upload/extract-text-only")
    async def extract_text_only(
        request: Request,
        file: Optional[UploadFile] = File(None),
        kind: str = Query("resume", alias="type"),
        user: User = Depends(current_user),
    ):
        kind = _parse_kind(kind)
        data = await _read_upload(request, file)
        text = await run_in_threadpool(extract_pdf_text, data)
        request.app.state.metrics.record_extraction(kind)
        return {"text": text}

    @app.get("/api/upload/analyses")
    async def list_analyses(request: Request, user: User = Depends(current_user)):
        analyses = await request.app.state.store.list_analyses(user.email)
        return {"analyses": [a.to_document() for a in analyses]}

    @app.post("/api/upload/save-analysis")
    async def save_analysis(payload: SaveAnalysisRequest, request: Request,
                            user: User = Depends(current_user)):
        analysis = Analysis(
            resume=_document_part(payload.resume, True, "Resume"),
            job_description=_document_part(payload.jobDescription, True, "Job description"),
        )
        analysis_id = await request.app.state.store.append_analysis(user.email, analysis)
        logger.info(f"Saved analysis {analysis_id[:8]} for user {user.id[:8]}...")
        return {"message": "Analysis saved successfully", "analysisId": analysis_id}

    # ── Analysis ───────────────────────────────────────────────────

    @app.post("/api/analysis/submit", status_code=201)
    async def submit_analysis(payload: SaveAnalysisRequest, request: Request,
                              user: User = Depends(current_user)):
        analysis = Analysis(
            resume=_document_part(payload.resume, False, "Resume"),
            job_description=_document_part(payload.jobDescription, False, "Job description"),
        )
        await request.app.state.store.append_analysis(user.email, analysis)
        return {"success": True, "data": analysis.to_document()}

    @app.get("/api/analysis/my-analyses")
    async def my_analyses(request: Request, user: User = Depends(current_user)):
        analyses = await request.app.state.store.list_analyses(user.email)
        return {"success": True, "data": [a.to_document() for a in analyses]}

    @app.post("/api/analysis/analyze", response_model=AnalyzeResponse)
    async def analyze(payload: AnalyzeRequest, request: Request,
                      user: User = Depends(current_user)):
        if payload.analysisId and not any(a.id == payload.analysisId for a in user.analyses):
            raise NotFoundError("Analysis not found")
        result = await request.app.state.pipeline.analyze(
            payload.resumeText, payload.jobDescriptionText
        )
        return AnalyzeResponse(
            result=result,
            matchScore=match_score(result),
            analysisId=payload.analysisId,
        )

    @app.post("/api/analysis/roadmap")
    async def roadmap(payload: RoadmapRequest, request: Request,
                      user: User = Depends(current_user)):
        resources = await request.app.state.pipeline.curate_learning_resources(payload.missingSkills)
        return resources.model_dump(by_alias=True)


app = create_app()
