"""
Resume Matcher API client.

Drives the page flow against the HTTP API and keeps everything it learns
in an injected `AnalysisStore`. Every non-2xx reply raises `ApiError` with
the server's message; nothing is retried.

    client = MatcherClient("http://localhost:5000")
    client.login("ada@example.com", "secret")
    client.upload_resume("resume.pdf")
    client.set_job_description("We are hiring a backend engineer ...")
    client.save_analysis()
    match = client.match_view()
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import httpx

from .models import AnalysisResult, LearningResources
from .presentation import (
    AnalysisStore,
    MatchView,
    NoAnalysisError,
    RoadmapView,
    SuggestionsView,
)

logger = logging.getLogger(__name__)


class ApiError(Exception):
    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"{status_code}: {message}")


class MatcherClient:

    def __init__(self, base_url: str = "http://localhost:5000",
                 store: Optional[AnalysisStore] = None,
                 http_client: Optional[httpx.Client] = None,
                 timeout: float = 60.0):
        self.store = store or AnalysisStore()
        self._http = http_client or httpx.Client(base_url=base_url, timeout=timeout)

    def close(self):
        self._http.close()

    # ── transport ─────────────────────────────────────────────────

    def _headers(self) -> Dict[str, str]:
        if self.store.token:
            return {"Authorization": f"Bearer {self.store.token}"}
        return {}

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        resp = self._http.request(method, path, headers=self._headers(), **kwargs)
        try:
            body = resp.json()
        except ValueError:
            body = {}
        if resp.status_code >= 400:
            message = body.get("message") or body.get("error") or resp.reason_phrase
            logger.warning(f"{method} {path} failed: {resp.status_code} {message}")
            raise ApiError(resp.status_code, message)
        return body

    # ── account ───────────────────────────────────────────────────

    def signup(self, first_name: str, last_name: str, email: str,
               phone_num: Union[int, str], password: str) -> Dict[str, str]:
        body = self._request("POST", "/SignUp", json={
            "firstName": first_name,
            "lastName": last_name,
            "email": email,
            "phoneNum": phone_num,
            "password": password,
        })
        self.store.sign_in(body["token"], body["user"])
        return body["user"]

    def login(self, email: str, password: str) -> Dict[str, str]:
        body = self._request("POST", "/login", json={"email": email, "password": password})
        self.store.sign_in(body["token"], body["user"])
        return body["user"]

    def logout(self):
        self.store.sign_out()

    def me(self) -> Dict[str, str]:
        return self._request("GET", "/me")["user"]

    # ── upload ────────────────────────────────────────────────────

    @staticmethod
    def _file_part(source: Union[str, Path, bytes], filename: str):
        if isinstance(source, (str, Path)):
            path = Path(source)
            return {"file": (path.name, path.read_bytes(), "application/pdf")}
        return {"file": (filename, source, "application/pdf")}

    def extract_text(self, source: Union[str, Path, bytes], kind: str = "resume",
                     filename: str = "upload.pdf") -> str:
        """Pure extraction; nothing is stored server-side."""
        body = self._request(
            "POST", "/api/upload/extract-text-only",
            params={"type": kind}, files=self._file_part(source, filename),
        )
        return body["text"]

    def upload_resume(self, source: Union[str, Path, bytes], filename: str = "resume.pdf") -> str:
        text = self.extract_text(source, "resume", filename)
        self.store.set_resume_text(text)
        return text

    def upload_job_description(self, source: Union[str, Path, bytes], filename: str = "jd.pdf") -> str:
        text = self.extract_text(source, "jd", filename)
        self.store.set_job_description_text(text)
        return text

    def upload_and_record(self, source: Union[str, Path, bytes], kind: str = "resume",
                          filename: str = "upload.pdf") -> str:
        """Extract and append a one-sided analysis record; returns its id."""
        body = self._request(
            "POST", "/api/upload/extract-text",
            params={"type": kind}, files=self._file_part(source, filename),
        )
        if kind == "jd":
            self.store.set_job_description_text(body["text"])
        else:
            self.store.set_resume_text(body["text"])
        return body["analysisId"]

    def set_resume(self, text: str):
        self.store.set_resume_text(text)

    def set_job_description(self, text: str):
        self.store.set_job_description_text(text)

    def save_analysis(self, resume_meta: Optional[Dict[str, str]] = None,
                      jd_meta: Optional[Dict[str, str]] = None) -> str:
        current = self.store.require_current()
        body = self._request("POST", "/api/upload/save-analysis", json={
            "resume": {"text": current.resume_text, **(resume_meta or {})},
            "jobDescription": {"text": current.job_description_text, **(jd_meta or {})},
        })
        self.store.set_analysis_id(body["analysisId"])
        return body["analysisId"]

    def analyses(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/upload/analyses")["analyses"]

    # ── analysis ──────────────────────────────────────────────────

    def analyze(self) -> AnalysisResult:
        current = self.store.require_current()
        if current.result is not None:
            return current.result
        analysis_id = current.analysis_id
        body = self._request("POST", "/api/analysis/analyze", json={
            "resumeText": current.resume_text,
            "jobDescriptionText": current.job_description_text,
            "analysisId": analysis_id,
        })
        result = AnalysisResult.model_validate(body["result"])
        self.store.cache_result(result, analysis_id)
        return result

    def roadmap(self) -> LearningResources:
        current = self.store.require_current()
        if current.resources is not None:
            return current.resources
        result = self.analyze()
        body = self._request("POST", "/api/analysis/roadmap", json={
            "missingSkills": result.missing_keywords,
        })
        resources = LearningResources.model_validate(body)
        self.store.cache_resources(resources)
        return resources

    # ── views ─────────────────────────────────────────────────────

    def match_view(self) -> MatchView:
        return MatchView.from_result(self.analyze())

    def suggestions_view(self) -> SuggestionsView:
        return SuggestionsView.from_result(self.analyze())

    def roadmap_view(self) -> RoadmapView:
        return RoadmapView.from_resources(self.roadmap())


__all__ = ["ApiError", "MatcherClient", "NoAnalysisError"]
