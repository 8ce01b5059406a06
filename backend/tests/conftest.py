import io
import json
from typing import List

import pytest
from fastapi.testclient import TestClient
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from resume_matcher.config import Settings
from resume_matcher.main import create_app
from resume_matcher.store import InMemoryUserStore


class FakeLLM:
    """Stands in for the external model: replays queued replies in order."""

    configured = True
    provider = "fake"

    def __init__(self, replies: List[str] = None):
        self.replies = list(replies or [])
        self.prompts: List[str] = []

    def queue(self, *replies):
        for reply in replies:
            self.replies.append(reply if isinstance(reply, str) else json.dumps(reply))

    async def complete(self, prompt: str, json_mode: bool = True) -> str:
        self.prompts.append(prompt)
        if not self.replies:
            raise AssertionError("model called more times than expected")
        return self.replies.pop(0)


ANALYSIS_REPLY = {
    "matched_keywords": ["Python", "FastAPI", "PostgreSQL"],
    "missing_keywords": ["Kubernetes"],
    "recommendations": [
        {"explanation": "Mention container orchestration", "snippet": "Deployed services on Kubernetes"},
        "Quantify API latency improvements",
    ],
}

ROADMAP_REPLY = {
    "skillsToLearn": ["Kubernetes"],
    "certifiedCourses": [
        {"title": "CKAD Prep", "provider": "Linux Foundation", "url": "https://training.linuxfoundation.org/ckad",
         "duration": "30 hours", "level": "Intermediate", "price": "$395"},
    ],
    "freeResources": [
        {"title": "Kubernetes Docs", "creator": "CNCF", "platform": "Web",
         "url": "https://kubernetes.io/docs/home/", "duration": "self-paced"},
    ],
}


def make_pdf(*pages: List[str]) -> bytes:
    """One list of text lines per page."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    for lines in pages:
        y = 720
        for line in lines:
            c.drawString(72, y, line)
            y -= 18
        c.showPage()
    c.save()
    return buf.getvalue()


@pytest.fixture
def settings():
    return Settings(jwt_secret="test-secret", bcrypt_rounds=4, validate_video_links=False)


@pytest.fixture
def store():
    return InMemoryUserStore()


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def app(settings, store, fake_llm):
    return create_app(settings=settings, store=store, llm=fake_llm)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def signup_payload():
    return {
        "firstName": "Ada",
        "lastName": "Lovelace",
        "email": "ada@example.com",
        "phoneNum": 5550100,
        "password": "analytical-engine",
    }


@pytest.fixture
def auth_headers(client, signup_payload):
    r = client.post("/SignUp", json=signup_payload)
    assert r.status_code == 201
    return {"Authorization": f"Bearer {r.json()['token']}"}


@pytest.fixture
def resume_pdf():
    return make_pdf(["Senior Python Developer", "FastAPI PostgreSQL Docker"])
