import pytest

from conftest import ANALYSIS_REPLY, ROADMAP_REPLY
from resume_matcher.client import ApiError, MatcherClient
from resume_matcher.models import AnalysisResult, LearningResources
from resume_matcher.presentation import (
    AnalysisStore,
    MatchView,
    NoAnalysisError,
    View,
    match_score,
    resolve_view,
    strength_label,
)


def result_with(matched, missing):
    return AnalysisResult(matched_keywords=matched, missing_keywords=missing)


# ── scoring ───────────────────────────────────────────────────────

def test_match_score():
    assert match_score(result_with(["a", "b", "c"], ["d"])) == 75
    assert match_score(result_with(["a"], ["b", "c"])) == 33
    assert match_score(result_with([], [])) == 0
    assert match_score(result_with(["a"], [])) == 100


@pytest.mark.parametrize("score,label", [
    (100, "Excellent"), (80, "Excellent"), (79, "Good"), (60, "Good"),
    (59, "Fair"), (40, "Fair"), (39, "Weak"), (0, "Weak"),
])
def test_strength_bands(score, label):
    assert strength_label(score) == label


def test_match_view():
    view = MatchView.from_result(result_with(["Python"], ["Go"]))
    assert (view.score, view.strength) == (50, "Fair")
    assert view.missing_keywords == ["Go"]


# ── store ─────────────────────────────────────────────────────────

@pytest.fixture
def analysis_store():
    s = AnalysisStore()
    s.sign_in("token", {"email": "ada@example.com"})
    s.set_resume_text("resume")
    s.set_job_description_text("jd")
    return s


def test_new_text_invalidates_cached_output(analysis_store):
    analysis_store.set_analysis_id("a1")
    analysis_store.cache_result(result_with(["x"], []), "a1")
    analysis_store.cache_resources(LearningResources(skills_to_learn=["Go"]))

    analysis_store.set_job_description_text("a different jd")

    current = analysis_store.current
    assert current.result is None
    assert current.resources is None
    assert current.analysis_id is None
    assert current.resume_text == "resume"


def test_result_for_other_analysis_discarded(analysis_store):
    analysis_store.set_analysis_id("a1")
    analysis_store.cache_result(result_with(["x"], []), "stale-id")
    assert analysis_store.current.result is None


def test_switching_analysis_id_clears_result(analysis_store):
    analysis_store.set_analysis_id("a1")
    analysis_store.cache_result(result_with(["x"], []), "a1")
    analysis_store.set_analysis_id("a2")
    assert analysis_store.current.result is None


def test_require_current_needs_both_texts():
    s = AnalysisStore()
    with pytest.raises(NoAnalysisError):
        s.require_current()
    s.set_resume_text("resume only")
    with pytest.raises(NoAnalysisError):
        s.require_current()


def test_sign_out_clears_everything(analysis_store):
    analysis_store.sign_out()
    assert not analysis_store.authenticated
    assert analysis_store.current is None


# ── page flow ─────────────────────────────────────────────────────

def test_resolve_view():
    s = AnalysisStore()
    assert resolve_view(View.LANDING, s) == View.LANDING
    assert resolve_view(View.UPLOAD, s) == View.LOGIN

    s.sign_in("token", {})
    assert resolve_view(View.UPLOAD, s) == View.UPLOAD
    assert resolve_view(View.MATCH, s) == View.UPLOAD

    s.set_resume_text("resume")
    s.set_job_description_text("jd")
    assert resolve_view(View.ROADMAP, s) == View.ROADMAP


# ── client against the app ────────────────────────────────────────

@pytest.fixture
def matcher(client):
    return MatcherClient(http_client=client)


def test_full_flow(matcher, fake_llm, resume_pdf):
    matcher.signup("Ada", "Lovelace", "ada@example.com", 5550100, "analytical-engine")
    assert matcher.store.authenticated
    assert matcher.me()["email"] == "ada@example.com"

    text = matcher.upload_resume(resume_pdf)
    assert "Python" in text
    matcher.set_job_description("Hiring a Python engineer with Kubernetes")
    analysis_id = matcher.save_analysis()
    assert matcher.analyses()[-1]["_id"] == analysis_id

    fake_llm.queue(ANALYSIS_REPLY, ROADMAP_REPLY)
    match = matcher.match_view()
    assert (match.score, match.strength) == (75, "Good")

    suggestions = matcher.suggestions_view()
    assert len(suggestions.recommendations) == 2
    assert len(fake_llm.prompts) == 1

    roadmap = matcher.roadmap_view()
    assert roadmap.skills_to_learn == ["Kubernetes"]
    assert "- Kubernetes" in fake_llm.prompts[1]

    matcher.roadmap_view()
    assert len(fake_llm.prompts) == 2


def test_new_job_description_triggers_fresh_analysis(matcher, fake_llm):
    matcher.signup("Ada", "Lovelace", "ada@example.com", 5550100, "analytical-engine")
    matcher.set_resume("Python developer")
    matcher.set_job_description("Python role")
    fake_llm.queue(ANALYSIS_REPLY, dict(ANALYSIS_REPLY, missing_keywords=[]))

    assert matcher.match_view().score == 75
    matcher.set_job_description("Another Python role")
    assert matcher.match_view().score == 100
    assert len(fake_llm.prompts) == 2


def test_result_discarded_when_analysis_changes_in_flight(client, fake_llm):
    store = AnalysisStore()

    class SwitchesAnalysis:
        """Saves a newer analysis while the analyze call is on the wire."""

        def request(self, method, path, **kwargs):
            resp = client.request(method, path, **kwargs)
            if path == "/api/analysis/analyze":
                store.set_analysis_id("newer-analysis")
            return resp

    matcher = MatcherClient(store=store, http_client=SwitchesAnalysis())
    matcher.signup("Ada", "Lovelace", "ada@example.com", 5550100, "analytical-engine")
    matcher.set_resume("Python developer")
    matcher.set_job_description("Python role")
    fake_llm.queue(ANALYSIS_REPLY)

    result = matcher.analyze()

    assert result.missing_keywords == ["Kubernetes"]
    assert store.current.analysis_id == "newer-analysis"
    assert store.current.result is None


def test_views_need_an_analysis(matcher):
    matcher.signup("Ada", "Lovelace", "ada@example.com", 5550100, "analytical-engine")
    with pytest.raises(NoAnalysisError):
        matcher.match_view()


def test_api_errors_surface_server_message(matcher):
    with pytest.raises(ApiError) as excinfo:
        matcher.login("nobody@example.com", "whatever")
    assert excinfo.value.status_code == 404
    assert excinfo.value.message == "User not found"


def test_empty_upload_raises_api_error(matcher):
    matcher.signup("Ada", "Lovelace", "ada@example.com", 5550100, "analytical-engine")
    with pytest.raises(ApiError) as excinfo:
        matcher.extract_text(b"", "resume")
    assert excinfo.value.status_code == 400
