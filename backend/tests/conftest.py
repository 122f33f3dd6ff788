import os
# Seed configuration before any jobmatch imports so module-level settings pick it up.
os.environ["ANTHROPIC_API_KEY"] = "test-key"
os.environ["CLAUDE_MODEL"] = "claude-sonnet-4-20250514"
os.environ["MATCH_ANALYSIS_CACHE_ENABLED"] = "false"
os.environ["CLAUDE_INPUT_COST_PER_MILLION_USD"] = "3.0"
os.environ["CLAUDE_OUTPUT_COST_PER_MILLION_USD"] = "15.0"
os.environ["LOG_FORMAT"] = "text"

import json

import pytest
from fastapi.testclient import TestClient

from jobmatch.components.integrations.claude.service import ModelReply
from jobmatch.components.matching.repository import InMemoryMatchScoreRepository
from jobmatch.components.matching.service import MatchAnalysisService
from jobmatch.deps import get_match_analysis_service, get_match_score_repository
from jobmatch.main import app
from jobmatch.platform.config import MatchAnalysisOptions


# ---------------------------------------------------------------------------
# Sample inputs
# ---------------------------------------------------------------------------

def sample_profile(**overrides) -> dict:
    profile = {
        "id": "profile-1",
        "name": "Anna Svensson",
        "email": "anna@example.com",
        "experience_years": 6,
        "skills": ["Python", "FastAPI", "PostgreSQL", "Docker"],
        "location_preference": "Stockholm",
        "visa_status": "eu_citizen",
        "languages": {"Swedish": "native", "English": "fluent"},
        "company_size_preference": "scaleup",
        "remote_preference": "hybrid",
        "min_salary": 55000,
    }
    profile.update(overrides)
    return profile


def sample_job(**overrides) -> dict:
    job = {
        "id": "job-1",
        "title": "Senior Backend Engineer",
        "company": "Nordic Pay",
        "location": "Stockholm",
        "remote_type": "hybrid",
        "description": "Build payment APIs.",
        "requirements": ["Python", "PostgreSQL", "Kubernetes"],
        "nice_to_have": ["Go"],
        "salary_min": 50000,
        "salary_max": 65000,
        "salary_currency": "SEK",
        "url": "https://jobs.example.com/1",
        "source": "manual",
    }
    job.update(overrides)
    return job


def sample_payload(**overrides) -> dict:
    payload = {
        "overall_score": 85,
        "skills_match": 90,
        "experience_match": 80,
        "location_match": 100,
        "company_match": 70,
        "requirements_match": 75,
        "matching_skills": ["Python", "PostgreSQL"],
        "missing_skills": ["Kubernetes"],
        "recommendation": "strong_apply",
        "details": "Strong backend fit; Kubernetes is the main gap.",
    }
    payload.update(overrides)
    return payload


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

class FakeModelClient:
    """Replays scripted replies. Exceptions in the script are raised in order."""

    def __init__(self, replies, input_tokens=1000, output_tokens=400):
        self.replies = list(replies)
        self.input_tokens = input_tokens
        self.output_tokens = output_tokens
        self.calls = []

    async def send(self, prompt, *, model, max_tokens, timeout_seconds, system=None):
        self.calls.append(
            {
                "prompt": prompt,
                "model": model,
                "max_tokens": max_tokens,
                "timeout_seconds": timeout_seconds,
                "system": system,
            }
        )
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, BaseException):
            raise reply
        if isinstance(reply, ModelReply):
            return reply
        text = reply if isinstance(reply, str) else json.dumps(reply)
        return ModelReply(text=text, input_tokens=self.input_tokens, output_tokens=self.output_tokens, model=model)


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


@pytest.fixture
def profile_data():
    return sample_profile()


@pytest.fixture
def job_data():
    return sample_job()


@pytest.fixture
def valid_payload():
    return sample_payload()


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def make_service(recording_sleep):
    """Build a MatchAnalysisService around a FakeModelClient."""

    def _make(replies=None, **option_overrides):
        fake = FakeModelClient(replies if replies is not None else [sample_payload()])
        options = MatchAnalysisOptions.from_settings(**option_overrides)
        service = MatchAnalysisService(fake, options, sleep=recording_sleep)
        return service, fake

    return _make


@pytest.fixture
def api_client(make_service):
    """TestClient with the match service and repository swapped for fakes."""
    service, fake = make_service()
    repository = InMemoryMatchScoreRepository()
    app.dependency_overrides[get_match_analysis_service] = lambda: service
    app.dependency_overrides[get_match_score_repository] = lambda: repository
    with TestClient(app) as c:
        c.service = service
        c.fake_model = fake
        c.repository = repository
        yield c
    app.dependency_overrides.clear()
