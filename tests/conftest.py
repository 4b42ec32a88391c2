"""
Pytest configuration and shared fixtures.
"""
import time
from contextlib import ExitStack
from typing import Callable, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from insightscout.core.config import Settings
from insightscout.main import create_app
from insightscout.models.research import Founder

ACME_FOUNDER = {
    "name": "Jane Doe",
    "role": "CEO",
    "linkedinUrl": "https://linkedin.com/in/janedoe",
    "email": "jane@acme.com",
    "phone": "+1 555 0100",
}


class FakeProvider:
    """Scripted enrichment provider that records every call."""

    def __init__(self, founders: Optional[Dict[str, List[Founder]]] = None, failing=()):
        self.founders = founders or {}
        self.failing = set(failing)
        self.calls: List[str] = []

    async def __call__(self, company: str) -> List[Founder]:
        self.calls.append(company)
        if company in self.failing:
            raise RuntimeError(f"lookup failed for {company}")
        return list(self.founders.get(company, []))


def make_settings(**overrides) -> Settings:
    values = dict(
        item_delay_seconds=0.0,
        status_poll_min_interval_seconds=0.0,
        provider_timeout_seconds=2.0,
        sweep_interval_seconds=3600.0,
        perplexity_api_key=None,
        prospeo_api_key=None,
        cors_origins=["http://testserver"],
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def provider():
    return FakeProvider(
        founders={"Acme": [Founder.model_validate(ACME_FOUNDER)]},
        failing={"Initech"},
    )


@pytest.fixture
def app_factory():
    """Build an app and enter its lifespan; clients are closed at teardown."""
    with ExitStack() as stack:
        def factory(provider, **overrides) -> TestClient:
            app = create_app(settings=make_settings(**overrides), provider=provider)
            return stack.enter_context(TestClient(app))

        yield factory


@pytest.fixture
def client(app_factory, provider):
    return app_factory(provider)


def wait_for(client: TestClient, job_id: str, predicate: Callable[[dict], bool], timeout: float = 5.0) -> dict:
    """Poll status until ``predicate`` holds for the returned body."""
    deadline = time.monotonic() + timeout
    while True:
        response = client.get(f"/api/research/status/{job_id}")
        assert response.status_code == 200, response.text
        body = response.json()
        if predicate(body):
            return body
        if time.monotonic() > deadline:
            raise AssertionError(f"Timed out waiting on job {job_id}: {body}")
        time.sleep(0.01)


def wait_until_terminal(client: TestClient, job_id: str, timeout: float = 5.0) -> dict:
    return wait_for(client, job_id, lambda body: body["status"] != "processing", timeout)
