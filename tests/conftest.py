"""
Pytest fixtures for AuditDesk tests.

Every test runs offline: the Claude switch is forced off, the policy is
reset to defaults and the process-wide store is an in-memory store.
"""

from types import SimpleNamespace

import pytest

from auditdesk.db import AuditStore, set_store
from auditdesk.policy import reset_policy, update_policy


@pytest.fixture(autouse=True)
def offline(monkeypatch):
    for module in ("auditdesk.extraction", "auditdesk.scoring", "auditdesk.reporting", "auditdesk.server"):
        monkeypatch.setattr(f"{module}.USE_REAL_API", False)
    reset_policy()
    update_policy({"fiscal_year_end": "2024-12-31"})
    yield
    reset_policy()


@pytest.fixture
def store():
    """Fresh in-memory store seeded with the demo ledger."""
    s = AuditStore(persist=False).reset(seed=True)
    set_store(s)
    yield s
    set_store(None)


@pytest.fixture
def client(store):
    from fastapi.testclient import TestClient

    from auditdesk.server import app

    return TestClient(app)


class FakeMessages:
    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(content=[SimpleNamespace(type="text", text=self.text)])


class FakeClaude:
    """Stands in for anthropic.AsyncAnthropic: records calls, returns canned text or raises."""

    def __init__(self, text=None, error=None):
        self.messages = FakeMessages(text, error)


@pytest.fixture
def fake_claude():
    return FakeClaude


@pytest.fixture
def api_error():
    import anthropic
    import httpx

    return anthropic.APIConnectionError(request=httpx.Request("POST", "https://api.anthropic.com/v1/messages"))
