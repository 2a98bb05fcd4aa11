"""Shared test fixtures for the Sesame chat client."""

from typing import List, Optional, Sequence

import pytest

from sesame.database.json_store import JsonStore
from sesame.database.session_store import SessionStore
from sesame.model.chat import Message
from sesame.service.gemini_service import CompletionOptions, CompletionResult


class FakeCompletionClient:
    """Records every call and returns a canned result (or raises)."""

    def __init__(self, result: Optional[CompletionResult] = None, error: Optional[Exception] = None):
        self.result = result or CompletionResult(text="Hello from the model")
        self.error = error
        self.calls: List[dict] = []

    async def complete(
        self,
        model: str,
        history: Sequence[Message],
        options: CompletionOptions,
    ) -> CompletionResult:
        self.calls.append({"model": model, "history": list(history), "options": options})
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def json_store(tmp_path) -> JsonStore:
    return JsonStore(str(tmp_path / "storage"))


@pytest.fixture
def store(json_store: JsonStore) -> SessionStore:
    return SessionStore(json_store, key="test_sessions")


@pytest.fixture
def fake_client() -> FakeCompletionClient:
    return FakeCompletionClient()


@pytest.fixture
def failing_client() -> FakeCompletionClient:
    return FakeCompletionClient(error=RuntimeError("quota exceeded"))
