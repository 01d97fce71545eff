"""
Pytest fixtures for the PDF Chat Backend.

Provides:
- Test environment variables (set before the app is imported)
- An in-memory SQLite database shared across threads
- A stub Gemini transport: the real ChatGoogleGenerativeAI model runs, only
  the network call is replaced by a predetermined GenerateContentResponse
- ChatService / HistoryService wired to the stub
- A TestClient with the database, services and current user overridden
"""

import os

os.environ.setdefault("GOOGLE_API_KEY", "test-key")
os.environ.setdefault("CLERK_ISSUER", "https://test.clerk.accounts.dev")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from typing import Any, Dict, List, Optional

import pytest
from google.ai.generativelanguage_v1beta.types import Candidate, GenerateContentResponse
from langchain_google_genai import chat_models
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from pdfchat.auth import ClerkUser
from pdfchat.db import Base
from pdfchat.services import ChatService, GeminiClient, HistoryService

BlockReason = GenerateContentResponse.PromptFeedback.BlockReason


def make_response(
    text: str = "",
    finish_reason: Optional[Any] = "STOP",
    block_reason: Optional[Any] = None,
    safety_ratings: Optional[List[Dict[str, Any]]] = None,
    candidates: bool = True,
) -> GenerateContentResponse:
    """
    Build the GenerateContentResponse the Gemini API would send back.

    ``candidates=False`` gives the shape of a prompt rejected before any
    generation: prompt feedback only, no candidates.
    """
    fields: Dict[str, Any] = {}
    if block_reason is not None:
        if isinstance(block_reason, str):
            block_reason = BlockReason[block_reason]
        fields["prompt_feedback"] = {"block_reason": block_reason}

    if candidates:
        candidate: Dict[str, Any] = {
            "content": {"role": "model", "parts": [{"text": text}] if text else []},
            "safety_ratings": safety_ratings or [],
        }
        if finish_reason is not None:
            if isinstance(finish_reason, str):
                finish_reason = Candidate.FinishReason[finish_reason]
            candidate["finish_reason"] = finish_reason
        fields["candidates"] = [candidate]

    return GenerateContentResponse(**fields)


class GeminiTransport:
    """
    Replacement for the Gemini network call.

    Set ``response`` (a GenerateContentResponse) or ``error`` (an exception to
    raise) before the call; the text of every prompt sent is kept in ``prompts``.
    """

    def __init__(self):
        self.response: GenerateContentResponse = make_response("Mock response from Gemini")
        self.error: Optional[Exception] = None
        self.prompts: List[str] = []

    def __call__(self, *args, **kwargs):
        request = kwargs["request"]
        self.prompts.append(request.contents[-1].parts[0].text)
        if self.error is not None:
            raise self.error
        return self.response

    @property
    def call_count(self) -> int:
        return len(self.prompts)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def gemini(monkeypatch):
    transport = GeminiTransport()
    monkeypatch.setattr(chat_models, "_chat_with_retry", transport)
    return transport


@pytest.fixture
def chat_service(gemini):
    return ChatService(client=GeminiClient())


@pytest.fixture
def history_service():
    return HistoryService()


@pytest.fixture
def current_user():
    """Mutable holder for the user the app sees; set ``value`` to None to log out."""
    class Holder:
        value: Optional[ClerkUser] = ClerkUser(user_id="user_alice", email="alice@example.com")
    return Holder


@pytest.fixture
def app(session_factory, chat_service, history_service):
    from pdfchat import main

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    main.app.dependency_overrides[main.get_db] = override_get_db
    main.app.dependency_overrides[main.get_chat_service] = lambda: chat_service
    main.app.dependency_overrides[main.get_history_service] = lambda: history_service
    yield main.app
    main.app.dependency_overrides.clear()


@pytest.fixture
def client(app, current_user):
    from fastapi.testclient import TestClient
    from pdfchat.auth import get_optional_user

    app.dependency_overrides[get_optional_user] = lambda: current_user.value
    return TestClient(app)
