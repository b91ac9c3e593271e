from __future__ import annotations

import json
from typing import Any, List, Optional

import pytest
from fastapi.testclient import TestClient
from langchain_core.messages import AIMessage, BaseMessage

from app.main import create_app
from config.settings import Settings


# Variables a developer .env may set that would change the defaults under test.
SETTINGS_ENV = (
    "GEMINI_API_KEY",
    "GOOGLE_API_KEY",
    "GEMINI_MODEL",
    "MODEL_TEMPERATURE",
    "MODEL_TOP_P",
    "MODEL_MAX_OUTPUT_TOKENS",
    "HISTORY_LIMIT",
    "MAX_BODY_BYTES",
    "ALLOWED_ORIGINS",
)


class RecordingChatModel:
    """Stand-in for the Gemini chat model that records what it was sent."""

    def __init__(self, reply: Any = "", error: Optional[Exception] = None) -> None:
        self.reply = reply
        self.error = error
        self.calls: List[List[BaseMessage]] = []

    async def ainvoke(self, messages, *args, **kwargs):
        self.calls.append(list(messages))
        if self.error is not None:
            raise self.error
        return AIMessage(content=self.reply)


GOOD_REPLY = json.dumps(
    {
        "message": "Hi! What grade are you in?",
        "intent": "SESSION_START",
        "learningState": "IDLE",
    }
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in SETTINGS_ENV:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def settings(clean_env) -> Settings:
    return Settings()


@pytest.fixture
def chat_model() -> RecordingChatModel:
    return RecordingChatModel(reply=GOOD_REPLY)


@pytest.fixture
def client(settings, chat_model) -> TestClient:
    return TestClient(create_app(settings=settings, chat_model=chat_model))


@pytest.fixture
def make_client(settings):
    """Build a client around a fresh recording model.

    Pass ``app_settings`` to use settings built after changing the environment.
    """

    def _make(
        reply: Any = GOOD_REPLY,
        error: Optional[Exception] = None,
        app_settings: Optional[Settings] = None,
    ):
        model = RecordingChatModel(reply=reply, error=error)
        app = create_app(settings=app_settings or settings, chat_model=model)
        return TestClient(app), model

    return _make
