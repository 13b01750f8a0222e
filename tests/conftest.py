"""Shared pytest fixtures: fake providers, a temporary knowledge folder and
an isolated ChatService wired into the FastAPI app."""

from pathlib import Path
from typing import Optional

import pytest
from fastapi.testclient import TestClient

from core.bookings import BookingStore
from core.providers import Provider, ProviderError
from core.router import ProviderRouter
from core.service import ChatService
from core.vectorstore import VectorStore


class FakeProvider(Provider):
    """Provider that replays scripted outcomes instead of calling an API.

    Each outcome is either a string (returned) or an exception (raised).
    The last outcome repeats once the script is exhausted.
    """

    def __init__(self, name: str, *outcomes):
        super().__init__(api_key="test-key")
        self.name = name
        self.outcomes = list(outcomes) or ["ok from " + name]
        self.prompts = []

    @property
    def call_count(self) -> int:
        return len(self.prompts)

    def request(self, prompt: str):
        self.prompts.append(prompt)
        outcome = self.outcomes[min(len(self.prompts), len(self.outcomes)) - 1]
        if isinstance(outcome, Exception):
            raise outcome
        return {"text": outcome}

    def extract_text(self, raw) -> str:
        return raw["text"]


def failing(name: str) -> FakeProvider:
    return FakeProvider(name, ProviderError(name, "HTTP 503: unavailable"))


DOCUMENTS = {
    "anxiety.md": "Exam anxiety and worry. Slow breathing calms anxiety before exams.",
    "sleep.txt": "Sleep routine: a regular sleep time and less screen time before sleep.",
    "family.txt": "Family conflict and loneliness. Talk calmly with family.",
}


@pytest.fixture
def knowledge_dir(tmp_path: Path) -> Path:
    folder = tmp_path / "knowledge"
    folder.mkdir()
    for name, text in DOCUMENTS.items():
        (folder / name).write_text(text, encoding="utf-8")
    return folder


@pytest.fixture
def make_service(tmp_path: Path, knowledge_dir: Path):
    """Factory for ChatService instances with the given providers."""

    def _make(*providers: Provider, booking_link: str = "https://book.example/shyam",
              knowledge: Optional[Path] = None) -> ChatService:
        return ChatService(
            vector_store=VectorStore(),
            router=ProviderRouter(list(providers)),
            bookings=BookingStore(tmp_path / "bookings.json"),
            knowledge_dir=knowledge or knowledge_dir,
            fallback_file=tmp_path / "my_data.txt",
            booking_link=booking_link,
        )

    return _make


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider("openai", "  Thank you for sharing that with me.  ")


@pytest.fixture
def service(make_service, provider) -> ChatService:
    return make_service(provider)


@pytest.fixture
def client(service):
    from backend.main import app, get_chat_service

    app.dependency_overrides[get_chat_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()
