import pytest
from unittest.mock import AsyncMock, MagicMock

from diagnosis_bot.engine import (
    AnswerOption,
    DiagnosisService,
    DiagnosticQuestion,
    DiagnosticTest,
    ScoreRange,
    SessionRegistry,
    TestCatalog,
    load_catalog,
)


class FakeClock:
    """Управляемое время для реестра."""

    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def make_question():
    """Factory: question whose labels are 'Answer <value>'."""
    def _make(parameter: str, values: list[int], text: str | None = None) -> DiagnosticQuestion:
        return DiagnosticQuestion(
            text=text or f"Question about {parameter}",
            parameter_name=parameter,
            options=tuple(AnswerOption(label=f"Answer {v}", value=v) for v in values),
        )
    return _make


@pytest.fixture
def make_test():
    """Factory: test with a catch-all range unless ranges are given."""
    def _make(
        questions: list[DiagnosticQuestion],
        evaluation: list[ScoreRange] | None = None,
        name: str = "Sample test",
        command: str = "sample",
    ) -> DiagnosticTest:
        if evaluation is None:
            evaluation = [ScoreRange(-1000, 1000, "any")]
        return DiagnosticTest(
            name=name,
            command=command,
            questions=tuple(questions),
            evaluation=tuple(evaluation),
        )
    return _make


@pytest.fixture
def catalog() -> TestCatalog:
    """Bundled catalog with the Glasgow Coma Scale."""
    return load_catalog()


@pytest.fixture
def glasgow(catalog) -> DiagnosticTest:
    return catalog.by_command("glasgow")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(1000.0)


@pytest.fixture
def registry(clock) -> SessionRegistry:
    return SessionRegistry(clock=clock)


@pytest.fixture
def service(catalog, registry) -> DiagnosisService:
    return DiagnosisService(catalog, registry)


@pytest.fixture
def make_message():
    """Factory: aiogram-like message with an awaitable answer()."""
    def _make(text: str | None, chat_id: int = 100) -> MagicMock:
        message = MagicMock()
        message.text = text
        message.chat.id = chat_id
        message.from_user.id = chat_id
        message.answer = AsyncMock()
        return message
    return _make
