"""Движок диагностики: модель тестов, каталог, сессии и реестр."""
from diagnosis_bot.engine.models import (
    AnswerOption,
    ScoreRange,
    DiagnosticQuestion,
    DiagnosticTest,
)
from diagnosis_bot.engine.catalog import (
    TestCatalog,
    parse_catalog,
    load_catalog,
    dump_catalog,
)
from diagnosis_bot.engine.session import DiagnosisSession, SessionState
from diagnosis_bot.engine.registry import SessionRegistry
from diagnosis_bot.engine.service import (
    DiagnosisService,
    QuestionView,
    DiagnosisResult,
    Cancelled,
)

__all__ = [
    # Модель
    "AnswerOption",
    "ScoreRange",
    "DiagnosticQuestion",
    "DiagnosticTest",
    # Каталог
    "TestCatalog",
    "parse_catalog",
    "load_catalog",
    "dump_catalog",
    # Сессии
    "DiagnosisSession",
    "SessionState",
    "SessionRegistry",
    # Сервис
    "DiagnosisService",
    "QuestionView",
    "DiagnosisResult",
    "Cancelled",
]
