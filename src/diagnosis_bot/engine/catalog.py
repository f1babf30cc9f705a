"""
Каталог диагностических тестов.

Загружается один раз при старте из JSON и дальше только читается.
Формат файла — список тестов или объект с ключом "tests":

    {
      "tests": [
        {
          "name": "Шкала комы Глазго",
          "command": "glasgow",
          "questions": [
            {"text": "...", "parameter": "eye",
             "answers": [{"label": "...", "value": 4}, ...]}
          ],
          "evaluation": [{"min": 13, "max": 15, "diagnosis": "..."}]
        }
      ]
    }
"""
import json
import logging
from importlib.resources import files
from pathlib import Path
from typing import Iterator

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from diagnosis_bot.core.exceptions import ConfigurationError
from diagnosis_bot.engine.models import (
    AnswerOption,
    DiagnosticQuestion,
    DiagnosticTest,
    ScoreRange,
)

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_FILE = "tests_config.json"


# === Схема файла ===

class AnswerSchema(BaseModel):
    label: str = Field(min_length=1)
    value: int


class QuestionSchema(BaseModel):
    text: str = Field(min_length=1)
    parameter: str = Field(min_length=1)
    answers: list[AnswerSchema] = Field(min_length=1)


class RangeSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    min_score: int = Field(alias="min")
    max_score: int = Field(alias="max")
    diagnosis: str = Field(min_length=1)


class DiagnosticTestSchema(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1)
    command: str = Field(pattern=r"^[a-z0-9_]{1,32}$")
    description: str = ""
    questions: list[QuestionSchema]
    evaluation: list[RangeSchema] = Field(min_length=1)


class CatalogSchema(BaseModel):
    tests: list[DiagnosticTestSchema]


# === Каталог ===

class TestCatalog:
    """Неизменяемый набор тестов с поиском по имени и команде."""

    __test__ = False

    def __init__(self, tests: list[DiagnosticTest] | tuple[DiagnosticTest, ...]):
        self._tests = tuple(tests)
        self._by_name: dict[str, DiagnosticTest] = {}
        self._by_command: dict[str, DiagnosticTest] = {}

        for test in self._tests:
            name_key = test.name.strip().casefold()
            if name_key in self._by_name:
                raise ConfigurationError(f"Duplicate test name: {test.name}")
            if test.command in self._by_command:
                raise ConfigurationError(f"Duplicate test command: /{test.command}")
            self._by_name[name_key] = test
            self._by_command[test.command] = test

    def __iter__(self) -> Iterator[DiagnosticTest]:
        return iter(self._tests)

    def __len__(self) -> int:
        return len(self._tests)

    @property
    def tests(self) -> tuple[DiagnosticTest, ...]:
        return self._tests

    def get(self, name: str) -> DiagnosticTest | None:
        """Тест по имени (без учёта регистра)."""
        return self._by_name.get(name.strip().casefold())

    def by_command(self, command: str) -> DiagnosticTest | None:
        """Тест по команде бота (с ведущим слэшем или без)."""
        return self._by_command.get(command.lstrip("/").lower())


def _build_test(schema: DiagnosticTestSchema) -> DiagnosticTest:
    questions = tuple(
        DiagnosticQuestion(
            text=q.text,
            parameter_name=q.parameter,
            options=tuple(AnswerOption(label=a.label, value=a.value) for a in q.answers),
        )
        for q in schema.questions
    )
    evaluation = tuple(
        ScoreRange(min_score=r.min_score, max_score=r.max_score, diagnosis=r.diagnosis)
        for r in schema.evaluation
    )
    return DiagnosticTest(
        name=schema.name,
        command=schema.command,
        questions=questions,
        evaluation=evaluation,
        description=schema.description,
    )


def parse_catalog(text: str) -> TestCatalog:
    """
    Разобрать JSON каталога.

    Raises:
        ConfigurationError: Невалидный JSON, структура или диапазоны
    """
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Catalog is not valid JSON: {e}") from e

    if isinstance(raw, list):
        raw = {"tests": raw}
    elif not isinstance(raw, dict) or "tests" not in raw:
        raise ConfigurationError("Catalog must be a list of tests or an object with 'tests'")

    try:
        schema = CatalogSchema.model_validate(raw)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid catalog structure: {e}") from e

    return TestCatalog([_build_test(test) for test in schema.tests])


def load_catalog(path: str | Path | None = None) -> TestCatalog:
    """
    Загрузить каталог из файла (по умолчанию — встроенный).

    Raises:
        ConfigurationError: Файл не найден или содержимое невалидно
    """
    try:
        if path is None:
            source = files("diagnosis_bot.data").joinpath(DEFAULT_CATALOG_FILE)
            text = source.read_text(encoding="utf-8")
            path = DEFAULT_CATALOG_FILE
        else:
            text = Path(path).read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ConfigurationError(f"Catalog file is not valid UTF-8: {path}") from e
    except OSError as e:
        raise ConfigurationError(f"Catalog file not found: {path}") from e

    catalog = parse_catalog(text)
    logger.info(f"Loaded {len(catalog)} tests from {path}")
    return catalog


def catalog_to_dict(catalog: TestCatalog) -> dict:
    """Представление каталога в формате файла."""
    tests = []
    for test in catalog:
        schema = DiagnosticTestSchema(
            name=test.name,
            command=test.command,
            description=test.description,
            questions=[
                QuestionSchema(
                    text=q.text,
                    parameter=q.parameter_name,
                    answers=[AnswerSchema(label=o.label, value=o.value) for o in q.options],
                )
                for q in test.questions
            ],
            evaluation=[
                RangeSchema(min_score=r.min_score, max_score=r.max_score, diagnosis=r.diagnosis)
                for r in test.evaluation
            ],
        )
        tests.append(schema.model_dump(by_alias=True))
    return {"tests": tests}


def dump_catalog(catalog: TestCatalog) -> str:
    """Сериализовать каталог обратно в JSON."""
    return json.dumps(catalog_to_dict(catalog), ensure_ascii=False, indent=2)
