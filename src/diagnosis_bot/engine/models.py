"""
Модель диагностического теста.

Все структуры неизменяемые: каталог загружается один раз при старте
и дальше только читается из любого числа сессий.
"""
import re
from dataclasses import dataclass, field

from diagnosis_bot.core.exceptions import ConfigurationError, InvalidInput, OutOfRange

ANSWER_NUMBER = re.compile(r"[+-]?[0-9]+")


@dataclass(frozen=True)
class AnswerOption:
    """Вариант ответа и его балл."""

    label: str
    value: int


@dataclass(frozen=True)
class ScoreRange:
    """Диапазон суммарного балла (границы включительно) и диагноз."""

    min_score: int
    max_score: int
    diagnosis: str

    def contains(self, total: int) -> bool:
        return self.min_score <= total <= self.max_score


@dataclass(frozen=True)
class DiagnosticQuestion:
    """
    Вопрос теста.

    Варианты хранятся парами (label, value), поэтому список ответов
    и таблица баллов не могут разойтись.
    """

    text: str
    parameter_name: str  # ось оценки, например eye / verbal / motor
    options: tuple[AnswerOption, ...]

    def __post_init__(self):
        if not self.options:
            raise ConfigurationError(f"Question {self.text!r} has no answers")
        labels = self.labels
        if len(set(labels)) != len(labels):
            raise ConfigurationError(f"Question {self.text!r} has duplicate answer labels")

    @property
    def labels(self) -> tuple[str, ...]:
        """Подписи ответов в порядке показа."""
        return tuple(option.label for option in self.options)

    @property
    def min_value(self) -> int:
        return min(option.value for option in self.options)

    @property
    def max_value(self) -> int:
        return max(option.value for option in self.options)

    def resolve(self, raw_text: str) -> AnswerOption:
        """
        Найти вариант по номеру, который ввёл пользователь.

        Args:
            raw_text: Номер ответа, начиная с 1

        Returns:
            Выбранный вариант ответа

        Raises:
            InvalidInput: Текст не является целым числом
            OutOfRange: Номер вне списка вариантов
        """
        text = raw_text.strip() if isinstance(raw_text, str) else ""
        if not ANSWER_NUMBER.fullmatch(text):
            raise InvalidInput(raw_text)
        choice = int(text)

        index = choice - 1
        if index < 0 or index >= len(self.options):
            raise OutOfRange(choice, len(self.options))

        return self.options[index]


@dataclass(frozen=True)
class DiagnosticTest:
    """Именованный набор вопросов и правило оценки суммарного балла."""

    __test__ = False  # pytest не собирает этот класс

    name: str
    command: str  # команда бота без слэша
    questions: tuple[DiagnosticQuestion, ...]
    evaluation: tuple[ScoreRange, ...]
    description: str = field(default="", compare=False)

    def __post_init__(self):
        self._validate_evaluation()

    @property
    def total_questions(self) -> int:
        return len(self.questions)

    def score_domain(self) -> tuple[int, int]:
        """
        Диапазон достижимых сумм.

        Ответы хранятся по имени параметра, поэтому для повторяющегося
        параметра в сумму попадает только последний вопрос с ним.
        """
        last_by_parameter: dict[str, DiagnosticQuestion] = {}
        for question in self.questions:
            last_by_parameter[question.parameter_name] = question

        low = sum(q.min_value for q in last_by_parameter.values())
        high = sum(q.max_value for q in last_by_parameter.values())
        return low, high

    def evaluate(self, total: int) -> str:
        """Диагноз для суммарного балла (первый подходящий диапазон)."""
        for score_range in self.evaluation:
            if score_range.contains(total):
                return score_range.diagnosis
        raise ValueError(f"Total {total} is outside the ranges of {self.name!r}")

    def _validate_evaluation(self) -> None:
        """Диапазоны не пересекаются и покрывают все достижимые суммы."""
        for score_range in self.evaluation:
            if score_range.min_score > score_range.max_score:
                raise ConfigurationError(
                    f"{self.name}: range {score_range.min_score}-{score_range.max_score} is empty"
                )

        ordered = sorted(self.evaluation, key=lambda r: r.min_score)
        for prev, cur in zip(ordered, ordered[1:]):
            if cur.min_score <= prev.max_score:
                raise ConfigurationError(
                    f"{self.name}: ranges {prev.min_score}-{prev.max_score} and "
                    f"{cur.min_score}-{cur.max_score} overlap"
                )

        low, high = self.score_domain()
        expected = low
        for score_range in ordered:
            if expected > high:
                break
            if score_range.max_score < expected:
                continue
            if score_range.min_score > expected:
                break
            expected = score_range.max_score + 1

        if expected <= high:
            raise ConfigurationError(
                f"{self.name}: total {expected} is not covered by any range "
                f"(achievable totals {low}-{high})"
            )
