"""
Сессия прохождения теста — состояние одного диалога.
"""
from dataclasses import dataclass, field
from enum import Enum

from diagnosis_bot.core.exceptions import SessionStateError
from diagnosis_bot.engine.models import DiagnosticQuestion, DiagnosticTest


class SessionState(Enum):
    """Состояния сессии."""
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"


@dataclass(frozen=True)
class SessionSnapshot:
    """Позиция и ответы сессии для отката."""
    cursor: int
    answers: dict[str, int] = field(default_factory=dict)


class DiagnosisSession:
    """
    Прохождение одного теста одним пользователем.

    Курсор сдвигается в момент выдачи вопроса: «текущий» вопрос — тот,
    что был выдан последним, и ответ пользователя относится к нему.
    """

    def __init__(self):
        self._test: DiagnosticTest | None = None
        self._cursor = 0
        self._answers: dict[str, int] = {}

    @classmethod
    def for_test(cls, test: DiagnosticTest) -> "DiagnosisSession":
        session = cls()
        session.start(test)
        return session

    @property
    def test(self) -> DiagnosticTest:
        self._require_started()
        return self._test

    @property
    def state(self) -> SessionState:
        if self._test is None:
            return SessionState.NOT_STARTED
        if self.is_complete():
            return SessionState.COMPLETE
        return SessionState.IN_PROGRESS

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def answers(self) -> dict[str, int]:
        """Копия записанных баллов по параметрам."""
        return dict(self._answers)

    @property
    def total_questions(self) -> int:
        self._require_started()
        return self._test.total_questions

    def start(self, test: DiagnosticTest) -> None:
        """Привязать сессию к тесту."""
        if self._test is not None:
            raise SessionStateError("Session already started")
        self._test = test
        self._cursor = 0
        self._answers = {}

    def next_question(self) -> DiagnosticQuestion | None:
        """
        Выдать следующий вопрос и сдвинуть курсор.

        Returns:
            Вопрос или None, если вопросы закончились
        """
        self._require_started()
        if self._cursor >= len(self._test.questions):
            return None
        question = self._test.questions[self._cursor]
        self._cursor += 1
        return question

    def current_question(self) -> DiagnosticQuestion | None:
        """Последний выданный вопрос (None, если ещё ничего не выдано)."""
        self._require_started()
        if self._cursor == 0 or self._cursor > len(self._test.questions):
            return None
        return self._test.questions[self._cursor - 1]

    def record_answer(self, parameter_name: str, value: int) -> None:
        """Записать балл; повторный параметр перезаписывает прежний."""
        self._answers[parameter_name] = value

    def is_complete(self) -> bool:
        if self._test is None:
            return False
        return self._cursor >= len(self._test.questions)

    def total_score(self) -> int:
        return sum(self._answers.values())

    def result(self) -> str:
        """Диагноз по сумме баллов. Доступен только после завершения."""
        if not self.is_complete():
            raise SessionStateError("Session is not complete")
        return self._test.evaluate(self.total_score())

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(cursor=self._cursor, answers=dict(self._answers))

    def restore(self, snapshot: SessionSnapshot) -> None:
        """Вернуть сессию к сохранённому состоянию."""
        self._cursor = snapshot.cursor
        self._answers = dict(snapshot.answers)

    def _require_started(self) -> None:
        if self._test is None:
            raise SessionStateError("Session has not been started")
