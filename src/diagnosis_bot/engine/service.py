"""
Сервис диагностики — то, что вызывает транспорт.

Каждая операция выполняется под замком диалога. Если передан deliver,
ответ отправляется внутри той же транзакции: при ошибке отправки
сессия откатывается к состоянию до запроса.
"""
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Awaitable, Callable, Hashable, Union

from diagnosis_bot.core.exceptions import NoActiveSession, SessionStateError, TestNotFound
from diagnosis_bot.engine.catalog import TestCatalog
from diagnosis_bot.engine.registry import SessionRegistry
from diagnosis_bot.engine.session import DiagnosisSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuestionView:
    """Вопрос в том виде, в каком его показывают пользователю."""
    number: int  # с 1
    total: int
    text: str
    answers: tuple[str, ...]


@dataclass(frozen=True)
class DiagnosisResult:
    """Итог теста."""
    test_name: str
    diagnosis: str
    total_score: int


@dataclass(frozen=True)
class Cancelled:
    """Подтверждение отмены."""
    test_name: str


Reply = Union[QuestionView, DiagnosisResult, Cancelled]
Deliver = Callable[[Reply], Awaitable[Any]]


class DiagnosisService:
    """Старт, ответы и отмена тестов для диалогов."""

    def __init__(self, catalog: TestCatalog, registry: SessionRegistry | None = None):
        self.catalog = catalog
        self.registry = registry if registry is not None else SessionRegistry()

    async def start_session(
        self,
        conversation_id: Hashable,
        test_name: str,
        deliver: Deliver | None = None,
    ) -> QuestionView | DiagnosisResult:
        """
        Начать тест. Активная сессия диалога заменяется новой.

        Returns:
            Первый вопрос или сразу результат для теста без вопросов

        Raises:
            TestNotFound: Теста нет в каталоге
        """
        test = self.catalog.get(test_name)
        if test is None:
            logger.error(f"Test {test_name!r} requested by {conversation_id} is not in the catalog")
            raise TestNotFound(test_name)

        async with self._transaction(conversation_id):
            session = self.registry.start(conversation_id, test)
            logger.info(f"Started {test.name!r} for {conversation_id}")
            reply = self._advance(conversation_id, session)
            if deliver is not None:
                await deliver(reply)
            return reply

    async def submit_answer(
        self,
        conversation_id: Hashable,
        raw_text: str,
        deliver: Deliver | None = None,
    ) -> QuestionView | DiagnosisResult:
        """
        Принять номер ответа на последний выданный вопрос.

        Returns:
            Следующий вопрос или результат теста

        Raises:
            NoActiveSession: У диалога нет теста
            InvalidInput, OutOfRange: Номер не распознан; вопрос остаётся текущим
        """
        async with self._transaction(conversation_id):
            session = self.registry.get_or_none(conversation_id)
            if session is None:
                logger.warning(f"Answer without active session from {conversation_id}")
                raise NoActiveSession(conversation_id)

            question = session.current_question()
            if question is None:
                raise SessionStateError(f"No question has been asked in {conversation_id}")

            option = question.resolve(raw_text)
            session.record_answer(question.parameter_name, option.value)
            self.registry.touch(conversation_id)
            logger.debug(
                f"Recorded answer from {conversation_id}: "
                f"{question.parameter_name}={option.value} ({option.label})"
            )

            reply = self._advance(conversation_id, session)
            if deliver is not None:
                await deliver(reply)
            return reply

    async def cancel_session(
        self,
        conversation_id: Hashable,
        deliver: Deliver | None = None,
    ) -> Cancelled:
        """
        Отменить тест диалога.

        Raises:
            NoActiveSession: Отменять нечего
        """
        async with self._transaction(conversation_id):
            session = self.registry.remove(conversation_id)
            if session is None:
                logger.warning(f"Cancel without active session from {conversation_id}")
                raise NoActiveSession(conversation_id)

            logger.info(f"Session cancelled for {conversation_id}")
            reply = Cancelled(test_name=session.test.name)
            if deliver is not None:
                await deliver(reply)
            return reply

    def _advance(
        self, conversation_id: Hashable, session: DiagnosisSession
    ) -> QuestionView | DiagnosisResult:
        """Выдать следующий вопрос или завершить сессию."""
        question = session.next_question()
        if question is None:
            diagnosis = session.result()
            total = session.total_score()
            self.registry.remove(conversation_id)
            logger.info(f"Test {session.test.name!r} finished for {conversation_id}: {total} → {diagnosis}")
            return DiagnosisResult(
                test_name=session.test.name,
                diagnosis=diagnosis,
                total_score=total,
            )

        return QuestionView(
            number=session.cursor,
            total=session.total_questions,
            text=question.text,
            answers=question.labels,
        )

    @asynccontextmanager
    async def _transaction(self, conversation_id: Hashable) -> AsyncIterator[None]:
        """Замок диалога и откат сессии при любой ошибке внутри блока."""
        async with self.registry.lock(conversation_id):
            previous = self.registry.get_or_none(conversation_id)
            snapshot = previous.snapshot() if previous is not None else None
            stamp = self.registry.last_activity(conversation_id)
            try:
                yield
            except BaseException:
                if previous is None:
                    self.registry.remove(conversation_id)
                else:
                    previous.restore(snapshot)
                    self.registry.put(conversation_id, previous, last_activity=stamp)
                raise
