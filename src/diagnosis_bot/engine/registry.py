"""
Реестр активных сессий.

Один диалог — не больше одной сессии. Все изменения слота диалога
выполняются под его собственным asyncio.Lock, поэтому разные диалоги
не ждут друг друга, а два апдейта одного диалога не перемешиваются.
"""
import asyncio
import logging
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Callable, Hashable

from diagnosis_bot.engine.models import DiagnosticTest
from diagnosis_bot.engine.session import DiagnosisSession

logger = logging.getLogger(__name__)


@dataclass
class _KeyLock:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    holders: int = 0


class SessionRegistry:
    """Хранилище сессий по идентификатору диалога."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._sessions: dict[Hashable, DiagnosisSession] = {}
        self._last_activity: dict[Hashable, float] = {}
        self._locks: dict[Hashable, _KeyLock] = {}
        self._clock = clock

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, conversation_id: Hashable) -> bool:
        return conversation_id in self._sessions

    @asynccontextmanager
    async def lock(self, conversation_id: Hashable) -> AsyncIterator[None]:
        """
        Эксклюзивный доступ к слоту диалога.

        Замок создаётся при первом обращении и удаляется, когда его
        больше никто не ждёт.
        """
        entry = self._locks.get(conversation_id)
        if entry is None:
            entry = self._locks[conversation_id] = _KeyLock()
        entry.holders += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.holders -= 1
            if entry.holders == 0:
                del self._locks[conversation_id]

    def get_or_none(self, conversation_id: Hashable) -> DiagnosisSession | None:
        return self._sessions.get(conversation_id)

    def start(self, conversation_id: Hashable, test: DiagnosticTest) -> DiagnosisSession:
        """Создать сессию для диалога, заменив существующую."""
        if conversation_id in self._sessions:
            logger.info(f"Replacing active session for {conversation_id}")
        session = DiagnosisSession.for_test(test)
        self._sessions[conversation_id] = session
        self.touch(conversation_id)
        return session

    def remove(self, conversation_id: Hashable) -> DiagnosisSession | None:
        """Удалить сессию диалога. Возвращает удалённую сессию или None."""
        self._last_activity.pop(conversation_id, None)
        return self._sessions.pop(conversation_id, None)

    def put(
        self,
        conversation_id: Hashable,
        session: DiagnosisSession,
        last_activity: float | None = None,
    ) -> None:
        """
        Вернуть сессию в слот диалога (откат неудачной операции).

        last_activity восстанавливает прежнюю отметку активности;
        без неё сессия считается активной сейчас.
        """
        self._sessions[conversation_id] = session
        self._last_activity[conversation_id] = (
            last_activity if last_activity is not None else self._clock()
        )

    def last_activity(self, conversation_id: Hashable) -> float | None:
        """Время последней активности по часам реестра."""
        return self._last_activity.get(conversation_id)

    def touch(self, conversation_id: Hashable) -> None:
        """Отметить активность в диалоге."""
        if conversation_id in self._sessions:
            self._last_activity[conversation_id] = self._clock()

    def idle_for(self, conversation_id: Hashable) -> float | None:
        """Секунды с последней активности или None без сессии."""
        last = self._last_activity.get(conversation_id)
        if last is None:
            return None
        return self._clock() - last

    async def evict_idle(self, max_idle_seconds: float) -> list[Hashable]:
        """
        Удалить сессии, простаивающие дольше max_idle_seconds.

        Returns:
            Идентификаторы диалогов, чьи сессии удалены
        """
        evicted = []
        for conversation_id in list(self._sessions):
            async with self.lock(conversation_id):
                idle = self.idle_for(conversation_id)
                # Пока ждали замок, сессию могли завершить или обновить
                if idle is None or idle <= max_idle_seconds:
                    continue
                self.remove(conversation_id)
                evicted.append(conversation_id)

        if evicted:
            logger.info(f"Evicted {len(evicted)} idle sessions")
        return evicted
