"""
Исключения движка диагностики.

ConfigurationError фатальна при старте, остальные — ошибки сессии,
которые диспетчер превращает в подсказки пользователю.
"""


class DiagnosisBotError(Exception):
    """Базовое исключение бота."""


class ConfigurationError(DiagnosisBotError):
    """Каталог тестов отсутствует, повреждён или диапазоны оценки неполны."""


class SessionError(DiagnosisBotError):
    """Ошибка обработки запроса в рамках диалога."""


class NoActiveSession(SessionError):
    """У диалога нет активной сессии."""

    def __init__(self, conversation_id: int | str):
        super().__init__(f"No active session for {conversation_id}")
        self.conversation_id = conversation_id


class TestNotFound(SessionError):
    """Запрошенного теста нет в каталоге."""

    __test__ = False  # pytest не собирает этот класс

    def __init__(self, name: str):
        super().__init__(f"Test not found: {name}")
        self.name = name


class InvalidInput(SessionError):
    """Ответ не является номером."""

    def __init__(self, raw_text: str):
        super().__init__(f"Not a number: {raw_text!r}")
        self.raw_text = raw_text


class OutOfRange(SessionError):
    """Номер ответа вне списка вариантов."""

    def __init__(self, choice: int, answer_count: int):
        super().__init__(f"Choice {choice} is outside 1..{answer_count}")
        self.choice = choice
        self.answer_count = answer_count


class SessionStateError(SessionError):
    """Операция недопустима в текущем состоянии сессии."""
