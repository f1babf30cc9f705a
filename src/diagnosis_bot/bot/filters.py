"""
Фильтры хендлеров.
"""
from aiogram.filters import Filter
from aiogram.types import Message

from diagnosis_bot.engine import TestCatalog


def parse_command(text: str | None) -> str | None:
    """Имя команды из текста: '/glasgow@my_bot arg' → 'glasgow'."""
    if not text or not text.startswith("/"):
        return None
    command = text.split(maxsplit=1)[0][1:]
    return command.split("@", 1)[0].lower() or None


class TestCommandFilter(Filter):
    """Команда запуска теста из каталога. Передаёт найденный тест в хендлер."""

    __test__ = False  # pytest не собирает этот класс

    async def __call__(self, message: Message, catalog: TestCatalog) -> bool | dict:
        command = parse_command(message.text)
        if command is None:
            return False
        test = catalog.by_command(command)
        if test is None:
            return False
        return {"test": test}
