"""
Обработчик команд /start, /help и /tests.
"""
import logging
from aiogram import Router
from aiogram.types import Message
from aiogram.filters import CommandStart, Command

from diagnosis_bot.bot.keyboards.reply import get_tests_keyboard
from diagnosis_bot.bot.messages import get_help_text, get_welcome_text, format_test_commands
from diagnosis_bot.engine import TestCatalog

router = Router(name="start")
logger = logging.getLogger(__name__)


@router.message(CommandStart())
async def cmd_start(message: Message, catalog: TestCatalog):
    """Приветствие и список тестов."""
    logger.info(f"Chat {message.chat.id} started bot")
    await message.answer(
        get_welcome_text(catalog),
        reply_markup=get_tests_keyboard(catalog),
    )


@router.message(Command("help"))
async def cmd_help(message: Message, catalog: TestCatalog):
    """Показать справку."""
    logger.debug(f"Help requested by {message.chat.id}")
    await message.answer(get_help_text(catalog))


@router.message(Command("tests"))
async def cmd_tests(message: Message, catalog: TestCatalog):
    """Список доступных тестов."""
    await message.answer(
        f"📋 <b>Доступные тесты:</b>\n\n{format_test_commands(catalog)}",
        reply_markup=get_tests_keyboard(catalog),
    )
