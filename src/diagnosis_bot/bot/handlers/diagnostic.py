"""
Обработчик диагностики: запуск теста, ответы и отмена.

Сообщение пользователю отправляется внутри операции сервиса, поэтому
если Telegram не принял ответ, сессия остаётся в прежнем состоянии.
"""
import logging
from functools import partial

from aiogram import Router, F
from aiogram.filters import Command
from aiogram.types import Message

from diagnosis_bot.bot.filters import TestCommandFilter
from diagnosis_bot.bot.keyboards.reply import get_answers_keyboard, remove_reply_keyboard
from diagnosis_bot.bot.messages import (
    ERROR_TEXT,
    INVALID_INPUT_TEXT,
    NOTHING_TO_CANCEL_TEXT,
    TEST_UNAVAILABLE_TEXT,
    UNKNOWN_COMMAND_TEXT,
    format_cancelled,
    format_question,
    format_result,
    get_no_session_text,
    get_out_of_range_text,
)
from diagnosis_bot.core.exceptions import (
    InvalidInput,
    NoActiveSession,
    OutOfRange,
    SessionStateError,
    TestNotFound,
)
from diagnosis_bot.engine import (
    Cancelled,
    DiagnosisResult,
    DiagnosisService,
    DiagnosticTest,
    QuestionView,
    TestCatalog,
)

router = Router(name="diagnostic")
logger = logging.getLogger(__name__)


async def send_reply(message: Message, catalog: TestCatalog, reply) -> None:
    """Отправить ответ сервиса в чат."""
    if isinstance(reply, QuestionView):
        await message.answer(
            format_question(reply),
            reply_markup=get_answers_keyboard(len(reply.answers)),
        )
    elif isinstance(reply, DiagnosisResult):
        await message.answer(
            format_result(reply, catalog),
            reply_markup=remove_reply_keyboard(),
        )
    elif isinstance(reply, Cancelled):
        await message.answer(
            format_cancelled(reply),
            reply_markup=remove_reply_keyboard(),
        )
    else:
        raise TypeError(f"Unexpected reply: {reply!r}")


@router.message(Command("cancel"))
async def cmd_cancel(message: Message, service: DiagnosisService, catalog: TestCatalog):
    """Отмена текущего теста."""
    try:
        await service.cancel_session(
            message.chat.id,
            deliver=partial(send_reply, message, catalog),
        )
    except NoActiveSession:
        await message.answer(NOTHING_TO_CANCEL_TEXT, reply_markup=remove_reply_keyboard())


@router.message(TestCommandFilter())
async def cmd_start_test(
    message: Message,
    service: DiagnosisService,
    catalog: TestCatalog,
    test: DiagnosticTest,
):
    """Запуск теста по его команде."""
    logger.info(f"Starting {test.name!r} for {message.chat.id}")
    try:
        await service.start_session(
            message.chat.id,
            test.name,
            deliver=partial(send_reply, message, catalog),
        )
    except TestNotFound:
        await message.answer(TEST_UNAVAILABLE_TEXT)


@router.message(F.text.startswith("/"))
async def unknown_command(message: Message):
    """Команда, которой нет ни среди служебных, ни среди тестов."""
    await message.answer(UNKNOWN_COMMAND_TEXT)


@router.message(F.text)
async def process_answer(message: Message, service: DiagnosisService, catalog: TestCatalog):
    """Номер ответа на текущий вопрос."""
    try:
        await service.submit_answer(
            message.chat.id,
            message.text,
            deliver=partial(send_reply, message, catalog),
        )
    except NoActiveSession:
        await message.answer(get_no_session_text(catalog))
    except InvalidInput:
        logger.warning(f"Invalid answer format from {message.chat.id}: {message.text!r}")
        await message.answer(INVALID_INPUT_TEXT)
    except OutOfRange as e:
        logger.warning(f"Answer out of range from {message.chat.id}: {message.text!r}")
        await message.answer(get_out_of_range_text(e.answer_count))
    except SessionStateError as e:
        logger.error(f"Broken session for {message.chat.id}: {e}")
        await message.answer(ERROR_TEXT)
