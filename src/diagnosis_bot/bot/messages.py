"""
Тексты сообщений бота.

Все пользовательские строки экранируются: бот работает с ParseMode.HTML.
"""
from aiogram import html

from diagnosis_bot.engine import Cancelled, DiagnosisResult, QuestionView, TestCatalog


def format_test_commands(catalog: TestCatalog) -> str:
    """Список команд запуска тестов."""
    if not catalog.tests:
        return "<i>Сейчас нет доступных тестов.</i>"
    lines = []
    for test in catalog:
        line = f"/{test.command} — {html.quote(test.name)}"
        if test.description:
            line += f" ({html.quote(test.description)})"
        lines.append(line)
    return "\n".join(lines)


def get_welcome_text(catalog: TestCatalog) -> str:
    return (
        "🩺 <b>Медицинский диагностический бот</b>\n\n"
        "Добро пожаловать! Я проведу вас по вопросам диагностического теста "
        "и подсчитаю результат.\n\n"
        "<b>Доступные тесты:</b>\n"
        f"{format_test_commands(catalog)}\n\n"
        "/help — справка\n"
        "/cancel — отменить текущий тест"
    )


def get_help_text(catalog: TestCatalog) -> str:
    return (
        "ℹ️ <b>Справка</b>\n\n"
        "Бот позволяет пройти медицинские диагностические тесты.\n\n"
        "<b>Команды:</b>\n"
        f"{format_test_commands(catalog)}\n"
        "/tests — список тестов\n"
        "/help — эта справка\n"
        "/cancel — отменить текущий тест\n\n"
        "Во время теста просто отправляйте номер выбранного ответа."
    )


def format_question(view: QuestionView) -> str:
    """Вопрос с пронумерованными вариантами."""
    lines = [
        f"<b>Вопрос {view.number} из {view.total}:</b>",
        html.quote(view.text),
        "",
    ]
    for i, answer in enumerate(view.answers, 1):
        lines.append(f"{i}. {html.quote(answer)}")
    return "\n".join(lines)


def format_result(result: DiagnosisResult, catalog: TestCatalog) -> str:
    return (
        "✅ <b>Диагностика завершена</b>\n\n"
        f"<b>Тест:</b> {html.quote(result.test_name)}\n"
        f"<b>Сумма баллов:</b> {result.total_score}\n"
        f"<b>Результат:</b> {html.quote(result.diagnosis)}\n\n"
        "<i>Результат теста не заменяет консультацию врача.</i>\n\n"
        f"Для нового теста:\n{format_test_commands(catalog)}"
    )


def format_cancelled(cancelled: Cancelled) -> str:
    return (
        f"❌ <b>Тест отменён</b>: {html.quote(cancelled.test_name)}\n\n"
        "Вы можете начать новый тест в любое время — список: /tests"
    )


def get_no_session_text(catalog: TestCatalog) -> str:
    return (
        "🤷 У вас нет активного теста.\n\n"
        f"Начните тест командой:\n{format_test_commands(catalog)}"
    )


NOTHING_TO_CANCEL_TEXT = "🤷 Нет активного теста для отмены."
INVALID_INPUT_TEXT = "✏️ Пожалуйста, введите номер ответа (1, 2, 3 и т.д.)"
TEST_UNAVAILABLE_TEXT = "⚠️ Тест временно недоступен."
UNKNOWN_COMMAND_TEXT = "🤔 Неизвестная команда. Список команд: /help"
ERROR_TEXT = "❌ Произошла ошибка. Попробуйте ещё раз или нажмите /start."


def get_out_of_range_text(answer_count: int) -> str:
    return f"✏️ Пожалуйста, введите номер ответа из предложенных (от 1 до {answer_count})."
