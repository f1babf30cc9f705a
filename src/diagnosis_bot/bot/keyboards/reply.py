"""
Reply клавиатуры.

Кнопки отправляют обычный текст, поэтому нажатие кнопки и ввод номера
вручную обрабатываются одинаково.
"""
from aiogram.types import ReplyKeyboardMarkup, KeyboardButton, ReplyKeyboardRemove
from aiogram.utils.keyboard import ReplyKeyboardBuilder

from diagnosis_bot.engine import TestCatalog

# Кнопок ответа в одном ряду
ANSWERS_PER_ROW = 3


def get_answers_keyboard(answer_count: int) -> ReplyKeyboardMarkup:
    """Кнопки с номерами ответов."""
    builder = ReplyKeyboardBuilder()
    for number in range(1, answer_count + 1):
        builder.add(KeyboardButton(text=str(number)))
    builder.adjust(ANSWERS_PER_ROW)
    builder.row(KeyboardButton(text="/cancel"))
    return builder.as_markup(resize_keyboard=True)


def get_tests_keyboard(catalog: TestCatalog) -> ReplyKeyboardMarkup:
    """Кнопки запуска тестов."""
    builder = ReplyKeyboardBuilder()
    for test in catalog:
        builder.row(KeyboardButton(text=f"/{test.command}"))
    return builder.as_markup(resize_keyboard=True, one_time_keyboard=True)


def remove_reply_keyboard() -> ReplyKeyboardRemove:
    """Удаление reply-клавиатуры."""
    return ReplyKeyboardRemove()
