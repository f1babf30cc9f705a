"""Клавиатуры бота."""
