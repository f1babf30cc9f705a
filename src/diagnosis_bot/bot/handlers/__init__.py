"""Роутеры бота."""
