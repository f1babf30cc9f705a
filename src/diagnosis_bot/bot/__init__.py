"""Telegram-транспорт: хендлеры, клавиатуры, middleware."""
