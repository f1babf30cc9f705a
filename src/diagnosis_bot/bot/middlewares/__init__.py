"""Middleware для бота."""
from diagnosis_bot.bot.middlewares.error_handler import ErrorHandlerMiddleware
from diagnosis_bot.bot.middlewares.logging_middleware import LoggingMiddleware

__all__ = ["ErrorHandlerMiddleware", "LoggingMiddleware"]
