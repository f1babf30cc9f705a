"""
Middleware для обработки ошибок.
"""
import logging
from typing import Any, Awaitable, Callable, Dict

import sentry_sdk
from aiogram import BaseMiddleware
from aiogram.types import Message, TelegramObject

from diagnosis_bot.bot.messages import ERROR_TEXT

logger = logging.getLogger(__name__)


class ErrorHandlerMiddleware(BaseMiddleware):
    """
    Глобальный обработчик ошибок.

    Непредвиденная ошибка логируется и уходит в Sentry, пользователь
    получает короткое сообщение. Сессия к этому моменту уже откатена
    сервисом.
    """
    
    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        try:
            return await handler(event, data)
        except Exception as e:
            logger.exception(f"Unhandled error: {e}")
            sentry_sdk.capture_exception(e)
            
            if isinstance(event, Message):
                try:
                    await event.answer(ERROR_TEXT)
                except Exception as send_error:
                    logger.warning(f"Failed to notify user about error: {send_error}")
            
            return None
