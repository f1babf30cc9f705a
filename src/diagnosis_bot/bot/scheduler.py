"""
Планировщик задач для бота.

Сбрасывает незавершённые тесты, по которым давно не было ответов,
и сообщает об этом пользователю.
"""
import logging

from aiogram import Bot
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from diagnosis_bot.bot.keyboards.reply import remove_reply_keyboard
from diagnosis_bot.engine import SessionRegistry

logger = logging.getLogger(__name__)

EVICTION_JOB_ID = "idle_session_eviction"


def format_eviction_text(idle_minutes: int) -> str:
    """Текст уведомления о сброшенном тесте."""
    return (
        f"⏳ Тест был отменён: ответа не было больше {idle_minutes} мин.\n\n"
        "Начать заново можно в любое время — список тестов: /tests"
    )


async def evict_idle_sessions(bot: Bot, registry: SessionRegistry, idle_minutes: int) -> int:
    """
    Сбросить простаивающие сессии и уведомить пользователей.
    
    Returns:
        Количество сброшенных сессий
    """
    evicted = await registry.evict_idle(idle_minutes * 60)
    
    for chat_id in evicted:
        try:
            await bot.send_message(
                chat_id,
                format_eviction_text(idle_minutes),
                reply_markup=remove_reply_keyboard(),
            )
        except Exception as e:
            logger.warning(f"Failed to notify {chat_id} about evicted session: {e}")
    
    return len(evicted)


async def scheduler_loop(bot: Bot, registry: SessionRegistry, idle_minutes: int):
    """
    Wrapper для APScheduler job.
    """
    try:
        evicted = await evict_idle_sessions(bot, registry, idle_minutes)
        if evicted > 0:
            logger.info(f"Dropped {evicted} idle sessions")
    except Exception as e:
        logger.error(f"Scheduler error: {e}")


def create_scheduler(
    bot: Bot,
    registry: SessionRegistry,
    idle_minutes: int,
    check_interval: int,
) -> AsyncIOScheduler:
    """Планировщик с задачей сброса простаивающих сессий."""
    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        scheduler_loop,
        IntervalTrigger(seconds=check_interval),
        args=[bot, registry, idle_minutes],
        id=EVICTION_JOB_ID,
        replace_existing=True,
    )
    return scheduler
