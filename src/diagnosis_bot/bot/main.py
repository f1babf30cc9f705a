"""
Medical Diagnosis Bot — точка входа.
"""
import asyncio
import logging
import sys

import sentry_sdk
from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode

from diagnosis_bot.bot.handlers import start, diagnostic
from diagnosis_bot.bot.middlewares import ErrorHandlerMiddleware, LoggingMiddleware
from diagnosis_bot.bot.scheduler import create_scheduler
from diagnosis_bot.core.config import Settings, get_settings
from diagnosis_bot.engine import DiagnosisService, SessionRegistry, TestCatalog, load_catalog


def create_dispatcher(catalog: TestCatalog, service: DiagnosisService) -> Dispatcher:
    """Диспетчер с middleware, роутерами и зависимостями для хендлеров."""
    dp = Dispatcher(catalog=catalog, service=service)
    
    # Регистрация middleware
    dp.message.middleware(LoggingMiddleware())
    dp.message.middleware(ErrorHandlerMiddleware())
    
    # Регистрация роутеров (порядок важен: diagnostic ловит любой текст)
    dp.include_router(start.router)
    dp.include_router(diagnostic.router)
    
    return dp


def setup_logging(config: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stdout,
    )


async def main():
    """Запуск бота."""
    config = get_settings()
    setup_logging(config)
    logger = logging.getLogger(__name__)
    
    if config.sentry_dsn:
        sentry_sdk.init(
            dsn=config.sentry_dsn,
            traces_sample_rate=0.1,
        )
    
    # Ошибка каталога фатальна: без тестов боту нечего делать
    catalog = load_catalog(config.catalog_path)
    registry = SessionRegistry()
    service = DiagnosisService(catalog, registry)
    
    bot = Bot(
        token=config.bot_token,
        default=DefaultBotProperties(parse_mode=ParseMode.HTML),
    )
    dp = create_dispatcher(catalog, service)
    
    scheduler = None
    if config.session_idle_timeout_minutes > 0:
        scheduler = create_scheduler(
            bot,
            registry,
            idle_minutes=config.session_idle_timeout_minutes,
            check_interval=config.eviction_check_interval,
        )
        scheduler.start()
        logger.info(f"⏰ Idle sessions are dropped after {config.session_idle_timeout_minutes} min")
    
    logger.info(f"🚀 Бот запускается, тестов в каталоге: {len(catalog)}")
    
    try:
        await dp.start_polling(bot)
    except Exception as e:
        logger.error(f"❌ Критическая ошибка: {e}")
        raise
    finally:
        logger.info("🛑 Бот останавливается...")
        if scheduler is not None and scheduler.running:
            scheduler.shutdown()
        await bot.session.close()


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
