import logging
from zoneinfo import ZoneInfo
from arq import cron
from quest_src.config import Config
from quest_src.clock import build_clock
from quest_src.db.db_connect import Database
from quest_src.progression.reset import DailyResetService
from quest_src.redis_config import REDIS_SETTINGS, RESET_QUEUE_NAME
from quest_src.arq_tasks import run_daily_reset_task

logger = logging.getLogger('arq.worker')

async def startup(ctx):
    logging.basicConfig(level=Config.LOG_LEVEL)
    logger.info("Starting worker initialization...")
    ctx['database'] = Database(Config.DATABASE_URL)
    ctx['clock'] = build_clock(Config)
    ctx['reset_service'] = DailyResetService()
    logger.info("Worker startup complete")

async def shutdown(ctx):
    logger.info("Worker shutting down")
    if 'clock' in ctx:
        await ctx['clock'].aclose()
    if 'database' in ctx:
        await ctx['database'].dispose()

class WorkerSettings:
    functions = [
        run_daily_reset_task,
    ]
    redis_settings = REDIS_SETTINGS
    queue_name = RESET_QUEUE_NAME
    cron_jobs = [
        cron(
            run_daily_reset_task,
            hour=Config.DAILY_RESET_HOUR,
            minute=Config.DAILY_RESET_MINUTE,
            name="daily_quest_reset",
            unique=True
        )
    ]

    timezone = ZoneInfo(Config.APP_TIMEZONE)
    job_timeout = 300
    max_jobs = 10

    on_startup = startup
    on_shutdown = shutdown
