from arq import create_pool
from arq.connections import ArqRedis, RedisSettings
from quest_src.config import Config

REDIS_SETTINGS = RedisSettings.from_dsn(Config.REDIS_URL)
REDIS_SETTINGS.conn_timeout = Config.REDIS_CONN_TIMEOUT_SECONDS

# The reset worker listens only on this queue, not on arq's shared default.
RESET_QUEUE_NAME = Config.RESET_QUEUE_NAME
DAILY_RESET_JOB = "run_daily_reset_task"

async def get_redis_pool():
    redis = await create_pool(REDIS_SETTINGS, default_queue_name=RESET_QUEUE_NAME)
    try:
        yield redis
    finally:
        await redis.close()

async def enqueue_daily_reset(redis: ArqRedis):
    """Queue an immediate sweep; returns None while one is already queued."""
    return await redis.enqueue_job(DAILY_RESET_JOB, _queue_name=RESET_QUEUE_NAME)
