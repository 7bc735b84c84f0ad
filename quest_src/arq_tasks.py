import logging
from quest_src.exceptions import ClockUnavailable

logger = logging.getLogger(__name__)

async def run_daily_reset_task(ctx):
    for key in ("database", "clock", "reset_service"):
        if key not in ctx:
            raise RuntimeError(f"ARQ ctx['{key}'] not set, did startup() run?")

    database = ctx["database"]
    logger.info("Starting daily reset sweep")
    try:
        async with database.session_maker() as session:
            report = await ctx["reset_service"].run_with_clock(ctx["clock"], session)
    except ClockUnavailable as e:
        logger.error(f"Daily reset aborted, clock unavailable: {e}")
        raise

    return report.model_dump()
