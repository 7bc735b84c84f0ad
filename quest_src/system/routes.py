from fastapi import APIRouter, Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from arq.connections import ArqRedis
import logging
import secrets

from quest_src.config import Config
from quest_src.clock import ClockSource
from quest_src.db.db_connect import get_session
from quest_src.exceptions import ClockUnavailable, PersistenceFailure
from quest_src.progression.dependencies import get_clock, get_reset_service
from quest_src.progression.reset import DailyResetService
from quest_src.redis_config import enqueue_daily_reset, get_redis_pool

logger = logging.getLogger(__name__)

system_router = APIRouter()

def require_system_key(x_system_key: Optional[str] = Header(None)):
    if Config.SYSTEM_API_KEY is None:
        return
    if not x_system_key or not secrets.compare_digest(x_system_key, Config.SYSTEM_API_KEY):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid system key")

@system_router.post("/daily-reset", dependencies=[Depends(require_system_key)])
async def daily_reset(
    session: AsyncSession = Depends(get_session),
    clock: ClockSource = Depends(get_clock),
    reset_service: DailyResetService = Depends(get_reset_service),
):
    try:
        report = await reset_service.run_with_clock(clock, session)
    except ClockUnavailable as e:
        logger.error(f"Daily reset aborted, clock unavailable: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Could not determine the current date for the reset."
        )
    except PersistenceFailure:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Daily reset failed."
        )

    return {
        "message": "Daily reset complete.",
        "date": report.today,
        "daily_quests_reset": report.quests_reset,
        "streaks_broken": report.streaks_broken,
        "failures": report.failures,
    }

@system_router.post("/daily-reset/schedule", status_code=status.HTTP_202_ACCEPTED,
                    dependencies=[Depends(require_system_key)])
async def schedule_daily_reset(redis: ArqRedis = Depends(get_redis_pool)):
    job = await enqueue_daily_reset(redis)
    if job is None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Daily reset already queued")
    logger.info(f"Daily reset queued, job ID: {job.job_id}")
    return {"message": "Daily reset queued", "job_id": job.job_id}
