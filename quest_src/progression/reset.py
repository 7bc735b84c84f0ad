"""
Daily reset sweep.

Reopens every daily quest that has not been reset for ``today`` and zeroes
the streak of every user whose last credited day is older than yesterday.
Each record is written with its own conditional update and commit, so the
sweep can be rerun or resumed on the same day without touching anything
twice, and one bad record does not stop the batch.
"""
import logging
from typing import Optional
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from quest_src.auth.service import UserService
from quest_src.clock import ClockSource, day_before
from quest_src.exceptions import PersistenceFailure
from quest_src.quests.service import QuestService

logger = logging.getLogger(__name__)

class DailyResetReport(BaseModel):
    today: str
    quests_reset: int = 0
    streaks_broken: int = 0
    failures: int = 0

def streak_lapsed(last_streak_update_date: Optional[str], today: str) -> bool:
    """True when the user completed nothing yesterday and nothing yet today."""
    if not last_streak_update_date or last_streak_update_date == today:
        return False
    return last_streak_update_date != day_before(today)

class DailyResetService:
    def __init__(self, user_service: Optional[UserService] = None,
                 quest_service: Optional[QuestService] = None):
        self.user_service = user_service or UserService()
        self.quest_service = quest_service or QuestService()

    async def run_with_clock(self, clock: ClockSource, session: AsyncSession) -> DailyResetReport:
        # ClockUnavailable propagates: no date, no sweep.
        today = await clock.today()
        return await self.run(today, session)

    async def run(self, today: str, session: AsyncSession) -> DailyResetReport:
        report = DailyResetReport(today=today)
        await self._reset_daily_quests(today, session, report)
        await self._break_lapsed_streaks(today, session, report)
        logger.info(
            f"Daily reset for {today}: {report.quests_reset} quests reset, "
            f"{report.streaks_broken} streaks broken, {report.failures} failures"
        )
        return report

    async def _reset_daily_quests(self, today: str, session: AsyncSession, report: DailyResetReport):
        try:
            quest_ids = [
                quest_id async for quest_id in
                self.quest_service.daily_quest_ids_needing_reset(today, session)
            ]
        except SQLAlchemyError as e:
            logger.error(f"Could not list daily quests for reset: {e}", exc_info=True)
            raise PersistenceFailure("Could not list daily quests") from e

        for quest_id in quest_ids:
            try:
                if await self.quest_service.reset_daily_quest(quest_id, today, session):
                    report.quests_reset += 1
            except SQLAlchemyError as e:
                await session.rollback()
                report.failures += 1
                logger.error(f"Failed to reset daily quest {quest_id}: {e}")

    async def _break_lapsed_streaks(self, today: str, session: AsyncSession, report: DailyResetReport):
        try:
            candidates = [
                row async for row in
                self.user_service.iter_users_with_streak(today, session)
            ]
        except SQLAlchemyError as e:
            logger.error(f"Could not list users for streak check: {e}", exc_info=True)
            raise PersistenceFailure("Could not list users") from e

        for user_id, last_streak_update_date in candidates:
            if not streak_lapsed(last_streak_update_date, today):
                continue
            try:
                if await self.user_service.break_streak(user_id, last_streak_update_date, session):
                    report.streaks_broken += 1
            except SQLAlchemyError as e:
                await session.rollback()
                report.failures += 1
                logger.error(f"Failed to break streak for user {user_id}: {e}")
