import logging
from datetime import datetime, timezone
from typing import NamedTuple, Optional
from uuid import UUID
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from quest_src.auth.service import UserService
from quest_src.clock import ClockSource, today_or_none
from quest_src.db.models import Quest, User
from quest_src.exceptions import PersistenceFailure, QuestNotFound, UserNotFound
from quest_src.quests.service import QuestService
from .engine import ProgressState, apply_completion_toggle
from .locks import KeyedLock

logger = logging.getLogger(__name__)

class ToggleResult(NamedTuple):
    quest: Quest
    user: User

class ProgressionService:
    """
    Runs a quest completion toggle end to end: load, compute, persist.

    Toggles for the same user are serialized in-process, and both rows are
    read ``FOR UPDATE`` so concurrent workers cannot double-apply XP.
    """

    def __init__(self, user_service: Optional[UserService] = None,
                 quest_service: Optional[QuestService] = None):
        self.user_service = user_service or UserService()
        self.quest_service = quest_service or QuestService()
        self.user_locks = KeyedLock()

    async def toggle_completion(self, user_id: UUID, quest_id: UUID, session: AsyncSession,
                                clock: ClockSource, now: Optional[datetime] = None) -> ToggleResult:
        # No lock is held while waiting on the clock.
        today = await today_or_none(clock)

        async with self.user_locks.hold(user_id):
            quest = await self.quest_service.get_quest(quest_id, user_id, session, for_update=True)
            if quest is None:
                await session.rollback()
                raise QuestNotFound(quest_id)

            user = await self.user_service.get_user_by_id(user_id, session, for_update=True)
            if user is None:
                await session.rollback()
                raise UserNotFound(user_id)

            completed = not quest.is_completed
            if not completed:
                today = None

            outcome = apply_completion_toggle(
                ProgressState.model_validate(user),
                quest.xp,
                completed,
                today,
                now or datetime.now(timezone.utc),
            )

            try:
                for field, value in outcome.quest.model_dump().items():
                    setattr(quest, field, value)
                for field, value in outcome.user.model_dump().items():
                    setattr(user, field, value)
                await session.commit()
                await session.refresh(quest)
                await session.refresh(user)
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error(f"Failed to persist toggle of quest {quest_id} for user {user_id}: {e}", exc_info=True)
                raise PersistenceFailure("Could not save quest progress") from e

        logger.info(
            f"Quest {quest_id} {'completed' if completed else 'reopened'} by {user_id}: "
            f"level {user.level}, xp {user.xp}, streak {user.daily_streak}"
        )
        return ToggleResult(quest=quest, user=user)
