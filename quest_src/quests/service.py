from typing import AsyncIterator, List, Optional
from uuid import UUID
import logging
from sqlalchemy import select, update, delete, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from quest_src.db.models import Quest, QuestType
from quest_src.exceptions import PersistenceFailure
from .schema import QuestCreate

logger = logging.getLogger(__name__)

def _needs_reset(today: str):
    return or_(Quest.last_reset_date.is_(None), Quest.last_reset_date != today)

class QuestService:
    async def get_quest(self, quest_id: UUID, owner_id: UUID, session: AsyncSession,
                        for_update: bool = False) -> Optional[Quest]:
        try:
            stmt = select(Quest).where(Quest.id == quest_id, Quest.user_id == owner_id)
            if for_update:
                stmt = stmt.with_for_update().execution_options(populate_existing=True)
            result = await session.execute(stmt)
            return result.scalars().first()
        except SQLAlchemyError as e:
            logger.error(f"Error loading quest {quest_id}: {e}")
            raise PersistenceFailure("Could not load quest") from e

    async def list_quests(self, owner_id: UUID, session: AsyncSession) -> List[Quest]:
        try:
            result = await session.execute(
                select(Quest).where(Quest.user_id == owner_id).order_by(Quest.created_at.desc())
            )
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Error listing quests for {owner_id}: {e}")
            raise PersistenceFailure("Could not list quests") from e

    async def create_quest(self, owner_id: UUID, quest_data: QuestCreate,
                           today: Optional[str], session: AsyncSession) -> Quest:
        new_quest = Quest(
            user_id=owner_id,
            name=quest_data.name,
            xp=quest_data.xp,
            type=quest_data.type,
            is_completed=False,
            completed_at=None,
            last_reset_date=today if quest_data.type == QuestType.DAILY else None,
        )
        session.add(new_quest)
        try:
            await session.commit()
            await session.refresh(new_quest)
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"Error creating quest for {owner_id}: {e}")
            raise PersistenceFailure("Could not create quest") from e
        return new_quest

    async def delete_quest(self, quest_id: UUID, owner_id: UUID, session: AsyncSession) -> bool:
        try:
            result = await session.execute(
                delete(Quest).where(Quest.id == quest_id, Quest.user_id == owner_id)
            )
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"Error deleting quest {quest_id}: {e}")
            raise PersistenceFailure("Could not delete quest") from e
        return result.rowcount > 0

    async def daily_quest_ids_needing_reset(self, today: str, session: AsyncSession) -> AsyncIterator[UUID]:
        result = await session.execute(
            select(Quest.id)
            .where(Quest.type == QuestType.DAILY)
            .where(_needs_reset(today))
            .order_by(Quest.id)
        )
        for quest_id in result.scalars().all():
            yield quest_id

    async def reset_daily_quest(self, quest_id: UUID, today: str, session: AsyncSession) -> bool:
        """Marks a daily quest open for ``today`` unless it was already reset."""
        result = await session.execute(
            update(Quest)
            .where(Quest.id == quest_id)
            .where(Quest.type == QuestType.DAILY)
            .where(_needs_reset(today))
            .values(is_completed=False, last_reset_date=today)
        )
        await session.commit()
        return result.rowcount > 0
