from typing import AsyncIterator, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, or_
from sqlalchemy.exc import SQLAlchemyError, IntegrityError
from quest_src.db.models import AppCounter, User, DEFAULT_BIO, PLAYER_COUNTER
from quest_src.exceptions import PersistenceFailure
from uuid import UUID
from .schema import UserCreateModel
from .utils import generate_password_hash, normalize_username, email_for_auth
import logging

logger = logging.getLogger(__name__)

class UsernameTaken(Exception):
    pass

class UserService:
    """
    Service class for user-related operations.
    """
    async def get_user_by_id(self, user_id: UUID, session: AsyncSession, for_update: bool = False) -> Optional[User]:
        """Retrieves a user by their ID, optionally locking the row."""
        try:
            stmt = select(User).where(User.id == user_id)
            if for_update:
                stmt = stmt.with_for_update().execution_options(populate_existing=True)
            result = await session.execute(stmt)
            return result.scalars().first()
        except SQLAlchemyError as e:
            logger.error(f"Error getting user by ID {user_id}: {e}")
            raise PersistenceFailure("Could not load user") from e

    async def get_user_by_login(self, username: str, session: AsyncSession) -> Optional[User]:
        """Matches either the stored username or the derived auth email."""
        try:
            stmt = select(User).where(or_(
                User.username == normalize_username(username),
                User.email_for_auth == email_for_auth(username),
            ))
            result = await session.execute(stmt)
            return result.scalars().first()
        except SQLAlchemyError as e:
            logger.error(f"Error getting user {username}: {e}")
            raise PersistenceFailure("Could not load user") from e

    async def user_exists(self, username: str, session: AsyncSession) -> bool:
        return await self.get_user_by_login(username, session) is not None

    async def next_player_id(self, session: AsyncSession) -> int:
        result = await session.execute(
            select(AppCounter).where(AppCounter.name == PLAYER_COUNTER).with_for_update()
        )
        counter = result.scalars().first()
        if counter is None:
            counter = AppCounter(name=PLAYER_COUNTER, count=0)
            session.add(counter)
        counter.count += 1
        await session.flush()
        return counter.count

    async def create_user(self, user_data: UserCreateModel, session: AsyncSession) -> User:
        try:
            new_user = User(
                username=normalize_username(user_data.username),
                original_username=user_data.username,
                email_for_auth=email_for_auth(user_data.username),
                password_hash=generate_password_hash(user_data.password),
                display_name=user_data.username,
                bio=DEFAULT_BIO,
                xp=0,
                level=1,
                daily_streak=0,
                days_completed_this_cycle=0,
                last_streak_update_date=None,
                custom_player_id=await self.next_player_id(session),
            )
            session.add(new_user)
            await session.commit()
            await session.refresh(new_user)
        except IntegrityError as e:
            await session.rollback()
            raise UsernameTaken(user_data.username) from e
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"Error creating user {user_data.username}: {e}")
            raise PersistenceFailure("Could not create user") from e
        return new_user

    async def update_user(self, user: User, user_data: dict, session: AsyncSession) -> User:
        try:
            for key, value in user_data.items():
                setattr(user, key, value)
            await session.commit()
            await session.refresh(user)
            return user
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"Error updating user {user.id}: {e}")
            raise PersistenceFailure("Could not update user") from e

    async def iter_users_with_streak(self, today: str, session: AsyncSession) -> AsyncIterator[tuple]:
        """
        Yields (user_id, last_streak_update_date) for every user holding a
        non-zero streak that was last credited before ``today``.
        """
        stmt = (
            select(User.id, User.last_streak_update_date)
            .where(User.last_streak_update_date.is_not(None))
            .where(User.last_streak_update_date != today)
            .where(or_(User.daily_streak != 0, User.days_completed_this_cycle != 0))
            .order_by(User.id)
        )
        result = await session.execute(stmt)
        for row in result.all():
            yield row.id, row.last_streak_update_date

    async def break_streak(self, user_id: UUID, observed_date: str, session: AsyncSession) -> bool:
        """
        Zeroes the streak counters, but only while the row still carries the
        ``last_streak_update_date`` the caller judged as lapsed.
        """
        result = await session.execute(
            update(User)
            .where(User.id == user_id)
            .where(User.last_streak_update_date == observed_date)
            .values(daily_streak=0, days_completed_this_cycle=0)
        )
        await session.commit()
        return result.rowcount > 0
