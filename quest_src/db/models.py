from sqlalchemy import (Column, Integer, String, ForeignKey, DateTime, Enum,
                        Boolean, Uuid)
from sqlalchemy.orm import relationship, declarative_base
from datetime import datetime, timezone
from enum import Enum as PyEnum
from uuid import uuid4

Base = declarative_base()

DEFAULT_BIO = "Brave adventurer!"
PLAYER_COUNTER = "player_counter"

def utcnow():
    return datetime.now(timezone.utc)

class QuestType(str, PyEnum):
    DAILY = "daily"
    ONE_OFF = "one-off"

class AppCounter(Base):
    __tablename__ = "app_counters"

    name = Column(String, primary_key=True)
    count = Column(Integer, default=0, nullable=False)

class User(Base):
    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), default=uuid4, primary_key=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    username = Column(String, unique=True, index=True, nullable=False)
    original_username = Column(String, nullable=False)
    email_for_auth = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    display_name = Column(String, nullable=False)
    bio = Column(String, default=DEFAULT_BIO, nullable=True)
    profile_picture = Column(String, nullable=True)
    custom_player_id = Column(Integer, unique=True, nullable=False)

    xp = Column(Integer, default=0, nullable=False)
    level = Column(Integer, default=1, nullable=False)
    daily_streak = Column(Integer, default=0, nullable=False)
    days_completed_this_cycle = Column(Integer, default=0, nullable=False)
    # "YYYY-MM-DD" in the application time zone
    last_streak_update_date = Column(String(10), nullable=True)

    quests = relationship("Quest", back_populates="owner", cascade="all, delete-orphan")

class Quest(Base):
    __tablename__ = "quests"

    id = Column(Uuid(as_uuid=True), default=uuid4, primary_key=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)

    name = Column(String, nullable=False)
    xp = Column(Integer, nullable=False)
    type = Column(Enum(QuestType), default=QuestType.ONE_OFF, index=True, nullable=False)
    is_completed = Column(Boolean, default=False, nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    last_reset_date = Column(String(10), nullable=True)

    owner = relationship("User", back_populates="quests")
