from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from uuid import UUID
from quest_src.db.models import QuestType
from quest_src.auth.schema import UserSchema

class QuestSchema(BaseModel):
    id: UUID
    user_id: UUID
    name: str
    xp: int
    type: QuestType
    is_completed: bool
    completed_at: Optional[datetime] = None
    last_reset_date: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class QuestCreate(BaseModel):
    name: str = Field(..., min_length=1, description="Name of the quest")
    xp: int = Field(..., gt=0, description="XP awarded on completion")
    type: QuestType

class ToggleResponse(BaseModel):
    message: str
    updated_quest: QuestSchema
    updated_user: UserSchema
