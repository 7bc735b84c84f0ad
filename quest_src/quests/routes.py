from fastapi import APIRouter, HTTPException, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from uuid import UUID
from quest_src.db.db_connect import get_session
from quest_src.db.models import QuestType
from quest_src.auth.dependencies import get_current_user_id
from quest_src.auth.schema import UserSchema
from quest_src.clock import ClockSource, today_or_none
from quest_src.exceptions import NotFound, PersistenceFailure
from quest_src.progression.dependencies import get_clock, get_progression_service
from quest_src.progression.service import ProgressionService
from .schema import QuestCreate, QuestSchema, ToggleResponse
from .service import QuestService

quest_router = APIRouter()
quest_service = QuestService()

@quest_router.post("", response_model=QuestSchema, status_code=status.HTTP_201_CREATED)
async def create_quest(
    quest_data: QuestCreate,
    session: AsyncSession = Depends(get_session),
    user_id: UUID = Depends(get_current_user_id),
    clock: ClockSource = Depends(get_clock),
):
    today: Optional[str] = None
    if quest_data.type == QuestType.DAILY:
        today = await today_or_none(clock)

    try:
        return await quest_service.create_quest(user_id, quest_data, today, session)
    except PersistenceFailure:
        raise HTTPException(status_code=500, detail="Failed to add quest.")

@quest_router.get("", response_model=List[QuestSchema])
async def get_quests(
    session: AsyncSession = Depends(get_session),
    user_id: UUID = Depends(get_current_user_id),
):
    try:
        return await quest_service.list_quests(user_id, session)
    except PersistenceFailure:
        raise HTTPException(status_code=500, detail="Failed to fetch quests.")

@quest_router.put("/{quest_id}/toggle", response_model=ToggleResponse)
async def toggle_quest(
    quest_id: UUID,
    session: AsyncSession = Depends(get_session),
    user_id: UUID = Depends(get_current_user_id),
    clock: ClockSource = Depends(get_clock),
    progression: ProgressionService = Depends(get_progression_service),
):
    try:
        result = await progression.toggle_completion(user_id, quest_id, session, clock)
    except NotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PersistenceFailure:
        raise HTTPException(status_code=500, detail="Failed to update quest status.")

    return ToggleResponse(
        message="Quest status updated.",
        updated_quest=QuestSchema.model_validate(result.quest),
        updated_user=UserSchema.model_validate(result.user),
    )

@quest_router.delete("/{quest_id}")
async def delete_quest(
    quest_id: UUID,
    session: AsyncSession = Depends(get_session),
    user_id: UUID = Depends(get_current_user_id),
):
    try:
        deleted = await quest_service.delete_quest(quest_id, user_id, session)
    except PersistenceFailure:
        raise HTTPException(status_code=500, detail="Failed to delete quest.")
    if not deleted:
        raise HTTPException(status_code=404, detail="Quest not found or not owned by you")
    return {"message": "Quest deleted successfully"}
