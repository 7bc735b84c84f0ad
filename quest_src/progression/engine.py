"""
XP, level and daily streak bookkeeping for quest completion toggles.

Pure functions over pydantic value objects: nothing here touches the
database or the clock. Callers load the user, fetch today's date (which may
be missing when the clock is down) and persist what comes back.
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict
from quest_src.clock import day_before

XP_PER_LEVEL = 100
CYCLE_LENGTH = 7

class ProgressState(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    xp: int = 0
    level: int = 1
    daily_streak: int = 0
    days_completed_this_cycle: int = 0
    last_streak_update_date: Optional[str] = None

class QuestCompletion(BaseModel):
    is_completed: bool
    completed_at: Optional[datetime] = None

class ToggleOutcome(BaseModel):
    quest: QuestCompletion
    user: ProgressState

def cycle_position(daily_streak: int) -> int:
    """1-based day within the rolling 7-day cycle."""
    return (daily_streak - 1) % CYCLE_LENGTH + 1

def apply_xp_change(xp: int, quest_xp: int, completed: bool) -> int:
    if completed:
        return xp + quest_xp
    return max(0, xp - quest_xp)

def normalize_level(xp: int, level: int):
    # Levels are never taken back; only the remainder can shrink.
    while xp >= XP_PER_LEVEL:
        xp -= XP_PER_LEVEL
        level += 1
    return xp, level

def is_streak_broken(last_streak_update_date: Optional[str], today: str) -> bool:
    if not last_streak_update_date:
        return False
    return last_streak_update_date != day_before(today)

def advance_streak(state: ProgressState, today: str) -> ProgressState:
    if state.last_streak_update_date == today:
        return state

    daily_streak = state.daily_streak
    if is_streak_broken(state.last_streak_update_date, today):
        daily_streak = 0

    daily_streak += 1
    return state.model_copy(update={
        "daily_streak": daily_streak,
        "days_completed_this_cycle": cycle_position(daily_streak),
        "last_streak_update_date": today,
    })

def apply_completion_toggle(
    state: ProgressState,
    quest_xp: int,
    completed: bool,
    today: Optional[str],
    now: datetime,
) -> ToggleOutcome:
    """
    Compute the quest and user fields after toggling a quest to ``completed``.

    Un-completing claws the XP back (floored at zero) but never touches the
    streak. The streak only moves on completion and only when ``today`` is
    known.
    """
    xp = apply_xp_change(state.xp, quest_xp, completed)
    xp, level = normalize_level(xp, state.level)
    new_state = state.model_copy(update={"xp": xp, "level": level})

    if completed and today is not None:
        new_state = advance_streak(new_state, today)

    return ToggleOutcome(
        quest=QuestCompletion(
            is_completed=completed,
            completed_at=now if completed else None,
        ),
        user=new_state,
    )
