from pydantic import BaseModel, Field, field_validator
from typing import Optional
from uuid import UUID
from datetime import datetime

MIN_PASSWORD_LENGTH = 6

class UserCreateModel(BaseModel):
    username: str = Field(..., description="Display handle, stored lower-cased")
    password: str

    @field_validator("username")
    @classmethod
    def username_not_blank(cls, v):
        if not v.strip():
            raise ValueError("Username is required")
        return v.strip()

class UserLoginModel(BaseModel):
    username: str
    password: str

class UserSchema(BaseModel):
    id: UUID
    username: str
    original_username: str
    display_name: str
    bio: Optional[str] = None
    profile_picture: Optional[str] = None
    custom_player_id: int
    xp: int
    level: int
    daily_streak: int
    days_completed_this_cycle: int
    last_streak_update_date: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class UserUpdateSchema(BaseModel):
    display_name: Optional[str] = Field(None, min_length=1)
    bio: Optional[str] = None
    profile_picture: Optional[str] = None

class AuthResponse(BaseModel):
    message: str
    access_token: str
    user: UserSchema

class ProfileUpdateResponse(BaseModel):
    message: str
    user: UserSchema
