from fastapi import APIRouter, Depends, status, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from quest_src.db.models import User
from quest_src.db.db_connect import get_session
from quest_src.exceptions import PersistenceFailure
from .schema import (
    UserCreateModel, UserLoginModel, UserSchema, UserUpdateSchema,
    AuthResponse, ProfileUpdateResponse, MIN_PASSWORD_LENGTH
)
from .service import UserService, UsernameTaken
from .utils import create_access_token, verify_password
from .dependencies import get_current_user

logger = logging.getLogger(__name__)

auth_router = APIRouter()
user_router = APIRouter()
user_service = UserService()

def _token_for(user: User) -> str:
    return create_access_token(
        user_data={"sub": str(user.id), "username": user.username}
    )

@auth_router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def create_user_account(
    user_data: UserCreateModel,
    session: AsyncSession = Depends(get_session)
):
    if len(user_data.password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters."
        )

    try:
        if await user_service.user_exists(user_data.username, session):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Username is already taken."
            )
        new_user = await user_service.create_user(user_data, session)
    except UsernameTaken:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username is already taken."
        )
    except PersistenceFailure:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server error during signup."
        )

    logger.info(f"New player #{new_user.custom_player_id} signed up as {new_user.username}")
    return AuthResponse(
        message="User created!",
        access_token=_token_for(new_user),
        user=UserSchema.model_validate(new_user),
    )

@auth_router.post("/login", response_model=AuthResponse, status_code=status.HTTP_200_OK)
async def login_user(
    user_login_data: UserLoginModel,
    session: AsyncSession = Depends(get_session)
):
    try:
        user = await user_service.get_user_by_login(user_login_data.username, session)
    except PersistenceFailure:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server error during login."
        )

    if user is None or not verify_password(user_login_data.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password"
        )

    return AuthResponse(
        message="Login successful!",
        access_token=_token_for(user),
        user=UserSchema.model_validate(user),
    )

@user_router.get("/state", response_model=UserSchema)
async def get_user_state(user: User = Depends(get_current_user)):
    """Current profile and progression of the authenticated user."""
    return UserSchema.model_validate(user)

@user_router.put("/profile", response_model=ProfileUpdateResponse)
async def update_profile(
    update_data: UserUpdateSchema,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    update_dict = update_data.model_dump(exclude_unset=True)
    if not update_dict:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No profile data to update."
        )

    try:
        updated_user = await user_service.update_user(user, update_dict, session)
    except PersistenceFailure:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update profile."
        )
    return ProfileUpdateResponse(
        message="Profile updated.",
        user=UserSchema.model_validate(updated_user),
    )
