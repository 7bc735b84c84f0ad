from fastapi import Depends
from fastapi.security import HTTPBearer
from fastapi.exceptions import HTTPException
from fastapi.security.http import HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID
from quest_src.db.db_connect import get_session
from quest_src.db.models import User
from .utils import decode_access_token
from .service import UserService


user_service = UserService()

class AccessTokenBearer:
    scheme = HTTPBearer(auto_error=False)

    async def __call__(self, credentials: HTTPAuthorizationCredentials = Depends(scheme)) -> dict:
        if not credentials:
            raise HTTPException(status_code=401, detail="Access denied. No token provided.")

        token_data = decode_access_token(credentials.credentials)
        if not token_data:
            raise HTTPException(status_code=403, detail="Token is invalid or expired")

        return token_data

def get_current_user_id(token_data: dict = Depends(AccessTokenBearer())) -> UUID:
    user_id = token_data.get("user", {}).get("sub")
    if not user_id:
        raise HTTPException(status_code=403, detail="Invalid user in token")
    try:
        return UUID(user_id)
    except ValueError:
        raise HTTPException(status_code=403, detail="Invalid user in token")

async def get_current_user(
    user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
) -> User:
    user = await user_service.get_user_by_id(user_id, session)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user
