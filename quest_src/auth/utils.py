from fastapi import status, HTTPException
from datetime import datetime, timedelta, timezone
from passlib.context import CryptContext
from quest_src.config import Config
import logging
import re
import jwt
import uuid
from jwt.exceptions import ExpiredSignatureError, DecodeError

AUTH_EMAIL_DOMAIN = "questapp.local"

password_context = CryptContext(
    schemes=["bcrypt"]
)

def generate_password_hash(password: str) -> str:
    return password_context.hash(password)

def verify_password(password: str, hash: str) -> bool:
    return password_context.verify(password, hash)

def normalize_username(username: str) -> str:
    return username.strip().lower()

def email_for_auth(username: str) -> str:
    local_part = re.sub(r"\s+", "_", username.lower())
    return f"{local_part}@{AUTH_EMAIL_DOMAIN}"

def create_access_token(user_data: dict, **kwargs):
    payload = {
        "user": user_data,
        "jti": str(uuid.uuid4()),
    }

    if "expiry" in kwargs:
        payload["exp"] = datetime.now(timezone.utc) + kwargs["expiry"]
    else:
        payload["exp"] = datetime.now(timezone.utc) + timedelta(hours=Config.ACCESS_TOKEN_EXPIRY_HOURS)

    return jwt.encode(payload, Config.JWT_SECRET_KEY, algorithm=Config.JWT_ALGORITHM)

def decode_access_token(token: str) -> dict:
    try:
        return jwt.decode(
            token,
            Config.JWT_SECRET_KEY,
            algorithms=[Config.JWT_ALGORITHM],
            options={
                "require": ["exp"],
                "verify_exp": True
            }
        )
    except ExpiredSignatureError:
        logging.warning("Token has expired")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Token is invalid or expired"
        )
    except DecodeError:
        logging.warning("Invalid token format")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Token is invalid or expired"
        )
    except jwt.PyJWTError as e:
        logging.error(f"Token verification failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Token is invalid or expired"
        )
