from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from datetime import datetime, timedelta, timezone
from typing import Optional
from database import users_collection
from models.user import UserModel
from services.notification_engine import NotificationEngine
from services.notification_store import NotificationStore
from logging_config import get_logger, user_id_var
from config import config

logger = get_logger("auth")

# Config from central config
SECRET_KEY = config.SECRET_KEY
ALGORITHM = config.ALGORITHM
ACCESS_TOKEN_EXPIRE_MINUTES = config.ACCESS_TOKEN_EXPIRE_MINUTES

# Token issuance lives outside this service; the URL is only advertised in the OpenAPI docs
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/auth/login")

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)
    return encoded_jwt

async def get_current_user(token: str = Depends(oauth2_scheme)):
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        user_id: str = payload.get("sub")
        if user_id is None:
            logger.warning("Token decoded but missing 'sub' claim")
            raise credentials_exception
    except JWTError as e:
        logger.warning(f"JWT decode failed: {e}")
        raise credentials_exception

    user = await users_collection.find_one({"id": user_id})
    if user is None:
        logger.warning(f"Token valid but user not found in DB", extra={"data": {"user_id": user_id}})
        raise credentials_exception

    user_id_var.set(user_id)
    return UserModel(**user)


def get_notification_store() -> NotificationStore:
    return NotificationStore()


def get_notification_engine(store: NotificationStore = Depends(get_notification_store)) -> NotificationEngine:
    return NotificationEngine(store)
