import logging

from fastapi import APIRouter, Depends, HTTPException, status

from app.core.security import create_access_token, get_current_user_id, get_password_hash, verify_password
from app.db import dynamo
from app.models.common import success
from app.models.user import UserCreate, UserInDB, UserLogin, UserPublic

router = APIRouter()
logger = logging.getLogger(__name__)


def _token_response(user: dict) -> dict:
    token = create_access_token(data={"sub": user["user_id"]})
    return success(token=token, data=UserPublic.from_item(user).model_dump())


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(user: UserCreate):
    email = user.email.lower()
    if dynamo.get_user_by_email(email):
        raise HTTPException(status_code=400, detail="User already exists")

    user_db = UserInDB(
        name=user.name,
        email=email,
        password_hash=get_password_hash(user.password),
    )
    dynamo.put_user(user_db.model_dump())
    logger.info(f"Registered user {user_db.user_id}")
    return _token_response(user_db.model_dump())


@router.post("/login")
def login(login_data: UserLogin):
    email = login_data.email.lower()
    user = dynamo.get_user_by_email(email)

    if not user:
        logger.warning(f"Login failed, unknown email: {email}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    if not verify_password(login_data.password, user["password_hash"]):
        logger.warning(f"Login failed, bad password for user: {user['user_id']}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    logger.info(f"Login successful for user: {user['user_id']}")
    return _token_response(user)


@router.get("/me")
def get_current_user(user_id: str = Depends(get_current_user_id)):
    """Get current user profile"""
    user = dynamo.get_user_by_id(user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return success(data=UserPublic.from_item(user).model_dump())
