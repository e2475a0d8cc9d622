import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException, status

from app.core.security import create_access_token, get_current_user_id, get_password_hash, verify_password
from app.db import dynamo
from app.models.user import (
    PROFILE_FIELDS,
    PasswordChange,
    PasswordResetRequest,
    UserCreate,
    UserInDB,
    UserLogin,
    UserProfileUpdate,
    UserPublic,
)

router = APIRouter()
logger = logging.getLogger(__name__)

PASSWORD_RESET_MESSAGE = "If your email is registered, you will receive a password reset link."


def _public(user: Dict[str, Any]) -> UserPublic:
    return UserPublic(
        user_id=user["user_id"],
        email=user["email"],
        first_name=user.get("first_name"),
        last_name=user.get("last_name"),
        preferences=user.get("preferences") or {},
        created_at=user.get("created_at", ""),
    )


def _token_response(user: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "access_token": create_access_token(data={"sub": user["user_id"]}),
        "token_type": "bearer",
        "user": _public(user).model_dump(),
    }


def _load_user(user_id: str) -> Dict[str, Any]:
    user = dynamo.get_user_by_id(user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(user: UserCreate):
    # Check if user already exists
    existing = dynamo.get_user_by_email(user.email)
    if existing:
        logger.warning(f"Registration refused, email already in use: {user.email}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already in use")

    user_db = UserInDB(
        email=user.email,
        password_hash=get_password_hash(user.password),
        first_name=user.first_name,
        last_name=user.last_name,
    )
    if not dynamo.put_user(user_db.model_dump()):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User already exists")

    logger.info(f"Registered user {user_db.user_id}")
    return _token_response(user_db.model_dump())


@router.post("/login")
def login(login_data: UserLogin):
    logger.info(f"Login attempt for email: {login_data.email}")
    user = dynamo.get_user_by_email(login_data.email)

    if not user or not verify_password(login_data.password, user["password_hash"]):
        logger.warning(f"Invalid login credentials for: {login_data.email}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid login credentials")

    logger.info(f"Login successful for user: {login_data.email}")
    return _token_response(user)


@router.post("/logout")
def logout(user_id: str = Depends(get_current_user_id)):
    # Tokens are stateless; the client discards its copy
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=UserPublic)
def get_current_user(user_id: str = Depends(get_current_user_id)):
    """Get current user profile"""
    return _public(_load_user(user_id))


@router.patch("/me", response_model=UserPublic)
def update_profile(
    updates: Dict[str, Any] = Body(...),
    user_id: str = Depends(get_current_user_id),
):
    if not set(updates) <= PROFILE_FIELDS:
        raise HTTPException(status_code=400, detail="Invalid updates!")

    profile = UserProfileUpdate(**updates)
    updated = dynamo.update_user(user_id, profile.model_dump(exclude_unset=True))
    if not updated:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return _public(updated)


@router.post("/change-password")
def change_password(payload: PasswordChange, user_id: str = Depends(get_current_user_id)):
    user = _load_user(user_id)
    if not verify_password(payload.current_password, user["password_hash"]):
        raise HTTPException(status_code=400, detail="Current password is incorrect")

    dynamo.update_user(user_id, {"password_hash": get_password_hash(payload.new_password)})
    logger.info(f"Password changed for user {user_id}")
    return {"message": "Password updated successfully"}


@router.post("/request-password-reset")
def request_password_reset(payload: PasswordResetRequest):
    """Always answers the same way so callers cannot probe which emails exist."""
    user = dynamo.get_user_by_email(payload.email)
    if user:
        logger.info(f"Password reset requested for user {user['user_id']}")
    return {"message": PASSWORD_RESET_MESSAGE}
