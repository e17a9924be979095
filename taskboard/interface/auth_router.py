"""Authentication endpoints."""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, status

from taskboard.domain.create_models import LoginRequest, RegisterRequest
from taskboard.domain.update_models import UserUpdate
from taskboard.domain.user import AuthResult, User
from taskboard.interface.dependencies import CurrentUser, get_user_service
from taskboard.services.user_service import UserService


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

Users = Annotated[UserService, Depends(get_user_service)]


@router.post("/register", response_model=AuthResult, status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterRequest, users: Users) -> AuthResult:
    """Register a user and return it with a session token."""
    return await users.register(payload)


@router.post("/login", response_model=AuthResult)
async def login(payload: LoginRequest, users: Users) -> AuthResult:
    """Exchange email and password for a session token."""
    return await users.login(payload)


@router.get("/me", response_model=User)
async def get_me(user: CurrentUser) -> User:
    """Return the authenticated user."""
    return user


@router.put("/me", response_model=User)
async def update_me(payload: UserUpdate, user: CurrentUser, users: Users) -> User:
    """Update the authenticated user's name, email or password."""
    return await users.update_user(user.id, payload)


@router.post("/logout")
async def logout(user: CurrentUser) -> dict[str, Any]:
    """Tokens are stateless; the client discards its copy."""
    logger.info("User logged out", extra={"user_id": user.id})
    return {"success": True, "message": "Logged out successfully"}
