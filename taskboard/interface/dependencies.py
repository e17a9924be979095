"""Request-scoped dependencies: services and identity resolution."""

import logging
from typing import Annotated

from fastapi import Depends, Header, Request

from taskboard.core.db_client import DBClient
from taskboard.core.errors import ExpiredToken, InvalidToken, Unauthorized, UnauthorizedReason
from taskboard.domain.user import User
from taskboard.services.credential_service import CredentialService
from taskboard.services.task_service import TaskService
from taskboard.services.user_service import UserService


logger = logging.getLogger(__name__)


def get_db(request: Request) -> DBClient:
    return request.app.state.db


def get_credential_service(request: Request) -> CredentialService:
    return request.app.state.credentials


def get_task_service(db: Annotated[DBClient, Depends(get_db)]) -> TaskService:
    return TaskService(db)


def get_user_service(
    db: Annotated[DBClient, Depends(get_db)],
    credentials: Annotated[CredentialService, Depends(get_credential_service)],
) -> UserService:
    return UserService(db, credentials)


def extract_bearer_token(authorization: str | None) -> str | None:
    """Return the token from an ``Authorization: Bearer <token>`` header, if any."""
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        return None
    return token


async def require_user(
    request: Request,
    users: Annotated[UserService, Depends(get_user_service)],
    credentials: Annotated[CredentialService, Depends(get_credential_service)],
    authorization: Annotated[str | None, Header()] = None,
) -> User:
    """Resolve the caller's identity or fail with 401."""
    token = extract_bearer_token(authorization)
    if token is None:
        logger.warning("auth_missing_token", extra={"path": request.url.path})
        raise Unauthorized("Not authorized to access this route", reason=UnauthorizedReason.MISSING)

    try:
        user_id = credentials.verify_token(token)
    except ExpiredToken as err:
        logger.warning("auth_token_expired", extra={"path": request.url.path})
        raise Unauthorized("Token expired", reason=UnauthorizedReason.EXPIRED) from err
    except InvalidToken as err:
        logger.warning("auth_token_invalid", extra={"path": request.url.path})
        raise Unauthorized("Invalid token", reason=UnauthorizedReason.INVALID) from err

    user = await users.get_user(user_id)
    if user is None:
        logger.warning("auth_user_not_found", extra={"path": request.url.path, "user_id": user_id})
        raise Unauthorized("User not found", reason=UnauthorizedReason.USER_NOT_FOUND)

    request.state.user = user
    return user


async def optional_user(
    request: Request,
    users: Annotated[UserService, Depends(get_user_service)],
    credentials: Annotated[CredentialService, Depends(get_credential_service)],
    authorization: Annotated[str | None, Header()] = None,
) -> User | None:
    """Resolve the caller's identity if possible; never fails."""
    request.state.user = None
    token = extract_bearer_token(authorization)
    if token is None:
        return None

    try:
        user_id = credentials.verify_token(token)
    except (ExpiredToken, InvalidToken):
        logger.debug("auth_optional_token_rejected", extra={"path": request.url.path})
        return None

    user = await users.get_user(user_id)
    request.state.user = user
    return user


CurrentUser = Annotated[User, Depends(require_user)]
OptionalUser = Annotated[User | None, Depends(optional_user)]
