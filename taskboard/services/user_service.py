"""User service for registration, login and profile management."""

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

from taskboard.core.db_client import Condition, DBClient, DuplicateRecordError, RecordNotFoundError
from taskboard.core.errors import DuplicateKey, NotFound, Unauthorized, UnauthorizedReason
from taskboard.core.logging import span
from taskboard.core.validators import validate_payload
from taskboard.domain.create_models import LoginRequest, RegisterRequest
from taskboard.domain.update_models import UserUpdate
from taskboard.domain.user import AuthResult, User
from taskboard.services.credential_service import CredentialService


logger = logging.getLogger(__name__)

COLLECTION = "users"


class UserService:
    """Account operations. The stored password hash never leaves this class."""

    def __init__(self, db: DBClient, credentials: CredentialService) -> None:
        self._db = db
        self._credentials = credentials

    async def register(self, payload: RegisterRequest | Mapping[str, Any]) -> AuthResult:
        """Create a user and issue a session token.

        Raises:
            ValidationFailed: If the payload violates any field constraint
            DuplicateKey: If the email is already registered (case-insensitive)
        """
        request = payload if isinstance(payload, RegisterRequest) else validate_payload(RegisterRequest, payload)

        with span("user_service.register"):
            # Guard: Check if email is already taken
            if await self._find_by_email(request.email) is not None:
                logger.warning("Registration rejected: email already registered")
                raise DuplicateKey("email")

            password_hash = await asyncio.to_thread(self._credentials.hash_password, request.password)
            try:
                record = await self._db.create_record(
                    collection=COLLECTION,
                    data={"name": request.name, "email": request.email, "password": password_hash},
                )
            except DuplicateRecordError as e:
                raise DuplicateKey(e.field) from e

            user = User.model_validate(record)
            logger.info("Registered user", extra={"user_id": user.id})
            return AuthResult(user=user, token=self._credentials.issue_token(user.id))

    async def login(self, payload: LoginRequest | Mapping[str, Any]) -> AuthResult:
        """Check credentials and issue a session token.

        Raises:
            ValidationFailed: If email or password is missing or malformed
            Unauthorized: If the email is unknown or the password does not match
        """
        request = payload if isinstance(payload, LoginRequest) else validate_payload(LoginRequest, payload)

        with span("user_service.login"):
            record = await self._find_by_email(request.email)
            password_hash = record["password"] if record else None

            matches = await asyncio.to_thread(self._credentials.verify_password, request.password, password_hash)
            if record is None or not matches:
                logger.warning("Failed login attempt")
                raise Unauthorized("Invalid email or password", reason=UnauthorizedReason.BAD_CREDENTIALS)

            user = User.model_validate(record)
            logger.info("User logged in", extra={"user_id": user.id})
            return AuthResult(user=user, token=self._credentials.issue_token(user.id))

    async def get_user(self, user_id: str) -> User | None:
        """Get user by ID, or None if the user no longer exists."""
        try:
            record = await self._db.get_record(collection=COLLECTION, record_id=user_id)
        except RecordNotFoundError:
            return None
        return User.model_validate(record)

    async def update_user(self, user_id: str, payload: UserUpdate | Mapping[str, Any]) -> User:
        """Apply a partial profile update.

        The password hash is recomputed only when a new password is supplied.

        Raises:
            ValidationFailed: If a present field violates a constraint
            DuplicateKey: If the new email belongs to another user
            NotFound: If the user does not exist
        """
        update = payload if isinstance(payload, UserUpdate) else validate_payload(UserUpdate, payload)
        changes = update.changes()

        with span("user_service.update_user"):
            current = await self.get_user(user_id)
            if current is None:
                raise NotFound("User not found")
            if not changes:
                return current

            if "email" in changes and changes["email"] != current.email:
                existing = await self._find_by_email(changes["email"])
                if existing is not None and existing["id"] != user_id:
                    raise DuplicateKey("email")

            if "password" in changes:
                changes["password"] = await asyncio.to_thread(self._credentials.hash_password, changes["password"])

            try:
                record = await self._db.update_record(collection=COLLECTION, record_id=user_id, data=changes)
            except DuplicateRecordError as e:
                raise DuplicateKey(e.field) from e
            except RecordNotFoundError as e:
                raise NotFound("User not found") from e

            logger.info("Updated user", extra={"user_id": user_id, "fields": sorted(changes)})
            return User.model_validate(record)

    async def _find_by_email(self, email: str) -> dict[str, Any] | None:
        return await self._db.get_first_record(
            collection=COLLECTION,
            filters=[Condition("email", "=", email.strip().lower())],
        )
