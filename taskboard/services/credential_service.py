"""Password hashing and session token signing."""

import logging
from functools import cached_property
from typing import Any

import bcrypt
from itsdangerous import BadData, SignatureExpired, URLSafeTimedSerializer

from taskboard.core.config import Settings, constants
from taskboard.core.errors import ExpiredToken, InvalidToken


logger = logging.getLogger(__name__)

_DUMMY_PASSWORD = b"taskboard-no-such-user"


class CredentialService:
    """Hashes passwords and issues/verifies stateless session tokens.

    The signing key and token lifetime are read from settings once, at
    construction. Tokens are never stored; a token is valid as long as its
    signature verifies and it is younger than ``token_expire_seconds``.
    """

    def __init__(self, settings: Settings) -> None:
        secret_key = settings.require_credential("secret_key", "Session token signing")
        self._rounds = settings.bcrypt_rounds
        self._max_age = settings.token_expire_seconds
        self._serializer = URLSafeTimedSerializer(secret_key, salt=constants.TOKEN_SALT)

    @property
    def token_max_age(self) -> int:
        return self._max_age

    @cached_property
    def _dummy_hash(self) -> bytes:
        return bcrypt.hashpw(_DUMMY_PASSWORD, bcrypt.gensalt(rounds=self._rounds))

    def hash_password(self, plaintext: str) -> str:
        """Hash a password with a freshly generated salt.

        Raises:
            ValueError: If the password is longer than bcrypt's 72-byte input
        """
        password = plaintext.encode("utf-8")
        if len(password) > constants.BCRYPT_MAX_PASSWORD_BYTES:
            msg = f"Password exceeds {constants.BCRYPT_MAX_PASSWORD_BYTES} bytes"
            raise ValueError(msg)
        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(password, salt).decode("ascii")

    def verify_password(self, plaintext: str, hashed: str | None) -> bool:
        """Check a password against a stored hash. Never raises on mismatch.

        A missing hash or an over-long password still costs one bcrypt
        comparison, so unknown accounts answer as slowly as wrong passwords.
        """
        password = plaintext.encode("utf-8")
        if not hashed or len(password) > constants.BCRYPT_MAX_PASSWORD_BYTES:
            bcrypt.checkpw(password[: constants.BCRYPT_MAX_PASSWORD_BYTES], self._dummy_hash)
            return False
        try:
            return bcrypt.checkpw(password, hashed.encode("ascii"))
        except ValueError:
            logger.warning("Stored password hash is malformed")
            return False

    def issue_token(self, user_id: str) -> str:
        """Sign a token binding the user id."""
        return self._serializer.dumps({"id": user_id})

    def verify_token(self, token: str) -> str:
        """Return the user id bound to a token.

        Raises:
            ExpiredToken: If the token is older than the configured lifetime
            InvalidToken: If the signature does not verify or the payload is malformed
        """
        try:
            payload: Any = self._serializer.loads(token, max_age=self._max_age)
        except SignatureExpired as e:
            raise ExpiredToken("Token expired") from e
        except BadData as e:
            raise InvalidToken("Invalid token") from e

        user_id = payload.get("id") if isinstance(payload, dict) else None
        if not isinstance(user_id, str) or not user_id:
            raise InvalidToken("Invalid token")
        return user_id
