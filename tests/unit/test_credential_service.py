"""Unit tests for password hashing and session tokens."""

import time

import bcrypt
import pytest
from itsdangerous import TimestampSigner, URLSafeTimedSerializer

from taskboard.core.config import Settings, constants
from taskboard.core.errors import ExpiredToken, InvalidToken
from taskboard.services.credential_service import CredentialService


USER_ID = "0123456789abcdef0123456789abcdef"


@pytest.mark.unit
class TestPasswordHashing:
    """Tests for hash_password / verify_password."""

    def test_hash_then_verify(self, credentials: CredentialService):
        hashed = credentials.hash_password("correct-horse")

        assert hashed != "correct-horse"
        assert credentials.verify_password("correct-horse", hashed) is True
        assert credentials.verify_password("wrong-horse", hashed) is False

    def test_hash_is_salted(self, credentials: CredentialService):
        """Test the same plaintext yields different hashes."""
        assert credentials.hash_password("same") != credentials.hash_password("same")

    def test_verify_without_hash(self, credentials: CredentialService):
        assert credentials.verify_password("anything", None) is False
        assert credentials.verify_password("anything", "") is False

    def test_verify_malformed_hash(self, credentials: CredentialService):
        assert credentials.verify_password("anything", "not-a-bcrypt-hash") is False

    def test_password_sharing_72_byte_prefix_does_not_verify(self, credentials: CredentialService):
        """Test bytes past bcrypt's input limit still count when verifying."""
        prefix = "a" * constants.BCRYPT_MAX_PASSWORD_BYTES
        hashed = credentials.hash_password(prefix)

        assert credentials.verify_password(prefix, hashed) is True
        assert credentials.verify_password(prefix + "x", hashed) is False
        assert credentials.verify_password(prefix + "DIFFERENT", hashed) is False

    def test_hash_rejects_password_over_byte_limit(self, credentials: CredentialService):
        with pytest.raises(ValueError, match="72 bytes"):
            credentials.hash_password("\u00e9" * 37)

    def test_missing_hash_still_runs_a_comparison(self, credentials: CredentialService, monkeypatch):
        """Test unknown accounts cost the same bcrypt work as a wrong password."""
        calls = []
        checkpw = bcrypt.checkpw

        def counting_checkpw(password: bytes, hashed: bytes) -> bool:
            calls.append(hashed)
            return checkpw(password, hashed)

        monkeypatch.setattr(bcrypt, "checkpw", counting_checkpw)

        assert credentials.verify_password("anything", None) is False
        assert credentials.verify_password("p" * 100, credentials.hash_password("secret1")) is False
        assert len(calls) == 2


@pytest.mark.unit
class TestSessionTokens:
    """Tests for issue_token / verify_token."""

    def test_issue_then_verify(self, credentials: CredentialService):
        token = credentials.issue_token(USER_ID)

        assert credentials.verify_token(token) == USER_ID

    def test_expired_token(self, credentials: CredentialService, monkeypatch):
        """Test a token older than its lifetime is rejected as expired."""
        token = credentials.issue_token(USER_ID)
        later = int(time.time()) + credentials.token_max_age + 1
        monkeypatch.setattr(TimestampSigner, "get_timestamp", lambda self: later)

        with pytest.raises(ExpiredToken):
            credentials.verify_token(token)

    def test_token_within_lifetime(self, credentials: CredentialService, monkeypatch):
        token = credentials.issue_token(USER_ID)
        later = int(time.time()) + credentials.token_max_age - 60
        monkeypatch.setattr(TimestampSigner, "get_timestamp", lambda self: later)

        assert credentials.verify_token(token) == USER_ID

    def test_tampered_token(self, credentials: CredentialService):
        token = credentials.issue_token(USER_ID)
        tampered = ("X" if token[0] != "X" else "Y") + token[1:]

        with pytest.raises(InvalidToken):
            credentials.verify_token(tampered)

    @pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
    def test_garbage_token(self, credentials: CredentialService, token: str):
        with pytest.raises(InvalidToken):
            credentials.verify_token(token)

    def test_token_from_other_key(self, credentials: CredentialService, settings: Settings):
        other = CredentialService(settings.model_copy(update={"secret_key": "another-key"}))

        with pytest.raises(InvalidToken):
            credentials.verify_token(other.issue_token(USER_ID))

    def test_signed_payload_without_id(self, credentials: CredentialService, settings: Settings):
        """Test a correctly signed token that does not carry a user id is invalid."""
        serializer = URLSafeTimedSerializer(settings.secret_key, salt=constants.TOKEN_SALT)

        with pytest.raises(InvalidToken):
            credentials.verify_token(serializer.dumps({"sub": USER_ID}))

    def test_requires_secret_key(self, settings: Settings):
        with pytest.raises(ValueError, match="SECRET_KEY"):
            CredentialService(settings.model_copy(update={"secret_key": None}))
