"""
TaskTrack Security — passwords, bearer tokens and the authentication flow.

Implements:
- hash_password / verify_password: bcrypt
- TokenManager: Fernet-encrypted bearer tokens with a TTL
- AuthService: signup, login, token → ExecutionContext resolution

Tokens only carry the user id and issue time. The role is re-read from the
users table on every request, so authorization always runs against
current state.
"""

from __future__ import annotations

import base64
import hashlib
import json
import logging
from typing import Any, Dict, Mapping, Optional

import bcrypt
from cryptography.fernet import Fernet, InvalidToken
from sqlalchemy.orm import Session

from tasktrack.engine.context import ROLE_ADMIN, ExecutionContext, context_for_user
from tasktrack.engine.errors import (
    TaskTrackSessionError,
    TaskTrackValidationError,
)
from tasktrack.engine.logging import AsyncLogQueue, emit, log_auth_event
from tasktrack.engine.notifications import Notifier, NullNotifier
from tasktrack.engine.validation import validate_payload
from tasktrack.users.schemas import (
    LOGIN_MESSAGES,
    SIGNUP_MESSAGES,
    LoginRequest,
    SignupRequest,
)
from tasktrack.users.store import UserStore, serialize_user

logger = logging.getLogger("tasktrack.engine.security")

TOKEN_TYPE = "Bearer"


# ---------------------------------------------------------------------------
# Passwords
# ---------------------------------------------------------------------------

def hash_password(password: str, rounds: int = 12) -> str:
    """Hash a password using bcrypt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against a bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------

class TokenManager:
    """
    Issues and validates bearer tokens.

    A token is a Fernet token (AES-128-CBC + HMAC-SHA256) over
    ``{"uid": <user id>}``; Fernet embeds the issue timestamp, which is
    checked against ``ttl`` on every decrypt.
    """

    def __init__(self, secret_key: str, ttl: int = 7 * 24 * 3600):
        self._fernet = self._build_fernet(secret_key)
        self._ttl = ttl

    @staticmethod
    def _build_fernet(secret_key: str) -> Fernet:
        # Derive a 32-byte key with SHA-256, then base64-encode for Fernet
        derived = hashlib.sha256(secret_key.encode("utf-8")).digest()
        return Fernet(base64.urlsafe_b64encode(derived))

    @property
    def ttl(self) -> int:
        return self._ttl

    def issue(self, user_id: int) -> str:
        payload = json.dumps({"uid": user_id}).encode("utf-8")
        return self._fernet.encrypt(payload).decode("ascii")

    def resolve(self, token: str) -> int:
        """
        Return the user id carried by *token*.

        Raises:
            TaskTrackSessionError: If the token is malformed, tampered with or expired.
        """
        try:
            decrypted = self._fernet.decrypt(token.encode("ascii"), ttl=self._ttl)
            user_id = json.loads(decrypted.decode("utf-8"))["uid"]
        except (InvalidToken, UnicodeError, ValueError, KeyError, TypeError):
            raise TaskTrackSessionError("Not authorized, token failed")
        if not isinstance(user_id, int):
            raise TaskTrackSessionError("Not authorized, token failed")
        return user_id


# ---------------------------------------------------------------------------
# Authentication flow
# ---------------------------------------------------------------------------

class AuthService:
    """
    Signup, login and bearer-token resolution against the users table.

    Flow:
    1. signup/login → validate payload → token issued
    2. Each request → token resolved → user re-read → ExecutionContext
    3. Welcome/login notifications go through the injected notifier
    """

    def __init__(
        self,
        session: Session,
        tokens: TokenManager,
        notifier: Optional[Notifier] = None,
        bcrypt_rounds: int = 12,
        allow_admin_signup: bool = False,
        log_queue: Optional[AsyncLogQueue] = None,
    ):
        self._users = UserStore(session)
        self._tokens = tokens
        self._notifier = notifier or NullNotifier()
        self._bcrypt_rounds = bcrypt_rounds
        self._allow_admin_signup = allow_admin_signup
        self._log_queue = log_queue

    def signup(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Create a user and return ``{token, tokenType, user}``.

        Raises:
            TaskTrackValidationError: Invalid fields, duplicate email, or an
                admin role requested while admin signup is disabled.
        """
        data = validate_payload(SignupRequest, payload, SIGNUP_MESSAGES)

        errors: Dict[str, str] = {}
        if data.role == ROLE_ADMIN and not self._allow_admin_signup:
            errors["role"] = "Admin accounts cannot be created through signup"
        if self._users.get_by_email(data.email) is not None:
            errors["email"] = "User already exists"
        if errors:
            emit(self._log_queue, log_auth_event(
                "signup", data.email, success=False, failure_reason=",".join(sorted(errors)),
            ))
            raise TaskTrackValidationError("Validation failed", errors=errors)

        user = self._users.add(
            name=data.name,
            email=data.email,
            password_hash=hash_password(data.password, rounds=self._bcrypt_rounds),
            role=data.role,
        )
        logger.info("User %s signed up (role=%s)", user.id, user.role)
        emit(self._log_queue, log_auth_event("signup", user.email, success=True, user_id=user.id))
        self._notifier.send(user.email, "welcome", name=user.name)
        return self._token_response(user)

    def login(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Verify credentials and return ``{token, tokenType, user}``.

        Raises:
            TaskTrackValidationError: Missing/invalid fields.
            TaskTrackSessionError: Unknown email or wrong password.
        """
        data = validate_payload(LoginRequest, payload, LOGIN_MESSAGES)

        user = self._users.get_by_email(data.email)
        if user is None or not verify_password(data.password, user.password_hash):
            reason = "unknown_email" if user is None else "invalid_password"
            emit(self._log_queue, log_auth_event(
                "login", data.email, success=False,
                user_id=getattr(user, "id", None), failure_reason=reason,
            ))
            raise TaskTrackSessionError("Invalid email or password")

        logger.info("User %s logged in", user.id)
        emit(self._log_queue, log_auth_event("login", user.email, success=True, user_id=user.id))
        self._notifier.send(user.email, "login", name=user.name)
        return self._token_response(user)

    def authenticate(
        self,
        token: Optional[str],
        execution_id: Optional[str] = None,
    ) -> ExecutionContext:
        """
        Resolve a bearer token to the current actor.

        Raises:
            TaskTrackSessionError: Missing/invalid token or deleted user.
        """
        if not token:
            raise TaskTrackSessionError("Not authorized, no token")
        user = self._users.get(self._tokens.resolve(token))
        if user is None:
            raise TaskTrackSessionError("Not authorized, user not found")
        return context_for_user(user, execution_id=execution_id)

    def profile(self, actor: ExecutionContext) -> Dict[str, Any]:
        user = self._users.get(actor.user_id)
        if user is None:
            raise TaskTrackSessionError("Not authorized, user not found")
        return serialize_user(user)

    def _token_response(self, user) -> Dict[str, Any]:
        return {
            "token": self._tokens.issue(user.id),
            "tokenType": TOKEN_TYPE,
            "expiresIn": self._tokens.ttl,
            "user": serialize_user(user),
        }
