"""
application.services.authentication - User registration and login.

Handles password hashing (bcrypt), JWT creation/verification, and the rule
that only an admin may create another admin.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import bcrypt as _bcrypt
from jose import jwt, JWTError

from domain.entities import ROLE_ADMIN, ROLE_USER, ROLES, User
from domain.ports import UserRepository
from domain.exceptions import (
    AuthenticationError,
    DuplicateEmailError,
    InvalidRequestError,
    PermissionDeniedError,
)
from application.context import SessionContext
from application.dates import is_valid_timezone
from application.dto import RegisterRequest, LoginRequest, AuthToken

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    # bcrypt is used directly (passlib is incompatible with bcrypt >= 4.0)
    return _bcrypt.hashpw(password.encode(), _bcrypt.gensalt()).decode()


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return _bcrypt.checkpw(password.encode(), password_hash.encode())
    except ValueError:
        # malformed stored hash
        return False


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AuthenticationService:
    """Handles registration, login, and JWT management."""

    def __init__(
        self,
        user_repo: UserRepository,
        jwt_secret: str,
        jwt_expiry_hours: int = 168,
        jwt_algorithm: str = "HS256",
        default_timezone: str = "Asia/Bangkok",
    ):
        self._user_repo = user_repo
        self._jwt_secret = jwt_secret
        self._jwt_expiry_hours = jwt_expiry_hours
        self._jwt_algorithm = jwt_algorithm
        self._default_timezone = default_timezone

    async def register(
        self,
        request: RegisterRequest,
        actor: Optional[SessionContext] = None,
    ) -> AuthToken:
        """Create a new user, return JWT.

        Anyone may register a regular account; role="admin" requires an
        admin actor.
        """
        user = await self.create_user(request, actor)
        logger.info("Registered user %d with email '%s'", user.id, user.email)
        return self._create_token(user)

    async def create_user(
        self,
        request: RegisterRequest,
        actor: Optional[SessionContext] = None,
    ) -> User:
        """Validate and persist a new user without issuing a token."""
        if request.role not in ROLES:
            raise InvalidRequestError(f"Unknown role '{request.role}'.")
        if request.role == ROLE_ADMIN and (actor is None or not actor.is_admin):
            raise PermissionDeniedError("Only admin can create admin users.")

        email = normalize_email(request.email)
        existing = await self._user_repo.get_by_email(email)
        if existing is not None:
            raise DuplicateEmailError(f"User with email '{email}' already exists.")

        tz = request.timezone or self._default_timezone
        if not is_valid_timezone(tz):
            raise InvalidRequestError(f"Unknown timezone '{tz}'.")

        user = User(
            email=email,
            password_hash=hash_password(request.password),
            name=request.name.strip(),
            role=request.role if actor is not None and actor.is_admin else ROLE_USER,
            timezone=tz,
        )
        user.id = await self._user_repo.save(user)
        return await self._user_repo.get_by_id(user.id) or user

    async def login(self, request: LoginRequest) -> AuthToken:
        """Verify credentials and return JWT."""
        user = await self._user_repo.get_by_email(normalize_email(request.email))
        if user is None or not verify_password(request.password, user.password_hash):
            raise AuthenticationError("Invalid credentials.")

        logger.info("User %d logged in", user.id)
        return self._create_token(user)

    def verify_token(self, token: str) -> dict[str, Any]:
        """Decode and validate a JWT. Returns the payload dict."""
        try:
            payload = jwt.decode(
                token, self._jwt_secret, algorithms=[self._jwt_algorithm],
            )
            if payload.get("user_id") is None:
                raise AuthenticationError("Invalid token payload.")
            return payload
        except JWTError as exc:
            raise AuthenticationError(f"Token verification failed: {exc}")

    async def authenticate(self, token: str) -> User:
        """Resolve a bearer token to the current User record."""
        payload = self.verify_token(token)
        user = await self._user_repo.get_by_id(int(payload["user_id"]))
        if user is None:
            raise AuthenticationError("User not found.")
        return user

    async def refresh_token(self, token: str) -> AuthToken:
        """Issue a fresh token from an existing one (even if expired).

        Decodes the token without checking expiry, verifies the user still
        exists in DB, then re-issues a new token with a fresh expiry window.
        """
        try:
            payload = jwt.decode(
                token,
                self._jwt_secret,
                algorithms=[self._jwt_algorithm],
                options={"verify_exp": False},
            )
        except JWTError as exc:
            raise AuthenticationError(f"Token refresh failed: {exc}")

        user_id = payload.get("user_id")
        if not user_id:
            raise AuthenticationError("Invalid token payload.")

        user = await self._user_repo.get_by_id(int(user_id))
        if user is None:
            raise AuthenticationError("User no longer exists.")

        logger.info("Token refreshed for user %d", user.id)
        return self._create_token(user)

    def _create_token(self, user: User) -> AuthToken:
        expire = datetime.now(timezone.utc) + timedelta(hours=self._jwt_expiry_hours)
        payload = {
            "user_id": user.id,
            "email": user.email,
            "role": user.role,
            "exp": expire,
        }
        token = jwt.encode(payload, self._jwt_secret, algorithm=self._jwt_algorithm)
        return AuthToken(access_token=token, user=user)
