"""
Authentication Service

Registration, login and token verification.

Usage:
    auth = AuthService(settings)
    await auth.register(session, payload)
    token, user = await auth.login(session, email, password)
    claims = auth.verify_token(token)
"""

import logging
from datetime import datetime
from typing import Optional
from urllib.parse import quote

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rms.core.config import Settings
from rms.core.exceptions import (
    AuthenticationError,
    ConflictError,
    InvalidCredentialsError,
    StoreError,
)
from rms.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    hash_password_async,
    verify_password_async,
)
from rms.models import AccountType, Restaurant, User
from rms.schemas import RegisterRequest, TokenClaims

logger = logging.getLogger(__name__)


class AuthService:
    """
    Stateless apart from its settings; one instance serves the whole app.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        # Checked against for unknown emails so both login failures cost the same
        self._dummy_hash = hash_password("not-a-real-password", rounds=settings.bcrypt_rounds)

    def avatar_url(self, name: str) -> str:
        """Generated logo for a new restaurant."""
        return (
            f"{self.settings.avatar_base_url}?name={quote(name, safe='')}"
            f"&background=101827&color=fff"
        )

    async def register(self, session: AsyncSession, payload: RegisterRequest) -> User:
        """
        Create an account, plus its restaurant for type=restaurant.

        Raises:
            ConflictError: If the email is already registered
            StoreError: If the database write fails
        """
        try:
            existing = await session.execute(select(User.id).where(User.email == payload.email))
        except SQLAlchemyError as e:
            logger.exception(f"Database error while registering {payload.email}: {e}")
            raise StoreError(str(e))
        if existing.scalar_one_or_none() is not None:
            logger.info(f"Registration rejected, email already in use: {payload.email}")
            raise ConflictError()

        password_hash = await hash_password_async(payload.password, self.settings.bcrypt_rounds)

        user = User(
            email=payload.email,
            password_hash=password_hash,
            name=payload.name,
            type=payload.type,
        )
        if payload.type == AccountType.RESTAURANT:
            user.restaurant = Restaurant(
                name=payload.name,
                email=payload.email,
                logo=self.avatar_url(payload.name),
            )
        session.add(user)

        try:
            await session.commit()
        except IntegrityError:
            # Lost a race against a concurrent registration of the same email
            await session.rollback()
            raise ConflictError()
        except SQLAlchemyError as e:
            await session.rollback()
            logger.exception(f"Database error while registering {payload.email}: {e}")
            raise StoreError(str(e))

        logger.info(f"Registered {payload.type.value} account #{user.id} ({payload.email})")
        return user

    async def login(self, session: AsyncSession, email: str, password: str) -> tuple[str, User]:
        """
        Check credentials and issue an access token.

        Raises:
            InvalidCredentialsError: For an unknown email or a wrong password
        """
        try:
            result = await session.execute(select(User).where(User.email == email))
        except SQLAlchemyError as e:
            logger.exception(f"Database error during login: {e}")
            raise StoreError(str(e))
        user: Optional[User] = result.scalar_one_or_none()

        stored_hash = user.password_hash if user is not None else self._dummy_hash
        password_ok = await verify_password_async(password, stored_hash)

        if user is None or not password_ok:
            logger.info(f"Failed login for {email}")
            raise InvalidCredentialsError()

        token = self.issue_token(user)
        logger.info(f"User #{user.id} logged in")
        return token, user

    def issue_token(self, user: User, now: Optional[datetime] = None) -> str:
        claims = {
            "id": user.id,
            "email": user.email,
            "type": user.type.value,
            "restaurantId": user.restaurant_id,
        }
        return create_access_token(
            claims,
            secret=self.settings.jwt_secret,
            algorithm=self.settings.jwt_algorithm,
            expires_hours=self.settings.access_token_expire_hours,
            now=now,
        )

    def verify_token(self, token: Optional[str]) -> TokenClaims:
        """
        Decode a bearer token.

        Raises:
            AuthenticationError: 401 if missing, 403 if invalid or expired
        """
        if not token:
            raise AuthenticationError("Access token required", status_code=401)

        payload = decode_access_token(
            token,
            secret=self.settings.jwt_secret,
            algorithm=self.settings.jwt_algorithm,
        )
        try:
            return TokenClaims.model_validate(payload)
        except ValueError:
            logger.info("Rejected access token with malformed claims")
            raise AuthenticationError("Invalid token", status_code=403)
