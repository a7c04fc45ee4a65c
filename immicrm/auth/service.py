import logging
from datetime import datetime, timedelta, timezone

import jwt
from passlib.context import CryptContext
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from immicrm.auth.models import User, UserRole
from immicrm.auth.schemas import Identity, UserCreate
from immicrm.common.exceptions import AuthenticationError, ConflictError, NotFoundError, ValidationFailedError
from immicrm.config import settings
from immicrm.database import async_session

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=max(settings.bcrypt_rounds, 10))

INVALID_CREDENTIALS = "Invalid username or password"
INVALID_TOKEN = "Invalid or expired token"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


# Built once so the first unknown-username login costs no more than later ones
_DUMMY_HASH = hash_password("immicrm-unknown-user")


def _burn_password_check(password: str) -> None:
    """Spend one bcrypt verification so unknown usernames cost the same as wrong passwords."""
    pwd_context.verify(password, _DUMMY_HASH)


# ── Tokens ───────────────────────────────────────────────────────────


def create_access_token(user_id: int, username: str, role: str) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "username": username,
        "role": role,
        "type": "access",
        "iat": now,
        "exp": now + timedelta(minutes=settings.jwt_access_token_expire_minutes),
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Identity:
    """Verify signature, expiry and claim shape; return the embedded identity."""
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "sub"]},
        )
    except jwt.PyJWTError:
        raise AuthenticationError(INVALID_TOKEN)

    if payload.get("type") != "access":
        raise AuthenticationError(INVALID_TOKEN)
    try:
        return Identity(id=int(payload["sub"]), username=payload["username"], role=payload["role"])
    except (KeyError, TypeError, ValueError):
        raise AuthenticationError(INVALID_TOKEN)


# ── Users ────────────────────────────────────────────────────────────


async def authenticate_user(db: AsyncSession, username: str, password: str) -> User:
    result = await db.execute(select(User).where(User.username == username))
    user = result.scalar_one_or_none()

    if user is None:
        _burn_password_check(password)
        logger.info("Login failed for unknown username")
        raise AuthenticationError(INVALID_CREDENTIALS)

    if not verify_password(password, user.password_hash):
        logger.info("Login failed for user id=%s", user.id)
        raise AuthenticationError(INVALID_CREDENTIALS)

    user.last_login = datetime.now(timezone.utc)
    await db.flush()
    await db.refresh(user)
    logger.info("User id=%s logged in", user.id)
    return user


async def login(db: AsyncSession, username: str, password: str) -> tuple[str, User]:
    user = await authenticate_user(db, username, password)
    token = create_access_token(user.id, user.username, user.role.value)
    return token, user


async def create_user(db: AsyncSession, data: UserCreate) -> User:
    existing = await db.execute(
        select(User.id).where(or_(User.username == data.username, User.email == data.email)).limit(1)
    )
    if existing.scalar_one_or_none() is not None:
        raise ConflictError("Username or email already exists")

    user = User(
        username=data.username,
        email=data.email,
        password_hash=hash_password(data.password),
        full_name=data.full_name,
        role=data.role,
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError:
        raise ConflictError("Username or email already exists")
    await db.refresh(user)
    logger.info("Registered user id=%s with role %s", user.id, user.role.value)
    return user


async def get_user(db: AsyncSession, user_id: int) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFoundError("User not found")
    return user


async def get_users(db: AsyncSession) -> list[User]:
    result = await db.execute(select(User).order_by(User.id.asc()))
    return list(result.scalars().all())


async def ensure_user_reference(db: AsyncSession, user_id: int, field: str) -> None:
    """Reject a foreign key to a user that does not exist."""
    result = await db.execute(select(User.id).where(User.id == user_id))
    if result.scalar_one_or_none() is None:
        raise ValidationFailedError(f"{field} does not reference an existing user")


async def bootstrap_admin():
    """Create the first admin user if no users exist."""
    async with async_session() as db:
        result = await db.execute(select(User).limit(1))
        if result.scalar_one_or_none() is not None:
            return

        admin = User(
            username=settings.first_admin_username,
            email=settings.first_admin_email,
            password_hash=hash_password(settings.first_admin_password),
            full_name=settings.first_admin_full_name,
            role=UserRole.admin,
        )
        db.add(admin)
        await db.commit()
        logger.info("Bootstrap admin created: %s", settings.first_admin_username)
        if settings.first_admin_password == "CHANGE_ME":
            logger.warning("Bootstrap admin is using the default password; set FIRST_ADMIN_PASSWORD")
