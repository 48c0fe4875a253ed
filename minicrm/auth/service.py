from datetime import datetime, timezone

import structlog
from passlib.context import CryptContext
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from minicrm.auth.jwt import create_access_token
from minicrm.auth.models import AccessToken, User

logger = structlog.get_logger()

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def get_user_by_id(db: AsyncSession, user_id: int) -> User | None:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_all_users(db: AsyncSession) -> list[User]:
    result = await db.execute(select(User).order_by(User.id))
    return list(result.scalars().all())


async def create_user(db: AsyncSession, name: str, email: str, password: str) -> User:
    user = User(name=name, email=email, password_hash=hash_password(password))
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def issue_token(db: AsyncSession, user: User, name: str = "auth_token") -> str:
    token, token_id, expires_at = create_access_token(user.id)
    db.add(AccessToken(user_id=user.id, token_id=token_id, name=name, expires_at=expires_at))
    await db.commit()
    return token


async def authenticate_user(db: AsyncSession, email: str, password: str) -> tuple[User, str] | None:
    user = await get_user_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        logger.info("login_failed", email=email)
        return None

    token = await issue_token(db, user)
    logger.info("login_succeeded", user_id=user.id)
    return user, token


async def get_active_token(db: AsyncSession, token_id: str) -> AccessToken | None:
    result = await db.execute(select(AccessToken).where(AccessToken.token_id == token_id))
    token = result.scalar_one_or_none()
    if token is None:
        return None
    expires_at = token.expires_at
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    if expires_at <= datetime.now(timezone.utc):
        return None
    return token


async def touch_token(db: AsyncSession, token: AccessToken) -> None:
    token.last_used_at = datetime.now(timezone.utc)
    await db.commit()


async def revoke_token(db: AsyncSession, token: AccessToken) -> None:
    await db.execute(delete(AccessToken).where(AccessToken.id == token.id))
    await db.commit()
    logger.info("token_revoked", user_id=token.user_id)
