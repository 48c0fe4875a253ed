import uuid
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from minicrm.config import settings


def create_access_token(user_id: int) -> tuple[str, str, datetime]:
    """Return (token, token_id, expires_at) for ``user_id``."""
    token_id = uuid.uuid4().hex
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {"sub": str(user_id), "jti": token_id, "exp": expire, "type": "access"}
    token = jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
    return token, token_id, expire


def decode_token(token: str) -> dict | None:
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
        return payload
    except JWTError:
        return None
