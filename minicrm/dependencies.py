from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from minicrm.auth.jwt import decode_token
from minicrm.auth.models import AccessToken, User
from minicrm.auth.service import get_active_token, get_user_by_id, touch_token
from minicrm.database import get_db
from minicrm.events.bus import EventBus
from minicrm.uploads.service import FileUploadService

security = HTTPBearer(auto_error=False)


@dataclass
class AuthContext:
    """The authenticated caller of one request."""

    user: User
    token: AccessToken


def _unauthenticated() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthenticated.",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_auth_context(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> AuthContext:
    if credentials is None:
        raise _unauthenticated()

    payload = decode_token(credentials.credentials)
    if payload is None or payload.get("type") != "access":
        raise _unauthenticated()

    token_id = payload.get("jti")
    subject = payload.get("sub")
    if not token_id or not subject or not str(subject).isdigit():
        raise _unauthenticated()

    token = await get_active_token(db, token_id)
    if token is None or token.user_id != int(subject):
        raise _unauthenticated()

    user = await get_user_by_id(db, token.user_id)
    if user is None:
        raise _unauthenticated()

    await touch_token(db, token)
    return AuthContext(user=user, token=token)


async def get_current_user(context: AuthContext = Depends(get_auth_context)) -> User:
    return context.user


def get_event_bus(request: Request) -> EventBus:
    return request.app.state.event_bus


def get_upload_service(request: Request) -> FileUploadService:
    return request.app.state.upload_service
