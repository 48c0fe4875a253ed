from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from minicrm.auth.models import User
from minicrm.auth.schemas import LoginRequest, LoginResponse, UserResponse
from minicrm.auth.service import authenticate_user, revoke_token
from minicrm.database import get_db
from minicrm.dependencies import AuthContext, get_auth_context, get_current_user
from minicrm.errors import ValidationFailed
from minicrm.schemas import MessageResponse
from minicrm.validation import collect_errors, read_request_data

router = APIRouter(tags=["auth"])

LOGIN_MESSAGES = {
    "email.required": "The email field is required.",
    "email.format": "The email field must be a valid email address.",
    "password.required": "The password field is required.",
}


@router.post("/login", response_model=LoginResponse)
async def login(request: Request, db: AsyncSession = Depends(get_db)):
    fields, _ = await read_request_data(request)
    try:
        data = LoginRequest.model_validate(fields)
    except ValidationError as exc:
        raise ValidationFailed(collect_errors(exc, LOGIN_MESSAGES))

    result = await authenticate_user(db, data.email, data.password)
    if not result:
        raise ValidationFailed({"email": ["The provided credentials are incorrect."]})

    user, token = result
    return LoginResponse(user=UserResponse.model_validate(user), token=token)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    context: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    await revoke_token(db, context.token)
    return MessageResponse(message="Logged out successfully")


@router.get("/user", response_model=UserResponse)
async def me(user: User = Depends(get_current_user)):
    return UserResponse.model_validate(user)
