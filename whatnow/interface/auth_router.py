"""Sign-up, sign-in and sign-out endpoints."""

import logging

from fastapi import APIRouter, Response, status
from pydantic import BaseModel, Field

from whatnow.core.auth_client import AuthSession
from whatnow.interface.dependencies import Auth, CurrentUser
from whatnow.services import profile_service


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


class SignUpRequest(BaseModel):
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=8)
    name: str = Field(default="", max_length=50)


class SignInRequest(BaseModel):
    email: str
    password: str


@router.post("/signup", status_code=status.HTTP_201_CREATED)
async def sign_up(payload: SignUpRequest, auth_client: Auth) -> AuthSession:
    """Create an account and its profile."""
    session = await auth_client.sign_up(email=payload.email, password=payload.password, name=payload.name)
    await profile_service.ensure_profile(user_id=session.user.id, display_name=payload.name.strip() or None)
    return session


@router.post("/signin")
async def sign_in(payload: SignInRequest, auth_client: Auth) -> AuthSession:
    return await auth_client.authenticate(email=payload.email, password=payload.password)


@router.post("/signout", status_code=status.HTTP_204_NO_CONTENT)
async def sign_out(user: CurrentUser) -> Response:
    """Tokens are stateless; clients discard theirs."""
    logger.info("Signed out", extra={"user_id": user.id})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
