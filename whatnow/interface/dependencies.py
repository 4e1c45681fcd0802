"""FastAPI dependencies shared by the routers."""

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from whatnow.core.auth_client import AuthClient, AuthenticationError, AuthUser
from whatnow.services.in_progress import InProgressTasks
from whatnow.services.swipe_session import SwipeSessionStore


logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_auth_client(request: Request) -> AuthClient:
    return request.app.state.auth_client


def get_in_progress(request: Request) -> InProgressTasks:
    return request.app.state.in_progress


def get_session_store(request: Request) -> SwipeSessionStore:
    return request.app.state.session_store


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    auth_client: Annotated[AuthClient, Depends(get_auth_client)],
) -> AuthUser:
    """Resolve the bearer token to the acting user."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing bearer token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return await auth_client.verify_token(credentials.credentials)
    except AuthenticationError as e:
        logger.warning("auth_token_rejected", extra={"error": str(e)})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e


CurrentUser = Annotated[AuthUser, Depends(get_current_user)]
SessionStore = Annotated[SwipeSessionStore, Depends(get_session_store)]
InProgress = Annotated[InProgressTasks, Depends(get_in_progress)]
Auth = Annotated[AuthClient, Depends(get_auth_client)]
