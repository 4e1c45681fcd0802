"""Identity collaborator backed by the PocketBase users auth collection."""

import asyncio
import logging
from collections.abc import Callable

from pocketbase import PocketBase
from pocketbase.client import ClientResponseError
from pydantic import BaseModel, Field

from whatnow.core.config import settings


logger = logging.getLogger(__name__)

USERS_COLLECTION = "users"

SessionListener = Callable[["AuthSession | None"], None]


class AuthenticationError(Exception):
    """Raised when credentials or a session token are rejected."""


class AuthUser(BaseModel):
    """Authenticated account as seen by the app."""

    id: str = Field(..., description="User ID from the auth collection")
    email: str = Field(default="", description="Account email")
    name: str = Field(default="", description="Name entered at sign-up")


class AuthSession(BaseModel):
    """Token plus the user it belongs to."""

    token: str
    user: AuthUser


def _user_from_record(record: object) -> AuthUser:
    return AuthUser(
        id=str(getattr(record, "id", "")),
        email=getattr(record, "email", "") or "",
        name=getattr(record, "name", "") or "",
    )


class AuthClient:
    """Sign-in/sign-out and session tracking against PocketBase.

    `authenticate` and `verify_token` are stateless and safe to share between
    requests. `sign_in`/`sign_out` additionally track a current session and
    notify listeners registered with `on_session_change`, for single-user
    callers such as scripts.
    """

    def __init__(self, pocketbase_url: str | None = None) -> None:
        self._url = pocketbase_url or settings.pocketbase_url
        self._session: AuthSession | None = None
        self._listeners: list[SessionListener] = []

    def _new_client(self) -> PocketBase:
        return PocketBase(self._url)

    async def sign_up(self, *, email: str, password: str, name: str = "") -> AuthSession:
        """Create an account and return a session for it."""

        def _create() -> None:
            self._new_client().collection(USERS_COLLECTION).create(
                {"email": email, "password": password, "passwordConfirm": password, "name": name}
            )

        try:
            await asyncio.to_thread(_create)
        except ClientResponseError as e:
            logger.warning("sign_up_failed", extra={"email": email, "status": e.status})
            msg = f"Sign up failed: {e}"
            raise AuthenticationError(msg) from e

        logger.info("Created account", extra={"email": email})
        return await self.authenticate(email=email, password=password)

    async def authenticate(self, *, email: str, password: str) -> AuthSession:
        """Exchange credentials for a session without touching the tracked session."""

        def _auth() -> AuthSession:
            response = self._new_client().collection(USERS_COLLECTION).auth_with_password(email, password)
            return AuthSession(token=response.token, user=_user_from_record(response.record))

        try:
            return await asyncio.to_thread(_auth)
        except ClientResponseError as e:
            logger.warning("authentication_failed", extra={"email": email, "status": e.status})
            msg = "Authentication failed: invalid email or password"
            raise AuthenticationError(msg) from e

    async def verify_token(self, token: str) -> AuthUser:
        """Validate a bearer token by refreshing it against the auth collection."""

        def _refresh() -> AuthUser:
            client = self._new_client()
            client.auth_store.save(token, None)
            response = client.collection(USERS_COLLECTION).auth_refresh()
            return _user_from_record(response.record)

        if not token:
            msg = "Authentication failed: missing token"
            raise AuthenticationError(msg)

        try:
            return await asyncio.to_thread(_refresh)
        except ClientResponseError as e:
            msg = "Authentication failed: invalid token"
            raise AuthenticationError(msg) from e

    async def sign_in(self, *, email: str, password: str) -> AuthSession:
        """Authenticate and make the result the current session."""
        session = await self.authenticate(email=email, password=password)
        self._set_session(session)
        return session

    async def sign_out(self) -> None:
        """Forget the current session."""
        self._set_session(None)

    def current_user(self) -> AuthUser | None:
        """Return the user of the current session, if any."""
        return self._session.user if self._session else None

    def on_session_change(self, callback: SessionListener) -> Callable[[], None]:
        """Register a listener for session changes; returns an unsubscribe function."""
        self._listeners.append(callback)

        def _unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return _unsubscribe

    def _set_session(self, session: AuthSession | None) -> None:
        self._session = session
        for listener in list(self._listeners):
            listener(session)
