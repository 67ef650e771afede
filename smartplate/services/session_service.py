"""
# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# Created Date: Fri Feb 06 2026
# SPDX-License-Identifier: MIT
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from fastapi import HTTPException
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from starlette.requests import HTTPConnection

from smartplate.config import settings
from smartplate.crud import crud_user
from smartplate.db.models import AppRole
from smartplate.events.realtime import (
    AUTH_CHANNEL,
    ROLE_CHANGED,
    SIGNED_IN,
    SIGNED_OUT,
    ChangeEvent,
    ChangeFeed,
    change_feed,
    notify_auth,
)
from smartplate.schemas import schemas
from smartplate.utils.tokens import create_access_token, verify_token

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthError:
    code: str
    message: str


@dataclass(frozen=True)
class AuthResult:
    error: Optional[AuthError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class SessionSnapshot:
    user_id: Optional[int]
    email: Optional[str]
    role: Optional[AppRole]
    loading: bool

    @property
    def signed_in(self) -> bool:
        return self.user_id is not None


SessionListener = Callable[[SessionSnapshot], None]


class SessionServiceUnavailable(RuntimeError):
    pass


class SessionService:
    """
    Holds one authenticated identity and its role for the lifetime of a client session,
    and tells subscribers whenever either changes.

    `start()` attaches the service to the auth-state stream and `close()` detaches it. The
    role lookup that follows a sign-in is deferred to a later loop iteration instead of
    running inside the event handler. Failures are returned as `AuthResult` errors.
    """

    def __init__(self, session_factory, feed: ChangeFeed = change_feed,
                 role_fetch_delay: float = settings.role_fetch_delay_seconds):
        self._session_factory = session_factory
        self._feed = feed
        self.role_fetch_delay = role_fetch_delay
        self.user_id: Optional[int] = None
        self.email: Optional[str] = None
        self.access_token: Optional[str] = None
        self.role: Optional[AppRole] = None
        self.loading = True
        self._listeners: List[SessionListener] = []
        self._auth_subscription = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._role_task: Optional[asyncio.Task] = None

    # --- lifecycle ---

    async def start(self) -> None:
        self._loop = asyncio.get_running_loop()
        self._auth_subscription = self._feed.subscribe(AUTH_CHANNEL, self._on_auth_event)

    async def close(self) -> None:
        if self._auth_subscription is not None:
            self._auth_subscription.unsubscribe()
            self._auth_subscription = None
        if self._role_task is not None and not self._role_task.done():
            self._role_task.cancel()
        self._listeners.clear()
        self._loop = None

    @property
    def started(self) -> bool:
        return self._auth_subscription is not None

    # --- observers ---

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(self.user_id, self.email, self.role, self.loading)

    def _emit(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Session listener failed")

    # --- auth stream ---

    def _on_auth_event(self, event: ChangeEvent) -> None:
        loop = self._loop
        if loop is None:
            return
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is loop:
            self._handle_auth_event(event)
        else:
            loop.call_soon_threadsafe(self._handle_auth_event, event)

    def _handle_auth_event(self, event: ChangeEvent) -> None:
        if self.user_id is None or event.user_id != self.user_id:
            return
        if event.event == SIGNED_OUT:
            self._clear()
            self._emit()
        elif event.event in (SIGNED_IN, ROLE_CHANGED):
            self._schedule_role_fetch()

    def _schedule_role_fetch(self) -> None:
        if self._loop is None:
            return
        if self._role_task is not None and not self._role_task.done():
            self._role_task.cancel()
        self.loading = True
        self._role_task = self._loop.create_task(self._deferred_role_fetch(self.user_id))

    async def _deferred_role_fetch(self, user_id: int) -> None:
        await asyncio.sleep(self.role_fetch_delay)
        if self.user_id != user_id:
            return
        role, error = self._fetch_role(user_id)
        if error is not None:
            logger.error("Error fetching role for user %d: %s", user_id, error.message)
        self.role = role
        self.loading = False
        self._emit()

    async def settle(self) -> None:
        """
        Waits for a scheduled role lookup to finish.
        """
        if self._role_task is not None:
            try:
                await self._role_task
            except asyncio.CancelledError:
                pass

    # --- operations ---

    def _fetch_role(self, user_id: int):
        db = self._session_factory()
        try:
            return crud_user.get_role(db, user_id), None
        except SQLAlchemyError as e:
            return None, AuthError("unavailable", str(e))
        finally:
            db.close()

    def _clear(self) -> None:
        self.user_id = None
        self.email = None
        self.access_token = None
        self.role = None
        self.loading = False

    async def sign_up(self, email: str, password: str, full_name: str, role: AppRole) -> AuthResult:
        try:
            user_in = schemas.UserCreate(email=email, password=password, full_name=full_name, role=role)
        except ValidationError as e:
            return AuthResult(AuthError("invalid", "; ".join(err["msg"] for err in e.errors())))

        db = self._session_factory()
        try:
            if crud_user.get_user_by_email(db, user_in.email):
                return AuthResult(AuthError("email_taken", "Email already registered"))
            user = crud_user.sign_up(db, user_in)
            if user is None:
                return AuthResult(AuthError("email_taken", "Email already registered"))
            self.user_id = user.id
            self.email = user.email
            self.role = user.role
        except SQLAlchemyError as e:
            return AuthResult(AuthError("unavailable", str(e)))
        finally:
            db.close()

        self.access_token = create_access_token({"sub": self.email})
        self.loading = False
        self._emit()
        return AuthResult()

    async def sign_in(self, email: str, password: str) -> AuthResult:
        db = self._session_factory()
        try:
            user = crud_user.authenticate(db, email, password)
            if user is None:
                return AuthResult(AuthError("invalid_credentials", "Incorrect email or password"))
            if not user.is_active:
                return AuthResult(AuthError("inactive", "Inactive user"))
            user_id, user_email = user.id, user.email
        except SQLAlchemyError as e:
            return AuthResult(AuthError("unavailable", str(e)))
        finally:
            db.close()

        self.user_id = user_id
        self.email = user_email
        self.access_token = create_access_token({"sub": user_email})
        self.role = None
        self.loading = True
        self._emit()
        notify_auth(SIGNED_IN, user_id)
        return AuthResult()

    async def restore(self, token: str) -> AuthResult:
        """
        Adopts an existing access token. The role is looked up inline; an identity without
        a role assignment is reported as `role_missing`.
        """
        try:
            token_data = verify_token(token, HTTPException(status_code=401))
        except HTTPException:
            return AuthResult(AuthError("invalid_token", "Could not validate credentials"))

        db = self._session_factory()
        try:
            user = crud_user.get_user_by_email(db, token_data.email)
            if user is None or not user.is_active:
                return AuthResult(AuthError("invalid_token", "Could not validate credentials"))
            self.user_id = user.id
            self.email = user.email
            self.access_token = token
            self.role = user.role
        except SQLAlchemyError as e:
            return AuthResult(AuthError("unavailable", str(e)))
        finally:
            db.close()

        self.loading = False
        self._emit()
        if self.role is None:
            return AuthResult(AuthError("role_missing", "No role is assigned to this account"))
        return AuthResult()

    async def sign_out(self) -> None:
        user_id = self.user_id
        self._clear()
        self._emit()
        if user_id is not None:
            notify_auth(SIGNED_OUT, user_id)

    async def refresh_role(self) -> AuthResult:
        if self.user_id is None:
            return AuthResult(AuthError("not_signed_in", "No user is signed in"))
        role, error = self._fetch_role(self.user_id)
        if error is not None:
            return AuthResult(error)
        self.role = role
        self.loading = False
        self._emit()
        return AuthResult()


class SessionServiceProvider:
    def __init__(self, session_factory, feed: ChangeFeed = change_feed):
        self.session_factory = session_factory
        self.feed = feed

    def create(self) -> SessionService:
        return SessionService(self.session_factory, self.feed)


def get_session_provider(connection: HTTPConnection) -> SessionServiceProvider:
    """
    Returns the provider installed by the application lifespan. Asking for it anywhere
    else is a programming error.
    """
    provider = getattr(connection.app.state, "session_provider", None)
    if provider is None:
        raise SessionServiceUnavailable("SessionService must be used within the application lifespan")
    return provider
