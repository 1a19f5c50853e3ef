# sceneflix/auth/session.py
"""
Process-wide session state machine.

    UNKNOWN --restore--> ANONYMOUS <--login/signup/logout--> AUTHENTICATED

SessionStore is the only writer of the current identity. Readers get the
``state``/``user`` properties or subscribe for change notifications.

Invariants:
  - the session is set only after identity verification AND profile
    retrieval both succeed (no half-authenticated state)
  - logout always ends in ANONYMOUS, whatever the remote call did
  - listeners are notified synchronously on every change into
    AUTHENTICATED or ANONYMOUS, and never after their unsubscribe()
  - once attach()ed, provider events carrying a user reload the profile
    in a background task; a result older than the last transition is
    dropped
"""
from __future__ import annotations

import asyncio
import itertools
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from supabase import AsyncClient

from sceneflix.db import identity, profiles
from sceneflix.errors import (
    AuthenticationError,
    GatewayError,
    NotAuthenticatedError,
    SceneflixError,
    ValidationError,
)
from sceneflix.models import EDITABLE_PROFILE_FIELDS, UserProfile

from .validation import validate_email, validate_login, validate_password, validate_signup

logger = logging.getLogger(__name__)

# provider events that mean the stored credentials are gone
_INVALIDATING_EVENTS = frozenset({"SIGNED_OUT", "USER_DELETED"})


def _profile_from_row(row: dict[str, Any]) -> UserProfile:
    try:
        return UserProfile.model_validate(row)
    except ValueError as e:
        raise GatewayError("user_profiles", f"malformed profile row: {e}") from e


class AuthState(str, Enum):
    UNKNOWN = "unknown"
    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"


SessionListener = Callable[[AuthState, Optional[UserProfile]], None]


@dataclass(frozen=True)
class SignupResult:
    user: UserProfile | None
    needs_confirmation: bool


class Subscription:
    def __init__(self, store: "SessionStore", token: int) -> None:
        self._store = store
        self._token = token

    @property
    def active(self) -> bool:
        return self._token in self._store._listeners

    def unsubscribe(self) -> None:
        self._store._listeners.pop(self._token, None)


class SessionStore:
    def __init__(
        self,
        supabase: AsyncClient,
        *,
        reset_redirect_url: str = "http://localhost:5173/reset-password",
    ) -> None:
        self._supabase = supabase
        self._reset_redirect_url = reset_redirect_url

        self._state = AuthState.UNKNOWN
        self._user: UserProfile | None = None
        self._loading = True
        self._last_error: str | None = None

        self._listeners: dict[int, SessionListener] = {}
        self._tokens = itertools.count()
        self._provider_subscription: Any = None
        self._provider_tasks: set[asyncio.Task] = set()
        # bumped on every _set(); a provider sync started before it is stale
        self._epoch = 0

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def user(self) -> UserProfile | None:
        return self._user

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def is_authenticated(self) -> bool:
        return self._state is AuthState.AUTHENTICATED

    @property
    def last_error(self) -> str | None:
        return self._last_error

    def require_user(self, operation: str) -> UserProfile:
        if self._state is not AuthState.AUTHENTICATED or self._user is None:
            raise NotAuthenticatedError(operation)
        return self._user

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, listener: SessionListener) -> Subscription:
        token = next(self._tokens)
        self._listeners[token] = listener
        return Subscription(self, token)

    def _notify(self) -> None:
        state, user = self._state, self._user
        for token, listener in list(self._listeners.items()):
            # an earlier listener may have unsubscribed this one
            if token not in self._listeners:
                continue
            try:
                listener(state, user)
            except Exception:
                logger.exception("[session] listener failed state=%s", state.value)

    def _set(self, state: AuthState, user: UserProfile | None) -> None:
        changed = state is not self._state or user != self._user
        self._epoch += 1
        self._state = state
        self._user = user
        if changed:
            logger.info(
                "[session] state=%s user_id=%s",
                state.value,
                user.id if user else None,
            )
            self._notify()

    # ------------------------------------------------------------------
    # Provider hook
    # ------------------------------------------------------------------

    def attach(self) -> None:
        """Follow sign-ins, profile updates and invalidation reported by the identity provider."""
        if self._provider_subscription is None:
            self._provider_subscription = identity.on_auth_state_change(
                self._supabase, self._on_provider_event
            )

    def detach(self) -> None:
        if self._provider_subscription is not None:
            self._provider_subscription.unsubscribe()
            self._provider_subscription = None
        for task in list(self._provider_tasks):
            task.cancel()

    async def settle(self) -> None:
        """Wait for provider-triggered profile loads still in flight."""
        while self._provider_tasks:
            await asyncio.gather(*list(self._provider_tasks), return_exceptions=True)

    def _on_provider_event(self, event: Any, session: Any) -> None:
        name = getattr(event, "value", event)
        if name in _INVALIDATING_EVENTS:
            if self._state is not AuthState.ANONYMOUS:
                logger.info("[session] provider event=%s, clearing session", name)
                self._set(AuthState.ANONYMOUS, None)
            return

        user = getattr(session, "user", None)
        if user is None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("[session] provider event=%s outside the event loop, ignored", name)
            return
        task = loop.create_task(self._sync_provider_user(name, user, self._epoch))
        self._provider_tasks.add(task)
        task.add_done_callback(self._provider_task_done)

    async def _sync_provider_user(self, name: str, user: Any, epoch: int) -> None:
        """Sign-ins the provider reports on its own (email confirmation, other tab)."""
        try:
            profile = await self._load_profile(user)
        except SceneflixError as e:
            logger.warning("[session] provider event=%s profile load failed | %s", name, e)
            return
        if epoch != self._epoch:
            # login/logout ran while the profile was loading
            logger.info("[session] dropping stale provider sync event=%s", name)
            return
        self._set(AuthState.AUTHENTICATED, profile)

    def _provider_task_done(self, task: asyncio.Task) -> None:
        self._provider_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("[session] provider sync crashed | %s", exc, exc_info=exc)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def _load_profile(self, user: Any) -> UserProfile:
        row = await profiles.fetch_profile(self._supabase, str(user.id))
        if row is None:
            # profile row not created yet: fall back to the identity itself
            return UserProfile(id=str(user.id), email=user.email or "")
        return _profile_from_row(row)

    async def restore(self) -> AuthState:
        """Resolve the startup session. Never raises a SceneflixError."""
        try:
            session = await identity.get_session(self._supabase)
            user = await identity.get_user(self._supabase) if session else None
            if user is None:
                self._set(AuthState.ANONYMOUS, None)
            else:
                self._set(AuthState.AUTHENTICATED, await self._load_profile(user))
        except SceneflixError as e:
            logger.warning("[session] restore failed | %s", e)
            self._set(AuthState.ANONYMOUS, None)
        finally:
            self._loading = False
        return self._state

    async def login(self, email: str, password: str) -> UserProfile:
        self._last_error = None
        try:
            email, password = validate_login(email, password)
            resp = await identity.sign_in(self._supabase, email, password)
            user = getattr(resp, "user", None)
            if user is None:
                raise AuthenticationError(AuthenticationError.UNKNOWN, "no user returned")
            profile = await self._load_profile(user)
        except SceneflixError as e:
            self._last_error = str(e)
            logger.info("[session] login failed | %s: %s", type(e).__name__, e)
            raise
        self._set(AuthState.AUTHENTICATED, profile)
        return profile

    async def signup(
        self,
        email: str,
        password: str,
        full_name: str,
        confirm_password: str | None = None,
    ) -> SignupResult:
        self._last_error = None
        try:
            email, password, full_name = validate_signup(
                email, password, full_name, confirm_password
            )
            resp = await identity.sign_up(self._supabase, email, password, full_name)
            user = getattr(resp, "user", None)
            if user is None:
                raise AuthenticationError(AuthenticationError.UNKNOWN, "no user returned")

            try:
                await profiles.insert_profile(
                    self._supabase,
                    user_id=str(user.id),
                    email=user.email or email,
                    full_name=full_name,
                )
            except GatewayError as e:
                # identity exists; the profile row can still be created later
                logger.warning("[session] profile insert failed user_id=%s | %s", user.id, e)

            if getattr(resp, "session", None) is None:
                logger.info("[session] signup needs confirmation user_id=%s", user.id)
                return SignupResult(
                    user=UserProfile(id=str(user.id), email=user.email or email, full_name=full_name),
                    needs_confirmation=True,
                )

            profile = await self._load_profile(user)
        except SceneflixError as e:
            self._last_error = str(e)
            logger.info("[session] signup failed | %s: %s", type(e).__name__, e)
            raise
        self._set(AuthState.AUTHENTICATED, profile)
        return SignupResult(user=profile, needs_confirmation=False)

    async def logout(self) -> None:
        self._last_error = None
        try:
            await identity.sign_out(self._supabase)
        except SceneflixError as e:
            self._last_error = str(e)
            logger.warning("[session] remote sign-out failed, clearing locally | %s", e)
        finally:
            self._set(AuthState.ANONYMOUS, None)

    async def update_profile(self, **fields: Any) -> UserProfile:
        self._last_error = None
        try:
            current = self.require_user("update_profile")
            unknown = sorted(set(fields) - EDITABLE_PROFILE_FIELDS)
            if unknown:
                raise ValidationError(f"Fields not editable: {', '.join(unknown)}")

            await profiles.update_profile(self._supabase, current.id, fields)
            row = await profiles.fetch_profile(self._supabase, current.id)
            if row is None:
                raise GatewayError(f"user_profiles.by_id[{current.id}]", "profile row missing")
            refreshed = _profile_from_row(row)
        except SceneflixError as e:
            self._last_error = str(e)
            raise

        if self._user is None or self._user.id != current.id:
            # signed out (or switched user) while the update was in flight
            logger.info("[session] dropping stale profile refresh user_id=%s", current.id)
            return refreshed
        self._set(AuthState.AUTHENTICATED, refreshed)
        return refreshed

    async def reset_password(self, email: str) -> None:
        email = validate_email(email)
        await identity.reset_password(self._supabase, email, self._reset_redirect_url)

    async def update_password(self, new_password: str) -> None:
        self.require_user("update_password")
        password = validate_password(new_password)
        await identity.update_password(self._supabase, password)
