# sceneflix/db/identity.py
"""
Identity provider calls (``client.auth``).

Provider errors are classified here so the session store never has to
look at provider-specific exception types:
  - AuthRetryableError / network failures -> GatewayError
  - everything else from the provider     -> AuthenticationError(reason)
"""
from __future__ import annotations

from typing import Any, Awaitable, Callable, TypeVar

import httpx
from supabase import AsyncClient, AuthError, AuthRetryableError

from sceneflix.errors import AuthenticationError, GatewayError

T = TypeVar("T")

# (substring, reason) pairs, checked against the lowercased provider message
_MESSAGE_RULES: tuple[tuple[str, str], ...] = (
    ("email not confirmed", AuthenticationError.EMAIL_NOT_CONFIRMED),
    ("not verified", AuthenticationError.EMAIL_NOT_CONFIRMED),
    ("invalid login credentials", AuthenticationError.INVALID_CREDENTIALS),
)

_CODE_RULES: dict[str, str] = {
    "email_not_confirmed": AuthenticationError.EMAIL_NOT_CONFIRMED,
    "invalid_credentials": AuthenticationError.INVALID_CREDENTIALS,
}


def classify_auth_error(e: AuthError) -> AuthenticationError:
    code = getattr(e, "code", None)
    if isinstance(code, str) and code in _CODE_RULES:
        return AuthenticationError(_CODE_RULES[code], detail=str(e))

    msg = (getattr(e, "message", None) or str(e) or "").lower()
    for needle, reason in _MESSAGE_RULES:
        if needle in msg:
            return AuthenticationError(reason, detail=str(e))
    return AuthenticationError(AuthenticationError.UNKNOWN, detail=str(e))


async def _call(operation: str, fn: Callable[..., Awaitable[T]], *args: Any) -> T:
    try:
        return await fn(*args)
    except AuthRetryableError as e:
        raise GatewayError(operation, str(e)) from e
    except AuthError as e:
        raise classify_auth_error(e) from e
    except httpx.HTTPError as e:
        raise GatewayError(operation, f"{type(e).__name__}: {e}") from e


async def sign_up(supabase: AsyncClient, email: str, password: str, full_name: str) -> Any:
    """Returns the provider's AuthResponse (``.user``, ``.session``)."""
    credentials = {
        "email": email,
        "password": password,
        "options": {"data": {"full_name": full_name}},
    }
    return await _call("auth.sign_up", supabase.auth.sign_up, credentials)


async def sign_in(supabase: AsyncClient, email: str, password: str) -> Any:
    credentials = {"email": email, "password": password}
    return await _call("auth.sign_in", supabase.auth.sign_in_with_password, credentials)


async def sign_out(supabase: AsyncClient) -> None:
    await _call("auth.sign_out", supabase.auth.sign_out)


async def get_session(supabase: AsyncClient) -> Any | None:
    return await _call("auth.get_session", supabase.auth.get_session)


async def get_user(supabase: AsyncClient) -> Any | None:
    """The provider's user object for the current token, or None."""
    resp = await _call("auth.get_user", supabase.auth.get_user)
    return getattr(resp, "user", None) if resp is not None else None


async def reset_password(supabase: AsyncClient, email: str, redirect_to: str) -> None:
    await _call(
        "auth.reset_password",
        supabase.auth.reset_password_for_email,
        email,
        {"redirect_to": redirect_to},
    )


async def update_password(supabase: AsyncClient, new_password: str) -> None:
    await _call("auth.update_password", supabase.auth.update_user, {"password": new_password})


def on_auth_state_change(
    supabase: AsyncClient, callback: Callable[[str, Any], None]
) -> Any:
    """Register ``callback(event, session)``; returns a subscription with ``unsubscribe()``."""
    return supabase.auth.on_auth_state_change(callback)
