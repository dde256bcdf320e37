# storefront/services/identity.py
import logging
from dataclasses import dataclass
from typing import Callable

from supabase import AuthError, Client

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """
    A signed-in shopper as seen by the storefront.

    `user_id` is the stable Supabase auth id (JWT "sub"); the rest is
    display metadata and does not affect which cart is active.
    """

    user_id: str
    email: str | None = None
    display_name: str | None = None


IdentityListener = Callable[[Identity | None], None]


def _user_id(identity: Identity | None) -> str | None:
    return identity.user_id if identity is not None else None


class IdentityProvider:
    """
    Holds the current identity of one storefront session and notifies
    subscribers whenever it changes (sign in, sign out, account switch).

    Listeners are called synchronously, in subscription order.
    """

    def __init__(self, initial: Identity | None = None):
        self._current = initial
        self._listeners: list[IdentityListener] = []

    @property
    def current(self) -> Identity | None:
        return self._current

    @property
    def user_id(self) -> str | None:
        return _user_id(self._current)

    def subscribe(self, listener: IdentityListener) -> Callable[[], None]:
        """
        Register a listener. Returns a function that unsubscribes it.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set_identity(self, identity: Identity | None) -> bool:
        """
        Update the current identity.

        Returns True (and notifies listeners) only when the user id
        actually changed; refreshed display metadata is stored silently.
        """
        changed = _user_id(identity) != _user_id(self._current)
        self._current = identity
        if changed:
            logger.info("Identity changed to %s", _user_id(identity) or "guest")
            for listener in list(self._listeners):
                listener(identity)
        return changed


@dataclass(frozen=True)
class AuthTokens:
    access_token: str
    refresh_token: str | None
    identity: Identity


class AuthFailedError(Exception):
    """Supabase Auth rejected the request (bad credentials, weak password...)."""


class SupabaseAuthGateway:
    """
    Thin wrapper over Supabase Auth for sign up / sign in / sign out.

    The storefront never checks passwords itself; it only turns the
    tokens Supabase hands back into an Identity.
    """

    def __init__(self, public_client: Client, admin_client: Client | None = None):
        self.public_client = public_client
        self.admin_client = admin_client

    @staticmethod
    def _to_tokens(response) -> AuthTokens:
        session = response.session
        user = response.user
        if session is None or user is None:
            # Sign up with email confirmation enabled returns no session
            raise AuthFailedError("Please verify your email before signing in")
        metadata = user.user_metadata or {}
        identity = Identity(
            user_id=str(user.id),
            email=user.email,
            display_name=metadata.get("display_name"),
        )
        return AuthTokens(
            access_token=session.access_token,
            refresh_token=session.refresh_token,
            identity=identity,
        )

    def sign_up(self, email: str, password: str, display_name: str) -> AuthTokens:
        try:
            response = self.public_client.auth.sign_up(
                {
                    "email": email,
                    "password": password,
                    "options": {"data": {"display_name": display_name}},
                }
            )
        except AuthError as exc:
            logger.warning("Sign up failed for %s: %s", email, exc)
            raise AuthFailedError(str(exc)) from exc
        return self._to_tokens(response)

    def sign_in(self, email: str, password: str) -> AuthTokens:
        try:
            response = self.public_client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except AuthError as exc:
            logger.warning("Sign in failed for %s: %s", email, exc)
            raise AuthFailedError("Invalid email or password") from exc
        return self._to_tokens(response)

    def sign_out(self, access_token: str) -> None:
        """
        Revoke the refresh tokens behind an access token.
        """
        if self.admin_client is None:
            raise RuntimeError("Sign out requires the service role client")
        try:
            self.admin_client.auth.admin.sign_out(access_token)
        except AuthError as exc:
            logger.warning("Sign out failed: %s", exc)
            raise AuthFailedError(str(exc)) from exc
