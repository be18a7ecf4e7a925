"""Identity collaborator: who is acting, and notifications when that changes."""

import logging
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

from fastapi import Header

from backend.app.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

AuthListener = Callable[[Optional[str]], None]


class ListenerRegistry:
    """Observers attached to one owner. ``attach`` returns the matching detach callable."""

    def __init__(self):
        self._listeners: List[AuthListener] = []

    def attach(self, listener: AuthListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def detach() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return detach

    def notify(self, user_id: Optional[str]) -> None:
        # Copy so a listener may detach itself while being notified
        for listener in list(self._listeners):
            listener(user_id)

    def __len__(self) -> int:
        return len(self._listeners)


class IdentityProvider(ABC):
    @abstractmethod
    def current_user_id(self) -> Optional[str]:
        """Id of the signed-in user, or None."""

    @abstractmethod
    def on_auth_state_change(self, callback: AuthListener) -> Callable[[], None]:
        """Attach ``callback`` for sign-in and sign-out; returns its detach callable."""


class AuthSession(IdentityProvider):
    """Signed-in state for one client, with its own listener registry."""

    def __init__(self, user_id: Optional[str] = None):
        self._user_id = user_id
        self.listeners = ListenerRegistry()

    def current_user_id(self) -> Optional[str]:
        return self._user_id

    def on_auth_state_change(self, callback: AuthListener) -> Callable[[], None]:
        return self.listeners.attach(callback)

    def sign_in(self, user_id: str) -> None:
        if user_id == self._user_id:
            return
        logger.info("User %s signed in", user_id)
        self._user_id = user_id
        self.listeners.notify(user_id)

    def sign_out(self) -> None:
        if self._user_id is None:
            return
        logger.info("User %s signed out", self._user_id)
        self._user_id = None
        self.listeners.notify(None)


# Dependency to get the acting user from the request
def get_current_user_id(x_user_id: Optional[str] = Header(None)) -> str:
    if not x_user_id:
        raise AuthenticationError("Missing X-User-Id header")
    return x_user_id


# Dependency to get an auth session for the acting user
def get_auth_session(x_user_id: Optional[str] = Header(None)) -> AuthSession:
    return AuthSession(x_user_id or None)
