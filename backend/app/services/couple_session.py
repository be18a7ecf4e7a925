import logging
from typing import Optional

from backend.app.clock import Clock
from backend.app.exceptions import AuthenticationError
from backend.app.identity import IdentityProvider
from backend.app.schemas.couples import CoupleOverview
from backend.app.services import anniversary_service, couple_service, recurrence_service
from backend.app.store import DocumentStore

logger = logging.getLogger(__name__)


class CoupleSession:
    """
    The signed-in user's view of their couple.

    Subscribes to the identity provider on construction and forgets the
    cached overview whenever the signed-in user changes. Call ``close`` to
    detach.
    """

    def __init__(self, store: DocumentStore, clock: Clock, identity: IdentityProvider):
        self.store = store
        self.clock = clock
        self.identity = identity
        self.overview: Optional[CoupleOverview] = None
        self._detach = identity.on_auth_state_change(self._on_auth_state_change)

    def _on_auth_state_change(self, user_id: Optional[str]) -> None:
        logger.debug("Auth state changed to %s, dropping cached overview", user_id)
        self.overview = None

    async def load(self) -> CoupleOverview:
        user_id = self.identity.current_user_id()
        if user_id is None:
            raise AuthenticationError("No user is signed in")

        couple = await couple_service.get_couple_for_user(self.store, user_id)
        if couple is None:
            self.overview = CoupleOverview()
            return self.overview

        today = self.clock.today()
        self.overview = CoupleOverview(
            couple=couple,
            partner=await couple_service.get_partner(self.store, couple, user_id),
            days_together=recurrence_service.days_together(couple.relationship_start, today),
            today_anniversaries=await anniversary_service.get_today_anniversaries(
                self.store, couple.id, couple, today
            ),
        )
        return self.overview

    def close(self) -> None:
        if self._detach is not None:
            self._detach()
            self._detach = None
