"""Couple pairing.

A couple moves from no record, to ``pending`` (one member, invite code
outstanding), to ``active`` (two members). There is no way back out of
``active``. Both members' user records carry back-references: ``couple_id``
on each, and ``partner_id`` once the couple is active.
"""

import logging
import secrets
from typing import Callable, Optional

from backend.app.config import get_settings
from backend.app.exceptions import ConflictError, NotFoundError
from backend.app.models.models import CoupleStatus
from backend.app.schemas.couples import CoupleCreate, CoupleResponse
from backend.app.schemas.users import UserResponse
from backend.app.store import DocumentStore

logger = logging.getLogger(__name__)

COUPLES = "couples"
USERS = "users"

def generate_invite_code() -> str:
    """Random code from the configured alphabet, short enough to type from a phone."""
    settings = get_settings()
    return "".join(secrets.choice(settings.invite_code_alphabet) for _ in range(settings.invite_code_length))

def normalize_invite_code(code: str) -> str:
    return code.strip().upper()

async def _load_user(store: DocumentStore, user_id: str) -> dict:
    try:
        return await store.get(USERS, user_id)
    except NotFoundError:
        raise NotFoundError(f"User with id {user_id} not found") from None

async def _allocate_invite_code(store: DocumentStore, generate_code: Callable[[], str]) -> str:
    attempts = get_settings().invite_code_max_attempts
    for _ in range(attempts):
        code = normalize_invite_code(generate_code())
        taken = await store.query(COUPLES, {"invite_code": code, "status": CoupleStatus.PENDING.value})
        if not taken:
            return code
    raise ConflictError(f"Could not allocate a unique invite code after {attempts} attempts")

async def _discard_couple(store: DocumentStore, couple_id: str) -> None:
    try:
        await store.delete(COUPLES, couple_id)
    except Exception:
        logger.exception("Could not discard unbound couple %s", couple_id)

async def create_couple(
    store: DocumentStore,
    user_id: str,
    couple_data: CoupleCreate,
    generate_code: Optional[Callable[[], str]] = None,
) -> CoupleResponse:
    """
    Start a pending couple for a user who has none yet.

    The new couple id is bound onto the user only if the user is still
    unbound at write time; otherwise the couple is discarded and a
    ConflictError raised.
    """
    user = await _load_user(store, user_id)
    if user.get("couple_id"):
        raise ConflictError(f"User {user_id} already belongs to couple {user['couple_id']}")

    invite_code = await _allocate_invite_code(store, generate_code or generate_invite_code)
    couple_id = await store.create(COUPLES, {
        "user1_id": user_id,
        "user2_id": None,
        "relationship_start": couple_data.relationship_start,
        "anniversary_date": couple_data.anniversary_date,
        "status": CoupleStatus.PENDING.value,
        "invite_code": invite_code,
    })

    try:
        await store.update(USERS, user_id, {"couple_id": couple_id}, expected={"couple_id": None})
    except Exception as exc:
        await _discard_couple(store, couple_id)
        if isinstance(exc, ConflictError):
            raise ConflictError(f"User {user_id} already belongs to a couple") from exc
        raise

    logger.info("User %s created pending couple %s", user_id, couple_id)
    return await get_couple_by_id(store, couple_id)

async def _rollback_join(store: DocumentStore, couple_id: str, user_id: str, previous_user: Optional[dict]) -> None:
    try:
        if previous_user is not None:
            await store.update(USERS, user_id, {
                "couple_id": previous_user.get("couple_id"),
                "partner_id": previous_user.get("partner_id"),
            })
        await store.update(
            COUPLES, couple_id,
            {"user2_id": None, "status": CoupleStatus.PENDING.value},
            expected={"status": CoupleStatus.ACTIVE.value, "user2_id": user_id},
        )
    except Exception:
        logger.exception("Could not roll back join of couple %s by user %s", couple_id, user_id)

async def join_couple(store: DocumentStore, user_id: str, invite_code: str) -> CoupleResponse:
    """
    Redeem an invite code and activate the couple.

    - Unknown or already used code -> NotFoundError
    - Joining your own couple, or joining while bound elsewhere -> ConflictError
    - Losing a race for the same code -> ConflictError
    If a back-reference write fails after activation, the couple goes back
    to pending and the original error is re-raised.
    """
    code = normalize_invite_code(invite_code)
    matches = await store.query(COUPLES, {"invite_code": code, "status": CoupleStatus.PENDING.value})
    if not matches:
        raise NotFoundError("Invalid or expired invite code")
    couple = matches[0]
    couple_id = couple["id"]
    first_member_id = couple["user1_id"]

    if first_member_id == user_id:
        raise ConflictError("Cannot join a couple you created")
    user = await _load_user(store, user_id)
    if user.get("couple_id"):
        raise ConflictError(f"User {user_id} already belongs to couple {user['couple_id']}")

    # Compare-and-swap: only one joiner can flip a given couple to active
    try:
        await store.update(
            COUPLES, couple_id,
            {"user2_id": user_id, "status": CoupleStatus.ACTIVE.value},
            expected={"status": CoupleStatus.PENDING.value},
        )
    except ConflictError:
        raise ConflictError(f"Couple {couple_id} is already active") from None

    joiner_bound = False
    try:
        await store.update(
            USERS, user_id,
            {"couple_id": couple_id, "partner_id": first_member_id},
            expected={"couple_id": None},
        )
        joiner_bound = True
        await store.update(USERS, first_member_id, {"partner_id": user_id})
    except Exception:
        logger.warning("Join of couple %s by user %s failed, rolling back", couple_id, user_id)
        await _rollback_join(store, couple_id, user_id, user if joiner_bound else None)
        raise

    logger.info("User %s joined couple %s with user %s", user_id, couple_id, first_member_id)
    return await get_couple_by_id(store, couple_id)

async def get_couple_by_id(store: DocumentStore, couple_id: str) -> CoupleResponse:
    """Service function to get a couple by ID"""
    try:
        record = await store.get(COUPLES, couple_id)
    except NotFoundError:
        raise NotFoundError(f"Couple with id {couple_id} not found") from None
    return CoupleResponse.model_validate(record)

async def get_member_couple(store: DocumentStore, couple_id: str, user_id: str) -> CoupleResponse:
    """A couple as seen by one of its members; anyone else gets not found"""
    couple = await get_couple_by_id(store, couple_id)
    if user_id not in (couple.user1_id, couple.user2_id):
        raise NotFoundError(f"Couple with id {couple_id} not found")
    return couple

async def get_couple_for_user(store: DocumentStore, user_id: str) -> Optional[CoupleResponse]:
    """The couple the user is bound to, or None"""
    user = await _load_user(store, user_id)
    if not user.get("couple_id"):
        return None
    return await get_couple_by_id(store, user["couple_id"])

async def get_partner(store: DocumentStore, couple: CoupleResponse, self_user_id: str) -> Optional[UserResponse]:
    """The other member's user record, or None while the couple is pending"""
    partner_id = couple.user2_id if couple.user1_id == self_user_id else couple.user1_id
    if not partner_id:
        return None
    try:
        record = await store.get(USERS, partner_id)
    except NotFoundError:
        raise NotFoundError(f"User with id {partner_id} not found") from None
    return UserResponse.model_validate(record)
