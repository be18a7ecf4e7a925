from fastapi import APIRouter, Depends
from typing import Optional

from backend.app.clock import Clock, get_clock
from backend.app.database import get_document_store
from backend.app.identity import AuthSession, get_auth_session, get_current_user_id
from backend.app.schemas.couples import CoupleCreate, CoupleJoin, CoupleOverview, CoupleResponse
from backend.app.schemas.users import UserResponse
from backend.app.services.couple_service import (
    create_couple, get_couple_for_user, get_member_couple, get_partner, join_couple
)
from backend.app.services.couple_session import CoupleSession
from backend.app.store import DocumentStore

router = APIRouter()

@router.post("/", response_model=CoupleResponse)
async def create_couple_route(
    couple_data: CoupleCreate,
    user_id: str = Depends(get_current_user_id),
    store: DocumentStore = Depends(get_document_store),
):
    """
    Start a couple for the acting user.

    - The couple stays pending until the partner redeems the invite code
    - Returns 409 if the user already belongs to a couple
    """
    return await create_couple(store, user_id, couple_data)

@router.post("/join", response_model=CoupleResponse)
async def join_couple_route(
    join_data: CoupleJoin,
    user_id: str = Depends(get_current_user_id),
    store: DocumentStore = Depends(get_document_store),
):
    """
    Join a pending couple with its invite code.

    - Returns 404 for an unknown or already used code
    - Returns 409 if the couple was activated concurrently or the user is already paired
    """
    return await join_couple(store, user_id, join_data.invite_code)

@router.get("/me", response_model=Optional[CoupleResponse])
async def get_my_couple_route(
    user_id: str = Depends(get_current_user_id),
    store: DocumentStore = Depends(get_document_store),
):
    """Couple of the acting user, or null if they have none."""
    return await get_couple_for_user(store, user_id)

@router.get("/me/partner", response_model=Optional[UserResponse])
async def get_my_partner_route(
    user_id: str = Depends(get_current_user_id),
    store: DocumentStore = Depends(get_document_store),
):
    """Partner of the acting user, or null while unpaired or pending."""
    couple = await get_couple_for_user(store, user_id)
    if couple is None:
        return None
    return await get_partner(store, couple, user_id)

@router.get("/me/overview", response_model=CoupleOverview)
async def get_my_overview_route(
    session: AuthSession = Depends(get_auth_session),
    store: DocumentStore = Depends(get_document_store),
    clock: Clock = Depends(get_clock),
):
    """
    Home screen data for the acting user.

    - Couple and partner
    - Days together
    - Anniversaries that fall on today
    """
    couple_session = CoupleSession(store, clock, session)
    try:
        return await couple_session.load()
    finally:
        couple_session.close()

@router.get("/{couple_id}", response_model=CoupleResponse)
async def get_couple_route(
    couple_id: str,
    user_id: str = Depends(get_current_user_id),
    store: DocumentStore = Depends(get_document_store),
):
    """
    Get a specific couple by ID.

    - Only members of the couple can read it
    - Returns 404 if couple not found or the acting user is not a member
    """
    return await get_member_couple(store, couple_id, user_id)
