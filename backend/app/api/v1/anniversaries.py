from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from backend.app.clock import Clock, get_clock
from backend.app.database import get_document_store
from backend.app.exceptions import NotFoundError
from backend.app.identity import get_current_user_id
from backend.app.schemas.anniversaries import (
    AnniversaryCountdown, AnniversaryCreate, AnniversaryUpdate, TodayAnniversary
)
from backend.app.schemas.couples import CoupleResponse
from backend.app.services import anniversary_service
from backend.app.services.couple_service import get_couple_for_user
from backend.app.store import DocumentStore

router = APIRouter()

async def get_acting_couple(
    user_id: str = Depends(get_current_user_id),
    store: DocumentStore = Depends(get_document_store),
) -> CoupleResponse:
    couple = await get_couple_for_user(store, user_id)
    if couple is None:
        raise NotFoundError(f"User {user_id} does not belong to a couple")
    return couple

@router.get("/", response_model=List[AnniversaryCountdown])
async def list_anniversaries_route(
    couple: CoupleResponse = Depends(get_acting_couple),
    store: DocumentStore = Depends(get_document_store),
    clock: Clock = Depends(get_clock),
):
    """All anniversaries of the acting user's couple, earliest date first, with countdowns."""
    today = clock.today()
    anniversaries = await anniversary_service.list_anniversaries(store, couple.id)
    return [anniversary_service.describe_anniversary(a, today) for a in anniversaries]

@router.post("/", response_model=AnniversaryCountdown)
async def add_anniversary_route(
    data: AnniversaryCreate,
    user_id: str = Depends(get_current_user_id),
    couple: CoupleResponse = Depends(get_acting_couple),
    store: DocumentStore = Depends(get_document_store),
    clock: Clock = Depends(get_clock),
):
    """
    Add an anniversary to the acting user's couple.

    - Reminder lead time defaults to 7 days
    - Returns 400 for a blank title
    """
    anniversary = await anniversary_service.add_anniversary(store, couple.id, user_id, data)
    return anniversary_service.describe_anniversary(anniversary, clock.today())

@router.get("/upcoming", response_model=List[AnniversaryCountdown])
async def upcoming_anniversaries_route(
    days: Optional[int] = Query(None, ge=0, le=366),
    couple: CoupleResponse = Depends(get_acting_couple),
    store: DocumentStore = Depends(get_document_store),
    clock: Clock = Depends(get_clock),
):
    """Anniversaries coming up within `days` (default 30), soonest first."""
    today = clock.today()
    anniversaries = await anniversary_service.list_anniversaries(store, couple.id)
    upcoming = anniversary_service.get_upcoming_anniversaries(anniversaries, today, days)
    return [anniversary_service.describe_anniversary(a, today) for a in upcoming]

@router.get("/today", response_model=List[TodayAnniversary])
async def today_anniversaries_route(
    couple: CoupleResponse = Depends(get_acting_couple),
    store: DocumentStore = Depends(get_document_store),
    clock: Clock = Depends(get_clock),
):
    """Relationship anniversary and recurring anniversaries falling on today."""
    return await anniversary_service.get_today_anniversaries(store, couple.id, couple, clock.today())

@router.get("/{anniversary_id}", response_model=AnniversaryCountdown)
async def get_anniversary_route(
    anniversary_id: str,
    couple: CoupleResponse = Depends(get_acting_couple),
    store: DocumentStore = Depends(get_document_store),
    clock: Clock = Depends(get_clock),
):
    anniversary = await anniversary_service.get_anniversary(store, couple.id, anniversary_id)
    return anniversary_service.describe_anniversary(anniversary, clock.today())

@router.patch("/{anniversary_id}", response_model=AnniversaryCountdown)
async def update_anniversary_route(
    anniversary_id: str,
    data: AnniversaryUpdate,
    couple: CoupleResponse = Depends(get_acting_couple),
    store: DocumentStore = Depends(get_document_store),
    clock: Clock = Depends(get_clock),
):
    anniversary = await anniversary_service.update_anniversary(store, couple.id, anniversary_id, data)
    return anniversary_service.describe_anniversary(anniversary, clock.today())

@router.delete("/{anniversary_id}", status_code=204)
async def delete_anniversary_route(
    anniversary_id: str,
    couple: CoupleResponse = Depends(get_acting_couple),
    store: DocumentStore = Depends(get_document_store),
):
    await anniversary_service.delete_anniversary(store, couple.id, anniversary_id)
