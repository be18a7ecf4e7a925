import logging
from datetime import date
from typing import List, Optional

from backend.app.config import get_settings
from backend.app.exceptions import NotFoundError, ValidationError
from backend.app.models.models import AnniversaryType
from backend.app.schemas.anniversaries import (
    AnniversaryCountdown, AnniversaryCreate, AnniversaryResponse, AnniversaryUpdate, TodayAnniversary
)
from backend.app.schemas.couples import CoupleResponse
from backend.app.services import recurrence_service
from backend.app.store import DocumentStore

logger = logging.getLogger(__name__)

ANNIVERSARIES = "anniversaries"

# Fields a partial update may omit but never clear
REQUIRED_FIELDS = ("title", "date", "type", "is_recurring")

TYPE_LABELS = {
    AnniversaryType.ANNIVERSARY: "Anniversary",
    AnniversaryType.BIRTHDAY: "Birthday",
    AnniversaryType.FIRST_DATE: "First date",
    AnniversaryType.ENGAGEMENT: "Engagement",
    AnniversaryType.WEDDING: "Wedding",
    AnniversaryType.CUSTOM: "Custom",
}

def get_type_label(anniversary_type: AnniversaryType) -> str:
    return TYPE_LABELS.get(anniversary_type, "Unknown")

def _clean_title(title: str) -> str:
    title = title.strip()
    if not title:
        raise ValidationError("Anniversary title must not be empty")
    return title

async def list_anniversaries(store: DocumentStore, couple_id: str) -> List[AnniversaryResponse]:
    """All anniversaries of a couple, earliest date first"""
    records = await store.query(ANNIVERSARIES, {"couple_id": couple_id}, order_by="date")
    return [AnniversaryResponse.model_validate(record) for record in records]

async def get_anniversary(store: DocumentStore, couple_id: str, anniversary_id: str) -> AnniversaryResponse:
    """Get one anniversary; records of other couples are reported as not found"""
    try:
        record = await store.get(ANNIVERSARIES, anniversary_id)
    except NotFoundError:
        record = None
    if record is None or record["couple_id"] != couple_id:
        raise NotFoundError(f"Anniversary with id {anniversary_id} not found")
    return AnniversaryResponse.model_validate(record)

async def add_anniversary(
    store: DocumentStore, couple_id: str, user_id: str, data: AnniversaryCreate
) -> AnniversaryResponse:
    reminder_days = data.reminder_days
    if reminder_days is None:
        reminder_days = get_settings().default_reminder_days

    anniversary_id = await store.create(ANNIVERSARIES, {
        "couple_id": couple_id,
        "title": _clean_title(data.title),
        "date": data.date,
        "description": data.description,
        "type": data.type.value,
        "is_recurring": data.is_recurring,
        "reminder_days": reminder_days,
        "created_by": user_id,
    })
    logger.info("User %s added anniversary %s to couple %s", user_id, anniversary_id, couple_id)
    return await get_anniversary(store, couple_id, anniversary_id)

async def update_anniversary(
    store: DocumentStore, couple_id: str, anniversary_id: str, data: AnniversaryUpdate
) -> AnniversaryResponse:
    await get_anniversary(store, couple_id, anniversary_id)

    changes = data.model_dump(exclude_unset=True)
    for field in REQUIRED_FIELDS:
        if field in changes and changes[field] is None:
            raise ValidationError(f"Anniversary {field} must not be empty")
    if "title" in changes:
        changes["title"] = _clean_title(changes["title"])
    if "type" in changes:
        changes["type"] = changes["type"].value

    if changes:
        await store.update(ANNIVERSARIES, anniversary_id, changes)
    return await get_anniversary(store, couple_id, anniversary_id)

async def delete_anniversary(store: DocumentStore, couple_id: str, anniversary_id: str) -> None:
    await get_anniversary(store, couple_id, anniversary_id)
    await store.delete(ANNIVERSARIES, anniversary_id)
    logger.info("Deleted anniversary %s of couple %s", anniversary_id, couple_id)

def describe_anniversary(anniversary: AnniversaryResponse, today: date) -> AnniversaryCountdown:
    """Attach next occurrence, countdown, elapsed years and whether it falls today"""
    return AnniversaryCountdown(
        **anniversary.model_dump(),
        next_occurrence=recurrence_service.next_occurrence(anniversary.date, anniversary.is_recurring, today),
        days_until=recurrence_service.days_until(anniversary.date, anniversary.is_recurring, today),
        years_passed=recurrence_service.years_since(anniversary.date, today),
        type_label=get_type_label(anniversary.type),
        is_today=recurrence_service.occurs_today(anniversary.date, anniversary.is_recurring, today),
    )

def get_upcoming_anniversaries(
    anniversaries: List[AnniversaryResponse], today: date, days: Optional[int] = None
) -> List[AnniversaryResponse]:
    """
    Anniversaries whose next occurrence is within ``days`` of today, soonest first.

    One-off dates that have already passed never qualify.
    """
    if days is None:
        days = get_settings().upcoming_window_days
    upcoming = [
        a for a in anniversaries
        if recurrence_service.is_upcoming(a.date, a.is_recurring, today, days)
    ]
    return sorted(upcoming, key=lambda a: recurrence_service.next_occurrence(a.date, a.is_recurring, today))

async def get_today_anniversaries(
    store: DocumentStore, couple_id: str, couple: CoupleResponse, today: date
) -> List[TodayAnniversary]:
    """
    Everything the couple celebrates today.

    The relationship anniversary comes first, then recurring anniversaries
    in the order the store returns them. Store failures propagate so callers
    can tell "nothing today" from "could not check".
    """
    results = []

    if recurrence_service.is_today(couple.relationship_start, today):
        years = recurrence_service.years_since(couple.relationship_start, today)
        results.append(TodayAnniversary(
            type="relationship",
            title=f"{years} year anniversary",
            date=today,
        ))

    records = await store.query(ANNIVERSARIES, {"couple_id": couple_id, "is_recurring": True})
    for record in records:
        if recurrence_service.is_today(record["date"], today):
            results.append(TodayAnniversary(
                type="anniversary",
                title=record["title"],
                date=today,
                description=record.get("description"),
                anniversary_type=record.get("type"),
            ))

    return results
