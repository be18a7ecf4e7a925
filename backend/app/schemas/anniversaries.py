from pydantic import BaseModel, ConfigDict, Field
from typing import Literal, Optional
import datetime as dt  # "date" is also a field name, so use the module-qualified type

from backend.app.models.models import AnniversaryType

class AnniversaryBase(BaseModel):
    title: str = Field(min_length=1)
    date: dt.date
    description: Optional[str] = None
    type: AnniversaryType = AnniversaryType.ANNIVERSARY
    is_recurring: bool = True
    reminder_days: Optional[int] = Field(None, ge=0)  # days of notice before the date

class AnniversaryCreate(AnniversaryBase):
    pass

class AnniversaryUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    date: Optional[dt.date] = None
    description: Optional[str] = None
    type: Optional[AnniversaryType] = None
    is_recurring: Optional[bool] = None
    reminder_days: Optional[int] = Field(None, ge=0)

class AnniversaryResponse(AnniversaryBase):
    id: str
    couple_id: str
    created_by: Optional[str] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None

    model_config = ConfigDict(from_attributes=True)

class AnniversaryCountdown(AnniversaryResponse):
    """An anniversary together with where it next falls relative to today."""
    next_occurrence: dt.date
    days_until: int
    years_passed: int
    type_label: str
    is_today: bool = False

class TodayAnniversary(BaseModel):
    type: Literal["relationship", "anniversary"]
    title: str
    date: dt.date
    description: Optional[str] = None
    anniversary_type: Optional[AnniversaryType] = None
    days_from_today: int = 0
    is_today: bool = True
