from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import List, Optional
from datetime import date, datetime

from backend.app.models.models import CoupleStatus
from backend.app.schemas.anniversaries import TodayAnniversary
from backend.app.schemas.users import UserResponse

class CoupleCreate(BaseModel):
    relationship_start: date
    anniversary_date: Optional[date] = None  # defaults to relationship_start

    @model_validator(mode="after")
    def default_anniversary_date(self):
        if self.anniversary_date is None:
            self.anniversary_date = self.relationship_start
        return self

class CoupleJoin(BaseModel):
    invite_code: str = Field(min_length=1)

class CoupleResponse(BaseModel):
    id: str
    user1_id: str
    user2_id: Optional[str] = None
    relationship_start: date
    anniversary_date: date
    status: CoupleStatus
    invite_code: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class CoupleOverview(BaseModel):
    couple: Optional[CoupleResponse] = None
    partner: Optional[UserResponse] = None
    days_together: int = 0
    today_anniversaries: List[TodayAnniversary] = []
