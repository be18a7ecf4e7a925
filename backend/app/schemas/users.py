from pydantic import BaseModel, EmailStr, ConfigDict, Field
from typing import Optional
from datetime import datetime

class UserCreate(BaseModel):
    id: Optional[str] = None  # uid from the identity provider, generated when absent
    email: EmailStr
    display_name: Optional[str] = Field(None, min_length=1)  # This enforces non-empty strings
    photo_url: Optional[str] = None

class UserUpdate(BaseModel):
    display_name: Optional[str] = Field(None, min_length=1)
    photo_url: Optional[str] = None

class UserResponse(BaseModel):
    id: str
    email: str
    display_name: Optional[str] = None
    photo_url: Optional[str] = None
    couple_id: Optional[str] = None
    partner_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)  # Modern Pydantic v2 syntax
