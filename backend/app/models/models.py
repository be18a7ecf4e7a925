from uuid import uuid4
from datetime import datetime
from enum import Enum

from sqlalchemy import (
    Column, String, Integer, DateTime, Boolean, ForeignKey, Date, Text
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# --- ENUMS ---

class CoupleStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"

class AnniversaryType(str, Enum):
    ANNIVERSARY = "anniversary"
    BIRTHDAY = "birthday"
    FIRST_DATE = "first_date"
    ENGAGEMENT = "engagement"
    WEDDING = "wedding"
    CUSTOM = "custom"

# --- SQLALCHEMY MODELS ---

class User(Base):
    __tablename__ = "users"
    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    email = Column(String, unique=True, nullable=False)
    display_name = Column(String, nullable=True)
    photo_url = Column(String, nullable=True)
    # Back-references, written by the pairing registry
    couple_id = Column(String, nullable=True)
    partner_id = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

class Couple(Base):
    __tablename__ = "couples"
    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    user1_id = Column(String, ForeignKey("users.id"), nullable=False)
    user2_id = Column(String, ForeignKey("users.id"), nullable=True)
    relationship_start = Column(Date, nullable=False)
    anniversary_date = Column(Date, nullable=False)
    status = Column(String, default=CoupleStatus.PENDING.value, nullable=False)
    invite_code = Column(String, index=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

class Anniversary(Base):
    __tablename__ = "anniversaries"
    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    couple_id = Column(String, ForeignKey("couples.id"), index=True, nullable=False)
    title = Column(String, nullable=False)
    date = Column(Date, nullable=False)
    description = Column(Text, nullable=True)
    type = Column(String, default=AnniversaryType.ANNIVERSARY.value, nullable=False)
    is_recurring = Column(Boolean, default=True)
    reminder_days = Column(Integer, nullable=True)
    created_by = Column(String, ForeignKey("users.id"))
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

# Collection name -> model, used by the document store
COLLECTIONS = {
    "users": User,
    "couples": Couple,
    "anniversaries": Anniversary,
}
