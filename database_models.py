import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)

from backend.program.rules import utcnow
from database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class AuthIdentity(Base):
    """
    Authentication account for the local identity provider.
    Mirrors what the hosted auth service keeps for each login.
    """
    __tablename__ = "auth_identities"

    id = Column(String(36), primary_key=True, default=_new_id)
    email = Column(String, unique=True, nullable=False, index=True)
    hashed_password = Column(String, nullable=True)
    email_confirmed_at = Column(DateTime, nullable=True)
    user_metadata = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class User(Base):
    """
    Application profile row, keyed by the identity id.
    Holds subscription and gamification state.
    """
    __tablename__ = "users"

    id = Column(String(36), primary_key=True)
    email = Column(String, unique=True, nullable=False, index=True)
    full_name = Column(String, nullable=True)
    profile_type = Column(String, nullable=True)
    status = Column(String, nullable=False, default="active")
    subscription_plan = Column(String, nullable=True)
    subscription_end_date = Column(DateTime, nullable=True)
    current_day = Column(Integer, nullable=False, default=1)
    slim_points = Column(Integer, nullable=False, default=0)
    bonus_unlocked = Column(Boolean, nullable=False, default=False)
    webhook_data = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class UserOnboarding(Base):
    __tablename__ = "user_onboarding"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(36), ForeignKey("users.id"), unique=True, nullable=False, index=True)
    age = Column(Integer, nullable=True)
    height_cm = Column(Float, nullable=True)
    current_weight_kg = Column(Float, nullable=True)
    target_weight_kg = Column(Float, nullable=True)
    bmi = Column(Float, nullable=True)
    medications = Column(JSON, nullable=False, default=list)
    physical_limitations = Column(JSON, nullable=False, default=list)
    dietary_restrictions = Column(JSON, nullable=False, default=list)
    diet_history = Column(String, nullable=True)
    onboarding_completed = Column(Boolean, nullable=False, default=False)
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class DailyContent(Base):
    """Program content for one day of the 30-day plan."""
    __tablename__ = "daily_content"

    id = Column(Integer, primary_key=True, index=True)
    day_number = Column(Integer, unique=True, nullable=False, index=True)
    lean_message = Column(Text, nullable=False)
    micro_challenge = Column(Text, nullable=False)
    panic_button_text = Column(Text, nullable=True)
    panic_button_audio_url = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class DailyTask(Base):
    __tablename__ = "daily_tasks"

    id = Column(Integer, primary_key=True, index=True)
    daily_content_id = Column(Integer, ForeignKey("daily_content.id"), nullable=False, index=True)
    task_text = Column(String, nullable=False)
    task_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class ProfileContent(Base):
    __tablename__ = "profile_content"
    __table_args__ = (UniqueConstraint("daily_content_id", "profile_type"),)

    id = Column(Integer, primary_key=True, index=True)
    daily_content_id = Column(Integer, ForeignKey("daily_content.id"), nullable=False, index=True)
    profile_type = Column(String, nullable=False)
    star_food_name = Column(String, nullable=False)
    star_food_description = Column(Text, nullable=True)
    allowed_foods = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class UserDailyProgress(Base):
    __tablename__ = "user_daily_progress"
    __table_args__ = (UniqueConstraint("user_id", "day_number"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    day_number = Column(Integer, nullable=False)
    date = Column(Date, nullable=False)
    tasks_completed = Column(JSON, nullable=False, default=list)
    tasks_total = Column(Integer, nullable=False, default=0)
    completion_percentage = Column(Integer, nullable=False, default=0)
    point_earned = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class MoodCheckin(Base):
    __tablename__ = "mood_checkins"
    __table_args__ = (UniqueConstraint("user_id", "date", "time_of_day"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    mood = Column(String, nullable=False)
    time_of_day = Column(String, nullable=False)
    notes = Column(Text, nullable=True)
    date = Column(Date, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class BonusContent(Base):
    __tablename__ = "bonus_content"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    content_type = Column(String, nullable=False, default="pdf")
    content_url = Column(String, nullable=True)
    unlock_points = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class UserBonusUnlock(Base):
    __tablename__ = "user_bonus_unlocks"
    __table_args__ = (UniqueConstraint("user_id", "bonus_content_id"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    bonus_content_id = Column(Integer, ForeignKey("bonus_content.id"), nullable=False)
    unlocked_at = Column(DateTime, default=utcnow, nullable=False)
