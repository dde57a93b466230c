"""
Dashboard, rewards and admin request models
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

Mood = Literal["happy", "neutral", "tired", "irritated"]
TimeOfDay = Literal["morning", "afternoon", "evening"]


class TaskToggleRequest(BaseModel):
    completed: bool


class MoodCheckinRequest(BaseModel):
    mood: Mood
    time_of_day: TimeOfDay
    notes: Optional[str] = Field(default=None, max_length=1000)


class DailyContentRequest(BaseModel):
    day_number: int = Field(ge=1, le=30)
    lean_message: str
    micro_challenge: str
    panic_button_text: Optional[str] = None
    panic_button_audio_url: Optional[str] = None


class DailyContentUpdate(BaseModel):
    day_number: Optional[int] = Field(default=None, ge=1, le=30)
    lean_message: Optional[str] = None
    micro_challenge: Optional[str] = None
    panic_button_text: Optional[str] = None
    panic_button_audio_url: Optional[str] = None


class DailyTaskRequest(BaseModel):
    task_text: str = Field(min_length=1)
    task_order: int = 0


class ProfileContentRequest(BaseModel):
    star_food_name: str
    star_food_description: Optional[str] = None
    allowed_foods: List[str] = []


class BonusContentRequest(BaseModel):
    title: str
    description: Optional[str] = None
    content_type: str = "pdf"
    content_url: Optional[str] = None
    unlock_points: int = Field(default=0, ge=0)
    is_active: bool = True


class BonusContentUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    content_type: Optional[str] = None
    content_url: Optional[str] = None
    unlock_points: Optional[int] = Field(default=None, ge=0)
    is_active: Optional[bool] = None
