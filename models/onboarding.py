"""
Onboarding wizard request models
"""
from typing import List, Literal

from pydantic import BaseModel, Field

ProfileType = Literal["hormonal", "inflammatory", "cortisol", "metabolic", "retention", "insulinic"]
DietHistory = Literal["beginner", "yoyo", "stuck"]


class ProfileStep(BaseModel):
    profile_type: ProfileType


class BiometricsStep(BaseModel):
    age: int = Field(ge=16, le=100)
    height_cm: float = Field(gt=100, lt=250)
    current_weight_kg: float = Field(gt=30, lt=400)
    target_weight_kg: float = Field(gt=30, lt=400)


class HealthStep(BaseModel):
    medications: List[str] = []
    physical_limitations: List[str] = []


class NutritionStep(BaseModel):
    dietary_restrictions: List[str] = []


class DietHistoryStep(BaseModel):
    diet_history: DietHistory


class OnboardingSubmission(BaseModel):
    """All five wizard steps, submitted together when the user finishes."""
    step1: ProfileStep
    step2: BiometricsStep
    step3: HealthStep
    step4: NutritionStep
    step5: DietHistoryStep
