"""Pydantic models for REST API request/response validation."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from domain.entities import Schedule, User
from domain.models import DailySuggestion, MealType, MenuItem, Page, Preference

_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


# --- Auth ---

class RegisterBody(BaseModel):
    email: str = Field(..., pattern=_EMAIL_PATTERN, max_length=254)
    password: str = Field(..., min_length=6)
    name: str = Field(..., min_length=1, max_length=100)
    timezone: Optional[str] = None
    role: str = Field("user", pattern="^(admin|user)$")


class LoginBody(BaseModel):
    email: str
    password: str


class RefreshBody(BaseModel):
    token: str


class UserOut(BaseModel):
    id: int
    email: str
    name: str
    role: str
    timezone: str
    created_at: str
    updated_at: str

    @classmethod
    def from_entity(cls, user: User) -> UserOut:
        return cls(**user.to_public_dict())


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut


# --- Users ---

class UserUpdateBody(BaseModel):
    email: Optional[str] = Field(None, pattern=_EMAIL_PATTERN, max_length=254)
    password: Optional[str] = Field(None, min_length=6)
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    timezone: Optional[str] = None
    role: Optional[str] = Field(None, pattern="^(admin|user)$")


# --- Pagination ---

class PaginationOut(BaseModel):
    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def from_page(cls, page: Page) -> PaginationOut:
        return cls(page=page.page, limit=page.limit, total=page.total, pages=page.pages)


class UserPageOut(BaseModel):
    data: list[UserOut]
    pagination: PaginationOut


# --- Menus ---

class MenuCreateBody(BaseModel):
    title: str = Field(..., min_length=1)
    meal_type: MealType
    cuisine: str = Field(..., min_length=1)
    is_active: bool = True
    notes: Optional[str] = None
    allergens: list[str] = Field(default_factory=list)
    budget_min: Optional[float] = Field(None, ge=0)
    budget_max: Optional[float] = Field(None, ge=0)
    image_url: Optional[str] = None


class MenuUpdateBody(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    meal_type: Optional[MealType] = None
    cuisine: Optional[str] = Field(None, min_length=1)
    is_active: Optional[bool] = None
    notes: Optional[str] = None
    allergens: Optional[list[str]] = None
    budget_min: Optional[float] = Field(None, ge=0)
    budget_max: Optional[float] = Field(None, ge=0)
    image_url: Optional[str] = None


class MenuOut(BaseModel):
    id: int
    title: str
    meal_type: MealType
    cuisine: str
    is_active: bool
    notes: Optional[str] = None
    allergens: list[str]
    budget_min: Optional[float] = None
    budget_max: Optional[float] = None
    image_url: Optional[str] = None
    created_at: str
    updated_at: str

    @classmethod
    def from_model(cls, item: MenuItem) -> MenuOut:
        return cls(**item.to_dict())


class MenuPageOut(BaseModel):
    data: list[MenuOut]
    pagination: PaginationOut


# --- Preferences ---

class PreferenceUpdateBody(BaseModel):
    cuisines: Optional[list[str]] = None
    allergens_avoid: Optional[list[str]] = None
    budget_min: Optional[float] = Field(None, ge=0)
    budget_max: Optional[float] = Field(None, ge=0)
    excluded_meal_types: Optional[list[MealType]] = None


class PreferenceOut(BaseModel):
    user_id: int
    cuisines: list[str]
    allergens_avoid: list[str]
    budget_min: Optional[float] = None
    budget_max: Optional[float] = None
    excluded_meal_types: list[MealType]
    created_at: str
    updated_at: str

    @classmethod
    def from_model(cls, preference: Preference) -> PreferenceOut:
        return cls(**preference.to_dict())


# --- Schedules ---

class ScheduleUpdateBody(BaseModel):
    times: Optional[list[str]] = Field(
        None,
        description="Meal reminder times in HH:mm format (24-hour)",
        examples=[["08:00", "12:00", "18:00"]],
    )
    timezone: Optional[str] = Field(None, examples=["Asia/Bangkok"])


class ScheduleOut(BaseModel):
    user_id: int
    times: list[str]
    timezone: str
    created_at: str
    updated_at: str

    @classmethod
    def from_entity(cls, schedule: Schedule) -> ScheduleOut:
        return cls(
            user_id=schedule.user_id,
            times=schedule.times,
            timezone=schedule.timezone,
            created_at=schedule.created_at,
            updated_at=schedule.updated_at,
        )


# --- Suggestions ---

class RerollBody(BaseModel):
    meal_type: MealType = Field(..., examples=["breakfast"])


class DailySuggestionOut(BaseModel):
    user_id: int
    date: str
    breakfast: Optional[MenuOut] = None
    lunch: Optional[MenuOut] = None
    dinner: Optional[MenuOut] = None
    created_at: str
    updated_at: str

    @classmethod
    def from_model(cls, suggestion: DailySuggestion) -> DailySuggestionOut:
        return cls(
            user_id=suggestion.user_id,
            date=suggestion.date,
            breakfast=MenuOut.from_model(suggestion.breakfast) if suggestion.breakfast else None,
            lunch=MenuOut.from_model(suggestion.lunch) if suggestion.lunch else None,
            dinner=MenuOut.from_model(suggestion.dinner) if suggestion.dinner else None,
            created_at=suggestion.created_at,
            updated_at=suggestion.updated_at,
        )
