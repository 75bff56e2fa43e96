"""Daily suggestion endpoints: generate, read and reroll today's meals.

"Today" is the calendar date in the caller's own timezone.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from factory import ServiceFactory
from application.context import SessionContext
from adapters.rest.dependencies import get_factory, get_current_user
from adapters.rest.schemas import DailySuggestionOut, RerollBody

router = APIRouter(prefix="/suggestions", tags=["suggestions"])


@router.post("/generate-today", response_model=DailySuggestionOut, status_code=201)
async def generate_today(
    user: SessionContext = Depends(get_current_user),
    factory: ServiceFactory = Depends(get_factory),
):
    """Pick breakfast, lunch and dinner, replacing any record for today."""
    service = factory.create_suggestion_service()
    suggestion = await service.generate_today(user.user_id, user.timezone)
    return DailySuggestionOut.from_model(suggestion)


@router.get("/today", response_model=Optional[DailySuggestionOut])
async def get_today(
    user: SessionContext = Depends(get_current_user),
    factory: ServiceFactory = Depends(get_factory),
):
    service = factory.create_suggestion_service()
    suggestion = await service.get_today(user.user_id, user.timezone)
    return DailySuggestionOut.from_model(suggestion) if suggestion else None


@router.post("/reroll", response_model=DailySuggestionOut)
async def reroll(
    body: RerollBody,
    user: SessionContext = Depends(get_current_user),
    factory: ServiceFactory = Depends(get_factory),
):
    """Replace one slot of today's suggestion; the other slots are untouched."""
    service = factory.create_suggestion_service()
    suggestion = await service.reroll(user.user_id, user.timezone, body.meal_type)
    return DailySuggestionOut.from_model(suggestion)
