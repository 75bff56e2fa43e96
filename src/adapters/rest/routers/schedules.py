"""Meal reminder schedule endpoints."""

from fastapi import APIRouter, Depends

from factory import ServiceFactory
from application.context import SessionContext
from adapters.rest.dependencies import get_factory, get_current_user
from adapters.rest.schemas import ScheduleOut, ScheduleUpdateBody

router = APIRouter(prefix="/schedules", tags=["schedules"])


async def _target_timezone(user: SessionContext, user_id: int, factory: ServiceFactory) -> str:
    """A new schedule starts in its owner's timezone. Admins get a 404 for
    unknown users; everyone else is left to the permission check."""
    if user_id == user.user_id or not user.is_admin:
        return user.timezone
    owner = await factory.create_user_service().get(user_id)
    return owner.timezone


@router.get("/me", response_model=ScheduleOut)
async def get_my_schedule(
    user: SessionContext = Depends(get_current_user),
    factory: ServiceFactory = Depends(get_factory),
):
    schedule = await factory.create_schedule_service().get_or_create(user.user_id, user.timezone)
    return ScheduleOut.from_entity(schedule)


@router.patch("/me", response_model=ScheduleOut)
async def update_my_schedule(
    body: ScheduleUpdateBody,
    user: SessionContext = Depends(get_current_user),
    factory: ServiceFactory = Depends(get_factory),
):
    schedule = await factory.create_schedule_service().update(
        user.user_id, body.model_dump(exclude_unset=True), user.timezone,
    )
    return ScheduleOut.from_entity(schedule)


@router.get("/{user_id}", response_model=ScheduleOut)
async def get_schedule(
    user_id: int,
    user: SessionContext = Depends(get_current_user),
    factory: ServiceFactory = Depends(get_factory),
):
    service = factory.create_schedule_service()
    timezone = await _target_timezone(user, user_id, factory)
    return ScheduleOut.from_entity(await service.get_for(user, user_id, timezone))


@router.patch("/{user_id}", response_model=ScheduleOut)
async def update_schedule(
    user_id: int,
    body: ScheduleUpdateBody,
    user: SessionContext = Depends(get_current_user),
    factory: ServiceFactory = Depends(get_factory),
):
    service = factory.create_schedule_service()
    timezone = await _target_timezone(user, user_id, factory)
    schedule = await service.update_for(
        user, user_id, body.model_dump(exclude_unset=True), timezone,
    )
    return ScheduleOut.from_entity(schedule)
