"""Food preference endpoints. A default record is created on first read."""

from fastapi import APIRouter, Depends

from factory import ServiceFactory
from application.context import SessionContext
from adapters.rest.dependencies import get_factory, get_current_user
from adapters.rest.schemas import PreferenceOut, PreferenceUpdateBody

router = APIRouter(prefix="/preferences", tags=["preferences"])


async def _ensure_target(user: SessionContext, user_id: int, factory: ServiceFactory) -> None:
    """404 for admins addressing an unknown user."""
    if user.is_admin and user_id != user.user_id:
        await factory.create_user_service().get(user_id)


@router.get("/me", response_model=PreferenceOut)
async def get_my_preferences(
    user: SessionContext = Depends(get_current_user),
    factory: ServiceFactory = Depends(get_factory),
):
    preference = await factory.create_preference_service().get_or_create(user.user_id)
    return PreferenceOut.from_model(preference)


@router.patch("/me", response_model=PreferenceOut)
async def update_my_preferences(
    body: PreferenceUpdateBody,
    user: SessionContext = Depends(get_current_user),
    factory: ServiceFactory = Depends(get_factory),
):
    preference = await factory.create_preference_service().update(
        user.user_id, body.model_dump(exclude_unset=True),
    )
    return PreferenceOut.from_model(preference)


@router.get("/{user_id}", response_model=PreferenceOut)
async def get_preferences(
    user_id: int,
    user: SessionContext = Depends(get_current_user),
    factory: ServiceFactory = Depends(get_factory),
):
    await _ensure_target(user, user_id, factory)
    preference = await factory.create_preference_service().get_for(user, user_id)
    return PreferenceOut.from_model(preference)


@router.patch("/{user_id}", response_model=PreferenceOut)
async def update_preferences(
    user_id: int,
    body: PreferenceUpdateBody,
    user: SessionContext = Depends(get_current_user),
    factory: ServiceFactory = Depends(get_factory),
):
    await _ensure_target(user, user_id, factory)
    preference = await factory.create_preference_service().update_for(
        user, user_id, body.model_dump(exclude_unset=True),
    )
    return PreferenceOut.from_model(preference)
