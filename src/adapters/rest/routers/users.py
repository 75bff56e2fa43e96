"""User endpoints: self-service profile plus admin account management."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from factory import ServiceFactory
from application.context import SessionContext
from application.dto import RegisterRequest, UserUpdate
from domain.models import PageRequest
from adapters.rest.dependencies import get_factory, get_current_user, require_admin
from adapters.rest.schemas import (
    PaginationOut,
    RegisterBody,
    UserOut,
    UserPageOut,
    UserUpdateBody,
)

router = APIRouter(prefix="/users", tags=["users"])


def _to_update(body: UserUpdateBody) -> UserUpdate:
    return UserUpdate(
        email=body.email,
        password=body.password,
        name=body.name,
        timezone=body.timezone,
        role=body.role,
    )


@router.get("/me", response_model=UserOut)
async def get_me(
    user: SessionContext = Depends(get_current_user),
    factory: ServiceFactory = Depends(get_factory),
):
    entity = await factory.create_user_service().get(user.user_id)
    return UserOut.from_entity(entity)


@router.patch("/me", response_model=UserOut)
async def update_me(
    body: UserUpdateBody,
    user: SessionContext = Depends(get_current_user),
    factory: ServiceFactory = Depends(get_factory),
):
    """Update own email, password, name or timezone. Role changes are ignored."""
    entity = await factory.create_user_service().update_self(user, _to_update(body))
    return UserOut.from_entity(entity)


@router.get("", response_model=UserPageOut)
async def list_users(
    page: int = Query(1),
    limit: int = Query(20),
    sort: str = Query("created_at:desc"),
    search: Optional[str] = Query(None),
    role: Optional[str] = Query(None),
    admin: SessionContext = Depends(require_admin),
    factory: ServiceFactory = Depends(get_factory),
):
    result = await factory.create_user_service().list(
        admin,
        PageRequest(page=page, limit=limit, sort=sort, search=search),
        role=role,
    )
    return UserPageOut(
        data=[UserOut.from_entity(u) for u in result.items],
        pagination=PaginationOut.from_page(result),
    )


@router.post("", response_model=UserOut, status_code=201)
async def create_user(
    body: RegisterBody,
    admin: SessionContext = Depends(require_admin),
    factory: ServiceFactory = Depends(get_factory),
):
    entity = await factory.create_user_service().create(admin, RegisterRequest(
        email=body.email,
        password=body.password,
        name=body.name,
        timezone=body.timezone,
        role=body.role,
    ))
    return UserOut.from_entity(entity)


@router.get("/{user_id}", response_model=UserOut)
async def get_user(
    user_id: int,
    admin: SessionContext = Depends(require_admin),
    factory: ServiceFactory = Depends(get_factory),
):
    return UserOut.from_entity(await factory.create_user_service().get(user_id))


@router.patch("/{user_id}", response_model=UserOut)
async def update_user(
    user_id: int,
    body: UserUpdateBody,
    admin: SessionContext = Depends(require_admin),
    factory: ServiceFactory = Depends(get_factory),
):
    entity = await factory.create_user_service().update(admin, user_id, _to_update(body))
    return UserOut.from_entity(entity)


@router.delete("/{user_id}", status_code=204)
async def delete_user(
    user_id: int,
    admin: SessionContext = Depends(require_admin),
    factory: ServiceFactory = Depends(get_factory),
):
    await factory.create_user_service().delete(admin, user_id)
