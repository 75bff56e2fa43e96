"""Menu catalog endpoints. Anyone signed in can browse; admins can edit."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from factory import ServiceFactory
from application.context import SessionContext
from domain.models import MealType, PageRequest
from adapters.rest.dependencies import get_factory, get_current_user, require_admin
from adapters.rest.schemas import (
    MenuCreateBody,
    MenuOut,
    MenuPageOut,
    MenuUpdateBody,
    PaginationOut,
)

router = APIRouter(prefix="/menus", tags=["menus"])


@router.get("", response_model=MenuPageOut)
async def list_menus(
    page: int = Query(1),
    limit: int = Query(20),
    sort: str = Query("created_at:desc"),
    search: Optional[str] = Query(None, description="Case-insensitive title match"),
    meal_type: Optional[MealType] = Query(None),
    cuisine: Optional[str] = Query(None),
    is_active: Optional[bool] = Query(None),
    user: SessionContext = Depends(get_current_user),
    factory: ServiceFactory = Depends(get_factory),
):
    result = await factory.create_menu_service().list(
        PageRequest(page=page, limit=limit, sort=sort, search=search),
        meal_type=meal_type,
        cuisine=cuisine,
        is_active=is_active,
    )
    return MenuPageOut(
        data=[MenuOut.from_model(m) for m in result.items],
        pagination=PaginationOut.from_page(result),
    )


@router.get("/{menu_id}", response_model=MenuOut)
async def get_menu(
    menu_id: int,
    user: SessionContext = Depends(get_current_user),
    factory: ServiceFactory = Depends(get_factory),
):
    return MenuOut.from_model(await factory.create_menu_service().get(menu_id))


@router.post("", response_model=MenuOut, status_code=201)
async def create_menu(
    body: MenuCreateBody,
    admin: SessionContext = Depends(require_admin),
    factory: ServiceFactory = Depends(get_factory),
):
    item = await factory.create_menu_service().create(admin, body.model_dump())
    return MenuOut.from_model(item)


@router.patch("/{menu_id}", response_model=MenuOut)
async def update_menu(
    menu_id: int,
    body: MenuUpdateBody,
    admin: SessionContext = Depends(require_admin),
    factory: ServiceFactory = Depends(get_factory),
):
    item = await factory.create_menu_service().update(
        admin, menu_id, body.model_dump(exclude_unset=True),
    )
    return MenuOut.from_model(item)


@router.delete("/{menu_id}", status_code=204)
async def delete_menu(
    menu_id: int,
    admin: SessionContext = Depends(require_admin),
    factory: ServiceFactory = Depends(get_factory),
):
    await factory.create_menu_service().delete(admin, menu_id)
