"""Auth endpoints: register, login and token refresh."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from factory import ServiceFactory
from application.context import SessionContext
from application.dto import AuthToken, LoginRequest, RegisterRequest
from domain.exceptions import AuthenticationError, DuplicateEmailError
from adapters.rest.dependencies import get_factory, get_optional_user
from adapters.rest.schemas import RegisterBody, LoginBody, TokenResponse, RefreshBody, UserOut

router = APIRouter(prefix="/auth", tags=["auth"])


def _token_response(token: AuthToken) -> TokenResponse:
    return TokenResponse(
        access_token=token.access_token,
        token_type=token.token_type,
        user=UserOut.from_entity(token.user),
    )


@router.post("/register", response_model=TokenResponse, status_code=201)
async def register(
    body: RegisterBody,
    actor: Optional[SessionContext] = Depends(get_optional_user),
    factory: ServiceFactory = Depends(get_factory),
):
    """Create an account. Only an authenticated admin may request role="admin"."""
    auth_service = factory.create_authentication_service()
    try:
        token = await auth_service.register(
            RegisterRequest(
                email=body.email,
                password=body.password,
                name=body.name,
                timezone=body.timezone,
                role=body.role,
            ),
            actor=actor,
        )
    except DuplicateEmailError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(exc),
        )
    return _token_response(token)


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginBody,
    factory: ServiceFactory = Depends(get_factory),
):
    auth_service = factory.create_authentication_service()
    try:
        token = await auth_service.login(LoginRequest(
            email=body.email,
            password=body.password,
        ))
    except AuthenticationError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        )
    return _token_response(token)


@router.post("/refresh", response_model=TokenResponse)
async def refresh(
    body: RefreshBody,
    factory: ServiceFactory = Depends(get_factory),
):
    """Re-issue a new JWT using an existing (possibly expired) token."""
    auth_service = factory.create_authentication_service()
    try:
        token = await auth_service.refresh_token(body.token)
    except AuthenticationError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        )
    return _token_response(token)
