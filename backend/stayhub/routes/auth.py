"""
StayHub Backend: Auth Route Handlers
=====================================

What:  POST /api/auth/register, POST /api/auth/login, POST /api/auth/logout,
       GET /api/auth/me and /api/auth/verify-token (any method).
How:   Credentials are checked by the identity backend; the profile row is
       bootstrapped here on register and login.

Public: register, login, logout. The rest require a bearer token.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from stayhub.auth import get_current_principal, get_optional_token, get_scoped_session
from stayhub.database import caller_session, get_db_session
from stayhub.exceptions import NotFoundError, StayHubError
from stayhub.schemas.auth import (
    LoginRequest,
    LoginResponse,
    MeResponse,
    PrincipalOut,
    RegisterRequest,
    RegisterResponse,
    VerifiedUser,
    VerifyTokenResponse,
)
from stayhub.schemas.common import ErrorResponse, MessageResponse
from stayhub.services.identity_service import Principal, identity_service
from stayhub.services.user_service import profile_out, user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


def _principal_out(principal: Principal) -> PrincipalOut:
    return PrincipalOut(
        id=principal.id,
        email=principal.email,
        role=principal.role,
        metadata=principal.metadata,
    )


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=201,
    responses={
        400: {"description": "Email taken or password rejected", "model": ErrorResponse},
        500: {"description": "Identity backend or database error", "model": ErrorResponse},
    },
    summary="Register a new account",
)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
) -> RegisterResponse:
    """
    Creates the identity, then the `users` and `user_stats` rows.

    The caller has no token yet, so the profile rows are written on the
    trusted session.
    """
    principal = await identity_service.register(body.email, body.password)
    user = await user_service.ensure_profile(db, principal.user_id, body.email)
    return RegisterResponse(user=profile_out(user))


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        400: {"description": "Invalid credentials", "model": ErrorResponse},
        500: {"description": "Identity backend error", "model": ErrorResponse},
    },
    summary="Sign in with email and password",
)
async def login(body: LoginRequest) -> LoginResponse:
    result = await identity_service.login(body.email, body.password)
    principal = result.principal

    # A broken profile lookup must not cost the user their session
    try:
        async with caller_session(principal.claims()) as session:
            user = await user_service.ensure_profile(
                session, principal.user_id, principal.email or body.email
            )
            profile = profile_out(user)
    except (StayHubError, SQLAlchemyError, OSError) as e:
        logger.warning(
            "Login for %s succeeded without a profile: %s", principal.id, type(e).__name__
        )
        return LoginResponse(
            message="Login exitoso, pero hubo un error al obtener el perfil",
            session=result.session,
            user=_principal_out(principal),
        )

    return LoginResponse(message="Login exitoso", session=result.session, user=profile)


@router.post(
    "/logout",
    response_model=MessageResponse,
    summary="Revoke the bearer token, if any",
)
async def logout(token: Optional[str] = Depends(get_optional_token)) -> MessageResponse:
    if token:
        await identity_service.revoke(token)
    return MessageResponse(message="Logout exitoso")


@router.get(
    "/me",
    response_model=MeResponse,
    responses={
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        404: {"description": "No profile for this user", "model": ErrorResponse},
    },
    summary="Profile and stats of the caller",
)
async def me(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_scoped_session),
) -> MeResponse:
    return MeResponse(user=await user_service.get_profile(db, principal.user_id))


@router.api_route(
    "/verify-token",
    methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    response_model=VerifyTokenResponse,
    responses={401: {"description": "Missing or invalid token", "model": ErrorResponse}},
    summary="Check a bearer token and describe its user",
)
async def verify_token(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_scoped_session),
) -> VerifyTokenResponse:
    fields = _principal_out(principal).model_dump()
    try:
        profile = await user_service.get_profile(db, principal.user_id)
    except NotFoundError:
        profile = None

    if profile is not None:
        fields.update(
            name=profile.name,
            profile_image=profile.profile_image,
            phone=profile.phone,
            bio=profile.bio,
            language=profile.language,
            gender=profile.gender,
            created_at=profile.created_at,
        )
    return VerifyTokenResponse(user=VerifiedUser(**fields))
