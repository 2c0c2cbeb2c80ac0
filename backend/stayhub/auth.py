"""
StayHub Backend: Token Authenticator
=====================================

What:  FastAPI dependencies that turn `Authorization: Bearer <token>` into a
       Principal and a database session scoped to that principal.
Who:   Every protected route declares one of these dependencies. Public
       routes (register, login, logout, health, payment webhook) don't.

Flow:
    header ─▶ extract_bearer_token ─▶ identity_service.resolve_principal
           ─▶ request.state.principal ─▶ caller_session(principal.claims())

    The session yielded by get_scoped_session runs under the caller's JWT
    claims and the row-level-security role, so queries see exactly what the
    backend's policies allow that caller to see. A new session is opened per
    request and never shared.
"""

import logging
from typing import AsyncGenerator, Optional

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from stayhub.database import caller_session
from stayhub.exceptions import AuthenticationError
from stayhub.services.identity_service import Principal, identity_service

logger = logging.getLogger(__name__)


def extract_bearer_token(authorization: Optional[str]) -> str:
    """
    Pull the token out of an Authorization header value.

    Raises:
        AuthenticationError: header missing, no second segment, or a scheme
            other than Bearer
    """
    if not authorization:
        raise AuthenticationError(message="No se proporcionó token de autenticación")

    parts = authorization.split()
    if len(parts) < 2 or not parts[1]:
        raise AuthenticationError(message="Formato de token inválido")
    if parts[0].lower() != "bearer":
        raise AuthenticationError(
            message="Formato de token inválido", context={"scheme": parts[0]}
        )
    return parts[1]


async def get_current_principal(
    request: Request,
    authorization: Optional[str] = Header(default=None),
) -> Principal:
    token = extract_bearer_token(authorization)
    principal = await identity_service.resolve_principal(token)
    request.state.principal = principal
    return principal


async def get_optional_token(
    authorization: Optional[str] = Header(default=None),
) -> Optional[str]:
    """Bearer token if one was sent and well formed, else None. Used by logout."""
    try:
        return extract_bearer_token(authorization)
    except AuthenticationError:
        return None


async def get_scoped_session(
    principal: Principal = Depends(get_current_principal),
) -> AsyncGenerator[AsyncSession, None]:
    async with caller_session(principal.claims()) as session:
        yield session
