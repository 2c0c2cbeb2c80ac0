"""
StayHub Backend: Identity Service (Supabase Auth Client)
=========================================================

What:  Thin async wrapper over the hosted identity backend: token
       verification, sign-up, password login, token revocation.
How:   supabase-py async clients, created lazily and reused for the
       process lifetime.

Two clients:
    anon   Public key. Verifies caller tokens (GET /auth/v1/user with the
           caller's JWT) and runs sign-up / sign-in.
    admin  Service role key. Token revocation and storage uploads; never
           used to read or write rows on behalf of a caller.

Error mapping:
    AuthError from the SDK             → AuthenticationError (401)
    token accepted but no user          → AuthenticationError (401)
    anything else (network, bad config) → IdentityServiceError (500)
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from supabase import AsyncClient, AsyncClientOptions, AuthError, acreate_client

from stayhub.config import settings
from stayhub.exceptions import AuthenticationError, IdentityServiceError, ValidationError

logger = logging.getLogger(__name__)


@dataclass
class Principal:
    """
    The authenticated caller, as resolved from a bearer token.

    `token` is kept so logout can revoke it; it is never logged.
    """

    id: str
    email: Optional[str] = None
    role: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    token: str = field(default="", repr=False)

    @property
    def user_id(self) -> uuid.UUID:
        return uuid.UUID(self.id)

    def claims(self) -> Dict[str, Any]:
        """JWT claims bound to the caller's database transaction."""
        return {
            "sub": self.id,
            "role": self.role or "authenticated",
            "email": self.email,
        }


@dataclass
class LoginResult:
    session: Dict[str, Any]
    principal: Principal


def _principal_from_user(user: Any, token: str = "") -> Principal:
    return Principal(
        id=str(user.id),
        email=user.email,
        role=getattr(user, "role", None),
        metadata=dict(getattr(user, "user_metadata", None) or {}),
        token=token,
    )


class IdentityService:
    """
    Responsibilities:
        - resolve_principal(): bearer token → Principal
        - register() / login(): password flows
        - revoke(): end the caller's sessions
        - admin_client(): service-role client for uploads and revocation
    """

    def __init__(self) -> None:
        self._anon: Optional[AsyncClient] = None
        self._admin: Optional[AsyncClient] = None

    @staticmethod
    def _options() -> AsyncClientOptions:
        # Stateless server: never persist or refresh a session in-process
        return AsyncClientOptions(auto_refresh_token=False, persist_session=False)

    async def anon_client(self) -> AsyncClient:
        if self._anon is None:
            self._anon = await acreate_client(
                settings.supabase_url, settings.supabase_anon_key, options=self._options()
            )
        return self._anon

    async def admin_client(self) -> AsyncClient:
        if self._admin is None:
            if not settings.supabase_service_role_key:
                raise IdentityServiceError(
                    message="Identity service is not configured",
                    context={"missing": "SUPABASE_SERVICE_ROLE_KEY"},
                )
            self._admin = await acreate_client(
                settings.supabase_url, settings.supabase_service_role_key, options=self._options()
            )
        return self._admin

    async def resolve_principal(self, token: str) -> Principal:
        """
        Verify a bearer token with the identity backend.

        Raises:
            AuthenticationError: Token rejected, expired, or no user behind it
            IdentityServiceError: The identity backend could not be reached
        """
        try:
            client = await self.anon_client()
            response = await client.auth.get_user(token)
        except AuthError as e:
            logger.info("Token rejected by identity backend: %s", e.message)
            raise AuthenticationError(context={"reason": e.message})
        except Exception as e:
            logger.error("Identity backend call failed: %s", str(e), exc_info=True)
            raise IdentityServiceError(
                message="Error de autenticación",
                context={"original_error": type(e).__name__},
            )

        if response is None or response.user is None:
            raise AuthenticationError(message="Token inválido o expirado")

        return _principal_from_user(response.user, token=token)

    async def register(self, email: str, password: str) -> Principal:
        """
        Create an identity. The identity backend enforces password rules
        and duplicate emails; both come back as AuthError → 400.
        """
        try:
            client = await self.anon_client()
            response = await client.auth.sign_up({"email": email, "password": password})
        except AuthError as e:
            raise ValidationError(message=e.message, field="email")
        except Exception as e:
            logger.error("Sign-up failed: %s", str(e), exc_info=True)
            raise IdentityServiceError(context={"original_error": type(e).__name__})

        if response.user is None:
            raise ValidationError(message="No se pudo registrar el usuario", field="email")

        logger.info("Registered identity %s", response.user.id)
        return _principal_from_user(response.user)

    async def login(self, email: str, password: str) -> LoginResult:
        """Password sign-in. Bad credentials are a 400, as the clients expect."""
        try:
            client = await self.anon_client()
            response = await client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except AuthError as e:
            raise ValidationError(message=e.message, context={"code": getattr(e, "code", None)})
        except Exception as e:
            logger.error("Sign-in failed: %s", str(e), exc_info=True)
            raise IdentityServiceError(context={"original_error": type(e).__name__})

        if response.user is None or response.session is None:
            raise ValidationError(message="No se pudo obtener la información del usuario")

        session = response.session.model_dump(mode="json")
        return LoginResult(
            session=session,
            principal=_principal_from_user(response.user, token=response.session.access_token),
        )

    async def revoke(self, token: str) -> None:
        """
        Revoke every session of the token's user.

        An already-invalid token is treated as logged out.
        """
        try:
            client = await self.admin_client()
            await client.auth.admin.sign_out(token)
        except AuthError as e:
            logger.info("Logout with a token the backend no longer accepts: %s", e.message)
        except IdentityServiceError:
            raise
        except Exception as e:
            logger.error("Token revocation failed: %s", str(e), exc_info=True)
            raise IdentityServiceError(context={"original_error": type(e).__name__})


# Singleton instance
identity_service = IdentityService()
