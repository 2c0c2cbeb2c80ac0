"""
StayHub Backend: Token Authenticator and Auth Route Tests
==========================================================

What we test:
    ✅ Authorization header parsing (missing, malformed, wrong scheme)
    ✅ Protected routes answer 401 before the identity backend is called
    ✅ verify-token and me report the same user id
    ✅ Login still succeeds when the profile lookup or the database fails
    ✅ Logout without a token is a success
"""

import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from stayhub.auth import extract_bearer_token
from stayhub.exceptions import AuthenticationError, DatabaseError, NotFoundError
from stayhub.schemas.auth import UserProfileWithStats, UserStatsOut
from stayhub.services.identity_service import LoginResult, Principal


def _profile(user_id):
    return UserProfileWithStats(
        id=user_id,
        email="ana@example.com",
        name="ana",
        profile_image="https://cdn.example.com/ana.png",
        created_at=datetime(2024, 1, 15, tzinfo=timezone.utc),
        stats=UserStatsOut(bookings=2, favorites=5, reviews=0),
    )


class TestExtractBearerToken:

    def test_valid_header(self):
        assert extract_bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"

    def test_scheme_is_case_insensitive(self):
        assert extract_bearer_token("bearer abc") == "abc"

    @pytest.mark.parametrize("header", [None, ""])
    def test_missing_header(self, header):
        with pytest.raises(AuthenticationError) as exc_info:
            extract_bearer_token(header)
        assert exc_info.value.message == "No se proporcionó token de autenticación"

    @pytest.mark.parametrize("header", ["Bearer", "Basic dXNlcjpwYXNz", "abc"])
    def test_malformed_header(self, header):
        with pytest.raises(AuthenticationError) as exc_info:
            extract_bearer_token(header)
        assert exc_info.value.message == "Formato de token inválido"


class TestPrincipalClaims:

    def test_claims_default_to_authenticated_role(self):
        principal = Principal(id=str(uuid.uuid4()), email="ana@example.com")
        assert principal.claims() == {"sub": principal.id, "role": "authenticated", "email": "ana@example.com"}

    def test_claims_keep_backend_role(self, sample_principal):
        assert sample_principal.claims()["role"] == "authenticated"
        assert sample_principal.claims()["sub"] == sample_principal.id
        assert "test-token" not in sample_principal.claims().values()


class TestProtectedRoutes:

    @pytest.mark.asyncio
    async def test_missing_token_is_401(self, anon_client):
        with patch("stayhub.auth.identity_service") as mock_identity:
            response = await anon_client.get("/api/auth/me")

        assert response.status_code == 401
        assert response.json()["error"] == "authentication_error"
        mock_identity.resolve_principal.assert_not_called()

    @pytest.mark.asyncio
    async def test_wrong_scheme_is_401(self, anon_client):
        response = await anon_client.get(
            "/api/bookings", headers={"Authorization": "Basic dXNlcjpwYXNz"}
        )
        assert response.status_code == 401
        assert response.json()["message"] == "Formato de token inválido"

    @pytest.mark.asyncio
    async def test_rejected_token_is_401(self, anon_client):
        with patch("stayhub.auth.identity_service") as mock_identity:
            mock_identity.resolve_principal = AsyncMock(side_effect=AuthenticationError())
            response = await anon_client.get(
                "/api/auth/me", headers={"Authorization": "Bearer expired-token"}
            )

        assert response.status_code == 401
        mock_identity.resolve_principal.assert_awaited_once_with("expired-token")


class TestVerifyToken:

    @pytest.mark.asyncio
    async def test_verify_token_matches_me(self, test_client, sample_principal):
        profile = _profile(sample_principal.user_id)
        with patch("stayhub.routes.auth.user_service") as mock_users:
            mock_users.get_profile = AsyncMock(return_value=profile)
            me = await test_client.get("/api/auth/me")
            verified = await test_client.post("/api/auth/verify-token")

        assert me.status_code == 200
        assert verified.status_code == 200
        assert verified.json()["user"]["id"] == me.json()["user"]["id"] == sample_principal.id
        assert verified.json()["message"] == "Token válido"
        assert verified.json()["user"]["profileImage"] == "https://cdn.example.com/ana.png"
        assert me.json()["user"]["stats"]["favorites"] == 5

    @pytest.mark.asyncio
    async def test_verify_token_accepts_any_method(self, test_client, sample_principal):
        with patch("stayhub.routes.auth.user_service") as mock_users:
            mock_users.get_profile = AsyncMock(side_effect=NotFoundError(resource="Usuario"))
            response = await test_client.get("/api/auth/verify-token")

        assert response.status_code == 200
        user = response.json()["user"]
        assert user["id"] == sample_principal.id
        assert user["email"] == sample_principal.email
        assert user["metadata"] == {"full_name": "Ana"}


class TestLoginLogout:

    @pytest.mark.asyncio
    async def test_login_survives_profile_failure(self, anon_client):
        principal = Principal(id=str(uuid.uuid4()), email="ana@example.com", token="tok")
        login_result = LoginResult(session={"access_token": "tok"}, principal=principal)

        @asynccontextmanager
        async def broken_session(claims):
            raise DatabaseError()
            yield

        with patch("stayhub.routes.auth.identity_service") as mock_identity, \
             patch("stayhub.routes.auth.caller_session", broken_session):
            mock_identity.login = AsyncMock(return_value=login_result)
            response = await anon_client.post(
                "/api/auth/login", json={"email": "ana@example.com", "password": "secret1"}
            )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Login exitoso, pero hubo un error al obtener el perfil"
        assert body["session"] == {"access_token": "tok"}
        assert body["user"]["id"] == principal.id

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "db_failure",
        [
            ConnectionRefusedError(111, "Connect call failed"),
            OperationalError("SELECT set_config", {}, ConnectionRefusedError()),
        ],
    )
    async def test_login_survives_database_outage(self, anon_client, db_failure):
        principal = Principal(id=str(uuid.uuid4()), email="ana@example.com", token="tok")
        login_result = LoginResult(session={"access_token": "tok"}, principal=principal)

        with patch("stayhub.routes.auth.identity_service") as mock_identity, \
             patch("stayhub.database.apply_request_claims", AsyncMock(side_effect=db_failure)):
            mock_identity.login = AsyncMock(return_value=login_result)
            response = await anon_client.post(
                "/api/auth/login", json={"email": "ana@example.com", "password": "secret1"}
            )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Login exitoso, pero hubo un error al obtener el perfil"
        assert body["session"] == {"access_token": "tok"}

    @pytest.mark.asyncio
    async def test_logout_without_token(self, anon_client):
        with patch("stayhub.routes.auth.identity_service") as mock_identity:
            response = await anon_client.post("/api/auth/logout")

        assert response.status_code == 200
        assert response.json() == {"message": "Logout exitoso"}
        mock_identity.revoke.assert_not_called()

    @pytest.mark.asyncio
    async def test_logout_revokes_token(self, anon_client):
        with patch("stayhub.routes.auth.identity_service") as mock_identity:
            mock_identity.revoke = AsyncMock()
            response = await anon_client.post(
                "/api/auth/logout", headers={"Authorization": "Bearer tok"}
            )

        assert response.status_code == 200
        mock_identity.revoke.assert_awaited_once_with("tok")
