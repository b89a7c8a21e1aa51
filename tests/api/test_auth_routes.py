"""
API tests for authentication endpoints.
Tests registration, email verification, login, logout and the current user.
"""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest
from fastapi import status
from sqlalchemy import func, select

from app.db.models import BrokerProfileModel, TruckerProfileModel, UserModel, UserSessionModel
from app.db.models.base import as_utc, utcnow
from app.services.user_service import UserService


def trucker_payload(**overrides) -> dict:
    payload = {
        "userType": "trucker",
        "username": "alice",
        "password": "secret123",
        "confirmPassword": "secret123",
        "email": "alice@example.com",
        "firstName": "Alice",
        "lastName": "Reyes",
        "phone": "555-0101",
        "city": "Quezon City",
        "vehicles": [
            {
                "vehicleType": "Wing van",
                "vehicleMake": "Isuzu",
                "plateNumber": "ABC-1234",
                "weightCapacity": "10t",
            }
        ],
        "serviceAreas": ["NCR", "Calabarzon"],
    }
    payload.update(overrides)
    return payload


def broker_payload(**overrides) -> dict:
    payload = {
        "userType": "broker",
        "username": "bob",
        "password": "secret123",
        "email": "bob@example.com",
        "firstName": "Bob",
        "lastName": "Santos",
        "phone": "555-0202",
        "companyName": "Santos Logistics",
        "companyAddress": "12 Pier Rd",
        "companyCity": "Manila",
        "companyState": "NCR",
        "companyZip": "1000",
    }
    payload.update(overrides)
    return payload


async def get_user(db_session, username: str) -> UserModel:
    result = await db_session.execute(
        select(UserModel)
        .where(UserModel.username == username)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


class TestRegisterEndpoint:
    """Tests for POST /api/register."""

    async def test_register_trucker_creates_pending_user_and_profile(self, test_client, db_session, mailer):
        response = await test_client.post("/api/register", json=trucker_payload())

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["username"] == "alice"
        assert data["email"] == "alice@example.com"
        assert data["status"] == "pending"
        assert data["registrationComplete"] is True
        assert "verify" in data["message"]

        user = await get_user(db_session, "alice")
        assert user.status == "pending"
        assert user.verification_token
        assert as_utc(user.verification_expires) > utcnow()
        assert user.password_hash != "secret123"

        profile = (
            await db_session.execute(
                select(TruckerProfileModel).where(TruckerProfileModel.user_id == user.id)
            )
        ).scalar_one()
        assert profile.company_name == "Independent Trucker"
        assert profile.city == "Quezon City"
        assert profile.contact_number == "555-0101"
        assert profile.business_email == "alice@example.com"
        assert profile.vehicles[0]["plateNumber"] == "ABC-1234"
        assert profile.service_areas == ["NCR", "Calabarzon"]

        assert len(mailer.sent) == 1
        to_email, subject, body = mailer.sent[0]
        assert to_email == "alice@example.com"
        assert subject == "Verify Your Account"
        assert f"/api/verify?token={user.verification_token}" in body

    async def test_register_broker_creates_broker_profile(self, test_client, db_session):
        response = await test_client.post("/api/register", json=broker_payload())

        assert response.status_code == status.HTTP_201_CREATED
        user = await get_user(db_session, "bob")
        profile = (
            await db_session.execute(
                select(BrokerProfileModel).where(BrokerProfileModel.user_id == user.id)
            )
        ).scalar_one()
        assert profile.company_name == "Santos Logistics"
        assert profile.contact_person_name == "Bob Santos"

    async def test_register_response_hides_credentials(self, test_client):
        response = await test_client.post("/api/register", json=trucker_payload())

        data = response.json()
        assert "password" not in data
        assert "passwordHash" not in data
        assert "verificationToken" not in data

    async def test_register_duplicate_username(self, test_client, create_user):
        await create_user("alice", email="other@example.com")

        response = await test_client.post("/api/register", json=trucker_payload())

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "Username already exists"

    async def test_register_duplicate_email(self, test_client, create_user):
        await create_user("someone", email="alice@example.com")

        response = await test_client.post("/api/register", json=trucker_payload())

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "Email already exists"

    @pytest.mark.parametrize(
        "overrides,detail",
        [
            ({"email": "alice2@example.com"}, "Username already exists"),
            ({"username": "alice2"}, "Email already exists"),
        ],
    )
    async def test_register_concurrent_duplicate(self, test_client, db_session, monkeypatch, overrides, detail):
        """A duplicate that slips past the availability check is still a client error."""
        first = await test_client.post("/api/register", json=trucker_payload())
        assert first.status_code == status.HTTP_201_CREATED
        monkeypatch.setattr(UserService, "ensure_available", AsyncMock(return_value=None))

        response = await test_client.post("/api/register", json=trucker_payload(**overrides))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == detail
        assert await db_session.scalar(select(func.count(UserModel.id))) == 1

    async def test_register_password_mismatch(self, test_client):
        response = await test_client.post(
            "/api/register", json=trucker_payload(confirmPassword="different123")
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "Validation error"

    async def test_register_invalid_email_reports_field(self, test_client):
        response = await test_client.post("/api/register", json=trucker_payload(email="not-an-email"))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        data = response.json()
        assert data["detail"] == "Validation error"
        assert any("email" in error["field"] for error in data["errors"])

    async def test_register_unknown_user_type(self, test_client):
        response = await test_client.post("/api/register", json=trucker_payload(userType="admin"))

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_register_broker_requires_company(self, test_client):
        payload = broker_payload()
        del payload["companyName"]

        response = await test_client.post("/api/register", json=payload)

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_register_succeeds_when_email_fails(self, test_client, db_session, mailer):
        mailer.fail = True

        response = await test_client.post("/api/register", json=trucker_payload())

        assert response.status_code == status.HTTP_201_CREATED
        user = await get_user(db_session, "alice")
        assert user.status == "pending"


class TestVerifyEndpoint:
    """Tests for GET /api/verify."""

    async def test_verify_moves_pending_to_verified(self, test_client, db_session):
        await test_client.post("/api/register", json=trucker_payload())
        token = (await get_user(db_session, "alice")).verification_token

        response = await test_client.get("/api/verify", params={"token": token})

        assert response.status_code == status.HTTP_302_FOUND
        assert response.headers["location"] == "/auth?verified=true"
        user = await get_user(db_session, "alice")
        assert user.status == "verified"
        assert user.verification_token is None
        assert user.verification_expires is None

    async def test_verify_token_cannot_be_reused(self, test_client, db_session):
        await test_client.post("/api/register", json=trucker_payload())
        token = (await get_user(db_session, "alice")).verification_token
        await test_client.get("/api/verify", params={"token": token})

        response = await test_client.get("/api/verify", params={"token": token})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "Invalid or expired verification token"

    async def test_verify_expired_token_leaves_status(self, test_client, create_user, db_session):
        await create_user(
            "late",
            status="pending",
            verification_token="expired-token",
            verification_expires=utcnow() - timedelta(hours=1),
        )

        response = await test_client.get("/api/verify", params={"token": "expired-token"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "Verification token has expired"
        assert (await get_user(db_session, "late")).status == "pending"

    async def test_verify_unknown_token(self, test_client):
        response = await test_client.get("/api/verify", params={"token": "nope"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_verify_missing_token(self, test_client):
        response = await test_client.get("/api/verify")

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_verify_approved_user_keeps_status(self, test_client, create_user, db_session):
        await create_user(
            "approved",
            status="approved",
            verification_token="second-round",
            verification_expires=utcnow() + timedelta(hours=1),
        )

        response = await test_client.get("/api/verify", params={"token": "second-round"})

        assert response.status_code == status.HTTP_302_FOUND
        user = await get_user(db_session, "approved")
        assert user.status == "approved"
        assert user.verification_token is None


class TestLoginEndpoint:
    """Tests for POST /api/login."""

    async def test_login_approved_user(self, test_client, trucker, db_session):
        response = await test_client.post(
            "/api/login", json={"username": trucker.username, "password": "secret123"}
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["username"] == trucker.username
        assert data["userType"] == "trucker"
        assert "passwordHash" not in data
        assert "sid" in response.cookies

        sessions = await db_session.scalar(
            select(func.count(UserSessionModel.id)).where(UserSessionModel.user_id == trucker.id)
        )
        assert sessions == 1

    async def test_login_sets_httponly_cookie(self, test_client, trucker):
        response = await test_client.post(
            "/api/login", json={"username": trucker.username, "password": "secret123"}
        )

        cookie_header = response.headers["set-cookie"].lower()
        assert "httponly" in cookie_header
        assert "samesite=lax" in cookie_header

    async def test_login_wrong_password(self, test_client, trucker):
        response = await test_client.post(
            "/api/login", json={"username": trucker.username, "password": "wrongpass"}
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["detail"] == "Invalid username or password"

    async def test_login_unknown_user(self, test_client):
        response = await test_client.post(
            "/api/login", json={"username": "ghost", "password": "secret123"}
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["detail"] == "Invalid username or password"

    @pytest.mark.parametrize(
        "user_status,fragment",
        [
            ("pending", "pending verification"),
            ("verified", "awaiting admin approval"),
            ("rejected", "has been rejected"),
        ],
    )
    async def test_login_blocked_by_status(
        self, test_client, create_user, db_session, user_status, fragment
    ):
        user = await create_user("blocked", status=user_status)

        response = await test_client.post(
            "/api/login", json={"username": "blocked", "password": "secret123"}
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert fragment in response.json()["detail"]
        assert "sid" not in response.cookies
        sessions = await db_session.scalar(
            select(func.count(UserSessionModel.id)).where(UserSessionModel.user_id == user.id)
        )
        assert sessions == 0

    async def test_login_blocked_status_hidden_without_password(self, test_client, create_user):
        await create_user("blocked", status="pending")

        response = await test_client.post(
            "/api/login", json={"username": "blocked", "password": "wrongpass"}
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["detail"] == "Invalid username or password"

    async def test_admin_login_ignores_status(self, test_client, create_user):
        await create_user("root", user_type="admin", status="pending")

        response = await test_client.post(
            "/api/login", json={"username": "root", "password": "secret123"}
        )

        assert response.status_code == status.HTTP_200_OK


class TestAdminLoginEndpoint:
    """Tests for POST /api/admin/login."""

    async def test_admin_login(self, test_client, admin):
        response = await test_client.post(
            "/api/admin/login", json={"username": admin.username, "password": "secret123"}
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["userType"] == "admin"

    async def test_admin_login_rejects_non_admin(self, test_client, trucker):
        response = await test_client.post(
            "/api/admin/login", json={"username": trucker.username, "password": "secret123"}
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["detail"] == "This login is for admin accounts only."


class TestAdminRegisterEndpoint:
    """Tests for POST /api/register/admin."""

    def payload(self, **overrides) -> dict:
        payload = {
            "username": "newadmin",
            "password": "adminpass123",
            "confirmPassword": "adminpass123",
            "email": "newadmin@example.com",
            "firstName": "Ada",
            "lastName": "Admin",
            "phone": "555-0303",
            "adminKey": "test-admin-key",
        }
        payload.update(overrides)
        return payload

    async def test_register_admin_logs_in(self, test_client, db_session):
        response = await test_client.post("/api/register/admin", json=self.payload())

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["userType"] == "admin"
        assert data["status"] == "approved"

        me = await test_client.get("/api/user")
        assert me.status_code == status.HTTP_200_OK
        assert me.json()["username"] == "newadmin"

    async def test_register_admin_wrong_key(self, test_client):
        response = await test_client.post("/api/register/admin", json=self.payload(adminKey="guess"))

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["detail"] == "Invalid admin key"

    async def test_register_admin_requires_confirmation(self, test_client):
        payload = self.payload()
        del payload["confirmPassword"]

        response = await test_client.post("/api/register/admin", json=payload)

        assert response.status_code == status.HTTP_400_BAD_REQUEST


class TestSessionEndpoints:
    """Tests for GET /api/user and POST /api/logout."""

    async def test_current_user(self, trucker_client, trucker):
        response = await trucker_client.get("/api/user")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["id"] == trucker.id
        assert data["firstName"] == trucker.first_name

    async def test_current_user_unauthenticated(self, test_client):
        response = await test_client.get("/api/user")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    async def test_current_user_tampered_cookie(self, test_client):
        test_client.cookies.set("sid", "not-a-jwt")

        response = await test_client.get("/api/user")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    async def test_logout_destroys_session(self, trucker_client, trucker, db_session):
        stolen = trucker_client.cookies.get("sid")

        response = await trucker_client.post("/api/logout")

        assert response.status_code == status.HTTP_200_OK
        sessions = await db_session.scalar(
            select(func.count(UserSessionModel.id)).where(UserSessionModel.user_id == trucker.id)
        )
        assert sessions == 0

        # The old cookie value no longer resolves once its row is gone
        trucker_client.cookies.set("sid", stolen)
        assert (await trucker_client.get("/api/user")).status_code == status.HTTP_401_UNAUTHORIZED

    async def test_logout_without_session(self, test_client):
        response = await test_client.post("/api/logout")

        assert response.status_code == status.HTTP_200_OK

    async def test_expired_session_rejected(self, trucker_client, trucker, db_session):
        row = (
            await db_session.execute(
                select(UserSessionModel).where(UserSessionModel.user_id == trucker.id)
            )
        ).scalar_one()
        row.expires_at = utcnow() - timedelta(minutes=1)
        await db_session.flush()

        response = await trucker_client.get("/api/user")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
