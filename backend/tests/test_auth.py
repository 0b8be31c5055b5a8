"""Endpoint tests for /api/v1/auth."""

import re
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

from sqlalchemy import select, update

from conftest import PASSWORD, auth_header, register
from devcamper.exceptions import EmailDeliveryError
from devcamper.models.user import User
from devcamper.security import decode_access_token
from devcamper.services.email_service import email_service

AUTH = "/api/v1/auth"


def reset_token_from(email_text: str) -> str:
    match = re.search(r"/api/v1/auth/resetpassword/([0-9a-f]+)", email_text)
    assert match, email_text
    return match.group(1)


class TestRegisterAndLogin:
    async def test_register_login_me_round_trip(self, test_client):
        token = await register(test_client, "John Doe", "john@gmail.com")

        login = await test_client.post(
            f"{AUTH}/login", json={"email": "john@gmail.com", "password": PASSWORD}
        )
        assert login.status_code == 200
        body = login.json()
        assert body["success"] is True
        assert decode_access_token(body["token"]) == decode_access_token(token)

        me = await test_client.get(f"{AUTH}/me", headers=auth_header(body["token"]))
        assert me.status_code == 200
        data = me.json()["data"]
        assert data["email"] == "john@gmail.com"
        assert data["role"] == "user"
        assert data["id"] == decode_access_token(token)
        assert "password" not in data
        assert "resetPasswordToken" not in data

    async def test_register_sets_http_only_cookie(self, test_client):
        response = await test_client.post(
            f"{AUTH}/register",
            json={"name": "Jane", "email": "jane@gmail.com", "password": PASSWORD},
        )
        cookie = response.headers["set-cookie"]
        assert cookie.startswith(f"token={response.json()['token']}")
        assert "HttpOnly" in cookie
        assert "Max-Age=2592000" in cookie

    async def test_register_cannot_choose_admin(self, test_client):
        response = await test_client.post(
            f"{AUTH}/register",
            json={"name": "Eve", "email": "eve@gmail.com", "password": PASSWORD, "role": "admin"},
        )
        assert response.status_code == 400
        assert response.json()["success"] is False

    async def test_register_short_password(self, test_client):
        response = await test_client.post(
            f"{AUTH}/register",
            json={"name": "Eve", "email": "eve@gmail.com", "password": "123"},
        )
        assert response.status_code == 400
        assert "password" in response.json()["error"]

    async def test_duplicate_email(self, test_client):
        await register(test_client, "John Doe", "john@gmail.com")
        response = await test_client.post(
            f"{AUTH}/register",
            json={"name": "Other John", "email": "JOHN@gmail.com", "password": PASSWORD},
        )
        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Duplicate field value entered"}

    async def test_login_missing_fields(self, test_client):
        response = await test_client.post(f"{AUTH}/login", json={"email": "john@gmail.com"})
        assert response.status_code == 400
        assert response.json()["error"] == "Please provide an email and password"

    async def test_login_wrong_password(self, test_client):
        await register(test_client, "John Doe", "john@gmail.com")
        response = await test_client.post(
            f"{AUTH}/login", json={"email": "john@gmail.com", "password": "wrong-pass"}
        )
        assert response.status_code == 401
        assert response.json()["error"] == "Invalid credentials"

    async def test_login_unknown_email(self, test_client):
        response = await test_client.post(
            f"{AUTH}/login", json={"email": "nobody@gmail.com", "password": PASSWORD}
        )
        assert response.status_code == 401


class TestProtect:
    async def test_me_without_token(self, test_client):
        response = await test_client.get(f"{AUTH}/me")
        assert response.status_code == 401
        assert response.json() == {
            "success": False,
            "error": "Not authorized to access this route",
        }

    async def test_me_with_garbage_token(self, test_client):
        response = await test_client.get(f"{AUTH}/me", headers=auth_header("garbage"))
        assert response.status_code == 401

    async def test_me_for_deleted_user(self, test_client, db_session, user_token):
        user = (await db_session.execute(select(User))).scalar_one()
        await db_session.delete(user)
        await db_session.commit()

        response = await test_client.get(f"{AUTH}/me", headers=auth_header(user_token))
        assert response.status_code == 401


class TestAccountUpdates:
    async def test_update_details(self, test_client, user_token):
        response = await test_client.put(
            f"{AUTH}/updatedetails",
            json={"name": "John Updated", "email": "john.updated@gmail.com"},
            headers=auth_header(user_token),
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["name"] == "John Updated"
        assert data["email"] == "john.updated@gmail.com"

    async def test_update_password(self, test_client, user_token):
        response = await test_client.put(
            f"{AUTH}/updatepassword",
            json={"currentPassword": PASSWORD, "newPassword": "654321"},
            headers=auth_header(user_token),
        )
        assert response.status_code == 200
        assert response.json()["token"]

        old = await test_client.post(
            f"{AUTH}/login", json={"email": "john@gmail.com", "password": PASSWORD}
        )
        new = await test_client.post(
            f"{AUTH}/login", json={"email": "john@gmail.com", "password": "654321"}
        )
        assert old.status_code == 401
        assert new.status_code == 200

    async def test_update_password_wrong_current(self, test_client, user_token):
        response = await test_client.put(
            f"{AUTH}/updatepassword",
            json={"currentPassword": "nope-nope", "newPassword": "654321"},
            headers=auth_header(user_token),
        )
        assert response.status_code == 401
        assert response.json()["error"] == "Password is incorrect"

    async def test_logout_clears_cookie(self, test_client):
        response = await test_client.get(f"{AUTH}/logout")
        assert response.status_code == 200
        assert response.json() == {"success": True, "data": {}}
        cookie = response.headers["set-cookie"]
        assert cookie.startswith("token=none")
        assert "Max-Age=10" in cookie


class TestPasswordReset:
    async def test_reset_token_is_single_use(self, test_client, user_token, sent_emails):
        response = await test_client.post(
            f"{AUTH}/forgotpassword", json={"email": "john@gmail.com"}
        )
        assert response.status_code == 200
        assert response.json() == {"success": True, "data": "Email sent"}
        assert len(sent_emails) == 1
        assert sent_emails[0]["to"] == "john@gmail.com"
        assert "http://test/api/v1/auth/resetpassword/" in sent_emails[0]["text"]

        token = reset_token_from(sent_emails[0]["text"])
        first = await test_client.put(
            f"{AUTH}/resetpassword/{token}", json={"password": "newpass1"}
        )
        assert first.status_code == 200
        assert first.json()["token"]

        second = await test_client.put(
            f"{AUTH}/resetpassword/{token}", json={"password": "newpass2"}
        )
        assert second.status_code == 400
        assert second.json()["error"] == "Invalid token"

        login = await test_client.post(
            f"{AUTH}/login", json={"email": "john@gmail.com", "password": "newpass1"}
        )
        assert login.status_code == 200

    async def test_raw_token_is_not_stored(self, test_client, user_token, sent_emails, db_session):
        await test_client.post(f"{AUTH}/forgotpassword", json={"email": "john@gmail.com"})
        token = reset_token_from(sent_emails[0]["text"])

        user = (await db_session.execute(select(User))).scalar_one()
        assert user.reset_password_token is not None
        assert user.reset_password_token != token

    async def test_unknown_token(self, test_client):
        response = await test_client.put(
            f"{AUTH}/resetpassword/deadbeef", json={"password": "newpass1"}
        )
        assert response.status_code == 400

    async def test_expired_token(self, test_client, user_token, sent_emails, db_session):
        await test_client.post(f"{AUTH}/forgotpassword", json={"email": "john@gmail.com"})
        token = reset_token_from(sent_emails[0]["text"])

        await db_session.execute(
            update(User).values(reset_password_expire=datetime.now(timezone.utc) - timedelta(minutes=1))
        )
        await db_session.commit()

        response = await test_client.put(
            f"{AUTH}/resetpassword/{token}", json={"password": "newpass1"}
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid token"

        login = await test_client.post(
            f"{AUTH}/login", json={"email": "john@gmail.com", "password": PASSWORD}
        )
        assert login.status_code == 200

    async def test_unknown_email(self, test_client):
        response = await test_client.post(
            f"{AUTH}/forgotpassword", json={"email": "nobody@gmail.com"}
        )
        assert response.status_code == 404
        assert response.json()["error"] == "There is no user with that email"

    async def test_delivery_failure_withdraws_token(self, test_client, user_token, db_session):
        with patch.object(email_service, "send", new=AsyncMock(side_effect=EmailDeliveryError())):
            response = await test_client.post(
                f"{AUTH}/forgotpassword", json={"email": "john@gmail.com"}
            )

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Email could not be sent"}

        user = (await db_session.execute(select(User))).scalar_one()
        assert user.reset_password_token is None
        assert user.reset_password_expire is None
