"""
DevCamper API: Test Configuration
=================================

Environment is pointed at a throwaway SQLite database (aiosqlite) and a
temporary upload directory before any devcamper module is imported.

Fixture overview:
    database        create tables before the test, drop them after
    db_session      AsyncSession on the test database
    geocoder        geocoder_service.geocode patched with fixed coordinates
    sent_emails     email_service.send patched; records every call
    test_client     httpx AsyncClient over ASGITransport (needs the three above)
    *_token         bearer tokens for a user, a publisher and an admin
"""

import os
import tempfile

_TEST_DIR = tempfile.mkdtemp(prefix="devcamper_test_")

os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/test.db"
os.environ["ENVIRONMENT"] = "test"
os.environ["JWT_SECRET"] = "test-secret-not-real"
os.environ["GEOCODER_API_KEY"] = "test-key-not-real"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["FILE_UPLOAD_PATH"] = os.path.join(_TEST_DIR, "uploads")
os.environ["RATE_LIMIT_REQUESTS"] = "100000"
os.environ["RETRY_MAX_ATTEMPTS"] = "2"
os.environ["RETRY_MIN_WAIT"] = "0"
os.environ["RETRY_MAX_WAIT"] = "1"
os.environ["LOG_LEVEL"] = "WARNING"

from typing import Any, Dict, List  # noqa: E402
from unittest.mock import AsyncMock, patch  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from devcamper.database import async_session_factory, create_all, drop_all, engine  # noqa: E402
from devcamper.models.user import Role  # noqa: E402
from devcamper.services.email_service import email_service  # noqa: E402
from devcamper.services.geocoder_service import GeoLocation, geocoder_service  # noqa: E402
from devcamper.services.user_service import user_service  # noqa: E402

PASSWORD = "123456"

# Smallest headers libmagic recognises as images
JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00\xff\xd9"
PNG_BYTES = (
    b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR"
    b"\x00\x00\x00\x01\x00\x00\x00\x01\x08\x02\x00\x00\x00\x90wS\xde"
)

# Address / zipcode fragments the fake geocoder understands
LOCATIONS = {
    "02118": GeoLocation(42.3389, -71.0720, "Boston, MA 02118, US", None, "Boston", "MA", "02118", "US"),
    "Boston": GeoLocation(42.3500, -71.0600, "233 Bay State Rd, Boston, MA 02215, US", "233 Bay State Rd", "Boston", "MA", "02215", "US"),
    "Cambridge": GeoLocation(42.3736, -71.1097, "Cambridge, MA 02139, US", None, "Cambridge", "MA", "02139", "US"),
    "Manchester": GeoLocation(42.9956, -71.4548, "Manchester, NH 03101, US", None, "Manchester", "NH", "03101", "US"),
}


async def fake_geocode(address: str) -> GeoLocation:
    for fragment, location in LOCATIONS.items():
        if fragment in address:
            return location
    return LOCATIONS["Boston"]


def auth_header(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def bootcamp_payload(name: str = "Devworks Bootcamp", **overrides: Any) -> Dict[str, Any]:
    payload = {
        "name": name,
        "description": "Devworks is a full stack JavaScript Bootcamp located in the heart of Boston",
        "website": "https://devworks.com",
        "phone": "(111) 111-1111",
        "email": "enroll@devworks.com",
        "address": "233 Bay State Rd Boston MA 02215",
        "careers": ["Web Development", "UI/UX", "Business"],
        "housing": True,
        "jobAssistance": True,
        "jobGuarantee": False,
        "acceptGi": True,
    }
    payload.update(overrides)
    return payload


def course_payload(title: str = "Front End Web Development", tuition: float = 8000, **overrides: Any) -> Dict[str, Any]:
    payload = {
        "title": title,
        "description": "HTML, CSS, JavaScript and React",
        "weeks": "8",
        "tuition": tuition,
        "minimumSkill": "beginner",
        "scholarshipAvailable": True,
    }
    payload.update(overrides)
    return payload


async def register(client: AsyncClient, name: str, email: str, role: str = "user") -> str:
    response = await client.post(
        "/api/v1/auth/register",
        json={"name": name, "email": email, "password": PASSWORD, "role": role},
    )
    assert response.status_code == 200, response.text
    return response.json()["token"]


# ══════════════════════════════════════════════════════════════════════════
# Infrastructure
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def database():
    await create_all()
    yield
    await drop_all()
    # Pooled aiosqlite connections belong to this test's event loop
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(database):
    async with async_session_factory() as session:
        yield session


@pytest.fixture
def geocoder():
    with patch.object(geocoder_service, "geocode", new=AsyncMock(side_effect=fake_geocode)) as mock:
        yield mock


@pytest.fixture
def sent_emails() -> List[Dict[str, str]]:
    sent: List[Dict[str, str]] = []

    async def record(to: str, subject: str, text: str) -> None:
        sent.append({"to": to, "subject": subject, "text": text})

    with patch.object(email_service, "send", new=AsyncMock(side_effect=record)):
        yield sent


@pytest_asyncio.fixture
async def test_client(database, geocoder, sent_emails):
    from devcamper.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


# ══════════════════════════════════════════════════════════════════════════
# Accounts
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def user_token(test_client) -> str:
    return await register(test_client, "John Doe", "john@gmail.com", "user")


@pytest_asyncio.fixture
async def publisher_token(test_client) -> str:
    return await register(test_client, "Kevin Smith", "kevin@gmail.com", "publisher")


@pytest_asyncio.fixture
async def other_publisher_token(test_client) -> str:
    return await register(test_client, "Mary Williams", "mary@gmail.com", "publisher")


@pytest_asyncio.fixture
async def admin_token(test_client) -> str:
    # Admins cannot self-register
    async with async_session_factory() as session:
        await user_service.create_user(session, "Admin Account", "admin@gmail.com", PASSWORD, Role.ADMIN)
        await session.commit()
    response = await test_client.post(
        "/api/v1/auth/login", json={"email": "admin@gmail.com", "password": PASSWORD}
    )
    assert response.status_code == 200, response.text
    return response.json()["token"]


@pytest_asyncio.fixture
async def bootcamp(test_client, publisher_token) -> Dict[str, Any]:
    response = await test_client.post(
        "/api/v1/bootcamps", json=bootcamp_payload(), headers=auth_header(publisher_token)
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]
