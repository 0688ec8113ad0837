import pytest
from typing import AsyncGenerator, Callable, Awaitable
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.main import app
from app.infrastructure.database import Database
from app.core.security import create_access_token
from app.domain.auth.models import Pharmacist
from app.domain.auth.repository import PharmacistRepository
from app.domain.prescriptions.lookup import FallbackPrescriptionLookup, StorePrescriptionLookup
from app.domain.prescriptions.models import Prescription
from app.domain.prescriptions.repository import PrescriptionRepository
from app.domain.prescriptions.service import PrescriptionService
from app.models.mixins import generate_object_id


# Test database URL
TEST_DATABASE_URL = "sqlite+aiosqlite://"

TEST_PASSWORD = "testpassword123"


@pytest.fixture(scope="function")
async def database() -> AsyncGenerator[Database, None]:
    """Create a fresh in-memory database for each test."""
    db = Database.from_url(TEST_DATABASE_URL)
    await db.create_all()
    try:
        yield db
    finally:
        await db.dispose()


@pytest.fixture(scope="function")
def session_factory(database: Database) -> async_sessionmaker:
    return database.session_factory


@pytest.fixture(scope="function")
def store_lookup(session_factory: async_sessionmaker) -> StorePrescriptionLookup:
    return StorePrescriptionLookup(session_factory)


@pytest.fixture(scope="function")
def fallback_lookup() -> FallbackPrescriptionLookup:
    return FallbackPrescriptionLookup()


@pytest.fixture(scope="function")
def prescription_service(store_lookup: StorePrescriptionLookup) -> PrescriptionService:
    return PrescriptionService(store_lookup)


@pytest.fixture(scope="function")
def sample_prescription_data() -> dict:
    """Sample prescription as written by the prescribing system."""
    return {
        "doctor_id": generate_object_id(),
        "patient_id": generate_object_id(),
        "patient_name": "Sarah Ahmed",
        "patient_email": "sarah.ahmed@test.com",
        "diagnosis": "Hypothyroidism",
        "instructions": "Regular thyroid function tests every 3 months.",
        "notes": "Recheck TSH in 6 weeks",
        "medications": [
            {
                "name": "Levothyroxine 50mcg",
                "dosage": "1 tablet",
                "frequency": "Once daily",
                "duration": "30 days",
                "instructions": "Take on empty stomach",
            },
            {
                "name": "Vitamin D3 1000IU",
                "dosage": "1 capsule",
                "frequency": "Once daily",
                "duration": "30 days",
                "instructions": "Take with food",
            },
        ],
        "status": "active",
    }


@pytest.fixture(scope="function")
def make_prescription(
    session_factory: async_sessionmaker,
    sample_prescription_data: dict,
) -> Callable[..., Awaitable[Prescription]]:
    """Factory that stores a prescription with optional field overrides."""

    async def _make(**overrides) -> Prescription:
        data = dict(sample_prescription_data)
        data.update(overrides)
        async with session_factory() as db:
            return await PrescriptionRepository(db).create(data)

    return _make


@pytest.fixture(scope="function")
async def test_pharmacist(session_factory: async_sessionmaker) -> Pharmacist:
    """Create a test pharmacist for authentication tests."""
    async with session_factory() as db:
        return await PharmacistRepository(db).create(
            {
                "name": "Test Pharmacist",
                "email": "pharmacist@example.com",
                "pharmacy_name": "Test Pharmacy",
                "license_number": "LIC-0001",
                "phone": "+1234567890",
                "is_active": True,
            },
            password=TEST_PASSWORD,
        )


@pytest.fixture(scope="function")
def test_token(test_pharmacist: Pharmacist) -> str:
    """Create a test JWT token for authentication."""
    return create_access_token(test_pharmacist.id)


@pytest.fixture(scope="function")
async def client(session_factory: async_sessionmaker, store_lookup: StorePrescriptionLookup) -> AsyncGenerator[AsyncClient, None]:
    """Test client wired to the in-memory database."""
    app.state.session_factory = session_factory
    app.state.prescription_lookup = store_lookup

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture(scope="function")
async def authenticated_client(client: AsyncClient, test_token: str) -> AsyncGenerator[AsyncClient, None]:
    """Create an authenticated test client."""
    client.headers.update({"Authorization": f"Bearer {test_token}"})
    yield client


@pytest.fixture(scope="function")
async def fallback_client(fallback_lookup: FallbackPrescriptionLookup) -> AsyncGenerator[AsyncClient, None]:
    """Test client running without a database."""
    app.state.session_factory = None
    app.state.prescription_lookup = fallback_lookup

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
