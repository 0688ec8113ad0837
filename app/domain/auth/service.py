from typing import Optional, Dict, Any, Tuple
import jwt
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.core.config import settings
from app.core.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ServiceUnavailableError,
    handle_database_error,
)
from app.core.security import create_access_token, decode_token
from app.domain.auth.models import ActingPharmacist, AuthProvider, Pharmacist
from app.domain.auth.repository import PharmacistRepository
from app.domain.prescriptions.fallback_data import (
    DEMO_PHARMACIST_ID,
    DEMO_PHARMACIST_NAME,
    DEMO_PHARMACY_NAME,
)


def demo_pharmacist(pharmacist_id: str = DEMO_PHARMACIST_ID) -> Pharmacist:
    """Unsaved pharmacist used when running without a database"""
    return Pharmacist(
        id=pharmacist_id,
        name=DEMO_PHARMACIST_NAME,
        email=settings.DEMO_PHARMACIST_EMAIL,
        pharmacy_name=DEMO_PHARMACY_NAME,
        license_number="DEMO-12345",
        phone="123-456-7890",
        address="123 Demo Street",
        auth_provider=AuthProvider.LOCAL.value,
        is_profile_complete=True,
        is_active=True,
    )


class AuthenticationService:
    """Service layer for pharmacist accounts and token resolution"""

    def __init__(self, session_factory: Optional[async_sessionmaker]):
        self.session_factory = session_factory

    def _require_store(self, operation: str):
        if self.session_factory is None:
            raise ServiceUnavailableError(
                f"{operation} is unavailable while the database is offline",
                error_code="STORE_UNAVAILABLE",
            )

    async def register(self, pharmacist_data: Dict[str, Any]) -> Tuple[Pharmacist, str]:
        """Register a new pharmacist"""
        self._require_store("Registration")
        data = dict(pharmacist_data)
        password = data.pop("password")
        data["email"] = data["email"].lower()

        try:
            async with self.session_factory() as db:
                repo = PharmacistRepository(db)
                existing = await repo.get_by_email_or_license(data["email"], data["license_number"])
                if existing:
                    if existing.email == data["email"]:
                        raise ConflictError("Email already registered")
                    raise ConflictError("License number already registered")

                pharmacist = await repo.create(data, password=password)
        except SQLAlchemyError as e:
            raise handle_database_error(e, "pharmacist registration") from e

        logger.info(f"Registered pharmacist {pharmacist.id} ({pharmacist.pharmacy_name})")
        return pharmacist, create_access_token(pharmacist.id)

    async def login(self, email: str, password: str) -> Tuple[Pharmacist, str]:
        """Authenticate pharmacist and issue a token"""
        if self.session_factory is None:
            if email.lower() == settings.DEMO_PHARMACIST_EMAIL and password == settings.DEMO_PHARMACIST_PASSWORD:
                pharmacist = demo_pharmacist()
                return pharmacist, create_access_token(pharmacist.id)
            raise AuthenticationError("Invalid credentials", error_code="INVALID_CREDENTIALS")

        try:
            async with self.session_factory() as db:
                pharmacist = await PharmacistRepository(db).get_by_email(email)
        except SQLAlchemyError as e:
            raise handle_database_error(e, "pharmacist login") from e

        if not pharmacist:
            raise AuthenticationError("Invalid credentials", error_code="INVALID_CREDENTIALS")

        if not pharmacist.is_active:
            raise AuthenticationError(
                "Account is deactivated. Please contact support.",
                error_code="ACCOUNT_DEACTIVATED",
            )

        if not pharmacist.verify_password(password):
            raise AuthenticationError("Invalid credentials", error_code="INVALID_CREDENTIALS")

        return pharmacist, create_access_token(pharmacist.id)

    async def resolve_token(self, token: Optional[str]) -> Pharmacist:
        """Resolve a bearer token to the pharmacist account behind it"""
        if not token:
            raise AuthenticationError("No token, authorization denied", error_code="TOKEN_MISSING")

        try:
            payload = decode_token(token)
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Token expired", error_code="TOKEN_EXPIRED")
        except jwt.PyJWTError:
            raise AuthenticationError("Invalid token", error_code="TOKEN_INVALID")

        pharmacist_id = payload.get("sub")
        if not pharmacist_id or payload.get("token_type") != "access":
            raise AuthenticationError("Invalid token", error_code="TOKEN_INVALID")

        if self.session_factory is None:
            return demo_pharmacist(pharmacist_id)

        try:
            async with self.session_factory() as db:
                pharmacist = await PharmacistRepository(db).get_by_id(pharmacist_id)
        except SQLAlchemyError as e:
            raise handle_database_error(e, "token resolution") from e

        if not pharmacist:
            raise AuthenticationError("Pharmacist not found", error_code="PHARMACIST_NOT_FOUND")
        if not pharmacist.is_active:
            raise AuthenticationError("Account is deactivated", error_code="ACCOUNT_DEACTIVATED")
        return pharmacist

    async def authenticate(self, token: Optional[str]) -> ActingPharmacist:
        pharmacist = await self.resolve_token(token)
        return pharmacist.to_acting()

    async def update_profile(self, pharmacist_id: str, update_data: Dict[str, Any]) -> Pharmacist:
        """Update the editable profile fields of a pharmacist"""
        self._require_store("Profile update")
        allowed = {k: v for k, v in update_data.items() if k in ("name", "pharmacy_name", "phone", "address")}

        try:
            async with self.session_factory() as db:
                pharmacist = await PharmacistRepository(db).update(pharmacist_id, allowed)
        except SQLAlchemyError as e:
            raise handle_database_error(e, "profile update") from e

        if not pharmacist:
            raise NotFoundError("Pharmacist not found")
        return pharmacist
