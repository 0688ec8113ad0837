from typing import Optional
from fastapi import Depends, Header, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.core.config import settings
from app.domain.auth.models import ActingPharmacist
from app.domain.auth.service import AuthenticationService
from app.domain.prescriptions.lookup import PrescriptionLookup
from app.domain.prescriptions.service import PrescriptionService

reusable_oauth2 = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_PREFIX}/auth/login",
    auto_error=False,
)


def get_session_factory(request: Request) -> Optional[async_sessionmaker]:
    """Session factory installed at startup, or None when running without a database"""
    return getattr(request.app.state, "session_factory", None)


def get_prescription_lookup(request: Request) -> PrescriptionLookup:
    return request.app.state.prescription_lookup


def get_auth_service(
    session_factory: Optional[async_sessionmaker] = Depends(get_session_factory),
) -> AuthenticationService:
    return AuthenticationService(session_factory)


def get_prescription_service(
    lookup: PrescriptionLookup = Depends(get_prescription_lookup),
) -> PrescriptionService:
    return PrescriptionService(lookup)


def get_token(
    bearer_token: Optional[str] = Depends(reusable_oauth2),
    x_auth_token: Optional[str] = Header(None, alias="x-auth-token"),
) -> Optional[str]:
    """Token from the x-auth-token header or an Authorization bearer"""
    return x_auth_token or bearer_token


async def get_current_pharmacist(
    token: Optional[str] = Depends(get_token),
    auth_service: AuthenticationService = Depends(get_auth_service),
) -> ActingPharmacist:
    return await auth_service.authenticate(token)
