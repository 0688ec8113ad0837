from fastapi import APIRouter, Depends, status
from typing import Optional

from app.api.deps import get_auth_service, get_token
from app.domain.auth.service import AuthenticationService
from app.api.v1.auth.schemas import (
    AuthResponse,
    LoginRequest,
    MeResponse,
    PharmacistResponse,
    ProfileResponse,
    ProfileUpdate,
    RegisterRequest,
)

router = APIRouter(tags=["Authentication"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    register_in: RegisterRequest,
    auth_service: AuthenticationService = Depends(get_auth_service),
):
    """Register a new pharmacist"""
    pharmacist, token = await auth_service.register(register_in.model_dump())
    return AuthResponse(
        message="Pharmacist registered successfully",
        pharmacist=PharmacistResponse.model_validate(pharmacist),
        token=token,
    )


@router.post("/login", response_model=AuthResponse, status_code=status.HTTP_200_OK)
async def login(
    login_in: LoginRequest,
    auth_service: AuthenticationService = Depends(get_auth_service),
):
    """Authenticate pharmacist and return a token"""
    pharmacist, token = await auth_service.login(login_in.email, login_in.password)
    return AuthResponse(
        message="Login successful",
        pharmacist=PharmacistResponse.model_validate(pharmacist),
        token=token,
    )


@router.get("/me", response_model=MeResponse)
async def me(
    token: Optional[str] = Depends(get_token),
    auth_service: AuthenticationService = Depends(get_auth_service),
):
    """Get current pharmacist profile"""
    pharmacist = await auth_service.resolve_token(token)
    return MeResponse(pharmacist=PharmacistResponse.model_validate(pharmacist))


@router.put("/profile", response_model=ProfileResponse)
async def update_profile(
    profile_in: ProfileUpdate,
    token: Optional[str] = Depends(get_token),
    auth_service: AuthenticationService = Depends(get_auth_service),
):
    """Update pharmacist profile"""
    current = await auth_service.resolve_token(token)
    pharmacist = await auth_service.update_profile(current.id, profile_in.model_dump(exclude_unset=True))
    return ProfileResponse(
        message="Profile updated successfully",
        pharmacist=PharmacistResponse.model_validate(pharmacist),
    )
