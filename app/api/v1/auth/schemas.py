from pydantic import EmailStr, Field, field_validator
from typing import Optional
from datetime import datetime

from app.api.v1.prescriptions.schemas import CamelModel


class RegisterRequest(CamelModel):
    """Schema for registering a pharmacist"""
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    pharmacy_name: str = Field(..., min_length=1, max_length=255)
    license_number: str = Field(..., min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = Field(None, max_length=500)

    @field_validator('name', 'pharmacy_name', 'license_number')
    @classmethod
    def strip_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError('Field must not be blank')
        return v


class LoginRequest(CamelModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class ProfileUpdate(CamelModel):
    """Schema for updating pharmacist profile"""
    name: Optional[str] = Field(None, max_length=255)
    pharmacy_name: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = Field(None, max_length=500)


class PharmacistResponse(CamelModel):
    """Pharmacist profile, never including the password hash"""
    id: str
    name: str
    email: str
    pharmacy_name: str
    license_number: str
    phone: Optional[str] = None
    address: Optional[str] = None
    auth_provider: Optional[str] = None
    profile_picture: Optional[str] = None
    is_profile_complete: Optional[bool] = None
    is_active: Optional[bool] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AuthResponse(CamelModel):
    message: str
    pharmacist: PharmacistResponse
    token: str


class MeResponse(CamelModel):
    pharmacist: PharmacistResponse


class ProfileResponse(CamelModel):
    message: str
    pharmacist: PharmacistResponse
