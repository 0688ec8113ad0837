from dataclasses import dataclass
from sqlalchemy import Column, String, Boolean
from app.infrastructure.database import Base
from app.models.mixins import ObjectIdMixin
import enum


class AuthProvider(str, enum.Enum):
    """How a pharmacist signs in"""
    LOCAL = "local"
    GOOGLE = "google"


class Pharmacist(ObjectIdMixin, Base):
    """Pharmacist account"""
    __tablename__ = "pharmacists"

    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255))  # Empty for OAuth-only accounts

    pharmacy_name = Column(String(255), nullable=False)
    license_number = Column(String(100), unique=True, nullable=False, index=True)
    phone = Column(String(50))
    address = Column(String(500))

    auth_provider = Column(String(20), default=AuthProvider.LOCAL.value)
    google_id = Column(String(255), index=True)
    profile_picture = Column(String(500))
    is_profile_complete = Column(Boolean, default=True)

    is_active = Column(Boolean, default=True)

    def set_password(self, password: str):
        """Set password hash"""
        from app.core.security import get_password_hash
        self.password_hash = get_password_hash(password)

    def verify_password(self, password: str) -> bool:
        """Verify password"""
        from app.core.security import verify_password
        return verify_password(password, self.password_hash)

    def to_acting(self) -> "ActingPharmacist":
        return ActingPharmacist(
            id=self.id,
            name=self.name,
            pharmacy_name=self.pharmacy_name,
            is_active=bool(self.is_active),
            email=self.email,
        )


@dataclass(frozen=True)
class ActingPharmacist:
    """Verified identity of the pharmacist behind a request.

    Produced by the auth dependency from a valid token and trusted as-is
    for attribution.
    """
    id: str
    name: str
    pharmacy_name: str
    is_active: bool = True
    email: str = ""
