"""
Prescription Domain Models

Implements:
- The prescription aggregate as issued by the prescribing system
- Per-medicine dispensing statuses embedded in the prescription row
- The Medicine value derived from a prescription's medication data
"""

from dataclasses import dataclass
from typing import Optional
import enum

from sqlalchemy import Column, String, DateTime, Text, JSON, Index

from app.infrastructure.database import Base
from app.models.mixins import ObjectIdMixin


class PrescriptionStatus(str, enum.Enum):
    """Lifecycle status of a prescription"""
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    DISPENSED = "dispensed"
    PARTIALLY_DISPENSED = "partially_dispensed"


class MedicineStatusValue(str, enum.Enum):
    """Dispensing disposition of a single medicine"""
    PENDING = "pending"
    GIVEN = "given"
    NOT_AVAILABLE = "not_available"
    NOT_NEEDED = "not_needed"


@dataclass(frozen=True)
class Medicine:
    """One prescribed item, derived from a prescription snapshot"""
    name: str
    dosage: Optional[str] = None
    frequency: Optional[str] = None
    duration: Optional[str] = None
    instructions: Optional[str] = None


class Prescription(ObjectIdMixin, Base):
    """Prescription model - shared with the prescribing system"""
    __tablename__ = "prescriptions"

    doctor_id = Column(String(24), nullable=True, index=True)
    patient_id = Column(String(24), nullable=True, index=True)
    patient_name = Column(String(255))
    patient_email = Column(String(255))
    doctor_name = Column(String(255))
    hospital_name = Column(String(255))

    diagnosis = Column(Text)
    notes = Column(Text)
    instructions = Column(Text)
    follow_up_date = Column(DateTime)
    qr_code = Column(Text)

    # Single flattened medication, used by older prescriptions
    medication = Column(String(255))
    dosage = Column(String(255))
    frequency = Column(String(255))
    duration = Column(String(255))

    # [{"name", "dosage", "frequency", "duration", "instructions"}]
    medications = Column(JSON, default=list)

    status = Column(String(32), nullable=False, default=PrescriptionStatus.ACTIVE.value, index=True)

    # Dispensing
    pharmacist_id = Column(String(64), index=True)
    pharmacist_name = Column(String(255))
    pharmacy_name = Column(String(255))
    validated_at = Column(DateTime)
    # [{"medicineName", "status", "updatedAt"}]
    medicine_statuses = Column(JSON, default=list)
    dispensing_notes = Column(Text)

    __table_args__ = (
        Index("ix_prescriptions_pharmacist_validated", "pharmacist_id", "validated_at"),
    )

    def __repr__(self) -> str:
        return f"<Prescription {self.id} status={self.status}>"
