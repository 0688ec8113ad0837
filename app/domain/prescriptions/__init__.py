# Prescription validation and dispensing domain module
from app.domain.prescriptions.models import (
    Medicine,
    MedicineStatusValue,
    Prescription,
    PrescriptionStatus,
)

__all__ = [
    "Medicine",
    "MedicineStatusValue",
    "Prescription",
    "PrescriptionStatus",
]
