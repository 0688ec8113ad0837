"""
Prescription API Schemas

Pydantic models for prescription validation and dispensing requests and
responses. Field names are camelCase on the wire.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Optional, List, Any
from datetime import datetime


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# ==================== Medicine Schemas ====================

class MedicationEntry(CamelModel):
    """Medication as written by the prescriber"""
    name: Optional[str] = None
    dosage: Optional[str] = None
    frequency: Optional[str] = None
    duration: Optional[str] = None
    instructions: Optional[str] = None


class MedicineResponse(CamelModel):
    """Checklist entry derived from the prescription"""
    name: str
    dosage: Optional[str] = None
    frequency: Optional[str] = None
    duration: Optional[str] = None
    instructions: Optional[str] = None


class MedicineStatusResponse(CamelModel):
    medicine_name: str
    status: str
    updated_at: Optional[datetime] = None


# ==================== Prescription Schemas ====================

class PrescriptionSummary(CamelModel):
    """Public fields of a prescription shown at validation time"""
    id: str
    diagnosis: Optional[str] = None
    instructions: Optional[str] = None
    notes: Optional[str] = None
    follow_up_date: Optional[datetime] = None
    status: str
    created_at: Optional[datetime] = None
    patient_email: Optional[str] = None


class PrescriptionDetail(PrescriptionSummary):
    """Full prescription record including dispensing data"""
    doctor_id: Optional[str] = None
    patient_id: Optional[str] = None
    patient_name: Optional[str] = None
    doctor_name: Optional[str] = None
    hospital_name: Optional[str] = None
    medication: Optional[str] = None
    dosage: Optional[str] = None
    frequency: Optional[str] = None
    duration: Optional[str] = None
    medications: List[MedicationEntry] = []
    pharmacist_id: Optional[str] = None
    pharmacist_name: Optional[str] = None
    pharmacy_name: Optional[str] = None
    validated_at: Optional[datetime] = None
    medicine_statuses: List[MedicineStatusResponse] = []
    dispensing_notes: Optional[str] = None
    updated_at: Optional[datetime] = None


class DispensedByResponse(CamelModel):
    pharmacist_id: Optional[str] = None
    pharmacist_name: Optional[str] = None
    pharmacy_name: Optional[str] = None
    dispensed_at: Optional[datetime] = None


class AttributionResponse(CamelModel):
    pharmacist_id: Optional[str] = None
    pharmacist_name: Optional[str] = None
    pharmacy_name: Optional[str] = None
    validated_at: Optional[datetime] = None


# ==================== Validation Schemas ====================

class ValidationResponse(CamelModel):
    valid: bool
    message: str
    prescription: PrescriptionSummary
    medicines: List[MedicineResponse]
    medicine_statuses: List[MedicineStatusResponse]
    previous_dispensing: Optional[AttributionResponse] = None


class ValidationRejectedResponse(CamelModel):
    valid: bool = False
    message: str
    prescription: Optional[PrescriptionSummary] = None
    dispensed_by: Optional[DispensedByResponse] = None


# ==================== Dispensing Schemas ====================

class DispenseRequest(CamelModel):
    """Statuses are checked by the service so a bad batch is rejected as a whole"""
    medicine_statuses: Any = None
    dispensing_notes: Any = None


class DispenseResponse(CamelModel):
    message: str
    prescription: PrescriptionDetail
    dispensed_by: AttributionResponse


# ==================== History Schemas ====================

class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    pages: int


class HistoryResponse(CamelModel):
    prescriptions: List[PrescriptionDetail]
    pagination: Pagination


class StatsResponse(CamelModel):
    total_dispensed: int
    today_dispensed: int
    partially_dispensed: int
