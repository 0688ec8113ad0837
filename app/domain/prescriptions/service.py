"""
Prescription Service Layer

Business logic for validating prescriptions at the pharmacy counter and
recording per-medicine dispensing decisions.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional
import enum
import math

from loguru import logger

from app.core.exceptions import (
    InvalidIdFormatError,
    InvalidTransitionError,
    NotFoundError,
    ValidationFailedError,
)
from app.domain.auth.models import ActingPharmacist
from app.domain.prescriptions.lookup import PrescriptionLookup
from app.domain.prescriptions.medicines import normalize_medicines, reconcile_statuses
from app.domain.prescriptions.models import (
    Medicine,
    MedicineStatusValue,
    Prescription,
    PrescriptionStatus,
)
from app.models.mixins import is_valid_object_id

VALID_MEDICINE_STATUSES = [s.value for s in MedicineStatusValue]


class ValidationRejection(str, enum.Enum):
    """Why a prescription failed validation"""
    INVALID_ID = "invalid_id"
    NOT_FOUND = "not_found"
    CANCELLED = "cancelled"
    ALREADY_DISPENSED = "already_dispensed"


@dataclass
class ValidationResult:
    valid: bool
    message: str
    rejection: Optional[ValidationRejection] = None
    prescription: Optional[Prescription] = None
    medicines: Optional[List[Medicine]] = None
    medicine_statuses: Optional[List[Dict[str, Any]]] = None
    previous_dispensing: Optional[Dict[str, Any]] = None
    dispensed_by: Optional[Dict[str, Any]] = None


@dataclass
class DispenseResult:
    prescription: Prescription
    dispensed_by: Dict[str, Any]
    previous_status: str
    message: str = "Prescription dispensing recorded successfully"


@dataclass
class DispensingHistory:
    prescriptions: List[Prescription]
    page: int
    limit: int
    total: int
    pages: int = field(init=False)

    def __post_init__(self):
        self.pages = math.ceil(self.total / self.limit) if self.limit else 0


def derive_prescription_status(current_status: str, statuses: List[Dict[str, Any]]) -> str:
    """Lifecycle status implied by a batch of medicine statuses.

    Everything given, or everything not needed, completes the
    prescription. Anything given at all makes it partial. Otherwise the
    current status stands.
    """
    values = [s["status"] for s in statuses]
    all_given = all(v == MedicineStatusValue.GIVEN.value for v in values)
    some_given = any(v == MedicineStatusValue.GIVEN.value for v in values)
    all_not_needed = all(v == MedicineStatusValue.NOT_NEEDED.value for v in values)

    if all_given or all_not_needed:
        return PrescriptionStatus.DISPENSED.value
    if some_given:
        return PrescriptionStatus.PARTIALLY_DISPENSED.value
    return current_status


def validate_medicine_statuses(medicine_statuses: Any) -> List[Dict[str, str]]:
    """Check an incoming status batch as a whole; any bad entry rejects all of it"""
    if not isinstance(medicine_statuses, list) or not medicine_statuses:
        raise ValidationFailedError("Medicine statuses are required")

    cleaned = []
    seen = set()
    for entry in medicine_statuses:
        if not isinstance(entry, dict):
            raise ValidationFailedError("Each medicine must have a name and status")
        name = entry.get("medicineName")
        value = entry.get("status")
        if not isinstance(name, str) or not name.strip() or not value:
            raise ValidationFailedError("Each medicine must have a name and status")
        if value not in VALID_MEDICINE_STATUSES:
            raise ValidationFailedError(
                f'Invalid status "{value}". Must be one of: {", ".join(VALID_MEDICINE_STATUSES)}',
                details={"medicineName": name, "status": str(value)},
            )
        if name in seen:
            raise ValidationFailedError(f'Duplicate status entry for medicine "{name}"')
        seen.add(name)
        cleaned.append({"medicineName": name, "status": value})
    return cleaned


def validate_dispensing_notes(dispensing_notes: Any) -> Optional[str]:
    """Free-text notes are optional; anything other than a string is rejected"""
    if dispensing_notes is None:
        return None
    if not isinstance(dispensing_notes, str):
        raise ValidationFailedError("Dispensing notes must be text")
    return dispensing_notes


def _attribution(prescription: Prescription, timestamp_key: str) -> Dict[str, Any]:
    return {
        "pharmacistId": prescription.pharmacist_id,
        "pharmacistName": prescription.pharmacist_name,
        "pharmacyName": prescription.pharmacy_name,
        timestamp_key: prescription.validated_at,
    }


class PrescriptionService:
    """Service layer for prescription validation and dispensing"""

    def __init__(self, lookup: PrescriptionLookup):
        self.lookup = lookup

    async def validate(self, prescription_id: str, pharmacist: Optional[ActingPharmacist] = None) -> ValidationResult:
        """Check whether a prescription can be dispensed and build its checklist.

        Never writes. Lookup failures come back as rejected results rather
        than exceptions.
        """
        try:
            prescription = await self.lookup.find_by_id(prescription_id)
        except InvalidIdFormatError as e:
            return ValidationResult(valid=False, message=e.message, rejection=ValidationRejection.INVALID_ID)
        except NotFoundError as e:
            return ValidationResult(valid=False, message=e.message, rejection=ValidationRejection.NOT_FOUND)

        if prescription.status == PrescriptionStatus.CANCELLED.value:
            logger.info(f"Validation rejected for cancelled prescription {prescription_id}")
            return ValidationResult(
                valid=False,
                message="This prescription has been cancelled",
                rejection=ValidationRejection.CANCELLED,
                prescription=prescription,
            )

        if prescription.status == PrescriptionStatus.DISPENSED.value:
            logger.info(f"Validation rejected for dispensed prescription {prescription_id}")
            return ValidationResult(
                valid=False,
                message="This prescription has already been fully dispensed",
                rejection=ValidationRejection.ALREADY_DISPENSED,
                prescription=prescription,
                dispensed_by=_attribution(prescription, "dispensedAt"),
            )

        medicines = normalize_medicines(prescription)
        statuses = reconcile_statuses(medicines, prescription.medicine_statuses)

        if pharmacist:
            logger.info(f"Prescription {prescription_id} validated by pharmacist {pharmacist.id}")

        return ValidationResult(
            valid=True,
            message="Prescription found and valid",
            prescription=prescription,
            medicines=medicines,
            medicine_statuses=statuses,
            previous_dispensing=_attribution(prescription, "validatedAt") if prescription.pharmacist_id else None,
        )

    async def dispense(
        self,
        prescription_id: str,
        medicine_statuses: Any,
        dispensing_notes: Any,
        pharmacist: ActingPharmacist,
    ) -> DispenseResult:
        """Record dispensing decisions and advance the prescription status.

        All input is checked before anything is written. The final write
        replaces statuses and attribution wholesale (last writer wins).
        """
        if not is_valid_object_id(prescription_id):
            raise InvalidIdFormatError()

        incoming = validate_medicine_statuses(medicine_statuses)
        dispensing_notes = validate_dispensing_notes(dispensing_notes)

        prescription = await self.lookup.find_by_id(prescription_id)
        if prescription.status == PrescriptionStatus.CANCELLED.value:
            raise InvalidTransitionError(
                "Cannot dispense a cancelled prescription",
                details={"status": prescription.status},
            )

        previous_status = prescription.status
        new_status = derive_prescription_status(previous_status, incoming)
        now = datetime.utcnow()

        changes = {
            "pharmacist_id": pharmacist.id,
            "pharmacist_name": pharmacist.name,
            "pharmacy_name": pharmacist.pharmacy_name,
            "validated_at": now,
            "medicine_statuses": [
                {"medicineName": s["medicineName"], "status": s["status"], "updatedAt": now.isoformat()}
                for s in incoming
            ],
            "status": new_status,
            "updated_at": now,
        }
        if dispensing_notes:
            changes["dispensing_notes"] = dispensing_notes

        updated = await self.lookup.apply_dispensing(prescription_id, changes)
        logger.info(
            f"Prescription {prescription_id} dispensed by {pharmacist.id}: {previous_status} -> {new_status}"
        )

        return DispenseResult(
            prescription=updated,
            previous_status=previous_status,
            dispensed_by={
                "pharmacistId": pharmacist.id,
                "pharmacistName": pharmacist.name,
                "pharmacyName": pharmacist.pharmacy_name,
                "validatedAt": updated.validated_at,
            },
        )

    async def get_history(
        self,
        pharmacist: ActingPharmacist,
        page: int = 1,
        limit: int = 20,
        status_filter: Optional[str] = None,
    ) -> DispensingHistory:
        """Paginated dispensing history for a pharmacist"""
        skip = (page - 1) * limit
        prescriptions = await self.lookup.list_dispensed_by(
            pharmacist.id, status=status_filter, skip=skip, limit=limit
        )
        total = await self.lookup.count_dispensed_by(pharmacist.id, status=status_filter)
        return DispensingHistory(prescriptions=prescriptions, page=page, limit=limit, total=total)

    async def get_stats(self, pharmacist: ActingPharmacist) -> Dict[str, int]:
        today = datetime.utcnow().replace(hour=0, minute=0, second=0, microsecond=0)
        return {
            "totalDispensed": await self.lookup.count_dispensed_by(pharmacist.id),
            "todayDispensed": await self.lookup.count_dispensed_by(pharmacist.id, since=today),
            "partiallyDispensed": await self.lookup.count_dispensed_by(
                pharmacist.id, status=PrescriptionStatus.PARTIALLY_DISPENSED.value
            ),
        }
