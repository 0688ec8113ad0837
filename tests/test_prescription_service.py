import pytest
from datetime import datetime, timedelta

from app.core.exceptions import (
    InvalidIdFormatError,
    InvalidTransitionError,
    NotFoundError,
    ValidationFailedError,
)
from app.domain.auth.models import ActingPharmacist
from app.domain.prescriptions.fallback_data import DEMO_PHARMACIST_ID
from app.domain.prescriptions.lookup import FallbackPrescriptionLookup, StorePrescriptionLookup
from app.domain.prescriptions.service import PrescriptionService, ValidationRejection
from app.models.mixins import generate_object_id


@pytest.fixture
def pharmacist() -> ActingPharmacist:
    return ActingPharmacist(id="pharmacist-1", name="Test Pharmacist", pharmacy_name="Test Pharmacy")


@pytest.fixture
def other_pharmacist() -> ActingPharmacist:
    return ActingPharmacist(id="pharmacist-2", name="Other Pharmacist", pharmacy_name="Other Pharmacy")


GIVE_BOTH = [
    {"medicineName": "Levothyroxine 50mcg", "status": "given"},
    {"medicineName": "Vitamin D3 1000IU", "status": "given"},
]

GIVE_ONE = [
    {"medicineName": "Levothyroxine 50mcg", "status": "given"},
    {"medicineName": "Vitamin D3 1000IU", "status": "not_available"},
]


@pytest.mark.prescriptions
@pytest.mark.asyncio
class TestValidatePrescription:
    """Test validating a prescription at the counter."""

    async def test_active_prescription(self, prescription_service: PrescriptionService, make_prescription) -> None:
        created = await make_prescription()

        result = await prescription_service.validate(created.id)

        assert result.valid is True
        assert result.message == "Prescription found and valid"
        assert [m.name for m in result.medicines] == ["Levothyroxine 50mcg", "Vitamin D3 1000IU"]
        assert [s["status"] for s in result.medicine_statuses] == ["pending", "pending"]
        assert [s["medicineName"] for s in result.medicine_statuses] == ["Levothyroxine 50mcg", "Vitamin D3 1000IU"]
        assert result.previous_dispensing is None

    async def test_invalid_id(self, prescription_service: PrescriptionService) -> None:
        result = await prescription_service.validate("invalid-id")

        assert result.valid is False
        assert result.rejection == ValidationRejection.INVALID_ID
        assert result.message == "Invalid prescription ID format"
        assert result.prescription is None

    async def test_not_found(self, prescription_service: PrescriptionService) -> None:
        result = await prescription_service.validate(generate_object_id())

        assert result.valid is False
        assert result.rejection == ValidationRejection.NOT_FOUND
        assert result.message == "Prescription not found in database"

    async def test_cancelled_has_no_checklist(self, prescription_service: PrescriptionService, make_prescription) -> None:
        created = await make_prescription(status="cancelled")

        result = await prescription_service.validate(created.id)

        assert result.valid is False
        assert result.rejection == ValidationRejection.CANCELLED
        assert result.message == "This prescription has been cancelled"
        assert result.prescription.id == created.id
        assert result.medicines is None
        assert result.medicine_statuses is None

    async def test_dispensed_reports_who(self, prescription_service: PrescriptionService, make_prescription) -> None:
        validated_at = datetime(2026, 1, 24, 10, 30)
        created = await make_prescription(
            status="dispensed",
            pharmacist_id="pharmacist-9",
            pharmacist_name="Earlier Pharmacist",
            pharmacy_name="Earlier Pharmacy",
            validated_at=validated_at,
        )

        result = await prescription_service.validate(created.id)

        assert result.valid is False
        assert result.rejection == ValidationRejection.ALREADY_DISPENSED
        assert result.message == "This prescription has already been fully dispensed"
        assert result.dispensed_by == {
            "pharmacistId": "pharmacist-9",
            "pharmacistName": "Earlier Pharmacist",
            "pharmacyName": "Earlier Pharmacy",
            "dispensedAt": validated_at,
        }
        assert result.medicines is None

    async def test_partially_dispensed_carries_previous_dispensing(
        self, prescription_service: PrescriptionService, make_prescription
    ) -> None:
        stored = [
            {"medicineName": "Levothyroxine 50mcg", "status": "given", "updatedAt": "2026-01-24T10:30:00"},
            {"medicineName": "Vitamin D3 1000IU", "status": "not_available", "updatedAt": "2026-01-24T10:30:00"},
        ]
        created = await make_prescription(
            status="partially_dispensed",
            pharmacist_id="pharmacist-9",
            pharmacist_name="Earlier Pharmacist",
            pharmacy_name="Earlier Pharmacy",
            validated_at=datetime(2026, 1, 24, 10, 30),
            medicine_statuses=stored,
        )

        result = await prescription_service.validate(created.id)

        assert result.valid is True
        assert result.medicine_statuses == stored
        assert result.previous_dispensing["pharmacistId"] == "pharmacist-9"
        assert result.previous_dispensing["validatedAt"] == datetime(2026, 1, 24, 10, 30)

    async def test_drifted_statuses_reset(self, prescription_service: PrescriptionService, make_prescription) -> None:
        created = await make_prescription(
            medicine_statuses=[{"medicineName": "Something Else", "status": "given", "updatedAt": "2026-01-24T10:30:00"}]
        )

        result = await prescription_service.validate(created.id)

        assert len(result.medicine_statuses) == 2
        assert all(s["status"] == "pending" for s in result.medicine_statuses)

    async def test_flattened_medication(self, prescription_service: PrescriptionService, make_prescription) -> None:
        created = await make_prescription(
            medications=[],
            medication="Amoxicillin 500mg",
            dosage="1 capsule",
            frequency="Three times daily",
            duration="7 days",
        )

        result = await prescription_service.validate(created.id)

        assert [m.name for m in result.medicines] == ["Amoxicillin 500mg"]
        assert result.medicines[0].instructions == created.instructions
        assert len(result.medicine_statuses) == 1

    async def test_validate_never_writes(
        self, prescription_service: PrescriptionService, store_lookup: StorePrescriptionLookup, make_prescription
    ) -> None:
        created = await make_prescription()

        await prescription_service.validate(created.id)
        reread = await store_lookup.find_by_id(created.id)

        assert reread.status == "active"
        assert reread.medicine_statuses == []
        assert reread.pharmacist_id is None


@pytest.mark.prescriptions
@pytest.mark.asyncio
class TestDispensePrescription:
    """Test recording dispensing decisions."""

    async def test_all_given_completes(
        self, prescription_service: PrescriptionService, make_prescription, pharmacist: ActingPharmacist
    ) -> None:
        created = await make_prescription()

        result = await prescription_service.dispense(created.id, GIVE_BOTH, "All handed over", pharmacist)

        assert result.previous_status == "active"
        assert result.prescription.status == "dispensed"
        assert result.prescription.pharmacist_id == "pharmacist-1"
        assert result.prescription.pharmacist_name == "Test Pharmacist"
        assert result.prescription.pharmacy_name == "Test Pharmacy"
        assert result.prescription.dispensing_notes == "All handed over"
        assert result.dispensed_by["pharmacistId"] == "pharmacist-1"
        assert result.dispensed_by["validatedAt"] == result.prescription.validated_at
        assert [s["status"] for s in result.prescription.medicine_statuses] == ["given", "given"]
        assert all("updatedAt" in s for s in result.prescription.medicine_statuses)

    async def test_partial_then_complete(
        self,
        prescription_service: PrescriptionService,
        make_prescription,
        pharmacist: ActingPharmacist,
        other_pharmacist: ActingPharmacist,
    ) -> None:
        """A second pharmacist can finish a partial dispense and takes over attribution."""
        created = await make_prescription()

        first = await prescription_service.dispense(created.id, GIVE_ONE, None, pharmacist)
        second = await prescription_service.dispense(created.id, GIVE_BOTH, None, other_pharmacist)

        assert first.prescription.status == "partially_dispensed"
        assert second.previous_status == "partially_dispensed"
        assert second.prescription.status == "dispensed"
        assert second.prescription.pharmacist_id == "pharmacist-2"

    async def test_no_progress_keeps_status(
        self, prescription_service: PrescriptionService, make_prescription, pharmacist: ActingPharmacist
    ) -> None:
        created = await make_prescription()
        statuses = [
            {"medicineName": "Levothyroxine 50mcg", "status": "pending"},
            {"medicineName": "Vitamin D3 1000IU", "status": "not_available"},
        ]

        result = await prescription_service.dispense(created.id, statuses, None, pharmacist)

        assert result.prescription.status == "active"
        assert result.prescription.pharmacist_id == "pharmacist-1"

    async def test_dispense_then_validate_round_trip(
        self, prescription_service: PrescriptionService, make_prescription, pharmacist: ActingPharmacist
    ) -> None:
        created = await make_prescription()

        await prescription_service.dispense(created.id, GIVE_ONE, None, pharmacist)
        result = await prescription_service.validate(created.id)

        assert result.valid is True
        assert [s["status"] for s in result.medicine_statuses] == ["given", "not_available"]
        assert result.previous_dispensing["pharmacistId"] == "pharmacist-1"

    async def test_notes_kept_when_absent(
        self, prescription_service: PrescriptionService, make_prescription, pharmacist: ActingPharmacist
    ) -> None:
        created = await make_prescription()

        await prescription_service.dispense(created.id, GIVE_ONE, "Vitamin D3 out of stock", pharmacist)
        result = await prescription_service.dispense(created.id, GIVE_BOTH, None, pharmacist)

        assert result.prescription.dispensing_notes == "Vitamin D3 out of stock"

    async def test_invalid_batch_writes_nothing(
        self,
        prescription_service: PrescriptionService,
        store_lookup: StorePrescriptionLookup,
        make_prescription,
        pharmacist: ActingPharmacist,
    ) -> None:
        created = await make_prescription()
        statuses = [
            {"medicineName": "Levothyroxine 50mcg", "status": "given"},
            {"medicineName": "Vitamin D3 1000IU", "status": "lost"},
        ]

        with pytest.raises(ValidationFailedError):
            await prescription_service.dispense(created.id, statuses, None, pharmacist)

        reread = await store_lookup.find_by_id(created.id)
        assert reread.status == "active"
        assert reread.medicine_statuses == []

    async def test_cancelled_rejected(
        self, prescription_service: PrescriptionService, make_prescription, pharmacist: ActingPharmacist
    ) -> None:
        created = await make_prescription(status="cancelled")

        with pytest.raises(InvalidTransitionError) as exc_info:
            await prescription_service.dispense(created.id, GIVE_BOTH, None, pharmacist)
        assert exc_info.value.message == "Cannot dispense a cancelled prescription"

    async def test_invalid_id_checked_first(
        self, prescription_service: PrescriptionService, pharmacist: ActingPharmacist
    ) -> None:
        with pytest.raises(InvalidIdFormatError):
            await prescription_service.dispense("bad-id", None, None, pharmacist)

    async def test_missing_statuses(
        self, prescription_service: PrescriptionService, make_prescription, pharmacist: ActingPharmacist
    ) -> None:
        created = await make_prescription()

        with pytest.raises(ValidationFailedError) as exc_info:
            await prescription_service.dispense(created.id, [], None, pharmacist)
        assert exc_info.value.message == "Medicine statuses are required"

    async def test_unknown_prescription(
        self, prescription_service: PrescriptionService, pharmacist: ActingPharmacist
    ) -> None:
        with pytest.raises(NotFoundError):
            await prescription_service.dispense(generate_object_id(), GIVE_BOTH, None, pharmacist)


@pytest.mark.prescriptions
@pytest.mark.asyncio
class TestHistoryAndStats:
    """Test the pharmacist's dispensing history and counters."""

    async def test_history_paginates(
        self, prescription_service: PrescriptionService, make_prescription, pharmacist: ActingPharmacist
    ) -> None:
        for _ in range(3):
            created = await make_prescription()
            await prescription_service.dispense(created.id, GIVE_BOTH, None, pharmacist)

        first_page = await prescription_service.get_history(pharmacist, page=1, limit=2)
        second_page = await prescription_service.get_history(pharmacist, page=2, limit=2)

        assert len(first_page.prescriptions) == 2
        assert len(second_page.prescriptions) == 1
        assert first_page.total == 3
        assert first_page.pages == 2

    async def test_history_filters_by_status_and_pharmacist(
        self,
        prescription_service: PrescriptionService,
        make_prescription,
        pharmacist: ActingPharmacist,
        other_pharmacist: ActingPharmacist,
    ) -> None:
        full = await make_prescription()
        partial = await make_prescription()
        someone_elses = await make_prescription()
        await prescription_service.dispense(full.id, GIVE_BOTH, None, pharmacist)
        await prescription_service.dispense(partial.id, GIVE_ONE, None, pharmacist)
        await prescription_service.dispense(someone_elses.id, GIVE_BOTH, None, other_pharmacist)

        history = await prescription_service.get_history(pharmacist, status_filter="partially_dispensed")

        assert [p.id for p in history.prescriptions] == [partial.id]
        assert history.total == 1

    async def test_empty_history(self, prescription_service: PrescriptionService, pharmacist: ActingPharmacist) -> None:
        history = await prescription_service.get_history(pharmacist)

        assert history.prescriptions == []
        assert history.total == 0
        assert history.pages == 0

    async def test_stats(
        self, prescription_service: PrescriptionService, make_prescription, pharmacist: ActingPharmacist
    ) -> None:
        full = await make_prescription()
        partial = await make_prescription()
        await prescription_service.dispense(full.id, GIVE_BOTH, None, pharmacist)
        await prescription_service.dispense(partial.id, GIVE_ONE, None, pharmacist)
        await make_prescription(
            pharmacist_id="pharmacist-1",
            status="dispensed",
            validated_at=datetime.utcnow() - timedelta(days=2),
        )

        stats = await prescription_service.get_stats(pharmacist)

        assert stats == {"totalDispensed": 3, "todayDispensed": 2, "partiallyDispensed": 1}


@pytest.mark.prescriptions
@pytest.mark.asyncio
class TestFallbackWorkflow:
    """Test the workflow when running on canned data."""

    @pytest.fixture
    def service(self, fallback_lookup: FallbackPrescriptionLookup) -> PrescriptionService:
        return PrescriptionService(fallback_lookup)

    async def test_canned_dispensed_prescription_rejected(self, service: PrescriptionService) -> None:
        result = await service.validate("507f1f77bcf86cd799439015")

        assert result.valid is False
        assert result.rejection == ValidationRejection.ALREADY_DISPENSED
        assert result.dispensed_by["pharmacistId"] == DEMO_PHARMACIST_ID

    async def test_malformed_id_is_not_found(self, service: PrescriptionService) -> None:
        result = await service.validate("nope")

        assert result.rejection == ValidationRejection.NOT_FOUND
        assert result.message == "Prescription not found"

    async def test_dispense_round_trip(self, service: PrescriptionService, pharmacist: ActingPharmacist) -> None:
        prescription_id = "507f1f77bcf86cd799439011"

        dispensed = await service.dispense(prescription_id, GIVE_ONE, None, pharmacist)
        result = await service.validate(prescription_id)
        stats = await service.get_stats(pharmacist)

        assert dispensed.prescription.status == "partially_dispensed"
        assert result.valid is True
        assert [s["status"] for s in result.medicine_statuses] == ["given", "not_available"]
        assert stats["partiallyDispensed"] == 1
        assert stats["todayDispensed"] == 1
