"""
Medicine checklist helpers.

``normalize_medicines`` turns whatever medication data a prescription
carries into an ordered list of ``Medicine`` values, and
``reconcile_statuses`` lines the stored per-medicine statuses up with
that list.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from app.domain.prescriptions.models import Medicine, MedicineStatusValue


def _field(source: Any, name: str) -> Any:
    if isinstance(source, dict):
        return source.get(name)
    return getattr(source, name, None)


def normalize_medicines(prescription: Any) -> List[Medicine]:
    """Build the medicine checklist for a prescription.

    A non-empty ``medications`` list wins; otherwise a flattened single
    ``medication`` yields one entry; otherwise the checklist is empty.
    Entries without a name are skipped. Accepts an ORM row or a plain
    mapping.
    """
    medications = _field(prescription, "medications") or []
    if medications:
        return [
            Medicine(
                name=_field(med, "name"),
                dosage=_field(med, "dosage"),
                frequency=_field(med, "frequency"),
                duration=_field(med, "duration"),
                instructions=_field(med, "instructions"),
            )
            for med in medications
            if _field(med, "name")
        ]

    medication = _field(prescription, "medication")
    if medication:
        return [
            Medicine(
                name=medication,
                dosage=_field(prescription, "dosage"),
                frequency=_field(prescription, "frequency"),
                duration=_field(prescription, "duration"),
                instructions=_field(prescription, "instructions"),
            )
        ]

    return []


def _is_status_entry(entry: Any) -> bool:
    return isinstance(entry, dict) and bool(entry.get("medicineName")) and bool(entry.get("status"))


def pending_statuses(medicines: Sequence[Medicine], now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    updated_at = (now or datetime.utcnow()).isoformat()
    return [
        {
            "medicineName": medicine.name,
            "status": MedicineStatusValue.PENDING.value,
            "updatedAt": updated_at,
        }
        for medicine in medicines
    ]


def reconcile_statuses(
    medicines: Sequence[Medicine],
    stored_statuses: Optional[List[Dict[str, Any]]],
    now: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    """Return the statuses to show for ``medicines``.

    Stored statuses are trusted as-is when their count matches the
    medicine count and every entry names a medicine and a status. Any
    drift means the checklist is stale, so it restarts with every
    medicine pending.
    """
    stored = stored_statuses or []
    if len(stored) == len(medicines) and all(_is_status_entry(s) for s in stored):
        return stored
    return pending_statuses(medicines, now)
