"""
Prescription Lookup Providers

A ``PrescriptionLookup`` finds prescriptions by id and persists
dispensing changes. Two implementations exist:

- ``StorePrescriptionLookup`` reads and writes the ``prescriptions`` table.
- ``FallbackPrescriptionLookup`` serves a canned data set when no
  database is reachable. Any well-formed id resolves, and dispensing
  writes are kept in memory for the lifetime of the process.

One provider is chosen at startup by ``build_prescription_lookup`` and
injected into the services; callers never need to know which one it is.
"""

import copy
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.core.exceptions import InvalidIdFormatError, NotFoundError, handle_database_error
from app.domain.prescriptions.fallback_data import FALLBACK_PRESCRIPTIONS, placeholder_prescription
from app.domain.prescriptions.models import Prescription
from app.domain.prescriptions.repository import PrescriptionRepository
from app.models.mixins import is_valid_object_id


class PrescriptionLookup(ABC):
    """Data access capability for the prescription workflow"""

    @abstractmethod
    async def find_by_id(self, prescription_id: str) -> Prescription:
        """Return the prescription or raise InvalidIdFormatError / NotFoundError"""

    @abstractmethod
    async def apply_dispensing(self, prescription_id: str, changes: Dict[str, Any]) -> Prescription:
        """Write ``changes`` to one prescription as a single update and return the result"""

    @abstractmethod
    async def list_dispensed_by(
        self,
        pharmacist_id: str,
        status: Optional[str] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> List[Prescription]:
        """Prescriptions attributed to a pharmacist, most recently validated first"""

    @abstractmethod
    async def count_dispensed_by(
        self,
        pharmacist_id: str,
        status: Optional[str] = None,
        since: Optional[datetime] = None,
    ) -> int:
        """Count prescriptions attributed to a pharmacist"""

    @property
    @abstractmethod
    def is_persistent(self) -> bool:
        """True when backed by the database"""


class StorePrescriptionLookup(PrescriptionLookup):
    """Lookup backed by the SQL database, one session per call"""

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    @property
    def is_persistent(self) -> bool:
        return True

    async def find_by_id(self, prescription_id: str) -> Prescription:
        if not is_valid_object_id(prescription_id):
            raise InvalidIdFormatError()

        try:
            async with self.session_factory() as db:
                prescription = await PrescriptionRepository(db).get_by_id(prescription_id)
        except SQLAlchemyError as e:
            raise handle_database_error(e, "prescription lookup") from e

        if not prescription:
            raise NotFoundError("Prescription not found in database")
        return prescription

    async def apply_dispensing(self, prescription_id: str, changes: Dict[str, Any]) -> Prescription:
        try:
            async with self.session_factory() as db:
                prescription = await PrescriptionRepository(db).update(prescription_id, changes)
        except SQLAlchemyError as e:
            raise handle_database_error(e, "dispensing update") from e

        if not prescription:
            raise NotFoundError("Prescription not found")
        return prescription

    async def list_dispensed_by(
        self,
        pharmacist_id: str,
        status: Optional[str] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> List[Prescription]:
        try:
            async with self.session_factory() as db:
                return await PrescriptionRepository(db).list_by_pharmacist(
                    pharmacist_id, status=status, skip=skip, limit=limit
                )
        except SQLAlchemyError as e:
            raise handle_database_error(e, "dispensing history") from e

    async def count_dispensed_by(
        self,
        pharmacist_id: str,
        status: Optional[str] = None,
        since: Optional[datetime] = None,
    ) -> int:
        try:
            async with self.session_factory() as db:
                return await PrescriptionRepository(db).count_by_pharmacist(
                    pharmacist_id, status=status, since=since
                )
        except SQLAlchemyError as e:
            raise handle_database_error(e, "dispensing count") from e


class FallbackPrescriptionLookup(PrescriptionLookup):
    """Lookup over the canned prescriptions, with an in-memory overlay for writes"""

    def __init__(self, table: Optional[Dict[str, Dict[str, Any]]] = None):
        self.table = table if table is not None else FALLBACK_PRESCRIPTIONS
        self._overlay: Dict[str, Dict[str, Any]] = {}

    @property
    def is_persistent(self) -> bool:
        return False

    def _record(self, prescription_id: str) -> Optional[Dict[str, Any]]:
        if prescription_id in self._overlay:
            return copy.deepcopy(self._overlay[prescription_id])
        if prescription_id in self.table:
            return dict(copy.deepcopy(self.table[prescription_id]), id=prescription_id)
        if is_valid_object_id(prescription_id):
            return placeholder_prescription(prescription_id)
        return None

    async def find_by_id(self, prescription_id: str) -> Prescription:
        record = self._record(prescription_id)
        if record is None:
            raise NotFoundError("Prescription not found")
        logger.debug(f"Serving fallback prescription {prescription_id}")
        return Prescription(**record)

    async def apply_dispensing(self, prescription_id: str, changes: Dict[str, Any]) -> Prescription:
        record = self._record(prescription_id)
        if record is None:
            raise NotFoundError("Prescription not found")
        record.update(copy.deepcopy(changes))
        self._overlay[prescription_id] = record
        return Prescription(**copy.deepcopy(record))

    def _attributed(
        self,
        pharmacist_id: str,
        status: Optional[str],
        since: Optional[datetime],
    ) -> List[Dict[str, Any]]:
        records = []
        for prescription_id in set(self.table) | set(self._overlay):
            record = self._record(prescription_id)
            if record.get("pharmacist_id") != pharmacist_id:
                continue
            if status and record.get("status") != status:
                continue
            validated_at = record.get("validated_at")
            if since and (validated_at is None or validated_at < since):
                continue
            records.append(record)
        return records

    async def list_dispensed_by(
        self,
        pharmacist_id: str,
        status: Optional[str] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> List[Prescription]:
        records = self._attributed(pharmacist_id, status, None)
        records.sort(key=lambda r: r.get("validated_at") or datetime.min, reverse=True)
        return [Prescription(**record) for record in records[skip:skip + limit]]

    async def count_dispensed_by(
        self,
        pharmacist_id: str,
        status: Optional[str] = None,
        since: Optional[datetime] = None,
    ) -> int:
        return len(self._attributed(pharmacist_id, status, since))


def build_prescription_lookup(session_factory: Optional[async_sessionmaker]) -> PrescriptionLookup:
    """Pick the lookup provider for this process"""
    if session_factory is None:
        logger.warning("Running without a database: serving fallback prescription data")
        return FallbackPrescriptionLookup()
    return StorePrescriptionLookup(session_factory)
