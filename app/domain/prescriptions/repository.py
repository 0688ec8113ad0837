from typing import Optional, List
from datetime import datetime
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from app.domain.prescriptions.models import Prescription


class PrescriptionRepository:
    """Repository for prescription data access operations"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, prescription_data: dict) -> Prescription:
        """Create a new prescription"""
        prescription = Prescription(**prescription_data)
        self.db.add(prescription)
        await self.db.commit()
        await self.db.refresh(prescription)
        return prescription

    async def get_by_id(self, prescription_id: str) -> Optional[Prescription]:
        result = await self.db.execute(select(Prescription).where(Prescription.id == prescription_id))
        return result.scalar_one_or_none()

    async def update(self, prescription_id: str, update_data: dict) -> Optional[Prescription]:
        """Apply a set of column changes to one prescription in a single commit"""
        prescription = await self.get_by_id(prescription_id)
        if prescription:
            for key, value in update_data.items():
                if hasattr(prescription, key):
                    setattr(prescription, key, value)
            await self.db.commit()
            await self.db.refresh(prescription)
        return prescription

    def _pharmacist_query(self, query, pharmacist_id: str, status: Optional[str], since: Optional[datetime]):
        query = query.where(Prescription.pharmacist_id == pharmacist_id)
        if status:
            query = query.where(Prescription.status == status)
        if since:
            query = query.where(Prescription.validated_at >= since)
        return query

    async def list_by_pharmacist(
        self,
        pharmacist_id: str,
        status: Optional[str] = None,
        skip: int = 0,
        limit: int = 20
    ) -> List[Prescription]:
        """Prescriptions dispensed by a pharmacist, most recent first"""
        query = self._pharmacist_query(select(Prescription), pharmacist_id, status, None)
        query = query.order_by(Prescription.validated_at.desc()).offset(skip).limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def count_by_pharmacist(
        self,
        pharmacist_id: str,
        status: Optional[str] = None,
        since: Optional[datetime] = None
    ) -> int:
        query = self._pharmacist_query(select(func.count(Prescription.id)), pharmacist_id, status, since)
        result = await self.db.execute(query)
        return result.scalar_one()
