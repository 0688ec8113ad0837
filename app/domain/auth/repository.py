from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_
from app.domain.auth.models import Pharmacist


class PharmacistRepository:
    """Repository for pharmacist data access operations"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, pharmacist_data: dict, password: Optional[str] = None) -> Pharmacist:
        """Create a new pharmacist"""
        pharmacist = Pharmacist(**pharmacist_data)
        if password:
            pharmacist.set_password(password)

        self.db.add(pharmacist)
        await self.db.commit()
        await self.db.refresh(pharmacist)

        return pharmacist

    async def get_by_id(self, pharmacist_id: str) -> Optional[Pharmacist]:
        """Get pharmacist by ID"""
        result = await self.db.execute(select(Pharmacist).where(Pharmacist.id == pharmacist_id))
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Optional[Pharmacist]:
        """Get pharmacist by email"""
        result = await self.db.execute(select(Pharmacist).where(Pharmacist.email == email.lower()))
        return result.scalar_one_or_none()

    async def get_by_email_or_license(self, email: str, license_number: str) -> Optional[Pharmacist]:
        result = await self.db.execute(
            select(Pharmacist).where(
                or_(Pharmacist.email == email.lower(), Pharmacist.license_number == license_number)
            )
        )
        return result.scalars().first()

    async def update(self, pharmacist_id: str, update_data: dict) -> Optional[Pharmacist]:
        """Update pharmacist, ignoring empty values"""
        pharmacist = await self.get_by_id(pharmacist_id)
        if pharmacist:
            for key, value in update_data.items():
                if hasattr(pharmacist, key) and value:
                    setattr(pharmacist, key, value)
            await self.db.commit()
            await self.db.refresh(pharmacist)
        return pharmacist
