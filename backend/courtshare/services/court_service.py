"""
Read-only court queries. Courts are maintained outside this service.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from courtshare.core.errors import NotFoundError
from courtshare.models.court import Court


async def list_courts(db: AsyncSession) -> list[Court]:
    result = await db.execute(select(Court).order_by(Court.name.asc()))
    return list(result.scalars().all())


async def get_court(db: AsyncSession, court_id: int) -> Court:
    court = await db.get(Court, court_id)
    if not court:
        raise NotFoundError(f"Court {court_id} not found")
    return court
