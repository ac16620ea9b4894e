from contextlib import asynccontextmanager
from typing import Optional

from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from errors import StoreError
from models import Candidate


def candidate_to_dict(c: Candidate) -> dict:
    return {
        "id": c.id,
        "name": c.name,
        "email": c.email,
        "phone": c.phone,
        "status": c.status,
        "score": c.score,
        "answers": c.answers or [],
        "summary": c.summary or "",
        "created_at": str(c.created_at) if c.created_at else None,
        "updated_at": str(c.updated_at) if c.updated_at else None,
    }


class CandidateStore:
    """Candidate persistence on top of one request-scoped ``AsyncSession``."""

    def __init__(self, session: AsyncSession):
        self.session = session

    @asynccontextmanager
    async def _guard(self, action: str):
        try:
            yield
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise StoreError(f"{action} failed: {e}") from e

    async def create(self, **fields) -> Candidate:
        async with self._guard("create candidate"):
            candidate = Candidate(**fields)
            self.session.add(candidate)
            await self.session.commit()
            await self.session.refresh(candidate)
            return candidate

    async def find(self, email: Optional[str] = None) -> list[Candidate]:
        query = select(Candidate).order_by(Candidate.created_at.desc(), Candidate.id.desc())
        if email:
            query = query.where(Candidate.email == email)
        async with self._guard("find candidates"):
            result = await self.session.execute(query)
            return list(result.scalars().all())

    async def get(self, candidate_id: int) -> Optional[Candidate]:
        async with self._guard("get candidate"):
            return await self.session.get(Candidate, candidate_id)

    async def update(self, candidate_id: int, fields: dict) -> Optional[Candidate]:
        async with self._guard("update candidate"):
            candidate = await self.session.get(Candidate, candidate_id)
            if candidate is None:
                return None
            for name, value in fields.items():
                setattr(candidate, name, value)
            await self.session.commit()
            await self.session.refresh(candidate)
            return candidate

    async def delete(self, candidate_id: int) -> bool:
        async with self._guard("delete candidate"):
            candidate = await self.session.get(Candidate, candidate_id)
            if candidate is None:
                return False
            await self.session.delete(candidate)
            await self.session.commit()
            return True

    async def find_duplicates(self) -> list[Candidate]:
        """All candidates whose email appears on more than one row."""
        duplicate_emails = (
            select(Candidate.email)
            .group_by(Candidate.email)
            .having(func.count(Candidate.id) > 1)
        )
        query = (
            select(Candidate)
            .where(Candidate.email.in_(duplicate_emails))
            .order_by(Candidate.email, Candidate.id)
        )
        async with self._guard("find duplicate candidates"):
            result = await self.session.execute(query)
            return list(result.scalars().all())
