"""Base repository shared by the stream aggregate repositories."""

from typing import Callable, Generic, List, Optional, Type, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from liveshop.domain.exceptions import EntityNotFoundError
from liveshop.infrastructure.persistence.models import Base

DomainEntity = TypeVar("DomainEntity")
PersistenceModel = TypeVar("PersistenceModel", bound=Base)


class BaseRepository(Generic[DomainEntity, PersistenceModel]):
    """CRUD over one table, converting rows with the given mapping functions.

    ``add`` and ``update`` only stage changes in the session; callers flush
    (or let the request session commit) when the unit of work is complete.
    """

    def __init__(
        self,
        session: AsyncSession,
        model_class: Type[PersistenceModel],
        to_domain: Callable[[PersistenceModel], DomainEntity],
        apply: Callable[[DomainEntity, Optional[PersistenceModel]], PersistenceModel],
    ):
        self.session = session
        self.model_class = model_class
        self.to_domain = to_domain
        self.apply = apply

    async def get(self, id: str) -> Optional[DomainEntity]:
        """Get entity by ID."""
        result = await self.session.get(self.model_class, id)
        return self.to_domain(result) if result else None

    def add(self, entity: DomainEntity) -> DomainEntity:
        """Stage a new entity for insertion."""
        self.session.add(self.apply(entity, None))
        return entity

    def add_all(self, entities: List[DomainEntity]) -> List[DomainEntity]:
        self.session.add_all([self.apply(entity, None) for entity in entities])
        return entities

    async def update(self, entity: DomainEntity) -> DomainEntity:
        """Copy entity state onto its row. The row is usually already loaded."""
        record = await self.session.get(self.model_class, entity.id)
        if record is None:
            raise EntityNotFoundError(type(entity).__name__, entity.id)
        self.apply(entity, record)
        return entity

    async def delete(self, id: str) -> bool:
        """Delete entity by ID."""
        record = await self.session.get(self.model_class, id)
        if record is None:
            return False
        await self.session.delete(record)
        return True

    async def count(self) -> int:
        stmt = select(func.count()).select_from(self.model_class)
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def flush(self) -> None:
        """Flush pending changes without committing."""
        await self.session.flush()

    async def commit(self) -> None:
        await self.session.commit()

    async def _all(self, stmt) -> List[DomainEntity]:
        result = await self.session.execute(stmt)
        return [self.to_domain(model) for model in result.scalars().all()]

    async def _one_or_none(self, stmt) -> Optional[DomainEntity]:
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        return self.to_domain(model) if model else None
