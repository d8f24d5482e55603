"""
Generic repository - one parametrised data-access class, instantiated per model.
Challenge: Consistent data access, eager loading by name, soft-delete aware reads.
Design: Mutations only stage changes on the shared session; the unit of work commits.
"""

from collections.abc import Iterable, Sequence
from typing import Any, Generic, TypeVar

from sqlalchemy import ColumnElement, Select, and_, func, inspect, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from exam_manager.db.base import Base, utcnow
from exam_manager.db.soft_delete import INCLUDE_DELETED, SoftDeleteMixin

ModelType = TypeVar("ModelType", bound=Base)


class EntityNotFoundError(LookupError):
    """No row matches the given primary key."""

    def __init__(self, model: type, key: tuple[Any, ...]):
        super().__init__(f"{model.__name__} with key {key!r} not found")
        self.model = model
        self.key = key


class Repository(Generic[ModelType]):
    """Generic async repository over a single mapped class."""

    def __init__(self, session: AsyncSession, model: type[ModelType]):
        self._session: AsyncSession | None = session
        self.model = model

    @property
    def session(self) -> AsyncSession:
        if self._session is None:
            raise RuntimeError(
                f"{type(self).__name__}[{self.model.__name__}] used after its unit of work was closed"
            )
        return self._session

    def detach(self) -> None:
        """Called by the unit of work on close; later use raises."""
        self._session = None

    # --- statement building -------------------------------------------------

    def _eager_options(self, includes: Iterable[str] | None) -> list:
        """Turn "a" / "a.b" relationship paths into chained selectinload options."""
        options = []
        for path in includes or ():
            target: Any = self.model
            loader = None
            for name in path.split("."):
                attr = getattr(target, name, None)
                if attr is None or not hasattr(attr, "property") or not hasattr(attr.property, "mapper"):
                    raise ValueError(f"{target.__name__} has no relationship named {name!r}")
                loader = selectinload(attr) if loader is None else loader.selectinload(attr)
                target = attr.property.mapper.class_
            options.append(loader)
        return options

    def _select(
        self,
        predicate: ColumnElement[bool] | None = None,
        includes: Iterable[str] | None = None,
        order_by: Sequence[Any] | None = None,
        include_deleted: bool = False,
        populate_existing: bool = False,
    ) -> Select:
        stmt = select(self.model)
        if predicate is not None:
            stmt = stmt.where(predicate)
        options = self._eager_options(includes)
        if options:
            stmt = stmt.options(*options)
        stmt = stmt.order_by(*(order_by or self._primary_key()))
        if include_deleted:
            stmt = stmt.execution_options(**{INCLUDE_DELETED: True})
        if populate_existing:
            stmt = stmt.execution_options(populate_existing=True)
        return stmt

    def _primary_key(self) -> tuple:
        return tuple(inspect(self.model).primary_key)

    def _key_predicate(self, key_values: tuple[Any, ...]) -> ColumnElement[bool]:
        columns = self._primary_key()
        if len(columns) != len(key_values):
            raise ValueError(
                f"{self.model.__name__} key has {len(columns)} column(s), got {len(key_values)} value(s)"
            )
        return and_(*(column == value for column, value in zip(columns, key_values)))

    # --- reads --------------------------------------------------------------

    async def get(
        self,
        predicate: ColumnElement[bool] | None = None,
        includes: Iterable[str] | None = None,
        order_by: Sequence[Any] | None = None,
    ) -> list[ModelType]:
        """All matching rows, soft-deleted ones excluded, with ``includes`` eager loaded."""
        result = await self.session.execute(self._select(predicate, includes, order_by))
        return list(result.scalars().unique().all())

    async def first(
        self,
        predicate: ColumnElement[bool] | None = None,
        includes: Iterable[str] | None = None,
        populate_existing: bool = False,
    ) -> ModelType | None:
        """First match or None. ``populate_existing`` re-reads rows already in the session."""
        stmt = self._select(predicate, includes, populate_existing=populate_existing).limit(1)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_with_deleted(
        self,
        predicate: ColumnElement[bool] | None = None,
        includes: Iterable[str] | None = None,
        order_by: Sequence[Any] | None = None,
    ) -> list[ModelType]:
        """Like ``get`` but soft-deleted rows (and soft-deleted related rows) are returned too."""
        stmt = self._select(predicate, includes, order_by, include_deleted=True)
        result = await self.session.execute(stmt)
        return list(result.scalars().unique().all())

    async def first_with_deleted(
        self,
        predicate: ColumnElement[bool] | None = None,
        includes: Iterable[str] | None = None,
        populate_existing: bool = False,
    ) -> ModelType | None:
        stmt = self._select(
            predicate, includes, include_deleted=True, populate_existing=populate_existing
        ).limit(1)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_by_key(
        self,
        *key_values: Any,
        references: Iterable[str] | None = None,
        collections: Iterable[str] | None = None,
    ) -> ModelType | None:
        """
        Single row by primary key (composite keys in column order), or None.
        Named references/collections are loaded after the primary fetch in one refresh.
        """
        entity = await self.first(self._key_predicate(key_values))
        if entity is None:
            return None
        names = [*(references or ()), *(collections or ())]
        if names:
            await self.load(entity, *names)
        return entity

    async def load(self, entity: ModelType, *attribute_names: str) -> ModelType:
        """(Re)load named attributes, relationships or deferred columns, on a tracked entity."""
        await self.session.refresh(entity, attribute_names=list(attribute_names))
        return entity

    async def count(self, predicate: ColumnElement[bool] | None = None) -> int:
        inner = select(self.model)
        if predicate is not None:
            inner = inner.where(predicate)
        if issubclass(self.model, SoftDeleteMixin):
            # Counted through a plain subquery; filter deleted rows here as well
            inner = inner.where(self.model.is_deleted.is_(False))
        result = await self.session.execute(select(func.count()).select_from(inner.subquery()))
        return int(result.scalar_one())

    async def exists(self, predicate: ColumnElement[bool]) -> bool:
        return await self.first(predicate) is not None

    async def exists_with_deleted(self, predicate: ColumnElement[bool]) -> bool:
        return await self.first_with_deleted(predicate) is not None

    async def get_paged(
        self,
        predicate: ColumnElement[bool] | None = None,
        page: int = 1,
        page_size: int = 20,
        includes: Iterable[str] | None = None,
        order_by: Sequence[Any] | None = None,
    ) -> tuple[list[ModelType], int]:
        """One page (1-based) plus the total count of matching rows, counted before skip/take."""
        if page < 1:
            raise ValueError("page must be >= 1")
        if page_size < 1:
            raise ValueError("page_size must be >= 1")
        total = await self.count(predicate)
        stmt = self._select(predicate, includes, order_by).offset((page - 1) * page_size).limit(page_size)
        result = await self.session.execute(stmt)
        return list(result.scalars().unique().all()), total

    # --- staged writes ------------------------------------------------------

    async def insert(self, entity: ModelType) -> ModelType:
        self.session.add(entity)
        return entity

    async def insert_many(self, entities: Iterable[ModelType]) -> list[ModelType]:
        entities = list(entities)
        self.session.add_all(entities)
        return entities

    async def update(self, entity: ModelType) -> ModelType:
        """Tracked entities are already staged; detached ones are merged back in."""
        if entity in self.session:
            return entity
        return await self.session.merge(entity)

    async def update_many(self, entities: Iterable[ModelType]) -> list[ModelType]:
        return [await self.update(entity) for entity in entities]

    async def delete(self, *key_values: Any) -> None:
        """Stage a hard delete by key. Soft-deleted rows are found too."""
        entity = await self.first_with_deleted(self._key_predicate(key_values))
        if entity is None:
            raise EntityNotFoundError(self.model, key_values)
        await self.session.delete(entity)

    async def delete_many(
        self,
        predicate: ColumnElement[bool] | None = None,
        entities: Iterable[ModelType] | None = None,
    ) -> int:
        """Stage hard deletes for an explicit list, or for every row matching ``predicate``."""
        if entities is None:
            if predicate is None:
                raise ValueError("delete_many needs a predicate or an entity list")
            entities = await self.get_with_deleted(predicate)
        count = 0
        for entity in entities:
            await self.session.delete(entity)
            count += 1
        return count

    async def soft_delete(self, entity: ModelType, deleted_by_id: int | None) -> int:
        """Mark entity and its declared cascade children deleted with one timestamp. Returns rows touched."""
        if not isinstance(entity, SoftDeleteMixin):
            raise TypeError(f"{self.model.__name__} does not support soft delete")
        children = await self._cascade_children(entity)
        at = utcnow()
        entity.mark_deleted(deleted_by_id, at)
        touched = 1
        for child in children:
            if not child.is_deleted:
                child.mark_deleted(deleted_by_id, at)
                touched += 1
        return touched

    async def restore(self, entity: ModelType) -> int:
        """Clear deletion fields on entity and its declared cascade children."""
        if not isinstance(entity, SoftDeleteMixin):
            raise TypeError(f"{self.model.__name__} does not support soft delete")
        children = await self._cascade_children(entity)
        entity.restore()
        touched = 1
        for child in children:
            if child.is_deleted:
                child.restore()
                touched += 1
        return touched

    async def _cascade_children(self, entity: SoftDeleteMixin) -> list[SoftDeleteMixin]:
        names = type(entity).__soft_delete_cascade__
        if not names:
            return []
        # refresh is a column load, so deleted children come back as well
        await self.load(entity, *names)
        children: list[SoftDeleteMixin] = []
        for name in names:
            value = getattr(entity, name)
            if value is None:
                continue
            children.extend(value if isinstance(value, list) else [value])
        return children

