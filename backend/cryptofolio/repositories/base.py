"""
仓储层基类 (Repository Base)

职责：把领域操作翻译为行级 SQL，并在存储边界上保证唯一性与存在性。
仓储只 flush 不 commit，事务边界由 Service 层决定。
"""
import logging
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


class RepositoryError(Exception):
    pass


class UniqueConstraintViolation(RepositoryError):
    pass


class RecordNotFound(RepositoryError):
    pass


class InvalidSortError(RepositoryError):
    pass


SORT_DIRECTIONS = ("asc", "desc")


class BaseRepository:
    model: Any = None
    # 归属字段 (user_id / portfolio_id / holding_id)
    owner_field: str = ""
    # 允许排序的列：对外名称 -> 模型属性名
    sortable_columns: Dict[str, str] = {}
    # 默认按创建顺序
    default_sort: str = "created_at"
    # 可通过 update() 修改的字段
    updatable_fields: Sequence[str] = ()

    def __init__(self, db: AsyncSession):
        self.db = db

    @property
    def _owner_column(self):
        return getattr(self.model, self.owner_field)

    def _order_by(self, sort_column: Optional[str], sort_direction: Optional[str]):
        direction = (sort_direction or "asc").lower()
        if direction not in SORT_DIRECTIONS:
            raise InvalidSortError(f"Invalid sort direction '{sort_direction}'")

        if sort_column is None:
            attr = self.default_sort
        elif sort_column in self.sortable_columns:
            attr = self.sortable_columns[sort_column]
        else:
            allowed = ", ".join(sorted(self.sortable_columns))
            raise InvalidSortError(f"Invalid sort column '{sort_column}' (allowed: {allowed})")

        column = getattr(self.model, attr)
        primary = column.asc() if direction == "asc" else column.desc()
        # 同值时仍按创建顺序，保证结果稳定
        created = getattr(self.model, self.default_sort)
        return [primary, created.asc()] if attr != self.default_sort else [primary]

    async def find_all(
        self,
        owner_id: str,
        sort_column: Optional[str] = None,
        sort_direction: Optional[str] = "asc",
    ) -> List[Any]:
        stmt = (
            select(self.model)
            .where(self._owner_column == owner_id)
            .order_by(*self._order_by(sort_column, sort_direction))
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def find_by_id(self, id: str) -> Optional[Any]:
        stmt = select(self.model).where(self.model.id == id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def _get_scoped(self, id: str, owner_id: Optional[str]) -> Any:
        row = await self.find_by_id(id)
        if row is None or (owner_id is not None and getattr(row, self.owner_field) != owner_id):
            raise RecordNotFound(f"{self.model.__name__} {id} not found")
        return row

    async def _insert(self, row: Any) -> Any:
        self.db.add(row)
        try:
            await self.db.flush()
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning(f"Unique constraint violated on {self.model.__tablename__}: {e.orig}")
            raise UniqueConstraintViolation(str(e.orig)) from e
        await self.db.refresh(row)
        return row

    async def update(self, id: str, data: Dict[str, Any], owner_id: Optional[str] = None) -> Any:
        """部分更新：只修改 data 中出现的字段"""
        row = await self._get_scoped(id, owner_id)
        for field, value in data.items():
            if field not in self.updatable_fields:
                raise RepositoryError(f"Field '{field}' is not updatable")
            setattr(row, field, value)
        try:
            await self.db.flush()
        except IntegrityError as e:
            await self.db.rollback()
            raise UniqueConstraintViolation(str(e.orig)) from e
        await self.db.refresh(row)
        return row

    async def delete(self, id: str, owner_id: Optional[str] = None) -> None:
        row = await self._get_scoped(id, owner_id)
        await self.db.delete(row)
        await self.db.flush()
