import logging
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cryptofolio.core.exceptions import (
    AlreadyExistsError,
    DatabaseError,
    NotFoundError,
    ValidationError,
)
from cryptofolio.repositories.base import (
    InvalidSortError,
    RecordNotFound,
    RepositoryError,
    UniqueConstraintViolation,
)

logger = logging.getLogger(__name__)


@contextmanager
def repository_errors(resource: str, identifier: str = ""):
    """
    把仓储层 / SQLAlchemy 异常翻译为领域异常，
    保证原始存储异常不会越过 Service 边界
    """
    try:
        yield
    except UniqueConstraintViolation as e:
        raise AlreadyExistsError(f"{resource} '{identifier}' already exists") from e
    except RecordNotFound as e:
        raise NotFoundError(resource, identifier) from e
    except InvalidSortError as e:
        raise ValidationError(str(e)) from e
    except RepositoryError as e:
        raise ValidationError(str(e)) from e
    except SQLAlchemyError as e:
        logger.error(f"Database error on {resource} {identifier}: {e}")
        raise DatabaseError("Database operation failed") from e


class BaseService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _commit(self) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Commit failed: {e}")
            raise DatabaseError("Database operation failed") from e
