"""Batch Deletion Engine - chunked, size-bounded deletes.

The store commits at most ``settings.BATCH_GROUP_MAX_SIZE`` writes as one
atomic group, so large deletes are split into chunks that are committed one
after another. There is no transaction spanning chunks: when chunk k fails,
chunks 1..k-1 stay deleted and ``PartialDeletionError`` reports how many rows
went. Deleting an id that is already gone is a no-op, so re-running the same
delete until it completes is always correct.
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Sequence, Type
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.exceptions import PartialDeletionError
from app.models.base import BaseModel

logger = logging.getLogger(__name__)


@dataclass
class DeletionReport:
    requested: int
    deleted: int
    chunks: int


def chunked(ids: Sequence[UUID], size: int) -> List[Sequence[UUID]]:
    """Split ids into consecutive chunks of at most `size`."""
    if size < 1:
        raise ValueError("chunk size must be positive")
    return [ids[i:i + size] for i in range(0, len(ids), size)]


class BatchDeletionEngine:
    @staticmethod
    async def delete_ids(
        db: AsyncSession,
        model: Type[BaseModel],
        ids: Iterable[UUID],
        group_size: Optional[int] = None,
    ) -> DeletionReport:
        """
        Delete rows of `model` by primary key, one committed group per chunk.

        Raises:
            PartialDeletionError: a chunk failed; earlier chunks stay committed
        """
        group_size = group_size or settings.BATCH_GROUP_MAX_SIZE
        # dict.fromkeys keeps first-seen order while dropping duplicates
        unique_ids = list(dict.fromkeys(ids))
        chunks = chunked(unique_ids, group_size)
        deleted = 0
        table = model.__tablename__

        for number, chunk in enumerate(chunks, start=1):
            try:
                result = await db.execute(
                    delete(model)
                    .where(model.id.in_(chunk))
                    .execution_options(synchronize_session=False)
                )
                await db.commit()
            except SQLAlchemyError as exc:
                await db.rollback()
                logger.error(
                    "Batch delete failed",
                    extra={"table": table, "chunk": number, "chunks": len(chunks), "deleted": deleted},
                    exc_info=True,
                )
                raise PartialDeletionError(
                    f"Deleting from {table} stopped at chunk {number} of {len(chunks)} "
                    f"after {deleted} rows; re-run to finish",
                    deleted=deleted,
                    failed_chunk=number,
                    cause=exc,
                ) from exc

            deleted += max(result.rowcount or 0, 0)
            logger.info(
                "Batch delete chunk committed",
                extra={"table": table, "chunk": number, "chunks": len(chunks), "rows": result.rowcount},
            )

        return DeletionReport(requested=len(unique_ids), deleted=deleted, chunks=len(chunks))

    @staticmethod
    async def select_ids(db: AsyncSession, model: Type[BaseModel], *criteria: Any) -> List[UUID]:
        result = await db.execute(select(model.id).where(*criteria))
        return [row[0] for row in result.all()]

    @staticmethod
    async def count_where(db: AsyncSession, model: Type[BaseModel], *criteria: Any) -> int:
        stmt = select(func.count()).select_from(model)
        if criteria:
            stmt = stmt.where(*criteria)
        return (await db.scalar(stmt)) or 0

    @staticmethod
    async def delete_where(
        db: AsyncSession,
        model: Type[BaseModel],
        *criteria: Any,
        group_size: Optional[int] = None,
    ) -> DeletionReport:
        """Delete every row of `model` matching `criteria` (all rows when none given)."""
        ids = await BatchDeletionEngine.select_ids(db, model, *criteria)
        # End the read transaction so the first chunk starts clean
        await db.commit()
        return await BatchDeletionEngine.delete_ids(db, model, ids, group_size=group_size)
