import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import async_sessionmaker

from string_analyzer.errors import ConflictError
from string_analyzer.models import StringRecord
from string_analyzer.retry import with_retry

logger = logging.getLogger("string_analyzer.db")

T = TypeVar("T")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StringStore:
    """Persistence for analyzed strings, keyed by content hash.

    Every operation opens its own session and runs under ``with_retry`` so
    transient connection failures are retried with exponential backoff.
    Uniqueness is enforced by the primary key, never by a prior lookup.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        *,
        max_retries: int = 3,
        base_delay: float = 1.0,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._session_factory = session_factory
        self._max_retries = max_retries
        self._base_delay = base_delay
        self._clock = clock

    async def _run(self, operation: Callable[[], Awaitable[T]]) -> T:
        return await with_retry(operation, max_retries=self._max_retries, base_delay=self._base_delay)

    async def find_by_id(self, id_: str) -> Optional[StringRecord]:
        async def _op():
            async with self._session_factory() as session:
                return await session.get(StringRecord, id_)

        return await self._run(_op)

    async def insert_if_absent(self, value: str, properties: Dict[str, Any]) -> StringRecord:
        """Insert a new record; ConflictError if one with the same hash exists."""

        async def _op():
            record = StringRecord(
                id=properties["sha256_hash"],
                value=value,
                length=properties["length"],
                is_palindrome=properties["is_palindrome"],
                unique_characters=properties["unique_characters"],
                word_count=properties["word_count"],
                sha256_hash=properties["sha256_hash"],
                character_frequency_map=properties["character_frequency_map"],
                created_at=self._clock(),
            )
            async with self._session_factory() as session:
                session.add(record)
                try:
                    await session.commit()
                except IntegrityError as e:
                    await session.rollback()
                    raise ConflictError("String already exists in the system") from e
            logger.info("Stored string %s", record.id)
            return record

        return await self._run(_op)

    async def scan(self, filters: Optional[Dict[str, Any]] = None) -> List[StringRecord]:
        """Return matching records, newest first.

        Supported keys: is_palindrome, word_count, word_count_gt, min_length,
        max_length and contains_character. The last one is a case-sensitive
        substring test applied to the raw value after the query returns.
        """
        filters = filters or {}
        stmt = select(StringRecord)
        if "is_palindrome" in filters:
            stmt = stmt.where(StringRecord.is_palindrome == bool(filters["is_palindrome"]))
        if "word_count" in filters:
            stmt = stmt.where(StringRecord.word_count == int(filters["word_count"]))
        if "word_count_gt" in filters:
            stmt = stmt.where(StringRecord.word_count > int(filters["word_count_gt"]))
        if "min_length" in filters:
            stmt = stmt.where(StringRecord.length >= int(filters["min_length"]))
        if "max_length" in filters:
            stmt = stmt.where(StringRecord.length <= int(filters["max_length"]))
        stmt = stmt.order_by(StringRecord.created_at.desc())

        async def _op():
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return list(result.scalars())

        records = await self._run(_op)

        ch = filters.get("contains_character")
        if ch:
            records = [r for r in records if ch in r.value]

        logger.debug("Scan with filters %s matched %d records", filters, len(records))
        return records

    async def delete_by_id(self, id_: str) -> bool:
        async def _op():
            async with self._session_factory() as session:
                result = await session.execute(delete(StringRecord).where(StringRecord.id == id_))
                await session.commit()
                return result.rowcount > 0

        deleted = await self._run(_op)
        if deleted:
            logger.info("Deleted string %s", id_)
        return deleted

    async def clear(self) -> int:
        """Remove every record. Maintenance and test helper."""

        async def _op():
            async with self._session_factory() as session:
                result = await session.execute(delete(StringRecord))
                await session.commit()
                return result.rowcount

        return await self._run(_op)
