"""
Chunked multi-row upsert of medicine records.

The whole call runs in one transaction. Records are written in chunks of
UPLOAD_CHUNK_SIZE, one multi-row INSERT ... ON CONFLICT (name, pharmacy_id)
DO UPDATE per chunk. A failing chunk rolls back every earlier chunk too;
nothing is visible to readers until the final commit.
"""
import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import UpsertError
from app.models.medicine import Medicine
from app.schemas.ingestion import MedicineRecord, MUTABLE_FIELDS

logger = logging.getLogger(__name__)

# Both dialects expose insert().on_conflict_do_update() with `excluded`
_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


@dataclass
class UpsertResult:
    saved: int
    error: Optional[UpsertError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def chunked(records: Sequence[MedicineRecord], size: int) -> Iterator[Sequence[MedicineRecord]]:
    if size < 1:
        raise ValueError("chunk size must be positive")
    for start in range(0, len(records), size):
        yield records[start:start + size]


class BatchUpserter:
    def __init__(self, db: Session, chunk_size: Optional[int] = None):
        self.db = db
        self.chunk_size = chunk_size or settings.UPLOAD_CHUNK_SIZE

    def build_statement(self, chunk: Sequence[MedicineRecord]):
        dialect = self.db.get_bind().dialect.name
        insert = _DIALECT_INSERTS.get(dialect)
        if insert is None:
            raise UpsertError(f"Qo'llab-quvvatlanmaydigan baza: {dialect}")

        stmt = insert(Medicine.__table__).values([record.as_row() for record in chunk])
        update_columns = {column: stmt.excluded[column] for column in MUTABLE_FIELDS}
        update_columns["updated_at"] = func.now()
        return stmt.on_conflict_do_update(
            index_elements=["name", "pharmacy_id"],
            set_=update_columns,
        )

    def _execute_chunk(self, chunk: Sequence[MedicineRecord]) -> None:
        self.db.execute(self.build_statement(chunk))

    def upsert(self, records: Sequence[MedicineRecord]) -> UpsertResult:
        """
        Write all records or none of them.

        On failure the returned result carries the count flushed before the
        failing chunk alongside the error; the transaction is rolled back.
        """
        records: List[MedicineRecord] = list(records)
        if not records:
            return UpsertResult(saved=0)

        total = len(records)
        saved = 0
        logger.info(f"[UPSERT] Writing {total} records in chunks of {self.chunk_size}")

        try:
            for chunk in chunked(records, self.chunk_size):
                self._execute_chunk(chunk)
                saved += len(chunk)
                logger.info(f"[UPSERT] {saved}/{total} flushed")
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"[UPSERT] Rolled back after {saved}/{total}: {e}")
            return UpsertResult(
                saved=saved,
                error=UpsertError("batch insert xato", saved=saved, cause=e),
            )
        except UpsertError as e:
            self.db.rollback()
            e.saved = saved
            return UpsertResult(saved=saved, error=e)

        logger.info(f"[UPSERT] Committed {saved} records")
        return UpsertResult(saved=saved)
