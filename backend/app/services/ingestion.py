"""
SPREADSHEET INGESTION PIPELINE

Turns one uploaded stock sheet into upserted medicine rows of one branch:

1. Flatten every sheet row to a single line, drop empty lines
2. Parse each line (full layout, then short layout)
3. Classify category, derive description, attach branch phone/address
4. De-duplicate by name, last occurrence wins
5. Upsert everything in one chunked transaction
6. Notify the uploading chat (failures only logged)

Row parse failures are counted and sampled, never fatal. Sheet read and
upsert failures fail the whole run and are returned to the caller.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Sequence

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import PharmacyBotError, SheetReadError
from app.schemas.ingestion import IngestionSummary, MedicineRecord
from app.services.batch_upserter import BatchUpserter
from app.services.category_classifier import classify, describe
from app.services.deduplicator import Deduplicator
from app.services.notifier import Notifier
from app.services.row_parser import flatten_row, parse_row
from app.services.sheet_reader import read_first_sheet

logger = logging.getLogger(__name__)

PREVIEW_ROWS = 10


@dataclass
class IngestionOutcome:
    summary: IngestionSummary = field(default_factory=IngestionSummary)
    error: Optional[PharmacyBotError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class IngestionPipeline:
    def __init__(
        self,
        db: Session,
        upserter: Optional[BatchUpserter] = None,
        notifier: Optional[Notifier] = None,
        sample_size: Optional[int] = None,
    ):
        self.db = db
        self.upserter = upserter or BatchUpserter(db)
        self.notifier = notifier
        self.sample_size = settings.FAILED_ROW_SAMPLE if sample_size is None else sample_size

    def ingest(
        self,
        rows: Iterable[Sequence[Any] | str],
        phone: str,
        address: str,
        pharmacy_id: int,
        file_name: str = "",
        chat_id: Optional[int | str] = None,
    ) -> IngestionOutcome:
        summary = IngestionSummary()
        lines = [line for line in (flatten_row(row) for row in rows) if line]
        summary.total_rows = len(lines)

        logger.info(f"[INGEST] pharmacy_id={pharmacy_id}: {len(lines)} non-empty rows")
        for i, line in enumerate(lines[:PREVIEW_ROWS], 1):
            logger.debug(f"[INGEST] Row {i}: {line}")

        dedup = Deduplicator()
        for i, line in enumerate(lines, 1):
            candidate = parse_row(line)
            if not candidate.ok:
                summary.skipped_rows += 1
                if len(summary.failed_samples) < self.sample_size:
                    summary.failed_samples.append(f"Qator {i}: {line}")
                continue

            category = classify(candidate.name)
            summary.category_counts[category] = summary.category_counts.get(category, 0) + 1
            summary.parsed_rows += 1
            dedup.add(MedicineRecord(
                name=candidate.name,
                price=candidate.price,
                count=candidate.count,
                manufacturer=candidate.manufacturer,
                phone=phone,
                address=address,
                description=describe(category),
                category=category,
                pharmacy_id=pharmacy_id,
            ))

        summary.duplicates = dedup.duplicates
        records = dedup.records()
        logger.info(
            f"[INGEST] Parsed {len(records)} unique medicines, "
            f"{dedup.duplicates} duplicates collapsed, {summary.skipped_rows} rows skipped"
        )

        if not records:
            self._log_failed_samples(summary)
            return IngestionOutcome(summary=summary)

        result = self.upserter.upsert(records)
        summary.saved = result.saved
        if not result.ok:
            logger.error(f"[INGEST] Upload for pharmacy_id={pharmacy_id} failed: {result.error}")
            return IngestionOutcome(summary=summary, error=result.error)

        logger.info(f"[INGEST] Saved {result.saved} medicines for pharmacy_id={pharmacy_id}")
        for category, count in sorted(summary.category_counts.items()):
            logger.info(f"[INGEST]   {category}: {count}")
        self._log_failed_samples(summary)

        if self.notifier and chat_id:
            try:
                self.notifier.notify(chat_id, summary.notification_text(file_name))
            except Exception as e:
                logger.warning(f"[INGEST] Notification to chat_id={chat_id} failed: {e}")

        return IngestionOutcome(summary=summary)

    def ingest_workbook(
        self,
        data: bytes,
        phone: str,
        address: str,
        pharmacy_id: int,
        file_name: str = "",
        chat_id: Optional[int | str] = None,
    ) -> IngestionOutcome:
        """Read the first sheet of an .xlsx held in memory, then ingest it."""
        try:
            rows = read_first_sheet(data)
        except SheetReadError as e:
            logger.error(f"[INGEST] Could not read '{file_name}': {e}")
            return IngestionOutcome(error=e)
        return self.ingest(rows, phone, address, pharmacy_id, file_name=file_name, chat_id=chat_id)

    @staticmethod
    def _log_failed_samples(summary: IngestionSummary) -> None:
        if summary.failed_samples:
            logger.info("[INGEST] Unparsed rows sample:")
            for row in summary.failed_samples:
                logger.info(f"[INGEST]   {row}")
