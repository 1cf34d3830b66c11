"""In-memory de-duplication of parsed records by medicine name."""
from typing import Dict, Iterable, List, Tuple

from app.schemas.ingestion import MedicineRecord


class Deduplicator:
    """
    Collapses records by name; the last occurrence in sheet order wins.

    `duplicates` counts overwrites, so a name seen three times adds 2.
    Output keeps the position of each name's first occurrence.
    """

    def __init__(self):
        self._records: Dict[str, MedicineRecord] = {}
        self.duplicates = 0

    def add(self, record: MedicineRecord) -> bool:
        """Merge one record. Returns True when it replaced an earlier one."""
        replaced = record.name in self._records
        if replaced:
            self.duplicates += 1
        self._records[record.name] = record
        return replaced

    def records(self) -> List[MedicineRecord]:
        return list(self._records.values())

    def __len__(self) -> int:
        return len(self._records)


def deduplicate(records: Iterable[MedicineRecord]) -> Tuple[List[MedicineRecord], int]:
    dedup = Deduplicator()
    for record in records:
        dedup.add(record)
    return dedup.records(), dedup.duplicates
