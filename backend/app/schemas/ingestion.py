"""Records flowing through the spreadsheet ingestion pipeline."""
import html
from typing import Dict, List

from pydantic import BaseModel, Field, field_validator

UNKNOWN_MANUFACTURER = "Unknown"

# Columns overwritten when an upload hits an existing (name, pharmacy_id)
MUTABLE_FIELDS = ("price", "count", "manufacturer", "phone", "address", "description", "category")


class MedicineRecord(BaseModel):
    """One parsed, classified inventory line ready to be upserted."""
    name: str
    price: int = Field(default=0, ge=0)
    count: int = Field(default=0, ge=0)
    manufacturer: str = UNKNOWN_MANUFACTURER
    phone: str = ""
    address: str = ""
    description: str = ""
    category: str = ""
    pharmacy_id: int

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be empty")
        return v

    @field_validator("manufacturer")
    @classmethod
    def default_manufacturer(cls, v: str) -> str:
        return v.strip() or UNKNOWN_MANUFACTURER

    def as_row(self) -> dict:
        return self.model_dump()


class IngestionSummary(BaseModel):
    """Run-scoped result of one upload."""
    total_rows: int = 0  # non-empty rows seen
    parsed_rows: int = 0
    skipped_rows: int = 0
    failed_samples: List[str] = Field(default_factory=list)
    duplicates: int = 0
    category_counts: Dict[str, int] = Field(default_factory=dict)
    saved: int = 0

    def notification_text(self, file_name: str) -> str:
        """HTML summary sent back to the chat that uploaded the file."""
        message = (
            "📊 <b>Excel fayl yuklandi</b>\n\n"
            f"✅ Saqlandi: <b>{self.saved}</b> ta dori\n"
            f"📁 Fayl: <code>{html.escape(file_name)}</code>"
        )
        if self.duplicates > 0:
            message += f"\n🔄 Dublikatlar: <b>{self.duplicates}</b> ta (oxirgi qiymat saqlandi)"
        if self.skipped_rows > 0:
            message += f"\n⏭ O'tkazildi: <b>{self.skipped_rows}</b> ta qator"
        return message
