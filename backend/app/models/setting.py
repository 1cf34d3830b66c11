from sqlalchemy import Column, Integer, String, Text, DateTime, UniqueConstraint
from sqlalchemy.sql import func
from app.db.base import Base


class Setting(Base):
    """Per-branch key/value settings. Keys in use: name, phone, address."""
    __tablename__ = "settings"
    __table_args__ = (
        UniqueConstraint("key", "pharmacy_id", name="uq_settings_key_pharmacy"),
    )

    id = Column(Integer, primary_key=True, index=True)
    key = Column(String(64), nullable=False)
    value = Column(Text, nullable=False, default="")
    pharmacy_id = Column(Integer, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
