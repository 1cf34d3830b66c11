from sqlalchemy import Column, Integer, String, Text, DateTime, UniqueConstraint
from sqlalchemy.sql import func
from app.db.base import Base


class Medicine(Base):
    """
    One inventory line of one branch.

    Natural key is (name, pharmacy_id); spreadsheet uploads upsert on it, so a
    branch never holds two rows with the same name. phone/address are copied
    from the branch settings at upload time and when the settings change.
    """
    __tablename__ = "medicines"
    __table_args__ = (
        UniqueConstraint("name", "pharmacy_id", name="uq_medicines_name_pharmacy"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(512), nullable=False)
    price = Column(Integer, nullable=False, default=0)  # so'm
    count = Column(Integer, nullable=False, default=0)
    manufacturer = Column(String(512), nullable=False, default="Unknown")
    phone = Column(String(64), nullable=False, default="")
    address = Column(Text, nullable=False, default="")
    description = Column(Text, nullable=True)
    category = Column(String(128), nullable=True)
    pharmacy_id = Column(Integer, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Medicine {self.name!r} pharmacy={self.pharmacy_id} count={self.count}>"
