"""Inventory removal. Used by the two-step /ahad command of admins."""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from app.models.medicine import Medicine

logger = logging.getLogger(__name__)


def count_medicines(db: Session, pharmacy_id: Optional[int] = None) -> int:
    q = db.query(Medicine)
    if pharmacy_id is not None:
        q = q.filter(Medicine.pharmacy_id == pharmacy_id)
    return q.count()


def delete_medicines(db: Session, pharmacy_id: Optional[int] = None) -> int:
    """Delete one branch's medicines, or every branch's when pharmacy_id is None."""
    q = db.query(Medicine)
    if pharmacy_id is not None:
        q = q.filter(Medicine.pharmacy_id == pharmacy_id)
    deleted = q.delete(synchronize_session=False)
    db.commit()
    logger.warning(f"[INVENTORY] Deleted {deleted} medicines (pharmacy_id={pharmacy_id or 'all'})")
    return deleted
