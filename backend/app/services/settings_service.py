"""Per-branch settings (name, phone, address) and their propagation to stock rows."""
import logging
from dataclasses import dataclass
from typing import List

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.medicine import Medicine
from app.models.setting import Setting
from app.services.search_service import default_branch_name

logger = logging.getLogger(__name__)

BRANCH_KEYS = ("name", "phone", "address")
CONTACT_KEYS = ("phone", "address")


@dataclass
class BranchInfo:
    id: int
    name: str
    phone: str
    address: str

    @property
    def ready_for_upload(self) -> bool:
        return bool(self.phone) and bool(self.address)


def get_setting(db: Session, key: str, pharmacy_id: int) -> str:
    """Return the setting value, or "" when unset."""
    value = (
        db.query(Setting.value)
        .filter(Setting.key == key, Setting.pharmacy_id == pharmacy_id)
        .scalar()
    )
    return value or ""


def update_setting(db: Session, key: str, value: str, pharmacy_id: int) -> Setting:
    row = (
        db.query(Setting)
        .filter(Setting.key == key, Setting.pharmacy_id == pharmacy_id)
        .first()
    )
    if row:
        row.value = value
        row.updated_at = func.now()
    else:
        row = Setting(key=key, value=value, pharmacy_id=pharmacy_id)
        db.add(row)
    db.commit()
    db.refresh(row)
    logger.info(f"[SETTINGS] pharmacy_id={pharmacy_id} {key} updated")
    return row


def propagate_contact(db: Session, key: str, value: str, pharmacy_id: int) -> bool:
    """
    Copy a new phone/address onto every medicine of the branch.

    Returns False when the bulk update failed; the setting itself stays saved.
    """
    if key not in CONTACT_KEYS:
        raise ValueError(f"not a contact setting: {key}")
    try:
        updated = (
            db.query(Medicine)
            .filter(Medicine.pharmacy_id == pharmacy_id)
            .update({key: value}, synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"[SETTINGS] Could not propagate {key} to pharmacy_id={pharmacy_id}: {e}")
        return False
    logger.info(f"[SETTINGS] {key} copied to {updated} medicines of pharmacy_id={pharmacy_id}")
    return True


def get_branch(db: Session, pharmacy_id: int) -> BranchInfo:
    rows = dict(
        db.query(Setting.key, Setting.value)
        .filter(Setting.pharmacy_id == pharmacy_id, Setting.key.in_(BRANCH_KEYS))
        .all()
    )
    return BranchInfo(
        id=pharmacy_id,
        name=rows.get("name") or default_branch_name(pharmacy_id),
        phone=rows.get("phone") or "",
        address=rows.get("address") or "",
    )


def list_branches(db: Session) -> List[BranchInfo]:
    return [get_branch(db, pharmacy_id) for pharmacy_id in range(1, settings.BRANCH_COUNT + 1)]
