"""
Pending admin actions, persisted per Telegram user.

Survive a restart between "/upload 2" and the file arriving. Handlers get
the store injected through bot_data.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from sqlalchemy.orm import Session

from app.models.admin_session import AdminSession

logger = logging.getLogger(__name__)

ALL_BRANCHES = -1


class PendingAction:
    UPLOAD = "upload"
    CLEAR = "clear"


@dataclass(frozen=True)
class Pending:
    action: str
    target: int

    @property
    def all_branches(self) -> bool:
        return self.target == ALL_BRANCHES


class SessionStore:
    """Set on branch selection, consumed on use, cleared on /cancel."""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def set(self, user_id: int, action: str, target: int) -> Pending:
        db = self.session_factory()
        try:
            record = db.query(AdminSession).filter(AdminSession.user_id == user_id).first()
            if record:
                record.action = action
                record.target = target
            else:
                db.add(AdminSession(user_id=user_id, action=action, target=target))
            db.commit()
        finally:
            db.close()
        logger.info(f"[SESSION] user_id={user_id} armed {action} -> {target}")
        return Pending(action=action, target=target)

    def get(self, user_id: int) -> Optional[Pending]:
        db = self.session_factory()
        try:
            record = db.query(AdminSession).filter(AdminSession.user_id == user_id).first()
            if not record:
                return None
            return Pending(action=record.action, target=record.target)
        finally:
            db.close()

    def consume(self, user_id: int, action: str) -> Optional[Pending]:
        """
        Return and delete the pending action if it is of the expected kind.

        A pending action of another kind is left untouched.
        """
        db = self.session_factory()
        try:
            record = db.query(AdminSession).filter(AdminSession.user_id == user_id).first()
            if not record or record.action != action:
                return None
            pending = Pending(action=record.action, target=record.target)
            db.delete(record)
            db.commit()
        finally:
            db.close()
        logger.info(f"[SESSION] user_id={user_id} consumed {pending.action} -> {pending.target}")
        return pending

    def clear(self, user_id: int) -> bool:
        db = self.session_factory()
        try:
            deleted = db.query(AdminSession).filter(AdminSession.user_id == user_id).delete()
            db.commit()
        finally:
            db.close()
        if deleted:
            logger.info(f"[SESSION] user_id={user_id} cleared")
        return bool(deleted)
