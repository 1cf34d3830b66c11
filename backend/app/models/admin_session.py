"""
Admin Session Model: pending multi-step admin action per Telegram user.

A super admin first picks a branch (`/upload 2`, `/ahad 3`) and then sends the
file or the confirmation; the choice is kept here until it is used or
cancelled, so a restart between the two steps does not lose it.
"""
from sqlalchemy import Column, Integer, String, DateTime, BigInteger
from sqlalchemy.sql import func
from app.db.base import Base


class AdminSession(Base):
    """
    Schema:
        user_id: Telegram user identifier (unique)
        action: "upload" or "clear"
        target: branch id, or -1 for every branch (clear only)
        updated_at: when the action was armed

    Lifecycle:
        1. Set by /upload N or /ahad N|all (replaces any earlier pending action)
        2. Deleted when consumed (next document, /ahad_confirm)
        3. Deleted by /cancel
    """
    __tablename__ = "admin_sessions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(BigInteger, unique=True, nullable=False, index=True)
    action = Column(String(32), nullable=False)
    target = Column(Integer, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<AdminSession user_id={self.user_id} action={self.action} target={self.target}>"
