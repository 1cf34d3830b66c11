"""
Domain exceptions.

User-facing messages stay short and are rendered verbatim to admins;
underlying causes are kept on the exception for internal logging.
"""
import logging
from typing import Optional

logger = logging.getLogger(__name__)

MAX_REASON_LENGTH = 300


def short_reason(cause: BaseException) -> str:
    """
    One-line description of a cause, fit for a chat reply.

    SQLAlchemy errors carry the whole statement and its parameters; only
    the driver's own message (`.orig`) is kept, first line only.
    """
    source = getattr(cause, "orig", None) or cause
    lines = str(source).strip().splitlines()
    text = lines[0] if lines else ""
    if len(text) > MAX_REASON_LENGTH:
        text = text[:MAX_REASON_LENGTH] + "..."
    return f"{type(source).__name__}: {text}" if text else type(source).__name__


class PharmacyBotError(Exception):
    """
    Base class. `str(exc)` is safe to show to an admin.

    The full cause stays on `.cause` for logging.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message}: {short_reason(self.cause)}"
        return self.message


class SheetReadError(PharmacyBotError):
    """Uploaded file could not be opened, has no sheet, or its rows are unreadable."""


class UpsertError(PharmacyBotError):
    """
    A chunk of the batch upsert failed and the transaction was rolled back.

    `saved` is the number of records flushed before the failing chunk;
    none of them are visible after the rollback.
    """

    def __init__(self, message: str, saved: int = 0, cause: Optional[BaseException] = None):
        super().__init__(message, cause)
        self.saved = saved


class CommandError(PharmacyBotError):
    """Malformed chat command. The message tells the user the expected format."""


class PermissionDenied(PharmacyBotError):
    """User lacks the admin role needed for a command."""

    def __init__(self, message: str = "❌ Siz admin emassiz", user_id: Optional[int] = None):
        super().__init__(message)
        self.user_id = user_id
        logger.info(f"Permission denied for user_id={user_id}: {message}")


class BranchNotConfigured(PharmacyBotError):
    """Phone or address missing for a branch; uploads are refused until set."""

    def __init__(self, pharmacy_id: int, missing_phone: bool, missing_address: bool):
        super().__init__(f"Dorixona {pharmacy_id} sozlanmagan")
        self.pharmacy_id = pharmacy_id
        self.missing_phone = missing_phone
        self.missing_address = missing_address
