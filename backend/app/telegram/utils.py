"""
Telegram utility functions: caller identity and message delivery.
"""
import logging
from typing import List

from telegram import Update
from telegram.constants import ParseMode

from app.core.permissions import AdminIdentity, resolve_identity

logger = logging.getLogger(__name__)

# Telegram rejects messages over 4096 characters
MAX_MESSAGE_LENGTH = 3800


def get_identity(update: Update) -> AdminIdentity:
    user = update.effective_user
    return resolve_identity(user.id if user else 0)


def split_message(text: str, limit: int = MAX_MESSAGE_LENGTH) -> List[str]:
    """
    Split on blank lines so HTML tags of one search hit are never cut apart.

    A single block longer than the limit is cut hard.
    """
    if len(text) <= limit:
        return [text]

    parts: List[str] = []
    current = ""
    for block in text.split("\n\n"):
        candidate = f"{current}\n\n{block}" if current else block
        if len(candidate) <= limit:
            current = candidate
            continue
        if current:
            parts.append(current)
        while len(block) > limit:
            parts.append(block[:limit])
            block = block[limit:]
        current = block
    if current:
        parts.append(current)
    return parts


async def reply_html(update: Update, text: str) -> None:
    """Reply in HTML parse mode, split into several messages when long."""
    for part in split_message(text):
        await update.message.reply_text(part, parse_mode=ParseMode.HTML)
