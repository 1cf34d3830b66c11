"""
Telegram Message Handlers: command routing for the pharmacy network bot.

Every text message is parsed into a typed Command first (see commands.py) and
routed from there; documents go to the spreadsheet upload flow.

ROLES:
- Super admin: manages every branch, must pick the branch for each upload
  (/upload N) and each deletion (/ahad N|all)
- Branch admin: manages the branch bound to them in config
- Everyone else: search only

Pending multi-step actions live in the SessionStore injected through
`application.bot_data["sessions"]`.
"""
import asyncio
import html
import logging
from pathlib import Path
from typing import Awaitable, Callable, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from telegram import Update
from telegram.error import TelegramError
from telegram.ext import ContextTypes

from app.core.audit import AuditLog
from app.core.config import settings
from app.core.exceptions import BranchNotConfigured, CommandError, PermissionDenied, SheetReadError
from app.core.permissions import AdminIdentity, valid_branch
from app.services.admin_sessions import ALL_BRANCHES, PendingAction, SessionStore
from app.services.ingestion import IngestionOutcome, IngestionPipeline
from app.services.inventory_service import count_medicines, delete_medicines
from app.services.search_service import render_results, search_medicines
from app.services.settings_service import (
    CONTACT_KEYS,
    BranchInfo,
    get_branch,
    list_branches,
    propagate_contact,
    update_setting,
)
from app.telegram.commands import (
    SETTING_KEYS,
    Command,
    CommandKind,
    parse_branch_target,
    parse_command,
    parse_setting_args,
)
from app.telegram.utils import get_identity, reply_html

logger = logging.getLogger(__name__)

Handler = Callable[[Update, ContextTypes.DEFAULT_TYPE, Command, AdminIdentity], Awaitable[None]]


# ==============================================================================
# INJECTED COLLABORATORS
# ==============================================================================

def _sessions(context: ContextTypes.DEFAULT_TYPE) -> SessionStore:
    return context.application.bot_data["sessions"]


def _open_db(context: ContextTypes.DEFAULT_TYPE):
    return context.application.bot_data["session_factory"]()


def _upload_lock(context: ContextTypes.DEFAULT_TYPE, pharmacy_id: int) -> asyncio.Lock:
    """One upload at a time per branch."""
    locks: Dict[int, asyncio.Lock] = context.application.bot_data.setdefault("upload_locks", {})
    if pharmacy_id not in locks:
        locks[pharmacy_id] = asyncio.Lock()
    return locks[pharmacy_id]


def _branch_range() -> str:
    return ", ".join(str(i) for i in range(1, settings.BRANCH_COUNT + 1))


def _require_admin(identity: AdminIdentity, command: str) -> None:
    if not identity.is_admin:
        AuditLog.log_access_denied(command, identity.user_id, "Not an admin")
        raise PermissionDenied(user_id=identity.user_id)


def _require_super_admin(identity: AdminIdentity, command: str) -> None:
    if not identity.is_super_admin:
        AuditLog.log_access_denied(command, identity.user_id, "Not super admin")
        raise PermissionDenied("❌ Bu komanda faqat super admin uchun", user_id=identity.user_id)


def _require_valid_branch(pharmacy_id: int) -> None:
    if not valid_branch(pharmacy_id):
        raise CommandError(f"❌ Dorixona raqami {_branch_range()} bo'lishi kerak")


# ==============================================================================
# PUBLIC COMMANDS
# ==============================================================================

async def handle_start(update, context, command, identity) -> None:
    """Welcome text with every branch's contacts."""
    db = _open_db(context)
    try:
        branches = list_branches(db)
    finally:
        db.close()

    lines = [
        "🏥 <b>Dorixonalar tarmog'iga xush kelibsiz!</b>\n",
        "💊 <b>Dori qidirish:</b>",
        "Qidirmoqchi bo'lgan doringiz nomini yozing\n",
        "📍 <b>Bizning filiallar:</b>\n",
    ]
    for branch in branches:
        lines.append(f"🏪 <b>{html.escape(branch.name)}</b>")
        if branch.phone:
            lines.append(f"📞 {html.escape(branch.phone)}")
        if branch.address:
            lines.append(f"📍 {html.escape(branch.address)}")
        lines.append("")
    lines.append("✍️ Dori nomini yozing va qidiruvni boshlang!")
    await reply_html(update, "\n".join(lines))


async def handle_help(update, context, command, identity) -> None:
    await reply_html(
        update,
        "📖 <b>Yordam</b>\n\n"
        "🔍 <b>Qidirish:</b>\n"
        "Dori nomini rus yoki lotin harflarida yozing\n\n"
        "💡 <b>Maslahatlar:</b>\n"
        "• To'liq nom yozmasangiz ham bo'ladi\n"
        "• Katta-kichik harf farqi yo'q\n"
        "• Bir necha so'z bilan qidiring\n\n"
        "📋 Qidiruvda barcha filiallardan natija chiqadi",
    )


async def handle_search(update, context, command, identity) -> None:
    db = _open_db(context)
    try:
        hits = search_medicines(db, command.args)
        text = render_results(hits) if hits else ""
    finally:
        db.close()

    if not hits:
        await update.message.reply_text("❌ Topilmadi")
        return
    await reply_html(update, text)


# ==============================================================================
# ADMIN PANEL & SETTINGS
# ==============================================================================

def _branch_card(branch: BranchInfo, stock: int) -> str:
    return (
        f"🏪 <b>{html.escape(branch.name)}</b>\n"
        f"📞 {html.escape(branch.phone or '-')}\n"
        f"📍 {html.escape(branch.address or '-')}\n"
        f"📦 Dorilar: {stock} ta\n"
    )


async def handle_admin(update, context, command, identity) -> None:
    _require_admin(identity, "admin")

    db = _open_db(context)
    try:
        if identity.is_super_admin:
            branches = list_branches(db)
        else:
            branches = [get_branch(db, identity.pharmacy_id)]
        stock = {branch.id: count_medicines(db, branch.id) for branch in branches}
    finally:
        db.close()

    parts = ["⚙️ <b>Admin Panel</b>\n"]
    if identity.is_super_admin:
        parts.append("👑 <b>Super Admin</b>\n")
        parts.extend(_branch_card(branch, stock[branch.id]) for branch in branches)
        parts.append(
            "<b>O'zgartirish (dorixona raqami bilan):</b>\n"
            "🏪 Nom: <code>/setname 1 Markaziy dorixona</code>\n"
            "📞 Telefon: <code>/setphone 1 +998901234567</code>\n"
            "📍 Manzil: <code>/setaddress 1 https://maps...</code>\n\n"
            "<b>Excel yuklash:</b>\n"
            "1️⃣ <code>/upload 1</code> - Dorixona 1 tanlash\n"
            "2️⃣ Excel faylni yuborish\n"
            "\n<i>Har safar /upload qilishingiz kerak</i>"
        )
    else:
        branch = branches[0]
        parts.append(_branch_card(branch, stock[branch.id]))
        parts.append(
            "<b>O'zgartirish:</b>\n"
            f"🏪 Nom: <code>/setname {html.escape(branch.name)}</code>\n"
            "📞 Telefon: <code>/setphone +998901234567</code>\n"
            "📍 Manzil: <code>/setaddress https://maps...</code>\n\n"
            "📊 Excel yuklash: Faylni yuboring"
        )
    await reply_html(update, "\n".join(parts))


def _setting_usage(kind: str, super_admin: bool) -> str:
    example = {
        CommandKind.SET_NAME: "Markaziy Dorixona",
        CommandKind.SET_PHONE: "+998901234567",
        CommandKind.SET_ADDRESS: "Toshkent, Amir Temur 123",
    }[kind]
    prefix = "1 " if super_admin else ""
    return f"To'g'ri format:\n<code>/{kind} {prefix}{example}</code>"


async def handle_setting(update, context, command, identity) -> None:
    """/setname, /setphone, /setaddress."""
    _require_admin(identity, command.kind)

    try:
        args = parse_setting_args(command.args, require_branch=identity.is_super_admin)
    except CommandError as e:
        raise CommandError(f"{e.message}\n\n{_setting_usage(command.kind, identity.is_super_admin)}") from e

    pharmacy_id = args.branch if identity.is_super_admin else identity.pharmacy_id
    _require_valid_branch(pharmacy_id)
    key = SETTING_KEYS[command.kind]

    db = _open_db(context)
    try:
        update_setting(db, key, args.value, pharmacy_id)
        propagated = propagate_contact(db, key, args.value, pharmacy_id) if key in CONTACT_KEYS else True
    finally:
        db.close()

    AuditLog.log_action("update", "setting", pharmacy_id, identity.user_id, changes={key: args.value})

    if not propagated:
        await update.message.reply_text("⚠️ Settings yangilandi, lekin dorilar yangilanmadi")

    labels = {
        "name": ("nomi", "🏪 Yangi nom", "<b>{}</b>"),
        "phone": ("telefoni", "📞 Yangi", "<code>{}</code>"),
        "address": ("manzili", "📍 Yangi", "{}"),
    }
    noun, caption, wrap = labels[key]
    await reply_html(
        update,
        f"✅ Dorixona {pharmacy_id} {noun} yangilandi!\n\n{caption}: {wrap.format(html.escape(args.value))}",
    )


# ==============================================================================
# SPREADSHEET UPLOAD
# ==============================================================================

def _upload_instructions() -> str:
    lines = [f"<code>/upload {i}</code> - Dorixona {i}" for i in range(1, settings.BRANCH_COUNT + 1)]
    return "⚠️ Avval dorixona raqamini belgilang!\n\n" + "\n".join(lines) + "\n\nKeyin Excel faylni yuboring"


async def handle_upload_select(update, context, command, identity) -> None:
    """/upload N: super admin picks the branch for the next file."""
    _require_super_admin(identity, "upload")
    try:
        target = parse_branch_target(command.args)
    except CommandError as e:
        raise CommandError(f"{e.message}\n\n{_upload_instructions()}") from e
    _require_valid_branch(target.branch)

    _sessions(context).set(identity.user_id, PendingAction.UPLOAD, target.branch)

    db = _open_db(context)
    try:
        branch = get_branch(db, target.branch)
    finally:
        db.close()

    await reply_html(
        update,
        "✅ Tayyor!\n\n"
        f"📤 Endi <b>{html.escape(branch.name)}</b> uchun Excel faylni yuboring\n\n"
        "⚠️ Faqat keyingi yuboradigan Excel fayl bu dorixonaga yuklanadi",
    )


def _not_configured_message(error: BranchNotConfigured, super_admin: bool) -> str:
    text = "⚠️ <b>Diqqat!</b>\n\n"
    if error.missing_phone:
        text += "📞 Telefon raqam kiritilmagan\n"
    if error.missing_address:
        text += "📍 Manzil kiritilmagan\n"
    text += f"\nIltimos, avval Dorixona {error.pharmacy_id} uchun ma'lumotlarni kiriting:\n"
    prefix = f"{error.pharmacy_id} " if super_admin else ""
    text += f"<code>/setphone {prefix}+998901234567</code>\n"
    text += f"<code>/setaddress {prefix}https://maps...</code>"
    return text


def _run_ingestion(
    context: ContextTypes.DEFAULT_TYPE,
    data: bytes,
    branch: BranchInfo,
    file_name: str,
    chat_id: int,
) -> IngestionOutcome:
    """Runs in a worker thread with its own DB session."""
    db = _open_db(context)
    try:
        pipeline = IngestionPipeline(db, notifier=context.application.bot_data.get("notifier"))
        return pipeline.ingest_workbook(
            data,
            phone=branch.phone,
            address=branch.address,
            pharmacy_id=branch.id,
            file_name=file_name,
            chat_id=chat_id,
        )
    finally:
        db.close()


async def handle_document(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Excel upload: resolve branch, check contacts, ingest, report."""
    identity = get_identity(update)
    document = update.message.document
    chat_id = update.effective_chat.id

    try:
        _require_admin(identity, "upload")
    except PermissionDenied as e:
        await update.message.reply_text(e.message)
        return

    if identity.is_super_admin:
        pending = _sessions(context).consume(identity.user_id, PendingAction.UPLOAD)
        if pending is None:
            await reply_html(update, _upload_instructions())
            return
        pharmacy_id = pending.target
    else:
        pharmacy_id = identity.pharmacy_id

    file_name = document.file_name or "upload.xlsx"
    if Path(file_name).suffix.lower() not in settings.ALLOWED_UPLOAD_EXTENSIONS:
        await update.message.reply_text("❌ Faqat Excel (.xlsx) fayl yuboring")
        return

    db = _open_db(context)
    try:
        branch = get_branch(db, pharmacy_id)
    finally:
        db.close()

    if not branch.ready_for_upload:
        error = BranchNotConfigured(pharmacy_id, not branch.phone, not branch.address)
        await reply_html(update, _not_configured_message(error, identity.is_super_admin))
        return

    try:
        telegram_file = await document.get_file()
        data = bytes(await telegram_file.download_as_bytearray())
    except TelegramError as e:
        logger.error(f"[UPLOAD] Download of '{file_name}' failed: {e}")
        await update.message.reply_text("❌ Fayl yuklanmadi")
        return

    logger.info(f"[UPLOAD] user_id={identity.user_id} -> pharmacy_id={pharmacy_id}: '{file_name}' ({len(data)} bytes)")
    async with _upload_lock(context, pharmacy_id):
        outcome = await asyncio.to_thread(_run_ingestion, context, data, branch, file_name, chat_id)

    summary = outcome.summary
    AuditLog.log_action(
        "upload",
        "medicines",
        pharmacy_id,
        identity.user_id,
        changes={"file": file_name, "saved": summary.saved, "ok": outcome.ok},
    )

    if isinstance(outcome.error, SheetReadError):
        await update.message.reply_text(f"❌ Excel faylni o'qishda xato: {outcome.error}")
        return
    if not outcome.ok:
        await update.message.reply_text(f"❌ DB ga yozishda xato: {outcome.error}")
        return

    if summary.saved == 0:
        text = "⚠️ Fayldan birorta ham dori o'qilmadi"
        if summary.failed_samples:
            sample = "\n".join(html.escape(row) for row in summary.failed_samples)
            text += f"\n\n🔍 Parse qilinmagan qatorlar:\n<code>{sample}</code>"
        await reply_html(update, text)


# ==============================================================================
# INVENTORY DELETION (/ahad -> /ahad_confirm)
# ==============================================================================

def _confirm_text(target_label: str) -> str:
    return (
        "⚠️ <b>DIQQAT!</b>\n\n"
        f"Siz <b>{html.escape(target_label)}</b> ning barcha dorilarini o'chirmoqchisiz\n\n"
        "🗑 Barcha dorilar o'chiriladi\n\n"
        "Bu amaliyotni <b>QAYTARIB BO'LMAYDI!</b>\n\n"
        "Davom etish uchun:\n"
        "<code>/ahad_confirm</code>\n\n"
        "Bekor qilish uchun:\n"
        "<code>/cancel</code>"
    )


def _clear_instructions() -> str:
    lines = [
        f"<code>/ahad {i}</code> - Dorixona {i} ning barcha dorilarini o'chirish"
        for i in range(1, settings.BRANCH_COUNT + 1)
    ]
    return (
        "⚠️ <b>DIQQAT!</b>\n\n"
        "Qaysi dorixonaning ma'lumotlarini o'chirmoqchisiz?\n\n"
        + "\n".join(lines)
        + "\n<code>/ahad all</code> - BARCHA dorixonalarning ma'lumotlarini o'chirish\n\n"
        "⚠️ Bu amaliyot QAYTARIB BO'LMAYDI!"
    )


async def handle_clear(update, context, command, identity) -> None:
    """/ahad arms a deletion; nothing is deleted until /ahad_confirm."""
    _require_admin(identity, "ahad")

    if not command.args:
        if identity.is_super_admin:
            await reply_html(update, _clear_instructions())
            return
        pharmacy_id = identity.pharmacy_id
    else:
        _require_super_admin(identity, "ahad")
        target = parse_branch_target(command.args, allow_all=True)
        if target.all_branches:
            _sessions(context).set(identity.user_id, PendingAction.CLEAR, ALL_BRANCHES)
            await reply_html(update, _confirm_text(f"BARCHA {settings.BRANCH_COUNT} TA DORIXONA"))
            return
        _require_valid_branch(target.branch)
        pharmacy_id = target.branch

    _sessions(context).set(identity.user_id, PendingAction.CLEAR, pharmacy_id)
    db = _open_db(context)
    try:
        branch = get_branch(db, pharmacy_id)
    finally:
        db.close()
    await reply_html(update, _confirm_text(branch.name))


async def handle_clear_confirm(update, context, command, identity) -> None:
    _require_admin(identity, "ahad_confirm")

    pending = _sessions(context).consume(identity.user_id, PendingAction.CLEAR)
    if pending is None:
        if identity.is_super_admin:
            raise CommandError("❌ Avval /ahad 1, /ahad 2, /ahad 3 yoki /ahad all ni tanlang")
        raise CommandError("❌ Avval /ahad ni yuboring")

    if not identity.is_super_admin and pending.target != identity.pharmacy_id:
        AuditLog.log_access_denied("ahad_confirm", identity.user_id, "Foreign branch")
        raise PermissionDenied(user_id=identity.user_id)

    db = _open_db(context)
    try:
        if pending.all_branches:
            deleted = delete_medicines(db)
            label = "Barcha dorixonalar"
        else:
            deleted = delete_medicines(db, pending.target)
            label = get_branch(db, pending.target).name
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"[INVENTORY] Delete for user_id={identity.user_id} failed: {e}")
        await update.message.reply_text(f"❌ O'chirishda xato: {e.__class__.__name__}")
        return
    finally:
        db.close()

    AuditLog.log_action(
        "delete",
        "medicines",
        None if pending.all_branches else pending.target,
        identity.user_id,
        changes={"deleted": deleted},
    )
    await reply_html(
        update,
        f"✅ <b>{html.escape(label)} tozalandi!</b>\n\n"
        f"🗑 O'chirilgan dorilar: <b>{deleted}</b> ta\n\n"
        "📝 Endi qaytadan Excel yuklashingiz mumkin",
    )


async def handle_cancel(update, context, command, identity) -> None:
    _sessions(context).clear(identity.user_id)
    await update.message.reply_text("✅ Bekor qilindi")


# ==============================================================================
# ROUTER
# ==============================================================================

ROUTES: Dict[str, Handler] = {
    CommandKind.START: handle_start,
    CommandKind.HELP: handle_help,
    CommandKind.ADMIN: handle_admin,
    CommandKind.SET_NAME: handle_setting,
    CommandKind.SET_PHONE: handle_setting,
    CommandKind.SET_ADDRESS: handle_setting,
    CommandKind.UPLOAD: handle_upload_select,
    CommandKind.CLEAR: handle_clear,
    CommandKind.CLEAR_CONFIRM: handle_clear_confirm,
    CommandKind.CANCEL: handle_cancel,
    CommandKind.SEARCH: handle_search,
}


async def handle_message(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Entry point for every text message."""
    if not update.message or not update.message.text:
        return

    command: Optional[Command] = parse_command(update.message.text)
    if command is None:
        return

    identity = get_identity(update)
    logger.info(f"[TELEGRAM] user_id={identity.user_id} role={identity.role} command={command.kind}")

    try:
        await ROUTES[command.kind](update, context, command, identity)
    except (CommandError, PermissionDenied) as e:
        await reply_html(update, e.message)
