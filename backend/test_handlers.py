"""Tests for app/telegram/handlers.py, driven with stand-in Telegram objects."""
import asyncio
import io
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from openpyxl import Workbook

from app.core.config import settings
from app.models import Medicine
from app.services.admin_sessions import PendingAction, SessionStore
from app.services.settings_service import get_setting
from app.telegram.handlers import handle_document, handle_message

SUPER_ADMIN = 100
BRANCH_1_ADMIN = 200
BRANCH_2_ADMIN = 300
CUSTOMER = 999


class FakeMessage:
    def __init__(self, text=None, document=None):
        self.text = text
        self.document = document
        self.replies = []

    async def reply_text(self, text, parse_mode=None):
        self.replies.append(text)


class RecordingNotifier:
    def __init__(self):
        self.sent = []

    def notify(self, chat_id, message):
        self.sent.append((chat_id, message))
        return True


@pytest.fixture(autouse=True)
def admins(monkeypatch):
    monkeypatch.setattr(settings, "SUPER_ADMIN_ID", SUPER_ADMIN)
    monkeypatch.setattr(settings, "BRANCH_ADMINS", {BRANCH_1_ADMIN: 1, BRANCH_2_ADMIN: 2})


@pytest.fixture
def context(session_factory):
    bot_data = {
        "session_factory": session_factory,
        "sessions": SessionStore(session_factory),
        "notifier": RecordingNotifier(),
        "upload_locks": {},
    }
    return SimpleNamespace(application=SimpleNamespace(bot_data=bot_data))


def _update(user_id, message):
    return SimpleNamespace(
        message=message,
        effective_message=message,
        effective_user=SimpleNamespace(id=user_id),
        effective_chat=SimpleNamespace(id=user_id),
    )


def send_text(context, user_id, text):
    message = FakeMessage(text=text)
    asyncio.run(handle_message(_update(user_id, message), context))
    return message.replies


def send_document(context, user_id, data, file_name="stock.xlsx"):
    telegram_file = SimpleNamespace(download_as_bytearray=AsyncMock(return_value=bytearray(data)))
    document = SimpleNamespace(file_name=file_name, get_file=AsyncMock(return_value=telegram_file))
    message = FakeMessage(document=document)
    asyncio.run(handle_document(_update(user_id, message), context))
    return message.replies


def _xlsx_bytes():
    workbook = Workbook()
    sheet = workbook.active
    sheet.append(["№", "Наименование", "Код", "Приход", "Кол-во", "Цена", "Сумма", "Производитель"])
    sheet.append([1, "Парацетамол 500мг", 12, 100, 50, 12500, 625000, "Nobel"])
    sheet.append([2, "Аскорил сироп", 14, 30, 5, 30000, 150000, "Glenmark"])
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


class TestSearchAndPublicCommands:
    def test_search_hit(self, context, branches, add_medicine):
        add_medicine("Аскорил сироп", pharmacy_id=1)
        replies = send_text(context, CUSTOMER, "Askoril")
        assert len(replies) == 1
        assert "Markaziy dorixona" in replies[0]
        assert "Аскорил сироп" in replies[0]

    def test_search_miss(self, context, db):
        assert send_text(context, CUSTOMER, "Zodak") == ["❌ Topilmadi"]

    def test_start_lists_branches(self, context, branches):
        text = send_text(context, CUSTOMER, "/start")[0]
        assert "Markaziy dorixona" in text
        assert "Chilonzor filiali" in text
        assert "Dorixona 3" in text


class TestPermissions:
    @pytest.mark.parametrize("text", ["/admin", "/setphone 1 +998", "/ahad 1", "/ahad_confirm"])
    def test_customer_refused(self, context, db, text):
        assert send_text(context, CUSTOMER, text) == ["❌ Siz admin emassiz"]

    def test_branch_admin_cannot_pick_upload_branch(self, context, db):
        replies = send_text(context, BRANCH_1_ADMIN, "/upload 2")
        assert "super admin" in replies[0]

    def test_customer_upload_refused(self, context, branches):
        assert send_document(context, CUSTOMER, _xlsx_bytes()) == ["❌ Siz admin emassiz"]
        assert branches.query(Medicine).count() == 0


class TestSettings:
    def test_super_admin_sets_phone_and_propagates(self, context, db, add_medicine):
        add_medicine("Аскорил сироп", pharmacy_id=2, phone="old")
        replies = send_text(context, SUPER_ADMIN, "/setphone 2 +998907777777")

        assert "Dorixona 2 telefoni yangilandi" in replies[-1]
        assert get_setting(db, "phone", 2) == "+998907777777"
        db.expire_all()
        assert db.query(Medicine).one().phone == "+998907777777"

    def test_branch_admin_sets_own_branch(self, context, db):
        send_text(context, BRANCH_2_ADMIN, "/setname Chilonzor filiali")
        assert get_setting(db, "name", 2) == "Chilonzor filiali"
        assert get_setting(db, "name", 1) == ""

    def test_bad_format_shows_usage(self, context, db):
        text = send_text(context, SUPER_ADMIN, "/setname Markaziy")[0]
        assert "Noto'g'ri format" in text
        assert "/setname 1" in text

    def test_branch_out_of_range(self, context, db):
        text = send_text(context, SUPER_ADMIN, "/setname 7 Yangi")[0]
        assert "1, 2, 3" in text
        assert get_setting(db, "name", 7) == ""


class TestUpload:
    def test_super_admin_must_pick_branch_first(self, context, branches):
        replies = send_document(context, SUPER_ADMIN, _xlsx_bytes())
        assert "/upload 1" in replies[0]
        assert branches.query(Medicine).count() == 0

    def test_super_admin_upload_to_selected_branch(self, context, branches):
        send_text(context, SUPER_ADMIN, "/upload 1")
        replies = send_document(context, SUPER_ADMIN, _xlsx_bytes())

        assert replies == []
        meds = branches.query(Medicine).order_by(Medicine.name).all()
        assert [(m.name, m.pharmacy_id) for m in meds] == [("Аскорил сироп", 1), ("Парацетамол 500мг", 1)]
        assert meds[0].phone == "+998901234567"
        chat_id, message = context.application.bot_data["notifier"].sent[0]
        assert chat_id == SUPER_ADMIN
        assert "Saqlandi: <b>2</b>" in message

    def test_selection_is_single_use(self, context, branches):
        send_text(context, SUPER_ADMIN, "/upload 1")
        send_document(context, SUPER_ADMIN, _xlsx_bytes())
        replies = send_document(context, SUPER_ADMIN, _xlsx_bytes())
        assert "Avval dorixona raqamini belgilang" in replies[0]

    def test_branch_admin_uploads_to_own_branch(self, context, branches):
        send_document(context, BRANCH_1_ADMIN, _xlsx_bytes())
        assert {m.pharmacy_id for m in branches.query(Medicine).all()} == {1}

    def test_unconfigured_branch_refused(self, context, branches):
        text = send_document(context, BRANCH_2_ADMIN, _xlsx_bytes())[0]
        assert "Telefon raqam kiritilmagan" in text
        assert "Manzil kiritilmagan" in text
        assert branches.query(Medicine).count() == 0

    def test_non_excel_refused(self, context, branches):
        replies = send_document(context, BRANCH_1_ADMIN, b"hello", file_name="notes.txt")
        assert replies == ["❌ Faqat Excel (.xlsx) fayl yuboring"]

    def test_broken_workbook_reported(self, context, branches):
        replies = send_document(context, BRANCH_1_ADMIN, b"not a workbook")
        assert replies[0].startswith("❌ Excel faylni o'qishda xato")
        assert branches.query(Medicine).count() == 0


class TestClear:
    def test_branch_clear_needs_confirmation(self, context, db, add_medicine):
        add_medicine("Аскорил", pharmacy_id=1)
        add_medicine("Аскорил", pharmacy_id=2)

        replies = send_text(context, SUPER_ADMIN, "/ahad 1")
        assert "/ahad_confirm" in replies[0]
        assert db.query(Medicine).count() == 2

        replies = send_text(context, SUPER_ADMIN, "/ahad_confirm")
        assert "O'chirilgan dorilar: <b>1</b>" in replies[0]
        assert [m.pharmacy_id for m in db.query(Medicine).all()] == [2]

    def test_clear_all_branches(self, context, db, add_medicine):
        add_medicine("Аскорил", pharmacy_id=1)
        add_medicine("Аскорил", pharmacy_id=3)
        send_text(context, SUPER_ADMIN, "/ahad all")
        send_text(context, SUPER_ADMIN, "/ahad_confirm")
        assert db.query(Medicine).count() == 0

    def test_confirm_without_request(self, context, db, add_medicine):
        add_medicine("Аскорил", pharmacy_id=1)
        replies = send_text(context, BRANCH_1_ADMIN, "/ahad_confirm")
        assert "Avval /ahad" in replies[0]
        assert db.query(Medicine).count() == 1

    def test_branch_admin_clears_own_branch(self, context, db, add_medicine):
        add_medicine("Аскорил", pharmacy_id=1)
        add_medicine("Аскорил", pharmacy_id=2)
        send_text(context, BRANCH_1_ADMIN, "/ahad")
        send_text(context, BRANCH_1_ADMIN, "/ahad_confirm")
        assert [m.pharmacy_id for m in db.query(Medicine).all()] == [2]

    def test_cancel_drops_pending_clear(self, context, db, add_medicine):
        add_medicine("Аскорил", pharmacy_id=1)
        send_text(context, SUPER_ADMIN, "/ahad 1")
        assert send_text(context, SUPER_ADMIN, "/cancel") == ["✅ Bekor qilindi"]
        send_text(context, SUPER_ADMIN, "/ahad_confirm")
        assert db.query(Medicine).count() == 1
        assert context.application.bot_data["sessions"].get(SUPER_ADMIN) is None

    def test_upload_choice_does_not_confirm_clear(self, context, db, add_medicine):
        add_medicine("Аскорил", pharmacy_id=1)
        send_text(context, SUPER_ADMIN, "/upload 1")
        send_text(context, SUPER_ADMIN, "/ahad_confirm")
        assert db.query(Medicine).count() == 1
        assert context.application.bot_data["sessions"].get(SUPER_ADMIN).action == PendingAction.UPLOAD


class TestAdminPanel:
    def test_super_admin_sees_every_branch(self, context, branches, add_medicine):
        add_medicine("Аскорил", pharmacy_id=1)
        text = send_text(context, SUPER_ADMIN, "/admin")[0]
        assert "Super Admin" in text
        assert "Markaziy dorixona" in text and "Dorixona 3" in text
        assert "📦 Dorilar: 1 ta" in text

    def test_branch_admin_sees_own_branch(self, context, branches):
        text = send_text(context, BRANCH_2_ADMIN, "/admin")[0]
        assert "Chilonzor filiali" in text
        assert "Markaziy dorixona" not in text
