"""Tests for app/services/settings_service.py"""
import pytest
from sqlalchemy.exc import OperationalError

from app.models import Medicine, Setting
from app.services.settings_service import (
    get_branch,
    get_setting,
    list_branches,
    propagate_contact,
    update_setting,
)


def test_get_missing_setting(db):
    assert get_setting(db, "phone", 1) == ""


def test_update_inserts_then_overwrites(db):
    update_setting(db, "phone", "+998900000001", 1)
    update_setting(db, "phone", "+998900000002", 1)
    assert get_setting(db, "phone", 1) == "+998900000002"
    assert db.query(Setting).filter(Setting.key == "phone").count() == 1


def test_settings_are_per_branch(db):
    update_setting(db, "name", "Markaziy", 1)
    update_setting(db, "name", "Chilonzor", 2)
    assert get_setting(db, "name", 1) == "Markaziy"
    assert get_setting(db, "name", 2) == "Chilonzor"


def test_propagate_contact_only_touches_branch(db, add_medicine):
    add_medicine("Аскорил", pharmacy_id=1, phone="old")
    add_medicine("Аскорил", pharmacy_id=2, phone="old")

    assert propagate_contact(db, "phone", "+998901111111", 1) is True
    db.expire_all()
    phones = {m.pharmacy_id: m.phone for m in db.query(Medicine).all()}
    assert phones == {1: "+998901111111", 2: "old"}


def test_propagate_rejects_non_contact_key(db):
    with pytest.raises(ValueError):
        propagate_contact(db, "name", "Markaziy", 1)


def test_propagate_failure_returns_false(db, monkeypatch):
    def boom(*args, **kwargs):
        raise OperationalError("UPDATE", {}, Exception("locked"))

    monkeypatch.setattr(db, "commit", boom)
    assert propagate_contact(db, "address", "Toshkent", 1) is False


def test_branch_info(branches):
    first = get_branch(branches, 1)
    assert first.name == "Markaziy dorixona"
    assert first.ready_for_upload

    second = get_branch(branches, 2)
    assert second.name == "Chilonzor filiali"
    assert not second.ready_for_upload


def test_unnamed_branch_gets_default_name(db):
    assert get_branch(db, 3).name == "Dorixona 3"


def test_list_branches_covers_every_branch(branches):
    assert [b.id for b in list_branches(branches)] == [1, 2, 3]
