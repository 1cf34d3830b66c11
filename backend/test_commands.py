"""Tests for app/telegram/commands.py"""
import pytest

from app.core.exceptions import CommandError
from app.telegram.commands import (
    CommandKind,
    parse_branch_target,
    parse_command,
    parse_setting_args,
)


class TestParseCommand:
    def test_blank_text(self):
        assert parse_command("") is None
        assert parse_command("   ") is None
        assert parse_command(None) is None

    def test_plain_text_is_search(self):
        command = parse_command("  Парацетамол 500 ")
        assert command.kind == CommandKind.SEARCH
        assert command.args == "Парацетамол 500"

    def test_known_command_with_args(self):
        command = parse_command("/setphone 2 +998901234567")
        assert command.kind == CommandKind.SET_PHONE
        assert command.args == "2 +998901234567"

    def test_bot_mention_suffix(self):
        command = parse_command("/upload@PharmacyNetworkBot 3")
        assert command.kind == CommandKind.UPLOAD
        assert command.args == "3"

    def test_confirm_is_not_read_as_ahad(self):
        assert parse_command("/ahad_confirm").kind == CommandKind.CLEAR_CONFIRM
        assert parse_command("/ahad all").kind == CommandKind.CLEAR

    def test_command_name_is_case_insensitive(self):
        assert parse_command("/START").kind == CommandKind.START

    def test_unknown_command_is_searched_as_typed(self):
        command = parse_command("/foo bar")
        assert command.kind == CommandKind.SEARCH
        assert command.args == "/foo bar"

    def test_multiline_address_kept(self):
        command = parse_command("/setaddress 1 Toshkent\nAmir Temur 1")
        assert command.args == "1 Toshkent\nAmir Temur 1"


class TestParseSettingArgs:
    def test_super_admin_needs_branch(self):
        args = parse_setting_args("2 Chilonzor filiali", require_branch=True)
        assert args.branch == 2
        assert args.value == "Chilonzor filiali"

    def test_super_admin_without_value(self):
        with pytest.raises(CommandError):
            parse_setting_args("2", require_branch=True)

    def test_super_admin_without_branch(self):
        with pytest.raises(CommandError):
            parse_setting_args("Chilonzor", require_branch=True)

    def test_branch_admin_value_may_start_with_digits(self):
        args = parse_setting_args("998901234567", require_branch=False)
        assert args.branch is None
        assert args.value == "998901234567"

    def test_branch_admin_empty(self):
        with pytest.raises(CommandError, match="Noto'g'ri format"):
            parse_setting_args("  ", require_branch=False)


class TestParseBranchTarget:
    def test_number(self):
        target = parse_branch_target("2")
        assert target.branch == 2
        assert not target.all_branches

    def test_all_only_when_allowed(self):
        assert parse_branch_target("ALL", allow_all=True).all_branches
        with pytest.raises(CommandError):
            parse_branch_target("all")

    @pytest.mark.parametrize("args", ["", "1 2", "x", "-1"])
    def test_malformed(self, args):
        with pytest.raises(CommandError):
            parse_branch_target(args, allow_all=True)
