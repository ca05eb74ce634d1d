"""Unit tests for notify/sender.py and the create-admin command in main.py."""

from __future__ import annotations

import logging

import pytest

import main as cli
from auth.store import AccountStore
from auth.tokens import authenticate_admin
from notify.sender import LogNotifier, Notifier, send_welcome_safely


class _BrokenNotifier(Notifier):
    def send_welcome(self, recipient: str, display_name: str, temporary_password: str) -> None:
        raise ConnectionError("smtp down")


class TestSendWelcomeSafely:
    def test_success(self) -> None:
        assert send_welcome_safely(LogNotifier(), "a@b.test", "A", "secret123") is True

    def test_failure_is_logged_not_raised(self, caplog) -> None:
        with caplog.at_level(logging.ERROR, logger="confreg.notify"):
            assert send_welcome_safely(_BrokenNotifier(), "a@b.test", "A", "secret123") is False
        assert "a@b.test" in caplog.text

    def test_notifier_interface_is_abstract(self) -> None:
        with pytest.raises(TypeError):
            Notifier()

    def test_log_notifier_never_logs_password(self, caplog) -> None:
        with caplog.at_level(logging.INFO, logger="confreg.notify"):
            LogNotifier().send_welcome("a@b.test", "A", "topsecret99")
        assert "topsecret99" not in caplog.text


@pytest.fixture
def cli_store(monkeypatch):
    """Point the CLI at a private shared-memory database."""
    url = "sqlite:///file:test_cli?mode=memory&cache=shared&uri=true"
    keeper = AccountStore(url)  # keeps the in-memory DB alive between CLI calls
    monkeypatch.setattr(cli, "AccountStore", lambda: AccountStore(url))
    yield keeper
    keeper.close()


def _passwords(monkeypatch, *answers: str) -> None:
    replies = iter(answers)
    monkeypatch.setattr(cli.getpass, "getpass", lambda prompt="": next(replies))


class TestCreateAdminCommand:
    _ARGS = ["create-admin", "--username", "boot", "--email", "boot@confreg.test", "--fullname", "Boot Admin"]

    def test_creates_super_admin(self, cli_store: AccountStore, monkeypatch) -> None:
        _passwords(monkeypatch, "B00t!Strap", "B00t!Strap")
        assert cli.main(self._ARGS) == 0
        admin = authenticate_admin(cli_store, "boot", "B00t!Strap")
        assert admin is not None
        assert admin.role == "super_admin"

    def test_duplicate_username(self, cli_store: AccountStore, monkeypatch) -> None:
        _passwords(monkeypatch, "B00t!Strap", "B00t!Strap", "B00t!Strap", "B00t!Strap")
        cli.main(["create-admin", "--username", "twice", "--email", "t1@confreg.test", "--fullname", "T"])
        assert cli.main(["create-admin", "--username", "twice", "--email", "t2@confreg.test", "--fullname", "T"]) == 1

    def test_mismatched_confirmation(self, cli_store: AccountStore, monkeypatch) -> None:
        _passwords(monkeypatch, "B00t!Strap", "B00t!Strip")
        args = ["create-admin", "--username", "mismatch", "--email", "m@confreg.test", "--fullname", "M"]
        assert cli.main(args) == 1
        assert cli_store.get_admin_by_username("mismatch") is None

    def test_weak_password(self, cli_store: AccountStore, monkeypatch) -> None:
        _passwords(monkeypatch, "weak", "weak")
        args = ["create-admin", "--username", "weakling", "--email", "w@confreg.test", "--fullname", "W"]
        assert cli.main(args) == 1
        assert cli_store.get_admin_by_username("weakling") is None

    def test_bad_email(self, monkeypatch) -> None:
        args = ["create-admin", "--username", "x", "--email", "nope", "--fullname", "X"]
        assert cli.main(args) == 1

    def test_no_command_prints_help(self) -> None:
        assert cli.main([]) == 2
