"""Tests for the account lifecycle operations."""

from unittest.mock import Mock

import pytest

from gh_accounts.accounts import AccountManager
from gh_accounts.errors import (
    ConflictError,
    NotFoundError,
    UnmanagedAccountError,
    ValidationError,
)
from gh_accounts.keys import AuthResult
from gh_accounts.models import SourceMode


@pytest.fixture
def git():
    return Mock()


@pytest.fixture
def manager(settings, fake_keys, git):
    return AccountManager(settings, keys=fake_keys, git=git)


class TestCreate:
    def test_creates_key_and_block(self, settings, manager, fake_keys):
        record = manager.create("work", "w@co.com")

        assert record.alias == "github-work"
        assert record.source_mode is SourceMode.UNIFIED
        fake_keys.generate_key.assert_called_once_with(
            settings.key_path_for("work"), "w@co.com", "ed25519"
        )
        fake_keys.add_to_agent.assert_called_once_with(settings.key_path_for("work"))
        (listed,) = manager.list()
        assert (listed.name, listed.email, listed.managed) == ("work", "w@co.com", True)

    def test_creates_in_split_mode_when_enabled(self, settings, manager):
        manager.modes.enable_split()

        record = manager.create("work", "w@co.com")

        assert record.source_mode is SourceMode.SPLIT
        assert (settings.split_dir / "github-work").is_file()
        assert "github-work" not in settings.config_file.read_text()

    @pytest.mark.parametrize(
        "name, email",
        [("bad name", "w@co.com"), ("work/..", "w@co.com"), ("", "w@co.com"), ("work", "not-an-email")],
    )
    def test_invalid_input_touches_nothing(self, settings, manager, fake_keys, name, email):
        with pytest.raises(ValidationError):
            manager.create(name, email)

        fake_keys.generate_key.assert_not_called()
        assert not settings.config_file.exists()

    def test_existing_key_conflicts(self, manager, make_key, fake_keys):
        make_key("work")

        with pytest.raises(ConflictError):
            manager.create("work", "w@co.com")

        fake_keys.generate_key.assert_not_called()

    def test_existing_host_conflicts(self, manager, write_config):
        write_config("Host github-work\n    HostName github.com\n")

        with pytest.raises(ConflictError):
            manager.create("work", "w@co.com")

    def test_auto_backup_taken(self, settings, manager, write_config):
        write_config("Host devbox\n")

        manager.create("work", "w@co.com")

        assert [b.auto for b in manager.backups.list()] == [True]


class TestDelete:
    def test_removes_keys_and_block(self, settings, manager, fake_keys):
        manager.create("work", "w@co.com")
        manager.create("personal", "p@co.com")

        manager.delete("work")

        assert not settings.key_path_for("work").exists()
        assert not (settings.ssh_dir / "github-work.pub").exists()
        assert [r.name for r in manager.list()] == ["personal"]
        fake_keys.remove_from_agent.assert_called_once_with(settings.key_path_for("work"))

    def test_removes_split_block(self, settings, manager):
        manager.modes.enable_split()
        manager.create("work", "w@co.com")

        manager.delete("work")

        assert not (settings.split_dir / "github-work").exists()
        assert manager.list() == []

    def test_missing_account(self, manager):
        with pytest.raises(NotFoundError):
            manager.delete("ghost")


class TestUpdate:
    def test_updates_email_and_key_comment(self, settings, manager, fake_keys):
        manager.create("work", "old@co.com")

        manager.update("work", "new@co.com")

        assert manager.get("work").email == "new@co.com"
        fake_keys.update_key_comment.assert_called_once_with(
            settings.key_path_for("work"), "new@co.com"
        )

    def test_hand_written_account_is_unmanaged(self, manager, write_config, make_key):
        make_key("manual")
        write_config("Host github-manual\n    HostName github.com\n    IdentityFile ~/.ssh/github-manual\n")

        with pytest.raises(UnmanagedAccountError):
            manager.update("manual", "new@co.com")

    def test_missing_account(self, manager):
        with pytest.raises(NotFoundError):
            manager.update("ghost", "new@co.com")

    def test_invalid_email(self, manager):
        manager.create("work", "old@co.com")

        with pytest.raises(ValidationError):
            manager.update("work", "nope")


class TestSwitchAndTest:
    def test_switch_sets_git_identity(self, manager, git):
        manager.create("work", "w@co.com")

        record = manager.switch("work", "global")

        assert record.name == "work"
        git.set_identity.assert_called_once_with("work", "w@co.com", "global")

    def test_switch_unknown_account(self, manager, git):
        with pytest.raises(NotFoundError):
            manager.switch("ghost")

        git.set_identity.assert_not_called()

    def test_probe_uses_alias(self, manager, fake_keys):
        manager.create("work", "w@co.com")

        result, _ = manager.test("work")

        assert result is AuthResult.SUCCESS
        fake_keys.probe_authentication.assert_called_once_with("github-work")


def test_export(settings, manager):
    manager.create("work", "w@co.com")

    (entry,) = manager.export()

    assert entry["account"] == "work"
    assert entry["email"] == "w@co.com"
    assert entry["host_alias"] == "github-work"
    assert entry["key_path"] == str(settings.key_path_for("work"))
    assert entry["key_exists"] is True
    assert entry["public_key"].endswith("w@co.com")
    assert entry["mode"] == "unified"
    assert entry["managed"] is True


def test_split_and_merge_take_backups(settings, manager):
    manager.create("work", "w@co.com")

    assert manager.split_all() == 1
    assert manager.list()[0].source_mode is SourceMode.SPLIT
    assert manager.merge_all() == 1
    assert manager.list()[0].source_mode is SourceMode.UNIFIED
    assert len(manager.backups.list()) >= 2
