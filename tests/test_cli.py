"""End-to-end tests of the command line entry point."""

import json
from unittest.mock import patch

import pytest

from gh_accounts import __version__
from gh_accounts.cli import build_parser, main
from gh_accounts.commands import get_commands
from gh_accounts.errors import SettingsError


@pytest.fixture
def run(settings, fake_keys):
    """Invoke main() against the temporary home with fake key tooling."""

    def _run(*argv):
        with patch("gh_accounts.cli.load_settings", return_value=settings), patch(
            "gh_accounts.accounts.SSHKeyTool", return_value=fake_keys
        ), patch("gh_accounts.accounts.GitIdentity") as git:
            code = main(list(argv))
        return code, git.return_value

    return _run


def test_parser_registers_every_command():
    parser = build_parser(get_commands())

    args = parser.parse_args(["switch", "work", "--global"])

    assert args.scope == "global"
    assert args.handler.name == "switch"


def test_no_command_prints_help(capsys):
    assert main([]) == 1
    assert "usage: gh-accounts" in capsys.readouterr().out


def test_version(run, capsys):
    code, _ = run("version")

    assert code == 0
    assert __version__ in capsys.readouterr().out


def test_create_list_export(settings, run, capsys):
    assert run("create", "work", "w@co.com")[0] == 0
    assert "created successfully" in capsys.readouterr().out

    assert run("list")[0] == 0
    assert "work" in capsys.readouterr().out

    assert run("export")[0] == 0
    (entry,) = json.loads(capsys.readouterr().out)
    assert entry["host_alias"] == "github-work"


def test_errors_exit_with_status_one(run, capsys):
    code, _ = run("create", "bad name", "w@co.com")

    assert code == 1
    assert "Invalid account name" in capsys.readouterr().out


def test_settings_error_is_reported(capsys):
    with patch("gh_accounts.cli.load_settings", side_effect=SettingsError("Settings file not found")):
        assert main(["list"]) == 1

    assert "Settings file not found" in capsys.readouterr().out


def test_delete_with_yes_flag(settings, run):
    run("create", "work", "w@co.com")

    assert run("--yes", "delete", "work")[0] == 0

    assert not settings.key_path_for("work").exists()


def test_delete_declined(settings, run):
    run("create", "work", "w@co.com")

    with patch("gh_accounts.commands.Confirm.ask", return_value=False):
        assert run("delete", "work")[0] == 0

    assert settings.key_path_for("work").exists()


def test_switch_global(run):
    run("create", "work", "w@co.com")

    code, git = run("switch", "work", "--global")

    assert code == 0
    git.set_identity.assert_called_once_with("work", "w@co.com", "global")


def test_split_mode_and_transitions(settings, run, capsys):
    run("create", "work", "w@co.com")

    assert run("split")[0] == 0
    assert (settings.split_dir / "github-work").is_file()

    capsys.readouterr()
    run("split-mode", "status")
    assert "split" in capsys.readouterr().out

    assert run("merge")[0] == 0
    assert not (settings.split_dir / "github-work").exists()

    assert run("split-mode", "on")[0] == 0
    assert run("split-mode", "off")[0] == 0
    assert settings.include_directive not in settings.config_file.read_text()


def test_doctor_exit_status(settings, run, make_key):
    run("create", "work", "w@co.com")
    assert run("doctor")[0] == 0

    settings.key_path_for("work").chmod(0o644)
    assert run("doctor")[0] == 1


def test_test_command(run, fake_keys):
    run("create", "work", "w@co.com")

    assert run("test", "work")[0] == 0
    fake_keys.probe_authentication.assert_called_once_with("github-work")


def test_backup_and_restore(settings, run):
    run("create", "work", "w@co.com")
    assert run("backup")[0] == 0
    name = sorted(p.name for p in settings.backup_dir.iterdir() if not p.name.startswith("auto_"))[0]

    settings.config_file.write_text("")

    assert run("--yes", "restore", name)[0] == 0
    assert "github-work" in settings.config_file.read_text()


def test_file_error_is_reported(run, capsys):
    run("create", "work", "w@co.com")
    capsys.readouterr()

    with patch("gh_accounts.accounts.ModeTransitionEngine.split_all", side_effect=OSError("disk full")):
        code, _ = run("split")

    assert code == 1
    assert "disk full" in capsys.readouterr().out
