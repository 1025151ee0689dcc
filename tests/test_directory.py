from gh_accounts.directory import AccountDirectory
from gh_accounts.models import SourceMode
from gh_accounts.writer import build_host_block


def unified_block(settings, name, email):
    return build_host_block(name, email, settings)


def write_split(settings, name, email):
    settings.split_dir.mkdir(parents=True, exist_ok=True)
    path = settings.split_file_for(settings.host_alias_for(name))
    path.write_text(build_host_block(name, email, settings))
    return path


def test_list_empty_when_nothing_exists(settings):
    directory = AccountDirectory(settings)

    assert directory.list() == []
    assert directory.split_files() == []
    assert directory.is_split_mode_enabled() is False


def test_unified_records_come_before_split_records(settings, write_config):
    write_config(unified_block(settings, "work", "w@co.com"))
    write_split(settings, "personal", "p@co.com")

    records = AccountDirectory(settings).list()

    assert [(r.name, r.source_mode) for r in records] == [
        ("work", SourceMode.UNIFIED),
        ("personal", SourceMode.SPLIT),
    ]


def test_unified_wins_when_alias_in_both(settings, write_config):
    write_config(unified_block(settings, "work", "unified@co.com"))
    write_split(settings, "work", "split@co.com")
    directory = AccountDirectory(settings)

    (record,) = directory.list()

    assert record.email == "unified@co.com"
    assert record.source_mode is SourceMode.UNIFIED
    assert directory.duplicate_aliases() == ["github-work"]
    assert directory.all_aliases() == {"github-work"}


def test_list_aliases_subset_of_all_aliases(settings, write_config):
    write_config(
        unified_block(settings, "a", "a@co.com") + "\n" + unified_block(settings, "b", "b@co.com")
    )
    write_split(settings, "b", "b2@co.com")
    write_split(settings, "c", "c@co.com")
    directory = AccountDirectory(settings)

    listed = [record.alias for record in directory.list()]

    assert listed == ["github-a", "github-b", "github-c"]
    assert len(listed) == len(set(listed))
    assert set(listed) <= directory.all_aliases()


def test_split_files_sorted_and_filtered(settings):
    write_split(settings, "zeta", "z@co.com")
    write_split(settings, "alpha", "a@co.com")
    (settings.split_dir / "README").write_text("not a config\n")

    files = AccountDirectory(settings).split_files()

    assert [path.name for path in files] == ["github-alpha", "github-zeta"]


def test_find(settings, write_config):
    write_config(unified_block(settings, "work", "w@co.com"))
    directory = AccountDirectory(settings)

    assert directory.find("work").alias == "github-work"
    assert directory.find("missing") is None


def test_duplicate_within_unified_file(settings, write_config):
    block = unified_block(settings, "work", "w@co.com")
    write_config(block + "\n" + block)

    directory = AccountDirectory(settings)

    assert len(directory.list()) == 1
    assert directory.alias_occurrences() == [
        ("github-work", SourceMode.UNIFIED),
        ("github-work", SourceMode.UNIFIED),
    ]
    assert directory.duplicate_aliases() == ["github-work"]


class TestHostExists:
    """Host detection looks at raw Host lines, not only GitHub records."""

    def test_alias_in_unified_file(self, settings, write_config):
        write_config("Host github-work\n    HostName example.org\n")

        assert AccountDirectory(settings).host_exists("work") is True

    def test_alias_in_split_dir(self, settings):
        write_split(settings, "work", "w@co.com")

        assert AccountDirectory(settings).host_exists("work") is True

    def test_absent(self, settings, write_config):
        write_config("Host github-other\n    HostName github.com\n")

        assert AccountDirectory(settings).host_exists("work") is False

    def test_key_exists(self, settings, make_key):
        make_key("work")
        directory = AccountDirectory(settings)

        assert directory.key_exists("work") is True
        assert directory.key_exists("other") is False


def test_split_mode_detected_from_directive(settings, write_config):
    write_config(f"{settings.include_directive}\n\nHost x\n")

    assert AccountDirectory(settings).is_split_mode_enabled() is True
