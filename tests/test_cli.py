"""Tests for the org-reminders command line."""

from __future__ import annotations

import json
from unittest.mock import patch

import pytest

from org_reminders import __version__
from org_reminders.cli import build_parser, main

NEW_ORG = "* Errands\n** TODO Pick up parcel\n"


@pytest.fixture(autouse=True)
def isolated(tmp_path, monkeypatch):
    """Keep config discovery, .env loading and logging out of the way."""
    for key in (
        "ORG_REMINDERS_CONFIG",
        "ORG_REMINDERS_FILE",
        "ORG_REMINDERS_STORE",
        "ORG_REMINDERS_INTERVAL",
        "ORG_REMINDERS_DEBUG",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.chdir(tmp_path)
    with patch("org_reminders.cli.setup_logging"), patch(
        "org_reminders.cli.load_dotenv"
    ):
        yield


@pytest.fixture
def org_file(tmp_path):
    path = tmp_path / "reminders.org"
    path.write_text(NEW_ORG, encoding="utf-8")
    return path


@pytest.fixture
def store_file(tmp_path):
    return tmp_path / "store.json"


def _sync(org_file, store_file, *extra):
    return main(["--store", str(store_file), "sync", str(org_file), *extra])


class TestParser:
    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_sync_type_choices(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["sync", "a.org", "--type", "weekly"])

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc:
            build_parser().parse_args(["--version"])
        assert exc.value.code == 0
        assert __version__ in capsys.readouterr().out


class TestSync:
    def test_pushes_new_entities(self, org_file, store_file, capsys):
        assert _sync(org_file, store_file) == 0

        out = capsys.readouterr().out
        assert out.startswith("Sync report (once)")
        data = json.loads(store_file.read_text(encoding="utf-8"))
        assert [x["title"] for x in data["lists"]] == ["Errands"]
        assert [x["title"] for x in data["reminders"]] == ["Pick up parcel"]
        text = org_file.read_text(encoding="utf-8")
        assert ":LIST-ID:" in text
        assert ":EXTERNAL-ID:" in text

    def test_dry_run_touches_nothing(self, org_file, store_file, capsys):
        assert _sync(org_file, store_file, "--dry-run") == 0

        out = capsys.readouterr().out
        assert out.startswith("DRY RUN -- No changes will be made")
        assert "[ADD REMINDERS]" in out
        assert not store_file.exists()
        assert org_file.read_text(encoding="utf-8") == NEW_ORG

    def test_json_output(self, org_file, store_file, capsys):
        assert _sync(org_file, store_file, "--json") == 0

        data = json.loads(capsys.readouterr().out)
        assert data["mode"] == "once"
        assert data["counts"]["added_store"] == 2

    def test_mirror_rewrites_file(self, org_file, store_file, capsys):
        assert _sync(org_file, store_file) == 0
        org_file.write_text("* Scratch\n", encoding="utf-8")

        assert _sync(org_file, store_file, "--type", "all") == 0

        text = org_file.read_text(encoding="utf-8")
        assert "Errands" in text
        assert "Pick up parcel" in text
        assert "Scratch" not in text

    def test_file_from_env(self, org_file, store_file, monkeypatch):
        monkeypatch.setenv("ORG_REMINDERS_FILE", str(org_file))
        monkeypatch.setenv("ORG_REMINDERS_STORE", str(store_file))

        assert main(["sync"]) == 0
        assert store_file.exists()

    def test_missing_org_file(self, tmp_path, store_file, capsys):
        code = _sync(tmp_path / "nope.org", store_file)

        assert code == 1
        assert "Error:" in capsys.readouterr().err

    def test_no_org_file_configured(self, capsys):
        assert main(["sync"]) == 1
        assert "Org file not found" in capsys.readouterr().err

    def test_bad_interval(self, org_file, store_file, monkeypatch, capsys):
        monkeypatch.setenv("ORG_REMINDERS_INTERVAL", "soon")

        assert _sync(org_file, store_file) == 1
        assert "ORG_REMINDERS_INTERVAL" in capsys.readouterr().err


class TestUpdateHash:
    def test_stamps_edited_items(self, org_file, capsys):
        assert main(["update-hash", str(org_file)]) == 0

        out = capsys.readouterr().out
        assert out.startswith("Sync report (update-hash)")
        text = org_file.read_text(encoding="utf-8")
        assert ":HASH:" in text
        assert ":LAST-MODIFIED:" in text


class TestInitConfig:
    def test_creates_starter_config(self, tmp_path, capsys):
        assert main(["init-config"]) == 0

        path = tmp_path / ".org_reminders" / "config.yml"
        assert path.is_file()
        assert str(path) in capsys.readouterr().out
