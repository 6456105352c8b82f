"""
Tests for the JSON-backed installation store.
"""
import json
import os
from datetime import datetime, timezone

import pytest

from vyltrex_cli.exceptions import StorageError
from vyltrex_cli.models.package import InstallationRecord
from vyltrex_cli.storage.content_store import InstallationStore


def make_record(tmp_path, package_id="g1", entry_point="Game.exe"):
    install_dir = tmp_path / "Games" / package_id
    return InstallationRecord(
        package_id=package_id,
        install_dir=install_dir,
        resolved_base_dir=install_dir / "wrapper",
        entry_point_file=entry_point,
        installed_at=datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc),
    )


class TestLoad:
    def test_missing_file_loads_empty(self, tmp_path):
        store = InstallationStore(tmp_path / "Meta" / "installed.json")
        assert store.load() == {}
        assert not store.is_installed("g1")

    def test_corrupt_json_loads_empty(self, tmp_path):
        state_file = tmp_path / "installed.json"
        state_file.write_text("{ not json", encoding="utf-8")
        assert InstallationStore(state_file).load() == {}

    def test_non_object_document_loads_empty(self, tmp_path):
        state_file = tmp_path / "installed.json"
        state_file.write_text("[1, 2, 3]", encoding="utf-8")
        assert InstallationStore(state_file).load() == {}

    def test_invalid_record_is_skipped(self, tmp_path):
        state_file = tmp_path / "installed.json"
        good = make_record(tmp_path, "good").to_document()
        state_file.write_text(
            json.dumps({"good": good, "bad": {"install_dir": 5}, "worse": "text"}),
            encoding="utf-8",
        )
        records = InstallationStore(state_file).load()
        assert list(records) == ["good"]
        assert records["good"].entry_point_file == "Game.exe"


class TestSave:
    def test_set_persists_record(self, tmp_path):
        state_file = tmp_path / "Meta" / "installed.json"
        record = make_record(tmp_path)
        InstallationStore(state_file).set("g1", record)

        reloaded = InstallationStore(state_file).get("g1")
        assert reloaded == record
        assert reloaded.executable_path == record.resolved_base_dir / "Game.exe"

    def test_document_layout(self, tmp_path):
        state_file = tmp_path / "installed.json"
        InstallationStore(state_file).set("g1", make_record(tmp_path))
        document = json.loads(state_file.read_text(encoding="utf-8"))
        assert set(document) == {"g1"}
        assert set(document["g1"]) == {
            "install_dir",
            "resolved_base_dir",
            "entry_point_file",
            "installed_at",
        }
        assert document["g1"]["installed_at"].startswith("2024-05-01T12:30:00")

    def test_no_temporary_files_left_behind(self, tmp_path):
        state_file = tmp_path / "installed.json"
        store = InstallationStore(state_file)
        store.set("g1", make_record(tmp_path, "g1"))
        store.set("g2", make_record(tmp_path, "g2"))
        assert [p.name for p in tmp_path.iterdir()] == ["installed.json"]

    def test_failed_write_keeps_previous_document(self, tmp_path, monkeypatch):
        state_file = tmp_path / "installed.json"
        store = InstallationStore(state_file)
        store.set("g1", make_record(tmp_path, "g1"))
        before = state_file.read_text(encoding="utf-8")

        def broken_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr(os, "replace", broken_replace)
        with pytest.raises(StorageError, match="disk full"):
            store.set("g2", make_record(tmp_path, "g2"))
        monkeypatch.undo()

        assert state_file.read_text(encoding="utf-8") == before
        assert [p.name for p in tmp_path.iterdir()] == ["installed.json"]


class TestRemove:
    def test_remove_existing(self, tmp_path):
        store = InstallationStore(tmp_path / "installed.json")
        store.set("g1", make_record(tmp_path, "g1"))
        store.set("g2", make_record(tmp_path, "g2"))

        assert store.remove("g1") is True
        assert list(store.load()) == ["g2"]

    def test_remove_unknown_is_noop(self, tmp_path):
        state_file = tmp_path / "installed.json"
        store = InstallationStore(state_file)
        assert store.remove("missing") is False
        assert not state_file.exists()


class TestEnsureDocument:
    def test_writes_empty_document_when_missing(self, tmp_path):
        state_file = tmp_path / "Meta" / "installed.json"
        InstallationStore(state_file).ensure_document()
        assert json.loads(state_file.read_text(encoding="utf-8")) == {}

    def test_keeps_existing_records(self, tmp_path):
        state_file = tmp_path / "installed.json"
        store = InstallationStore(state_file)
        store.set("g1", make_record(tmp_path))
        store.ensure_document()
        assert store.is_installed("g1")
