"""
Tests for JSON persistence and the manifest store.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import patch

import pytest

from conftest import write_file
from rominstaller.core.json_io import load_json, save_json_atomic, strip_comments
from rominstaller.core.manifest_store import ManifestStore
from rominstaller.errors import ConfigError, IOFailure
from rominstaller.models.manifest import CatalogEntry, InstalledCatalog


def _entry(path: Path, title: str = "Game") -> CatalogEntry:
    return CatalogEntry(
        title=title, group="snes", emulator_id="snes9x",
        primary_file_path=str(path), containing_folder=str(path.parent),
    )


class TestJsonIO:

    def test_strip_comments(self):
        text = """{
            // line comment
            "a": 1, /* block
            comment */ "b": [1, 2,],
        }"""
        assert json.loads(strip_comments(text)) == {"a": 1, "b": [1, 2]}

    def test_urls_survive(self, tmp_path: Path):
        path = tmp_path / "x.json"
        path.write_text('{"url": "http://example.com/a"}', encoding="utf-8")
        assert load_json(path) == {"url": "http://example.com/a"}

    def test_missing_file_is_none(self, tmp_path: Path):
        assert load_json(tmp_path / "absent.json") is None

    def test_invalid_json_raises_config_error(self, tmp_path: Path):
        path = write_file(tmp_path / "bad.json", b"{ not json")
        with pytest.raises(ConfigError) as exc:
            load_json(path)
        assert exc.value.details["file_path"] == str(path)

    def test_bom_is_accepted(self, tmp_path: Path):
        path = write_file(tmp_path / "bom.json", b'\xef\xbb\xbf{"a": 1}')
        assert load_json(path) == {"a": 1}

    def test_atomic_save_leaves_no_temp_files(self, tmp_path: Path):
        target = tmp_path / "out" / "data.json"
        save_json_atomic(target, {"x": 1})
        save_json_atomic(target, {"x": 2})
        assert json.loads(target.read_text(encoding="utf-8")) == {"x": 2}
        assert [p.name for p in target.parent.iterdir()] == ["data.json"]

    def test_failed_replace_keeps_old_file(self, tmp_path: Path):
        target = tmp_path / "data.json"
        save_json_atomic(target, {"x": 1})
        with patch("rominstaller.core.json_io.os.replace", side_effect=OSError("locked")):
            with pytest.raises(IOFailure):
                save_json_atomic(target, {"x": 2})
        assert json.loads(target.read_text(encoding="utf-8")) == {"x": 1}
        assert [p.name for p in tmp_path.iterdir()] == ["data.json"]


class TestManifestStore:

    def test_absent_manifest_is_empty(self, store: ManifestStore):
        assert store.load().entries == []

    def test_corrupt_manifest_is_not_replaced(self, store: ManifestStore):
        write_file(store.path, b"{ oops")
        with pytest.raises(ConfigError):
            store.load()
        with pytest.raises(ConfigError):
            store.prune()
        assert store.path.read_bytes() == b"{ oops"

    def test_non_object_manifest(self, store: ManifestStore):
        write_file(store.path, b"[]")
        with pytest.raises(ConfigError):
            store.load()

    def test_round_trip_keeps_timestamps(self, store: ManifestStore, tmp_path: Path):
        rom = write_file(tmp_path / "a.sfc")
        played = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)
        entry = _entry(rom).touched(played)
        store.save(InstalledCatalog(entries=[entry]))

        loaded = store.load().entries[0]
        assert loaded == entry
        raw = json.loads(store.path.read_text(encoding="utf-8"))
        assert raw["schemaVersion"] == 1
        assert raw["entries"][0]["lastUsedAt"].startswith("2024-05-01T12:30:00")
        assert raw["entries"][0]["primaryFilePath"] == str(rom)

    def test_legacy_manifest_keys(self, store: ManifestStore, tmp_path: Path):
        rom = write_file(tmp_path / "a.iso")
        write_file(store.path, json.dumps({
            "schema": 1,
            "games": [{
                "id": "abc", "title": "A", "console": "ps2", "emulatorId": "pcsx2",
                "romPath": str(rom), "gameFolder": str(tmp_path),
                "installedAt": "2024-01-01T00:00:00Z", "lastPlayedAt": None,
            }],
        }).encode("utf-8"))

        entry = store.load().find("ABC")
        assert entry is not None
        assert entry.group == "ps2"
        assert entry.primary_file_path == str(rom)
        assert entry.installed_at == datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert entry.last_used_at is None

    def test_prune_is_idempotent(self, store: ManifestStore, tmp_path: Path):
        keep = write_file(tmp_path / "keep.sfc")
        store.save(InstalledCatalog(entries=[
            _entry(keep, "Keep"),
            _entry(tmp_path / "gone.sfc", "Gone"),
        ]))

        removed = store.prune()
        assert [e.title for e in removed] == ["Gone"]
        after_first = store.path.read_bytes()

        assert store.prune() == []
        assert store.path.read_bytes() == after_first
        assert [e.title for e in store.load().entries] == ["Keep"]

    def test_prune_missing_in_memory(self, tmp_path: Path):
        catalog = InstalledCatalog(entries=[_entry(tmp_path / "gone.sfc")])
        assert len(ManifestStore.prune_missing(catalog)) == 1
        assert catalog.entries == []
        assert ManifestStore.prune_missing(catalog) == []

    def test_remove_and_update(self, store: ManifestStore, tmp_path: Path):
        a = _entry(write_file(tmp_path / "a.sfc"), "A")
        b = _entry(write_file(tmp_path / "b.sfc"), "B")
        store.save(InstalledCatalog(entries=[a, b]))

        assert store.update(b.touched())
        assert store.get(b.id).last_used_at is not None
        assert store.remove(a.id) == a
        assert store.remove(a.id) is None
        assert [e.title for e in store.load().entries] == ["B"]

    def test_update_unknown_entry_writes_nothing(self, store: ManifestStore, tmp_path: Path):
        assert not store.update(_entry(tmp_path / "x.sfc"))
        assert not store.path.exists()

    def test_find_by_primary_path_normalizes(self, tmp_path: Path):
        rom = tmp_path / "dir" / "a.sfc"
        catalog = InstalledCatalog(entries=[_entry(rom)])
        assert catalog.find_by_primary_path(tmp_path / "dir" / ".." / "dir" / "a.sfc") is not None
        assert catalog.find_by_primary_path(tmp_path / "b.sfc") is None
