"""Data model for the installed-items manifest (``manifest.json``)."""

from __future__ import annotations

import os
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from pathlib import Path


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_time(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _format_time(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def path_key(path: str | Path) -> str:
    """Comparison key for file paths (absolute, OS case rules)."""
    return os.path.normcase(os.path.abspath(str(path)))


@dataclass(frozen=True)
class CatalogEntry:
    """One installed title."""

    title: str
    group: str
    emulator_id: str
    primary_file_path: str
    """Absolute path of the ROM / cue file used as entry point."""

    containing_folder: str
    """Absolute path of the per-title folder the file was installed into."""

    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    shortcut_path: str | None = None
    installed_at: datetime = field(default_factory=_utcnow)
    last_used_at: datetime | None = None

    def touched(self, when: datetime | None = None) -> CatalogEntry:
        """Copy of this entry with ``last_used_at`` stamped."""
        return replace(self, last_used_at=when or _utcnow())

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "title": self.title,
            "group": self.group,
            "emulatorId": self.emulator_id,
            "primaryFilePath": self.primary_file_path,
            "containingFolder": self.containing_folder,
            "installedAt": _format_time(self.installed_at),
        }
        if self.shortcut_path:
            data["shortcutPath"] = self.shortcut_path
        if self.last_used_at:
            data["lastUsedAt"] = _format_time(self.last_used_at)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> CatalogEntry:
        return cls(
            id=data.get("id") or uuid.uuid4().hex,
            title=data.get("title", ""),
            group=data.get("group") or data.get("console", ""),
            emulator_id=data.get("emulatorId", ""),
            primary_file_path=data.get("primaryFilePath") or data.get("romPath", ""),
            containing_folder=data.get("containingFolder") or data.get("gameFolder", ""),
            shortcut_path=data.get("shortcutPath") or None,
            installed_at=_parse_time(data.get("installedAt")) or _utcnow(),
            last_used_at=_parse_time(data.get("lastUsedAt") or data.get("lastPlayedAt")),
        )


@dataclass
class InstalledCatalog:
    """Every entry the installer has written.

    ``id`` is the identity key.  At most one entry may reference a given
    primary file path; the install executor enforces that.
    """

    entries: list[CatalogEntry] = field(default_factory=list)
    schema_version: int = 1

    def find(self, entry_id: str) -> CatalogEntry | None:
        wanted = (entry_id or "").strip().lower()
        for entry in self.entries:
            if entry.id.lower() == wanted:
                return entry
        return None

    def find_by_primary_path(self, path: str | Path) -> CatalogEntry | None:
        key = path_key(path)
        for entry in self.entries:
            if entry.primary_file_path and path_key(entry.primary_file_path) == key:
                return entry
        return None

    def add(self, entry: CatalogEntry) -> None:
        self.entries.append(entry)

    def remove(self, entry_id: str) -> CatalogEntry | None:
        entry = self.find(entry_id)
        if entry is not None:
            self.entries = [e for e in self.entries if e.id != entry.id]
        return entry

    def replace_entry(self, entry: CatalogEntry) -> None:
        self.entries = [entry if e.id == entry.id else e for e in self.entries]

    def to_dict(self) -> dict:
        return {
            "schemaVersion": self.schema_version,
            "entries": [e.to_dict() for e in self.entries],
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> InstalledCatalog:
        data = data or {}
        raw = data.get("entries")
        if raw is None:
            raw = data.get("games", [])
        return cls(
            entries=[CatalogEntry.from_dict(item) for item in raw or [] if isinstance(item, dict)],
            schema_version=int(data.get("schemaVersion", data.get("schema", 1))),
        )
