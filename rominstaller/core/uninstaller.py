"""Uninstall: drop a manifest entry and optionally delete its files.

Files are sent to the desktop trash by default (via ``send2trash``) so an
accidental uninstall can be undone from the file manager;
:attr:`DeletionMode.PERMANENT` removes them outright.
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from loguru import logger
from send2trash import send2trash

from rominstaller.core.cue import collect_companions, is_cue
from rominstaller.core.manifest_store import ManifestStore
from rominstaller.errors import ResourceMissing, UsageError
from rominstaller.models.manifest import CatalogEntry


class UninstallTarget(Enum):
    NONE = "none"
    """Keep every file; only forget the entry."""

    ROM_FILE = "rom"
    """Delete the primary file (plus cue tracks and backup), then its folder if it ended up empty."""

    GAME_FOLDER = "folder"
    """Delete the containing folder recursively."""


class DeletionMode(Enum):
    TRASH = "trash"
    PERMANENT = "permanent"


@dataclass
class UninstallResult:
    entry: CatalogEntry
    deleted: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class Uninstaller:
    """Removes installed titles from the manifest (and disk)."""

    def __init__(self, manifest_store: ManifestStore) -> None:
        self._store = manifest_store

    def uninstall(
        self,
        entry_id: str,
        target: UninstallTarget = UninstallTarget.NONE,
        remove_shortcut: bool = False,
        mode: DeletionMode = DeletionMode.TRASH,
    ) -> UninstallResult:
        """Forget *entry_id* and delete what *target* asks for.

        File deletion problems are collected in the result; the manifest
        entry is removed regardless.
        """
        if not entry_id or not entry_id.strip():
            raise UsageError("An entry id is required")

        catalog = self._store.load()
        entry = catalog.find(entry_id)
        if entry is None:
            raise ResourceMissing(f"No installed entry with id {entry_id}")

        result = UninstallResult(entry=entry)

        if target is UninstallTarget.ROM_FILE:
            self._delete_rom(entry, result, mode)
        elif target is UninstallTarget.GAME_FOLDER:
            self._delete_folder(entry, result, mode)

        if remove_shortcut and entry.shortcut_path:
            self._delete_path(Path(entry.shortcut_path), result, mode)

        catalog.remove(entry.id)
        self._store.save(catalog)
        logger.info(
            "Uninstalled {} ({}, {}): {} deleted, {} error(s)",
            entry.title, target.value, mode.value, len(result.deleted), len(result.errors),
        )
        return result

    # ------------------------------------------------------------------

    def _delete_rom(self, entry: CatalogEntry, result: UninstallResult, mode: DeletionMode) -> None:
        rom = Path(entry.primary_file_path)
        files = [rom]
        if is_cue(rom):
            files.extend(collect_companions(rom))
            files.append(rom.with_name(rom.name + ".bak"))
        for path in files:
            self._delete_path(path, result, mode)

        folder = Path(entry.containing_folder) if entry.containing_folder else rom.parent
        try:
            if folder.is_dir() and not any(folder.iterdir()):
                folder.rmdir()
                result.deleted.append(str(folder))
        except OSError as e:
            logger.warning("Could not remove empty folder {}: {}", folder, e)
            result.errors.append(f"{folder}: {e}")

    def _delete_folder(self, entry: CatalogEntry, result: UninstallResult, mode: DeletionMode) -> None:
        if not entry.containing_folder:
            result.errors.append("Entry has no containing folder")
            return
        self._delete_path(Path(entry.containing_folder), result, mode)

    @staticmethod
    def _delete_path(path: Path, result: UninstallResult, mode: DeletionMode) -> None:
        if not path.exists():
            logger.debug("{} already gone", path)
            return
        try:
            if mode is DeletionMode.TRASH:
                send2trash(str(path))
            elif path.is_dir():
                shutil.rmtree(path)
            else:
                path.unlink()
            result.deleted.append(str(path))
        except OSError as e:
            logger.warning("Could not delete {}: {}", path, e)
            result.errors.append(f"{path}: {e}")
