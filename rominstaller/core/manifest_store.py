"""Persistence of the installed-items manifest (``manifest.json``)."""

from __future__ import annotations

import os
from pathlib import Path

from loguru import logger

from rominstaller.core.json_io import load_json, save_json_atomic
from rominstaller.errors import ConfigError
from rominstaller.models.manifest import CatalogEntry, InstalledCatalog


class ManifestStore:
    """Loads, saves and prunes the manifest file at *path*.

    Not safe against concurrent writers in other processes: the only
    guarantee is that each save replaces the file atomically.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def load(self) -> InstalledCatalog:
        """Read the manifest; an absent file yields an empty catalog.

        A file that exists but cannot be parsed raises :class:`ConfigError`
        so that it is never silently replaced by an empty one.
        """
        data = load_json(self._path)
        if data is None:
            return InstalledCatalog()
        if not isinstance(data, dict):
            raise ConfigError(
                f"Manifest {self._path} does not contain a JSON object",
                details={"file_path": str(self._path)},
            )
        catalog = InstalledCatalog.from_dict(data)
        logger.debug("Loaded {} manifest entries from {}", len(catalog.entries), self._path)
        return catalog

    def save(self, catalog: InstalledCatalog) -> None:
        save_json_atomic(self._path, catalog.to_dict())
        logger.debug("Saved {} manifest entries to {}", len(catalog.entries), self._path)

    @staticmethod
    def prune_missing(catalog: InstalledCatalog) -> list[CatalogEntry]:
        """Drop entries whose primary file no longer exists; return them."""
        kept: list[CatalogEntry] = []
        removed: list[CatalogEntry] = []
        for entry in catalog.entries:
            if entry.primary_file_path and os.path.isfile(entry.primary_file_path):
                kept.append(entry)
            else:
                removed.append(entry)
        if removed:
            catalog.entries = kept
            for entry in removed:
                logger.info("Pruned stale entry {} ({})", entry.title, entry.primary_file_path)
        return removed

    def prune(self) -> list[CatalogEntry]:
        """Load, prune and save (only when something was removed)."""
        catalog = self.load()
        removed = self.prune_missing(catalog)
        if removed:
            self.save(catalog)
        return removed

    def get(self, entry_id: str) -> CatalogEntry | None:
        return self.load().find(entry_id)

    def remove(self, entry_id: str) -> CatalogEntry | None:
        """Remove one entry by id and save; ``None`` when it was not there."""
        catalog = self.load()
        entry = catalog.remove(entry_id)
        if entry is not None:
            self.save(catalog)
        return entry

    def update(self, entry: CatalogEntry) -> bool:
        """Replace the entry with the same id and save.

        Returns ``False`` (and writes nothing) when no such entry exists.
        """
        catalog = self.load()
        if catalog.find(entry.id) is None:
            return False
        catalog.replace_entry(entry)
        self.save(catalog)
        return True
