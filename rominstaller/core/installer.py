"""Install executor — applies an :class:`InstallPlan` to disk.

The install runs as a best-effort transaction::

    Validating → Deduplicating → StagingPrimary → StagingCompanions
               → Normalizing → Persisting → Done

Nothing is ever overwritten.  Once the first directory or file has been
touched, every mutation is journalled; if a later stage fails the journal
is replayed in reverse (``RollingBack``) and the original error is raised
again unchanged.
"""

from __future__ import annotations

import os
import shutil
from enum import Enum
from pathlib import Path

from loguru import logger

from rominstaller.core.cue import collect_companions, is_cue, rewrite_cue_to_relative
from rominstaller.core.group_ids import UNKNOWN
from rominstaller.core.manifest_store import ManifestStore
from rominstaller.core.rollback import Copied, CreatedDir, Moved, Rewritten, RollbackJournal
from rominstaller.errors import (
    ConfigError,
    ConflictError,
    IOFailure,
    ResourceMissing,
    RomInstallerError,
    UsageError,
)
from rominstaller.models.install_plan import InstallPlan
from rominstaller.models.manifest import CatalogEntry, InstalledCatalog, path_key


class InstallStage(Enum):
    VALIDATING = "Validating"
    DEDUPLICATING = "Deduplicating"
    STAGING_PRIMARY = "StagingPrimary"
    STAGING_COMPANIONS = "StagingCompanions"
    NORMALIZING = "Normalizing"
    PERSISTING = "Persisting"
    ROLLING_BACK = "RollingBack"
    DONE = "Done"


def unique_path(path: Path) -> Path:
    """*path* itself if free, else ``name (1).ext``, ``name (2).ext``, …"""
    if not path.exists():
        return path
    n = 1
    while True:
        candidate = path.with_name(f"{path.stem} ({n}){path.suffix}")
        if not candidate.exists():
            return candidate
        n += 1


def _missing_dirs(folder: Path) -> list[Path]:
    """Ancestors of *folder* (itself included) that do not exist, outermost first."""
    missing: list[Path] = []
    current = folder
    while not current.exists():
        missing.append(current)
        if current.parent == current:
            break
        current = current.parent
    return list(reversed(missing))


class InstallExecutor:
    """Applies install plans against the filesystem and the manifest."""

    def __init__(self, manifest_store: ManifestStore) -> None:
        self._store = manifest_store
        self.stage = InstallStage.DONE

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def apply(self, plan: InstallPlan, move: bool = False) -> CatalogEntry:
        """Install *plan*; copy the source unless *move* is true.

        Returns the new manifest entry.  Raises :class:`UsageError`,
        :class:`ResourceMissing`, :class:`ConfigError`,
        :class:`ConflictError` or :class:`IOFailure`; the exception's
        ``details["stage"]`` names the stage that failed.
        """
        journal = RollbackJournal()
        try:
            source, destination = self._validate(plan, journal)
            catalog = self._deduplicate(destination)
            primary = self._stage_primary(source, destination, move, journal)
            self._stage_companions(source, primary.parent, move, journal)
            self._normalize(primary, journal)
            entry = self._persist(plan, primary, catalog)
        except Exception as e:
            failed = self.stage
            if isinstance(e, RomInstallerError):
                e.details.setdefault("stage", failed.value)
            if len(journal):
                self._set_stage(InstallStage.ROLLING_BACK)
                logger.warning("Install failed during {}: {}; rolling back", failed.value, e)
                journal.replay()
            else:
                logger.warning("Install rejected during {}: {}", failed.value, e)
            raise

        self._set_stage(InstallStage.DONE)
        logger.info("Installed {} [{}] → {}", entry.title, entry.group, entry.primary_file_path)
        return entry

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def _set_stage(self, stage: InstallStage) -> None:
        self.stage = stage
        logger.debug("Install stage: {}", stage.value)

    def _validate(self, plan: InstallPlan, journal: RollbackJournal) -> tuple[Path, Path]:
        self._set_stage(InstallStage.VALIDATING)
        if plan is None or not (plan.source_path or "").strip():
            raise UsageError("Install plan has no source path")

        source = Path(plan.source_path)
        if not source.is_file():
            raise ResourceMissing(f"Source file not found: {source}", path=str(source))

        if not plan.resolved_group or plan.resolved_group == UNKNOWN:
            raise ConfigError(
                "Group is unresolved; choose one before installing",
                details={"source": str(source)},
            )
        if not plan.emulator_id:
            raise ConfigError(
                "Emulator is unresolved; choose one before installing",
                details={"source": str(source), "group": plan.resolved_group},
            )
        if plan.destination_folder is None or plan.destination_file_path is None:
            raise UsageError("Install plan has no destination")

        folder = Path(plan.destination_folder)
        created = _missing_dirs(folder)
        try:
            folder.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise IOFailure(
                f"Cannot create folder {folder}: {e}", path=str(folder), operation="mkdir"
            ) from e
        for d in created:
            journal.record(CreatedDir(d))
        return source, Path(plan.destination_file_path)

    def _deduplicate(self, destination: Path) -> InstalledCatalog:
        self._set_stage(InstallStage.DEDUPLICATING)
        if destination.exists():
            raise ConflictError(
                f"A file already exists at {destination}", path=str(destination)
            )

        catalog = self._store.load()
        if self._store.prune_missing(catalog):
            self._store.save(catalog)

        existing = catalog.find_by_primary_path(destination)
        if existing is not None:
            raise ConflictError(
                f"'{existing.title}' is already installed at {destination}",
                path=str(destination),
                details={"entry_id": existing.id},
            )
        return catalog

    def _stage_primary(
        self, source: Path, destination: Path, move: bool, journal: RollbackJournal
    ) -> Path:
        self._set_stage(InstallStage.STAGING_PRIMARY)
        target = unique_path(destination)
        self._transfer(source, target, move, journal)
        return target

    def _stage_companions(
        self, source: Path, folder: Path, move: bool, journal: RollbackJournal
    ) -> None:
        companions = collect_companions(source)
        if not companions:
            return
        self._set_stage(InstallStage.STAGING_COMPANIONS)
        for companion in companions:
            target = folder / companion.name
            if target.exists():
                raise ConflictError(
                    f"Companion file already exists at {target}", path=str(target)
                )
            self._transfer(companion, target, move, journal)
        logger.info("Staged {} companion file(s) for {}", len(companions), source.name)

    def _normalize(self, primary: Path, journal: RollbackJournal) -> None:
        if not is_cue(primary):
            return
        self._set_stage(InstallStage.NORMALIZING)
        try:
            result = rewrite_cue_to_relative(primary)
        except Exception:  # noqa: BLE001
            logger.exception("Could not normalize cue sheet {}", primary)
            return
        if result is not None:
            journal.record(Rewritten(
                path=result.path,
                original=result.original,
                backup=result.backup,
                created_backup=result.created_backup,
            ))

    def _persist(
        self, plan: InstallPlan, primary: Path, catalog: InstalledCatalog
    ) -> CatalogEntry:
        self._set_stage(InstallStage.PERSISTING)
        entry = CatalogEntry(
            title=plan.title,
            group=plan.resolved_group,
            emulator_id=plan.emulator_id,
            primary_file_path=os.path.abspath(primary),
            containing_folder=os.path.abspath(primary.parent),
        )
        catalog.add(entry)
        self._store.save(catalog)
        return entry

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _transfer(source: Path, target: Path, move: bool, journal: RollbackJournal) -> None:
        if path_key(source) == path_key(target):
            raise ConflictError(f"Source and destination are the same file: {source}",
                                path=str(source))
        operation = "move" if move else "copy"
        try:
            if move:
                shutil.move(str(source), str(target))
                journal.record(Moved(source=source, destination=target))
            else:
                shutil.copy2(source, target)
                journal.record(Copied(target))
        except OSError as e:
            # a partial copy is still ours to remove
            if not move and target.exists():
                journal.record(Copied(target))
            raise IOFailure(
                f"Failed to {operation} {source} → {target}: {e}",
                path=str(source),
                operation=operation,
            ) from e
        logger.debug("{} {} → {}", operation.capitalize(), source, target)
