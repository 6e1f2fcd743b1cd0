"""Launch an installed title through its emulator.

The command line comes from the emulator's ``argTemplate``, split the way
a POSIX shell would split it.  ``{ROM}`` and ``{EMULATOR}`` are replaced
inside each token, so a path with spaces always stays one argument::

    '"{EMULATOR}" -fullscreen "{ROM}"'
    → ['/emu/duckstation', '-fullscreen', '/roms/Crash Bandicoot.cue']
"""

from __future__ import annotations

import re
import shlex
import subprocess
from pathlib import Path

from loguru import logger

from rominstaller.core.manifest_store import ManifestStore
from rominstaller.core.paths import bios_dir, resolve_path
from rominstaller.errors import (
    ConfigError,
    LaunchError,
    ResourceMissing,
    RomInstallerError,
    StartFailure,
    UsageError,
)
from rominstaller.models.emulator import EmulatorCatalog, EmulatorSpec
from rominstaller.models.manifest import CatalogEntry
from rominstaller.models.settings import Settings

_ROM_TOKEN_RE = re.compile(r"\{ROM\}", re.IGNORECASE)
_EMU_TOKEN_RE = re.compile(r"\{EMULATOR\}", re.IGNORECASE)


def build_command(entry: CatalogEntry, spec: EmulatorSpec, emulation_root: Path) -> list[str]:
    """Argument vector for launching *entry* with *spec*."""
    exe = str(resolve_path(spec.executable_path, emulation_root))
    rom = entry.primary_file_path
    template = (spec.arg_template or "").strip()

    if not template:
        return [exe, rom]

    args = [
        _EMU_TOKEN_RE.sub(lambda _m: exe, _ROM_TOKEN_RE.sub(lambda _m: rom, token))
        for token in shlex.split(template)
    ]
    if not args or args[0] != exe:
        args.insert(0, exe)
    return args


def missing_bios(spec: EmulatorSpec, emulation_root: Path) -> list[str]:
    """Expected BIOS file names not present under ``<root>/BIOS``."""
    folder = bios_dir(emulation_root)
    return [name for name in spec.bios_expected if not (folder / name).is_file()]


class Launcher:
    """Runs installed titles and records when they were last used."""

    def __init__(
        self,
        settings: Settings,
        catalog: EmulatorCatalog,
        manifest_store: ManifestStore,
    ) -> None:
        self._settings = settings
        self._catalog = catalog
        self._store = manifest_store

    def resolve(self, entry_id: str) -> tuple[CatalogEntry, EmulatorSpec, list[str]]:
        """Validate *entry_id* and return ``(entry, spec, command)``."""
        if not entry_id or not entry_id.strip():
            raise UsageError("An entry id is required")

        entry = self._store.get(entry_id)
        if entry is None:
            raise ResourceMissing(f"No installed entry with id {entry_id}")
        if not entry.primary_file_path or not Path(entry.primary_file_path).is_file():
            raise ResourceMissing(
                f"ROM not found: {entry.primary_file_path}", path=entry.primary_file_path
            )
        if not entry.emulator_id:
            raise ConfigError(f"Entry {entry.id} has no emulator assigned")

        spec = self._catalog.get(entry.emulator_id)
        if spec is None:
            raise ConfigError(
                f"Emulator '{entry.emulator_id}' is not in the emulator catalog",
                details={"emulator_id": entry.emulator_id},
            )

        root = self._settings.resolved_root
        if not spec.executable_path:
            raise ConfigError(f"Emulator '{spec.id}' has no executable path configured")
        exe = resolve_path(spec.executable_path, root)
        if not exe.is_file():
            raise ResourceMissing(f"Emulator executable not found at {exe}", path=str(exe))

        return entry, spec, build_command(entry, spec, root)

    def launch(self, entry_id: str) -> int:
        """Start the emulator, wait for it, and return its exit code."""
        entry, spec, command = self.resolve(entry_id)
        root = self._settings.resolved_root

        absent = missing_bios(spec, root)
        if absent:
            logger.warning(
                "{} expects BIOS file(s) missing from {}: {}",
                spec.name or spec.id, bios_dir(root), ", ".join(absent),
            )

        cwd = Path(command[0]).parent
        logger.info("Launching {} (cwd: {})", command, cwd)
        try:
            proc = subprocess.run(command, cwd=str(cwd), check=False)
        except (FileNotFoundError, PermissionError) as e:
            raise StartFailure(f"Could not start {command[0]}: {e}",
                               details={"command": command}) from e
        except (OSError, subprocess.SubprocessError) as e:
            raise LaunchError(f"Launch error: {e}", details={"command": command}) from e

        logger.info("{} exited with code {}", spec.id, proc.returncode)
        self._stamp(entry)
        return proc.returncode

    def _stamp(self, entry: CatalogEntry) -> None:
        try:
            self._store.update(entry.touched())
        except RomInstallerError:
            logger.exception("Could not record last use of {}", entry.id)
