"""Install planner: decides where a file goes and which emulator runs it.

Planning never touches the disk beyond an existence check on the source
file, and never raises for data it cannot resolve.  Instead the returned
:class:`InstallPlan` has ``needs_prompt`` set and carries notes explaining
what a human (or an explicit override) has to supply.
"""

from __future__ import annotations

import os
import re

from loguru import logger

from rominstaller.core.extension_index import ExtensionIndex, path_ext
from rominstaller.core.group_ids import UNKNOWN, normalize_group, same_group
from rominstaller.models.emulator import EmulatorCatalog
from rominstaller.models.install_plan import InstallPlan
from rominstaller.models.settings import Settings

ROMS_SUBFOLDER = "ROMs"
UNTITLED = "Untitled"

_UNSAFE_TITLE_RE = re.compile(r"[^\w\-\s()\[\].]")
_WHITESPACE_RE = re.compile(r"\s+")


def sanitize_title(filename: str) -> str:
    """Folder-safe title from a file name.

    ``"Super.Mario.World (USA) [v1.1].sfc"`` → ``"Super.Mario.World (USA) [v1.1]"``.
    Keeps word characters, whitespace and ``- _ ( ) [ ] .``.
    """
    if not filename or not filename.strip():
        return UNTITLED
    name = os.path.splitext(os.path.basename(filename))[0]
    name = _UNSAFE_TITLE_RE.sub("", name)
    # "." and ".." are not folder names
    name = _WHITESPACE_RE.sub(" ", name).strip(" .")
    return name or UNTITLED


class Planner:
    """Builds :class:`InstallPlan` objects from source paths."""

    def __init__(
        self,
        settings: Settings,
        catalog: EmulatorCatalog,
        index: ExtensionIndex,
    ) -> None:
        self._settings = settings
        self._catalog = catalog
        self._index = index

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def plan_from_file(
        self,
        source_path: str | os.PathLike | None,
        group_override: str | None = None,
        emulator_override: str | None = None,
    ) -> InstallPlan:
        """Plan the install of a single file.

        Parameters
        ----------
        source_path : str or PathLike
            File to install.
        group_override : str, optional
            Group id (aliases accepted).  Trusted as given: it is normalized
            but not checked against the extension catalog.
        emulator_override : str, optional
            Emulator id; must exist in the catalog or it is dropped.
        """
        source = os.fspath(source_path) if source_path is not None else ""
        if not source.strip():
            return self._degraded(source, "Source path is empty.")
        if not os.path.isfile(source):
            return self._degraded(source, f"Source file not found: {source}")

        notes: list[str] = []

        if group_override and group_override.strip():
            group = normalize_group(group_override)
        else:
            group = self._group_from_extension(source, notes)

        title = sanitize_title(os.path.basename(source))

        if emulator_override and emulator_override.strip():
            emulator_id = self._check_emulator_override(emulator_override.strip(), group, notes)
        else:
            emulator_id = self.resolve_emulator(group)
            if not emulator_id:
                notes.append(f"No emulator preference found for group '{group}'.")

        group_folder = UNKNOWN.upper() if group == UNKNOWN else group.upper()
        folder = self._settings.resolved_root / group_folder / ROMS_SUBFOLDER / title
        destination = folder / os.path.basename(source)

        needs_prompt = group == UNKNOWN or not emulator_id
        plan = InstallPlan(
            source_path=source,
            resolved_group=group,
            title=title,
            emulator_id=emulator_id,
            destination_folder=folder,
            destination_file_path=destination,
            needs_prompt=needs_prompt,
            notes=tuple(notes),
        )
        logger.debug(
            "Planned {} → group={} emulator={} prompt={}",
            source, group, emulator_id or "-", needs_prompt,
        )
        return plan

    def resolve_emulator(self, group: str) -> str:
        """Pick an emulator for *group*: configured default, else first match.

        Returns ``""`` when the group is unknown or nothing supports it.
        """
        canon = normalize_group(group)
        if canon == UNKNOWN:
            return ""

        for key, preferred in self._settings.default_emulator_per_group.items():
            if normalize_group(key) == canon and preferred and preferred.strip():
                if self.supports(preferred, canon):
                    return self._catalog.get(preferred).id
                logger.debug("Default emulator {} does not support {}", preferred, canon)

        for spec in self._catalog.emulators:
            if any(same_group(g, canon) for g in spec.groups):
                return spec.id
        return ""

    def supports(self, emulator_id: str, group: str) -> bool:
        """Whether *emulator_id* declares support for *group* (aliases honoured)."""
        spec = self._catalog.get(emulator_id)
        if spec is None:
            return False
        return any(same_group(g, group) for g in spec.groups)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _group_from_extension(self, source: str, notes: list[str]) -> str:
        ext = path_ext(source)
        if not ext or not self._index.knows(ext):
            notes.append(
                "Extension not recognized by the file type catalog; user selection required."
            )
            return UNKNOWN

        candidates = self._index.groups_for(ext)
        if len(candidates) == 1:
            return normalize_group(candidates[0])
        if not candidates:
            notes.append(f"Extension '{ext}' is recognized but not mapped to any group.")
            return UNKNOWN
        notes.append(
            f"Extension '{ext}' matches multiple groups: {', '.join(candidates)}."
        )
        return UNKNOWN

    def _check_emulator_override(self, emulator_id: str, group: str, notes: list[str]) -> str:
        spec = self._catalog.get(emulator_id)
        if spec is None:
            notes.append(f"Emulator override '{emulator_id}' not found in catalog.")
            return ""
        if group != UNKNOWN and not self.supports(spec.id, group):
            notes.append(
                f"Emulator '{spec.id}' does not declare support for group '{group}'."
            )
        return spec.id

    def _degraded(self, source: str, message: str) -> InstallPlan:
        logger.warning("plan_from_file: {}", message)
        return InstallPlan(
            source_path=source,
            resolved_group=UNKNOWN,
            title=UNTITLED,
            emulator_id="",
            destination_folder=None,
            destination_file_path=None,
            needs_prompt=True,
            notes=(message,),
        )


def plan_from_file(
    source_path: str | os.PathLike,
    settings: Settings,
    catalog: EmulatorCatalog,
    index: ExtensionIndex,
    group_override: str | None = None,
    emulator_override: str | None = None,
) -> InstallPlan:
    """Functional shorthand for ``Planner(...).plan_from_file(...)``."""
    return Planner(settings, catalog, index).plan_from_file(
        source_path, group_override, emulator_override
    )
