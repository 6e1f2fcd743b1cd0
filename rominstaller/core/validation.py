"""Consistency checks across settings, emulators and file types."""

from __future__ import annotations

from loguru import logger

from rominstaller.core.extension_index import ExtensionIndex, normalize_ext
from rominstaller.core.group_ids import normalize_group
from rominstaller.models.emulator import EmulatorCatalog
from rominstaller.models.filetypes import ExtensionCatalog
from rominstaller.models.settings import Settings


def validate_config(
    settings: Settings,
    emulators: EmulatorCatalog,
    filetypes: ExtensionCatalog,
) -> list[str]:
    """Return human-readable problems; an empty list means the config is consistent."""
    problems: list[str] = []
    index = ExtensionIndex(filetypes)

    for raw in settings.registered_extensions:
        ext = normalize_ext(raw)
        if ext and not index.knows(ext):
            problems.append(f"Registered extension '.{ext}' is not in the file type catalog.")

    seen: set[str] = set()
    for spec in emulators.emulators:
        key = spec.id.lower()
        if not key:
            problems.append(f"Emulator '{spec.name or '?'}' has no id.")
            continue
        if key in seen:
            problems.append(f"Duplicate emulator id '{spec.id}'.")
        seen.add(key)
        if spec.bios_required and not spec.bios_expected:
            problems.append(
                f"Emulator '{spec.id}' requires a BIOS but lists no expected BIOS files."
            )

    supported = {
        normalize_group(g) for spec in emulators.emulators for g in spec.groups
    }
    for group in filetypes.per_group:
        if normalize_group(group) not in supported:
            problems.append(f"Group '{group}' has file types but no emulator supports it.")

    for group, emulator_id in settings.default_emulator_per_group.items():
        spec = emulators.get(emulator_id)
        if spec is None:
            problems.append(
                f"Default emulator '{emulator_id}' for group '{group}' is not in the catalog."
            )
        elif normalize_group(group) not in {normalize_group(g) for g in spec.groups}:
            problems.append(
                f"Default emulator '{spec.id}' does not support group '{group}'."
            )

    for problem in problems:
        logger.warning("Config: {}", problem)
    return problems
