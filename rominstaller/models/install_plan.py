"""Data model for a planned install (the dry-run result)."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


UNKNOWN_GROUP = "unknown"


@dataclass(frozen=True)
class InstallPlan:
    """Where a source file would go and which emulator would run it.

    Produced by :class:`~rominstaller.core.planner.Planner`, never mutated,
    consumed once by :class:`~rominstaller.core.installer.InstallExecutor`.
    """

    source_path: str
    resolved_group: str = UNKNOWN_GROUP
    title: str = ""
    emulator_id: str = ""
    destination_folder: Path | None = None
    destination_file_path: Path | None = None
    needs_prompt: bool = True
    notes: tuple[str, ...] = ()

    @property
    def group_known(self) -> bool:
        return bool(self.resolved_group) and self.resolved_group != UNKNOWN_GROUP

    def to_dict(self) -> dict:
        return {
            "sourcePath": self.source_path,
            "resolvedGroup": self.resolved_group,
            "title": self.title,
            "emulatorId": self.emulator_id,
            "destinationFolder": str(self.destination_folder) if self.destination_folder else "",
            "destinationFilePath": (
                str(self.destination_file_path) if self.destination_file_path else ""
            ),
            "needsPrompt": self.needs_prompt,
            "notes": list(self.notes),
        }
