"""Data model for user settings (``settings.json``)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


DEFAULT_REGISTERED_EXTENSIONS = [
    ".iso", ".bin", ".cue", ".sfc", ".smc", ".gba", ".nds", ".zip", ".7z",
]


def default_emulation_root() -> Path:
    """``~/Emulation`` — used when no root is configured."""
    return Path.home() / "Emulation"


@dataclass
class Settings:
    """Values the planner and launcher read from the user's settings."""

    emulation_root: str = ""
    """Root folder for installed content; empty means :func:`default_emulation_root`."""

    default_emulator_per_group: dict[str, str] = field(default_factory=dict)
    """Preferred emulator id per group id (e.g. ``{"ps2": "pcsx2"}``)."""

    registered_extensions: list[str] = field(
        default_factory=lambda: list(DEFAULT_REGISTERED_EXTENSIONS)
    )
    """Extensions a shell integration would offer 'Install ROM' for."""

    language: str = "en_US"
    schema_version: int = 1

    @property
    def resolved_root(self) -> Path:
        root = (self.emulation_root or "").strip()
        return Path(root).expanduser() if root else default_emulation_root()

    def to_dict(self) -> dict:
        return {
            "schemaVersion": self.schema_version,
            "emulationRoot": self.emulation_root,
            "defaultEmulatorPerGroup": dict(self.default_emulator_per_group),
            "registeredExtensions": list(self.registered_extensions),
            "language": self.language,
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> Settings:
        data = data or {}
        defaults = data.get("defaultEmulatorPerGroup")
        if defaults is None:
            defaults = data.get("defaultEmulatorPerConsole") or {}
        registered = data.get("registeredExtensions")
        return cls(
            emulation_root=data.get("emulationRoot") or "",
            default_emulator_per_group={str(k): str(v) for k, v in defaults.items()},
            registered_extensions=(
                list(registered) if registered is not None
                else list(DEFAULT_REGISTERED_EXTENSIONS)
            ),
            language=data.get("language") or "en_US",
            schema_version=int(data.get("schemaVersion", data.get("schema", 1))),
        )
