"""Data model for the emulator catalog (``emulators.json``)."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class EmulatorSpec:
    """One emulator the installer knows how to target."""

    id: str
    """Stable identifier (e.g. 'duckstation', 'snes9x')."""

    name: str = ""
    """Display name of the emulator (e.g. 'DuckStation')."""

    groups: tuple[str, ...] = ()
    """Group ids this emulator supports (e.g. ('ps1',), ('gba', 'gbc'))."""

    arg_template: str = '"{EMULATOR}" "{ROM}"'
    """Launch arguments; ``{ROM}`` is replaced by the installed file path
    and ``{EMULATOR}`` by the executable path."""

    executable_path: str = ""
    """Executable location; may start with ``%EMULATION%`` / ``${EMULATION}``."""

    bios_required: bool = False
    """Whether the emulator refuses to run without BIOS files."""

    bios_expected: tuple[str, ...] = ()
    """BIOS file names looked up under ``<root>/BIOS``."""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "groups": list(self.groups),
            "argTemplate": self.arg_template,
            "executablePath": self.executable_path,
            "biosRequired": self.bios_required,
            "biosExpected": list(self.bios_expected),
        }

    @classmethod
    def from_dict(cls, data: dict) -> EmulatorSpec:
        groups = data.get("groups")
        if groups is None:
            groups = data.get("consoles", [])
        return cls(
            id=str(data.get("id", "")).strip(),
            name=data.get("name", ""),
            groups=tuple(str(g) for g in groups or []),
            arg_template=data.get("argTemplate") or '"{EMULATOR}" "{ROM}"',
            executable_path=data.get("executablePath") or data.get("portablePath") or "",
            bios_required=bool(data.get("biosRequired", False)),
            bios_expected=tuple(data.get("biosExpected") or []),
        )


@dataclass
class EmulatorCatalog:
    """All emulators, in declaration order."""

    emulators: list[EmulatorSpec] = field(default_factory=list)
    schema_version: int = 1

    def get(self, emulator_id: str) -> EmulatorSpec | None:
        """Case-insensitive lookup by id."""
        wanted = (emulator_id or "").strip().lower()
        if not wanted:
            return None
        for spec in self.emulators:
            if spec.id.lower() == wanted:
                return spec
        return None

    def all_groups(self) -> list[str]:
        """Every group declared by any emulator, first-seen order."""
        seen: dict[str, str] = {}
        for spec in self.emulators:
            for g in spec.groups:
                seen.setdefault(g.lower(), g)
        return list(seen.values())

    def to_dict(self) -> dict:
        return {
            "schemaVersion": self.schema_version,
            "emulators": [e.to_dict() for e in self.emulators],
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> EmulatorCatalog:
        data = data or {}
        return cls(
            emulators=[
                EmulatorSpec.from_dict(item)
                for item in data.get("emulators", [])
                if isinstance(item, dict)
            ],
            schema_version=int(data.get("schemaVersion", data.get("schema", 1))),
        )
