"""Data model for the extension catalog (``filetypes.json``).

Example::

    {
        "schemaVersion": 1,
        "globalPriority": ["iso", "cue", "bin", "sfc", "smc", "gba"],
        "perGroup": {
            "ps1":    ["cue", "bin", "iso"],
            "segacd": ["bin", "cue"],
            "snes":   ["sfc", "smc"]
        },
        "multiMap": {
            "bin": ["ps1", "segacd"]
        }
    }

Extensions are stored without the leading dot.  ``perGroup`` is the
authoritative membership list; ``multiMap`` only declares overlaps.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class ExtensionCatalog:
    """Raw extension → group mapping as loaded from disk."""

    global_priority: list[str] = field(default_factory=list)
    per_group: dict[str, list[str]] = field(default_factory=dict)
    multi_map: dict[str, list[str]] | None = None
    schema_version: int = 1

    def to_dict(self) -> dict:
        data: dict = {
            "schemaVersion": self.schema_version,
            "globalPriority": list(self.global_priority),
            "perGroup": {k: list(v) for k, v in self.per_group.items()},
        }
        if self.multi_map is not None:
            data["multiMap"] = {k: list(v) for k, v in self.multi_map.items()}
        return data

    @classmethod
    def from_dict(cls, data: dict | None) -> ExtensionCatalog:
        data = data or {}
        per_group = data.get("perGroup")
        if per_group is None:
            per_group = data.get("perConsole", {})
        multi_map = data.get("multiMap")
        return cls(
            global_priority=[str(e) for e in data.get("globalPriority", []) or []],
            per_group={str(k): list(v or []) for k, v in (per_group or {}).items()},
            multi_map=(
                {str(k): list(v or []) for k, v in multi_map.items()}
                if isinstance(multi_map, dict) else None
            ),
            schema_version=int(data.get("schemaVersion", data.get("schema", 1))),
        )
