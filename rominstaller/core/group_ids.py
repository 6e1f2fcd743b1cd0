"""Canonical group ids.

Catalogs, settings and command-line overrides may spell the same platform
differently ("psx", "PlayStation", "psone").  Every group id that enters the
planner goes through :func:`normalize_group` so they all compare equal.
"""

from __future__ import annotations

UNKNOWN = "unknown"

GROUP_ALIASES: dict[str, str] = {
    "psx": "ps1",
    "playstation": "ps1",
    "playstation1": "ps1",
    "psone": "ps1",
    "gc": "gamecube",
    "gcn": "gamecube",
    "game cube": "gamecube",
    "sfc": "snes",
    "super nintendo": "snes",
    "super famicom": "snes",
    "sega-cd": "segacd",
    "sega cd": "segacd",
    "megacd": "segacd",
    "mega-cd": "segacd",
    "md": "genesis",
    "megadrive": "genesis",
    "mega drive": "genesis",
    "gameboy advance": "gba",
    "game boy advance": "gba",
    "nintendo ds": "nds",
}


def normalize_group(group_id: str | None) -> str:
    """Return the canonical, lower-case id for *group_id*.

    Blank input maps to ``"unknown"``; ids without an alias are returned
    trimmed and lower-cased.
    """
    if group_id is None:
        return UNKNOWN
    key = group_id.strip().lower()
    if not key:
        return UNKNOWN
    return GROUP_ALIASES.get(key, key)


def same_group(a: str | None, b: str | None) -> bool:
    return normalize_group(a) == normalize_group(b)
