"""Path placeholders used in the emulator catalog.

Emulator executable paths are stored relative to the user's emulation root
so the same ``emulators.json`` works on any machine::

    "executablePath": "%EMULATION%/Emulators/DuckStation/duckstation.exe"

Recognised placeholders
~~~~~~~~~~~~~~~~~~~~~~~

    ``%EMULATION%`` / ``${EMULATION}``  → configured emulation root
    ``%HOME%`` / ``${HOME}`` / ``~``     → user's home directory

Usage::

    from rominstaller.core.paths import resolve_path

    exe = resolve_path(spec.executable_path, settings.resolved_root)
"""

from __future__ import annotations

import os
from pathlib import Path


def _placeholder_map(emulation_root: Path) -> list[tuple[str, Path]]:
    return [
        ("%EMULATION%", emulation_root),
        ("${EMULATION}", emulation_root),
        ("%HOME%", Path.home()),
        ("${HOME}", Path.home()),
    ]


def resolve_path(portable: str, emulation_root: Path) -> Path:
    """Expand placeholders in *portable* and return a ``Path``.

    Forward and back slashes are both accepted as separators.  A string
    without a placeholder is returned as-is (after ``~`` / environment
    variable expansion).
    """
    text = (portable or "").strip()
    for placeholder, real in _placeholder_map(emulation_root):
        if text.upper().startswith(placeholder):
            rest = text[len(placeholder):].replace("\\", "/").lstrip("/")
            return real / rest if rest else real
    expanded = os.path.expandvars(os.path.expanduser(text))
    return Path(expanded.replace("\\", "/")) if os.sep == "/" else Path(expanded)


def bios_dir(emulation_root: Path) -> Path:
    """Folder where BIOS files are expected (``<root>/BIOS``)."""
    return emulation_root / "BIOS"
