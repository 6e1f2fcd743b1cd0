"""Cue sheet helpers.

A ``.cue`` file lists the track images (``.bin``) it plays::

    FILE "C:\\Rips\\Game (Track 1).bin" BINARY
      TRACK 01 MODE2/2352
        INDEX 01 00:00:00

After the tracks are installed beside the sheet, absolute or foreign
relative paths in the ``FILE`` lines no longer resolve, so they are
rewritten to bare file names.  Everything else in the sheet is kept
byte-for-byte.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from loguru import logger

CUE_EXT = ".cue"
COMPANION_EXT = ".bin"

# an optional UTF-8 byte order mark, seen as three latin-1 chars or as U+FEFF
_FILE_LINE_RE = re.compile(
    r'^((?:\xef\xbb\xbf|\ufeff)?[ \t]*FILE[ \t]+")([^"\r\n]*)(")',
    re.IGNORECASE | re.MULTILINE,
)

# single-byte and lossless for any input
_ENCODING = "latin-1"


def is_cue(path: Path) -> bool:
    return path.suffix.lower() == CUE_EXT


def collect_companions(source: Path) -> list[Path]:
    """Sibling ``*.bin`` files of a cue sheet, sorted by name.

    Only the sheet's own directory is searched; the match is
    case-insensitive.  Non-cue sources have no companions.
    """
    if not is_cue(source):
        return []
    folder = source.parent
    if not folder.is_dir():
        return []
    found = [
        p for p in folder.iterdir()
        if p.is_file() and p.suffix.lower() == COMPANION_EXT
    ]
    return sorted(found, key=lambda p: p.name.lower())


def _base_name(token: str) -> str:
    return re.split(r"[\\/]", token)[-1]


def relativize_cue_text(text: str) -> str:
    """Replace every quoted ``FILE`` path in *text* with its base name."""
    return _FILE_LINE_RE.sub(lambda m: m.group(1) + _base_name(m.group(2)) + m.group(3), text)


@dataclass(frozen=True)
class CueRewrite:
    """Outcome of :func:`rewrite_cue_to_relative` when the file changed."""

    path: Path
    original: bytes
    backup: Path
    created_backup: bool


def rewrite_cue_to_relative(path: Path) -> CueRewrite | None:
    """Rewrite *path* in place so ``FILE`` lines use bare names.

    Returns ``None`` when nothing had to change.  Before the first rewrite
    the original sheet is saved as ``<name>.cue.bak``; an existing backup
    is left alone.
    """
    original = path.read_bytes()
    text = original.decode(_ENCODING)
    updated = relativize_cue_text(text)
    if updated == text:
        logger.debug("Cue sheet {} already uses relative paths", path)
        return None

    backup = path.with_name(path.name + ".bak")
    created_backup = False
    if not backup.exists():
        backup.write_bytes(original)
        created_backup = True

    path.write_bytes(updated.encode(_ENCODING))
    logger.info("Rewrote FILE entries in {} to relative names", path)
    return CueRewrite(path=path, original=original, backup=backup, created_backup=created_backup)
