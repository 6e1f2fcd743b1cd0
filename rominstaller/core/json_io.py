"""JSON helpers shared by the config loader and the manifest store.

User-editable files (settings, emulators, filetypes) may contain ``//``
line comments, ``/* */`` block comments and trailing commas; they are
stripped before parsing.  Writes go to a temporary sibling file which is
fsynced and then swapped in with :func:`os.replace`, so a crash never
leaves a half-written file behind.
"""

from __future__ import annotations

import json
import os
import re
import tempfile
from pathlib import Path
from typing import Any

from loguru import logger

from rominstaller.errors import ConfigError, IOFailure

_BLOCK_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)
_LINE_COMMENT_RE = re.compile(r"^\s*//.*?$", re.MULTILINE)
_TRAILING_COMMA_RE = re.compile(r",(\s*[}\]])")


def strip_comments(text: str) -> str:
    """Remove comments and trailing commas from a relaxed-JSON document."""
    text = _BLOCK_COMMENT_RE.sub("", text)
    text = _LINE_COMMENT_RE.sub("", text)
    return _TRAILING_COMMA_RE.sub(r"\1", text)


def load_json(path: Path) -> Any | None:
    """Load *path*, returning ``None`` when the file does not exist.

    Raises :class:`ConfigError` when the file exists but is not valid JSON.
    OS errors (permissions etc.) propagate unchanged.
    """
    if not path.is_file():
        return None
    with open(path, "r", encoding="utf-8-sig") as f:
        text = f.read()
    try:
        return json.loads(strip_comments(text))
    except json.JSONDecodeError as e:
        logger.error("JSON parse error in {}: {}", path, e)
        raise ConfigError(
            f"Invalid JSON in {path}: {e}",
            details={"file_path": str(path), "line": e.lineno},
        ) from e


def save_json_atomic(path: Path, data: Any) -> None:
    """Serialize *data* to *path* via write-temp-then-replace."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent)
    )
    tmp = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
            f.write("\n")
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
    except OSError as e:
        logger.error("Failed to save {}: {}", path, e)
        raise IOFailure(f"Failed to write {path}: {e}", path=str(path), operation="save") from e
    finally:
        if tmp.exists():
            try:
                tmp.unlink()
            except OSError as e:
                logger.debug("Failed to remove temp file {}: {}", tmp, e)
