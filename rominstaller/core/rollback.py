"""Undo journal for a single install.

Every disk mutation the executor performs is recorded as one of the tagged
actions below.  When a later stage fails the journal is replayed in reverse
order; each undo step is best-effort, so one failing step never prevents
the remaining ones from running.
"""

from __future__ import annotations

import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Union

from loguru import logger


@dataclass(frozen=True)
class CreatedDir:
    """A directory that did not exist before the install."""

    path: Path


@dataclass(frozen=True)
class Copied:
    """A file copied to *path*; undo deletes it."""

    path: Path


@dataclass(frozen=True)
class Moved:
    """A file moved from *source* to *destination*; undo moves it back."""

    source: Path
    destination: Path


@dataclass(frozen=True)
class Rewritten:
    """A file whose content was rewritten in place."""

    path: Path
    original: bytes = field(repr=False)
    """Content before the rewrite."""

    backup: Path | None = None
    created_backup: bool = False
    """True when *backup* was written by this install (undo removes it)."""


Action = Union[CreatedDir, Copied, Moved, Rewritten]


class RollbackJournal:
    """Ordered list of reversible actions."""

    def __init__(self) -> None:
        self._actions: list[Action] = []

    def __len__(self) -> int:
        return len(self._actions)

    @property
    def actions(self) -> tuple[Action, ...]:
        return tuple(self._actions)

    def record(self, action: Action) -> None:
        self._actions.append(action)

    def replay(self) -> int:
        """Undo every recorded action, newest first.

        Returns the number of steps that failed.  Failures are logged and
        never raised.
        """
        failures = 0
        for action in reversed(self._actions):
            try:
                _undo(action)
            except OSError as e:
                failures += 1
                logger.warning("Rollback step failed for {}: {}", action, e)
        self._actions.clear()
        if failures:
            logger.error("Rollback finished with {} failed step(s)", failures)
        else:
            logger.info("Rollback completed")
        return failures


def _undo(action: Action) -> None:
    if isinstance(action, Copied):
        if action.path.exists():
            action.path.unlink()
            logger.debug("Rollback: deleted copy {}", action.path)

    elif isinstance(action, Moved):
        if not action.destination.exists():
            logger.warning("Rollback: moved file {} is gone", action.destination)
            return
        if action.source.exists():
            logger.warning("Rollback: {} reappeared, leaving {}", action.source, action.destination)
            return
        action.source.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(str(action.destination), str(action.source))
        logger.debug("Rollback: moved {} back to {}", action.destination, action.source)

    elif isinstance(action, Rewritten):
        if action.path.exists():
            action.path.write_bytes(action.original)
            logger.debug("Rollback: restored content of {}", action.path)
        if action.created_backup and action.backup is not None and action.backup.exists():
            action.backup.unlink()

    elif isinstance(action, CreatedDir):
        # only empty directories; anything else was not ours
        if action.path.is_dir() and not any(action.path.iterdir()):
            os.rmdir(action.path)
            logger.debug("Rollback: removed directory {}", action.path)

    else:
        raise TypeError(f"Unknown rollback action: {action!r}")
