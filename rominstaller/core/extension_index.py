"""Lookup tables derived from the extension catalog.

The index is built once per process and then only read.  All keys are
lower-case extensions without the leading dot, so every lookup is a plain
dict access.
"""

from __future__ import annotations

import os
from types import MappingProxyType
from typing import Mapping

from rominstaller.models.filetypes import ExtensionCatalog


def normalize_ext(ext_or_name: str | None) -> str:
    """``".SFC"`` → ``"sfc"``; blank → ``""``."""
    if not ext_or_name:
        return ""
    ext = ext_or_name.strip()
    if ext.startswith("."):
        ext = ext[1:]
    return ext.lower()


def path_ext(path: str | os.PathLike) -> str:
    """Normalized extension of *path*, ``""`` when it has none."""
    return normalize_ext(os.path.splitext(os.fspath(path))[1])


class ExtensionIndex:
    """Fast, case-insensitive views over an :class:`ExtensionCatalog`.

    Attributes
    ----------
    all_extensions : frozenset[str]
        Every extension named anywhere in the catalog.
    ext_to_groups : Mapping[str, tuple[str, ...]]
        Reverse map, extension → groups accepting it (declaration order,
        de-duplicated case-insensitively).
    global_rank : Mapping[str, int]
        Cross-group preference, lower is better.
    per_group_rank : Mapping[str, Mapping[str, int]]
        Preference inside each group (keyed by lower-case group id).
    """

    def __init__(self, catalog: ExtensionCatalog) -> None:
        if catalog is None:
            raise ValueError("An extension catalog is required")

        all_exts: set[str] = set()
        ext_groups: dict[str, list[str]] = {}
        global_rank: dict[str, int] = {}
        per_group_rank: dict[str, dict[str, int]] = {}

        # 1. Global ranking, first occurrence wins
        for i, raw in enumerate(catalog.global_priority):
            ext = normalize_ext(raw)
            if not ext:
                continue
            global_rank.setdefault(ext, i)
            all_exts.add(ext)

        # 2. Per-group membership and ranking
        for group, exts in catalog.per_group.items():
            rank = per_group_rank.setdefault(group.lower(), {})
            for i, raw in enumerate(exts or []):
                ext = normalize_ext(raw)
                if not ext:
                    continue
                rank.setdefault(ext, i)
                all_exts.add(ext)
                _add_group(ext_groups.setdefault(ext, []), group)

        # 3. Explicit overlaps
        if catalog.multi_map:
            for raw, groups in catalog.multi_map.items():
                ext = normalize_ext(raw)
                if not ext:
                    continue
                target = ext_groups.setdefault(ext, [])
                for group in groups or []:
                    if group and group.strip():
                        _add_group(target, group.strip())
                all_exts.add(ext)

        # 4. Nothing may map to an empty group list
        for ext in [e for e, groups in ext_groups.items() if not groups]:
            del ext_groups[ext]

        self.all_extensions: frozenset[str] = frozenset(all_exts)
        self.ext_to_groups: Mapping[str, tuple[str, ...]] = MappingProxyType(
            {ext: tuple(groups) for ext, groups in ext_groups.items()}
        )
        self.global_rank: Mapping[str, int] = MappingProxyType(global_rank)
        self.per_group_rank: Mapping[str, Mapping[str, int]] = MappingProxyType(
            {g: MappingProxyType(r) for g, r in per_group_rank.items()}
        )

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def knows(self, ext: str) -> bool:
        return normalize_ext(ext) in self.all_extensions

    def groups_for(self, ext: str) -> tuple[str, ...]:
        return self.ext_to_groups.get(normalize_ext(ext), ())

    def rank_in_group(self, group: str, ext: str) -> int | None:
        rank = self.per_group_rank.get((group or "").lower())
        if rank is None:
            return None
        return rank.get(normalize_ext(ext))

    def preference_key(self, ext: str, group: str | None = None) -> tuple[int, int, str]:
        """Sort key: per-group rank, then global rank, then name."""
        ext = normalize_ext(ext)
        in_group = self.rank_in_group(group, ext) if group else None
        return (
            in_group if in_group is not None else len(self.all_extensions),
            self.global_rank.get(ext, len(self.all_extensions)),
            ext,
        )

    def extensions_for_group(self, group: str) -> list[str]:
        """Extensions accepted by *group*, most preferred first."""
        wanted = (group or "").lower()
        exts = [e for e, groups in self.ext_to_groups.items()
                if any(g.lower() == wanted for g in groups)]
        return sorted(exts, key=lambda e: self.preference_key(e, group))


def _add_group(groups: list[str], group: str) -> None:
    """Append *group* unless already present (case-insensitive)."""
    folded = group.lower()
    if not any(g.lower() == folded for g in groups):
        groups.append(group)
