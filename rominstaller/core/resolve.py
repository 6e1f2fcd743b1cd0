"""Choices offered when a plan needs a human decision.

Pure model behind :mod:`rominstaller.ui.resolve_dialog`; it has no Qt
dependency so the selection rules can be tested headless.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from rominstaller.core.group_ids import UNKNOWN, normalize_group
from rominstaller.models.emulator import EmulatorCatalog
from rominstaller.models.install_plan import InstallPlan
from rominstaller.models.settings import Settings


@dataclass(frozen=True)
class EmulatorOption:
    id: str
    name: str

    @property
    def label(self) -> str:
        return self.name or self.id


@dataclass
class ResolveChoices:
    """Group / emulator options and the current selection."""

    catalog: EmulatorCatalog
    settings: Settings | None = None
    group_options: list[str] = field(default_factory=list)
    emulator_options: list[EmulatorOption] = field(default_factory=list)
    selected_group: str = ""
    selected_emulator: str = ""

    @classmethod
    def build(
        cls,
        plan: InstallPlan,
        catalog: EmulatorCatalog,
        settings: Settings | None = None,
        preferred_group: str | None = None,
        preferred_emulator: str | None = None,
    ) -> ResolveChoices:
        """Initial options for *plan*.

        The first group is the explicit hint, else the plan's group when it
        was resolved, else the group of the hinted emulator, else the first
        group alphabetically.
        """
        choices = cls(catalog=catalog, settings=settings)
        groups = sorted({normalize_group(g) for g in catalog.all_groups()} - {UNKNOWN})

        initial = ""
        if preferred_group and preferred_group.strip():
            initial = normalize_group(preferred_group)
        elif plan.group_known:
            initial = normalize_group(plan.resolved_group)
        elif preferred_emulator:
            spec = catalog.get(preferred_emulator)
            if spec is not None and spec.groups:
                initial = normalize_group(spec.groups[0])
        if not initial and groups:
            initial = groups[0]

        if initial:
            choices.group_options = [initial] + [g for g in groups if g != initial]
        else:
            choices.group_options = groups

        choices.select_group(initial)

        for wanted in (preferred_emulator, plan.emulator_id):
            if wanted and choices.select_emulator(wanted):
                break
        return choices

    # ------------------------------------------------------------------

    def select_group(self, group: str) -> None:
        """Select *group* and rebuild the emulator options for it."""
        self.selected_group = normalize_group(group) if group else ""
        self.emulator_options = []
        self.selected_emulator = ""
        if not self.selected_group or self.selected_group == UNKNOWN:
            return

        self.emulator_options = sorted(
            (
                EmulatorOption(spec.id, spec.name)
                for spec in self.catalog.emulators
                if any(normalize_group(g) == self.selected_group for g in spec.groups)
            ),
            key=lambda o: o.label.lower(),
        )

        if self.settings is not None:
            for key, emulator_id in self.settings.default_emulator_per_group.items():
                if normalize_group(key) == self.selected_group and self.select_emulator(emulator_id):
                    return
        if self.emulator_options:
            self.selected_emulator = self.emulator_options[0].id

    def select_emulator(self, emulator_id: str) -> bool:
        """Select *emulator_id* if it is among the current options."""
        wanted = (emulator_id or "").strip().lower()
        for option in self.emulator_options:
            if option.id.lower() == wanted:
                self.selected_emulator = option.id
                return True
        return False

    @property
    def complete(self) -> bool:
        return bool(self.selected_group) and bool(self.selected_emulator)
