"""
Tests for the group / emulator choices shown by the resolve dialog.
"""

from conftest import write_file
from rominstaller.core.resolve import ResolveChoices


def test_unknown_plan_starts_with_first_group(planner, emulator_catalog, incoming):
    plan = planner.plan_from_file(write_file(incoming / "Sonic CD.bin"))
    choices = ResolveChoices.build(plan, emulator_catalog)

    assert choices.group_options == ["genesis", "ps1", "segacd", "snes"]
    assert choices.selected_group == "genesis"
    assert [o.id for o in choices.emulator_options] == ["genesis_plus_gx"]
    assert choices.selected_emulator == "genesis_plus_gx"
    assert choices.complete


def test_plan_group_and_emulator_are_preselected(planner, emulator_catalog, settings, incoming):
    plan = planner.plan_from_file(write_file(incoming / "F-Zero.sfc"))
    choices = ResolveChoices.build(plan, emulator_catalog, settings)

    assert choices.group_options[0] == "snes"
    assert sorted(choices.group_options) == ["genesis", "ps1", "segacd", "snes"]
    assert [o.label for o in choices.emulator_options] == ["bsnes", "Snes9x"]
    assert choices.selected_emulator == "snes9x"


def test_group_hint_wins_and_uses_configured_default(planner, emulator_catalog, settings, incoming):
    plan = planner.plan_from_file(write_file(incoming / "F-Zero.sfc"))
    choices = ResolveChoices.build(plan, emulator_catalog, settings, preferred_group="PlayStation")

    assert choices.selected_group == "ps1"
    assert choices.group_options[0] == "ps1"
    assert choices.selected_emulator == "duckstation"


def test_emulator_hint_picks_its_group(planner, emulator_catalog, incoming):
    plan = planner.plan_from_file(write_file(incoming / "Sonic CD.bin"))
    choices = ResolveChoices.build(plan, emulator_catalog, preferred_emulator="GENESIS_PLUS_GX")

    assert choices.selected_group == "segacd"
    assert choices.selected_emulator == "genesis_plus_gx"


def test_select_group_rebuilds_emulators(planner, emulator_catalog, incoming):
    plan = planner.plan_from_file(write_file(incoming / "Sonic CD.bin"))
    choices = ResolveChoices.build(plan, emulator_catalog)

    choices.select_group("Super Nintendo")
    assert choices.selected_group == "snes"
    assert [o.id for o in choices.emulator_options] == ["bsnes", "snes9x"]
    assert choices.selected_emulator == "bsnes"

    assert not choices.select_emulator("duckstation")
    assert choices.selected_emulator == "bsnes"
    assert choices.select_emulator("SNES9X")
    assert choices.selected_emulator == "snes9x"


def test_group_without_emulators_is_incomplete(planner, emulator_catalog, incoming):
    plan = planner.plan_from_file(write_file(incoming / "Sonic CD.bin"))
    choices = ResolveChoices.build(plan, emulator_catalog, preferred_group="n64")

    assert choices.group_options[0] == "n64"
    assert choices.emulator_options == []
    assert not choices.complete
