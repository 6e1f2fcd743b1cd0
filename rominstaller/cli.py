"""
ROM Installer — command-line interface.

Usage:
    rom install "Crash Bandicoot.cue"              # dry run, prints the plan
    rom install "Crash Bandicoot.cue" --apply      # copy + record
    rom install game.bin --group ps1 --emulator duckstation --apply --move
    rom list --json
    rom launch <entry-id>
    rom uninstall <entry-id> --delete folder

Exit codes are stable so scripts and file-manager integrations can react
to them (see :class:`ExitCode`).
"""

from __future__ import annotations

import json
import sys
from contextlib import contextmanager
from enum import IntEnum
from pathlib import Path

import click
from loguru import logger

from rominstaller.config import SEED_FILES, Config
from rominstaller.core.extension_index import normalize_ext
from rominstaller.core.group_ids import normalize_group
from rominstaller.core.installer import InstallExecutor
from rominstaller.core.launcher import Launcher
from rominstaller.core.manifest_store import ManifestStore
from rominstaller.core.planner import Planner
from rominstaller.core.uninstaller import DeletionMode, Uninstaller, UninstallTarget
from rominstaller.core.validation import validate_config
from rominstaller.errors import (
    ConfigError,
    ConflictError,
    IOFailure,
    LaunchError,
    ResourceMissing,
    RomInstallerError,
    StartFailure,
    UsageError,
)
from rominstaller.logger import setup_logger
from rominstaller.models.install_plan import InstallPlan

__version__ = "1.0.0"


class ExitCode(IntEnum):
    OK = 0
    NEEDS_PROMPT = 2
    USAGE_ERROR = 4
    NOT_FOUND = 6
    START_FAILURE = 7
    LAUNCH_ERROR = 8
    FATAL = 99


def exit_code_for(error: BaseException) -> ExitCode:
    """Map a domain error to its process exit code."""
    if isinstance(error, StartFailure):
        return ExitCode.START_FAILURE
    if isinstance(error, LaunchError):
        return ExitCode.LAUNCH_ERROR
    if isinstance(error, ResourceMissing):
        return ExitCode.NOT_FOUND
    if isinstance(error, (UsageError, ConflictError, ConfigError)):
        return ExitCode.USAGE_ERROR
    return ExitCode.FATAL


@contextmanager
def _domain_errors():
    """Turn domain errors into a red message on stderr plus an exit code."""
    try:
        yield
    except RomInstallerError as e:
        logger.opt(exception=e).debug("Command failed: {}", e.to_dict())
        click.secho(str(e), fg="red", err=True)
        if isinstance(e, IOFailure):
            click.echo("See logs for details.", err=True)
        sys.exit(exit_code_for(e))


def _config(ctx: click.Context) -> Config:
    return ctx.obj["config"]


def _echo_json(data) -> None:  # noqa: ANN001
    click.echo(json.dumps(data, indent=2, ensure_ascii=False))


def _planner(cfg: Config) -> Planner:
    return Planner(cfg.settings, cfg.emulator_catalog, cfg.extension_index)


def _check_source(path: str) -> None:
    if not path or not path.strip():
        raise UsageError("Source path is empty.")
    if not Path(path).is_file():
        raise ResourceMissing(f"File not found: {path}", path=path)


def _explain_prompt(plan: InstallPlan) -> None:
    click.secho(
        "More information is required before this file can be installed.",
        fg="yellow", err=True,
    )
    for note in plan.notes:
        click.echo(f"  • {note}", err=True)
    click.echo(
        f'  Re-run with: rom install "{plan.source_path}" --group <id> --emulator <id> --apply',
        err=True,
    )


# ----------------------------------------------------------------------
# Root group
# ----------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="rom")
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    envvar="ROMINSTALLER_HOME",
    default=None,
    help="Folder holding settings, catalogs, manifest and logs.",
)
@click.option("--verbose", "-v", is_flag=True, help="Echo log messages to stderr.")
@click.pass_context
def cli(ctx: click.Context, data_dir: Path | None, verbose: bool) -> None:
    """ROM Installer — plan, install, launch and uninstall ROM files."""
    ctx.ensure_object(dict)
    Config.reset()
    cfg = Config(data_dir)
    setup_logger(cfg.logs_dir, console_level="DEBUG" if verbose else None)
    for problem in cfg.load_errors:
        logger.warning("Config load problem: {}", problem)
    ctx.obj["config"] = cfg
    ctx.obj["verbose"] = verbose


# ----------------------------------------------------------------------
# install / resolve
# ----------------------------------------------------------------------


@cli.command()
@click.argument("path")
@click.option("--apply", "do_apply", is_flag=True, help="Perform the install (default: dry run).")
@click.option("--move/--copy", default=False, help="Move the source instead of copying it.")
@click.option("--group", "--console", "group", default=None, help="Platform id override (e.g. ps1).")
@click.option("--emulator", default=None, help="Emulator id override.")
@click.pass_context
def install(
    ctx: click.Context,
    path: str,
    do_apply: bool,
    move: bool,
    group: str | None,
    emulator: str | None,
) -> None:
    """Plan (and with --apply, perform) the install of PATH.

    The dry run prints the plan as JSON and exits with 2 when a platform or
    emulator still has to be chosen.
    """
    cfg = _config(ctx)
    with _domain_errors():
        _check_source(path)
        plan = _planner(cfg).plan_from_file(path, group, emulator)

        if not do_apply:
            _echo_json(plan.to_dict())
            if plan.needs_prompt:
                _explain_prompt(plan)
                sys.exit(ExitCode.NEEDS_PROMPT)
            return

        if plan.needs_prompt:
            _explain_prompt(plan)
            _echo_json(plan.to_dict())
            sys.exit(ExitCode.NEEDS_PROMPT)

        _apply(cfg, plan, move)


def _apply(cfg: Config, plan: InstallPlan, move: bool) -> None:
    executor = InstallExecutor(ManifestStore(cfg.manifest_path))
    entry = executor.apply(plan, move=move)
    click.secho(f"Installed {entry.title} [{entry.group}] with {entry.emulator_id}", fg="green")
    click.echo(f"Path: {entry.primary_file_path}")
    click.echo(f"ManifestId: {entry.id}")


@cli.command()
@click.argument("path")
@click.option("--group", "--console", "group", default=None, help="Preselected platform id.")
@click.option("--emulator", default=None, help="Preselected emulator id.")
@click.option("--move/--copy", default=False, help="Move the source instead of copying it.")
@click.pass_context
def resolve(ctx: click.Context, path: str, group: str | None, emulator: str | None, move: bool) -> None:
    """Ask for platform and emulator in a dialog, then install PATH."""
    from rominstaller.core.resolve import ResolveChoices
    from rominstaller.i18n import init as i18n_init
    from rominstaller.ui.resolve_dialog import run_resolve_dialog

    cfg = _config(ctx)
    with _domain_errors():
        _check_source(path)
        planner = _planner(cfg)
        plan = planner.plan_from_file(path, group, emulator)
        choices = ResolveChoices.build(plan, cfg.emulator_catalog, cfg.settings, group, emulator)

        i18n_init(cfg.language)
        selection = run_resolve_dialog(plan, choices)
        if selection is None:
            click.echo("Cancelled.", err=True)
            sys.exit(ExitCode.NEEDS_PROMPT)

        chosen_group, chosen_emulator = selection
        logger.info("Resolved {} → group={} emulator={}", path, chosen_group, chosen_emulator)
        plan = planner.plan_from_file(path, chosen_group, chosen_emulator)
        if plan.needs_prompt:
            _explain_prompt(plan)
            sys.exit(ExitCode.NEEDS_PROMPT)
        _apply(cfg, plan, move)


# ----------------------------------------------------------------------
# Manifest commands
# ----------------------------------------------------------------------


@cli.command("list")
@click.option("--group", "--console", "group", default=None, help="Only this platform.")
@click.option("--emulator", default=None, help="Only this emulator.")
@click.option(
    "--has-shortcut/--no-shortcut",
    "shortcut",
    default=None,
    help="Only titles with (or without) a recorded shortcut.",
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_entries(
    ctx: click.Context,
    group: str | None,
    emulator: str | None,
    shortcut: bool | None,
    as_json: bool,
) -> None:
    """List installed titles."""
    cfg = _config(ctx)
    with _domain_errors():
        entries = ManifestStore(cfg.manifest_path).load().entries

    if group:
        wanted = normalize_group(group)
        entries = [e for e in entries if normalize_group(e.group) == wanted]
    if emulator:
        entries = [e for e in entries if e.emulator_id.lower() == emulator.strip().lower()]
    if shortcut is not None:
        entries = [e for e in entries if bool(e.shortcut_path) == shortcut]

    if as_json:
        _echo_json([e.to_dict() for e in entries])
        return

    if not entries:
        click.secho("No matching titles.", fg="yellow")
        return

    w_title = min(max(5, *(len(e.title) for e in entries)), 36)
    w_group = min(max(5, *(len(e.group) for e in entries)), 12)
    w_emu = min(max(8, *(len(e.emulator_id) for e in entries)), 16)
    click.secho(
        f"{'Title':<{w_title}}  {'Group':<{w_group}}  {'Emulator':<{w_emu}}  Id",
        fg="cyan", bold=True,
    )
    for e in sorted(entries, key=lambda x: (x.group, x.title.lower())):
        title = e.title if len(e.title) <= w_title else e.title[: w_title - 1] + "…"
        click.echo(f"{title:<{w_title}}  {e.group:<{w_group}}  {e.emulator_id:<{w_emu}}  {e.id}")


@cli.command()
@click.argument("entry_id")
@click.option(
    "--delete",
    "delete",
    type=click.Choice([target.value for target in UninstallTarget], case_sensitive=False),
    default=UninstallTarget.NONE.value,
    show_default=True,
    help="What to delete from disk besides the manifest entry.",
)
@click.option("--remove-shortcut", is_flag=True, help="Also delete the recorded shortcut file.")
@click.option("--permanent", is_flag=True, help="Delete outright instead of moving to the trash.")
@click.pass_context
def uninstall(
    ctx: click.Context, entry_id: str, delete: str, remove_shortcut: bool, permanent: bool
) -> None:
    """Remove ENTRY_ID from the manifest (and optionally from disk).

    Deleted files go to the trash unless --permanent is given.
    """
    cfg = _config(ctx)
    mode = DeletionMode.PERMANENT if permanent else DeletionMode.TRASH
    with _domain_errors():
        result = Uninstaller(ManifestStore(cfg.manifest_path)).uninstall(
            entry_id, UninstallTarget(delete.lower()), remove_shortcut, mode
        )
    verb = "Deleted" if permanent else "Trashed"
    for path in result.deleted:
        click.echo(f"{verb}: {path}")
    for error in result.errors:
        click.secho(f"Could not delete: {error}", fg="yellow", err=True)
    click.secho(f"Uninstalled {result.entry.title}.", fg="green")


@cli.command()
@click.pass_context
def prune(ctx: click.Context) -> None:
    """Forget entries whose ROM file no longer exists."""
    cfg = _config(ctx)
    with _domain_errors():
        removed = ManifestStore(cfg.manifest_path).prune()
    if not removed:
        click.echo("No stale entries found.")
        return
    noun = "entry" if len(removed) == 1 else "entries"
    click.echo(f"Removed {len(removed)} stale manifest {noun}.")


@cli.command()
@click.argument("entry_id")
@click.pass_context
def launch(ctx: click.Context, entry_id: str) -> None:
    """Run ENTRY_ID with its emulator; exits with the emulator's code."""
    cfg = _config(ctx)
    with _domain_errors():
        launcher = Launcher(cfg.settings, cfg.emulator_catalog, ManifestStore(cfg.manifest_path))
        code = launcher.launch(entry_id)
    sys.exit(code)


# ----------------------------------------------------------------------
# Configuration commands
# ----------------------------------------------------------------------


@cli.command("validate-config")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def validate_config_cmd(ctx: click.Context, as_json: bool) -> None:
    """Check settings, emulators and file types for inconsistencies."""
    cfg = _config(ctx)
    problems = list(cfg.load_errors) + validate_config(
        cfg.settings, cfg.emulator_catalog, cfg.extension_catalog
    )

    if as_json:
        _echo_json({"ok": not problems, "problems": problems})
    elif problems:
        click.secho(f"Found {len(problems)} problem(s):", fg="yellow", bold=True)
        for problem in problems:
            click.echo(f"  • {problem}")
    else:
        click.secho("Configuration OK.", fg="green")

    if problems:
        sys.exit(ExitCode.USAGE_ERROR)


@cli.command()
@click.option("--group", "--console", "group", default=None, help="Only this platform.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def formats(ctx: click.Context, group: str | None, as_json: bool) -> None:
    """Show which file extensions each platform accepts, most preferred first."""
    cfg = _config(ctx)
    index = cfg.extension_index

    groups = sorted({g for gs in index.ext_to_groups.values() for g in gs}, key=str.lower)
    if group:
        wanted = normalize_group(group)
        groups = [g for g in groups if normalize_group(g) == wanted]

    table = {g: index.extensions_for_group(g) for g in groups}
    shared = {ext: list(gs) for ext, gs in sorted(index.ext_to_groups.items()) if len(gs) > 1}

    if as_json:
        _echo_json({"groups": table, "ambiguous": shared})
        return

    if not table:
        click.secho("No matching platforms.", fg="yellow")
        return
    for g, exts in table.items():
        click.echo(f"{g:<10} " + " ".join(f".{normalize_ext(e)}" for e in exts))
    if shared and not group:
        click.echo()
        click.secho("Ambiguous extensions (need --group):", fg="cyan")
        for ext, gs in shared.items():
            click.echo(f"  .{ext:<6} {', '.join(gs)}")


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def version(ctx: click.Context, as_json: bool) -> None:
    """Show version, data folder and configuration file status."""
    cfg = _config(ctx)
    files = {}
    for name in SEED_FILES:
        path = cfg.file_path(name)
        files[name] = {"path": str(path), "present": path.is_file()}

    if as_json:
        _echo_json({
            "version": __version__,
            "dataDir": str(cfg.data_dir),
            "manifest": str(cfg.manifest_path),
            "emulationRoot": str(cfg.settings.resolved_root),
            "files": files,
        })
        return

    click.secho(f"rom {__version__}", fg="cyan", bold=True)
    click.echo(f"Data dir     {cfg.data_dir}")
    click.echo(f"Emulation    {cfg.settings.resolved_root}")
    click.echo(f"Manifest     {cfg.manifest_path}")
    for name, info in files.items():
        mark = "✓" if info["present"] else "✗"
        click.echo(f"  {mark} {name}")


def main() -> None:
    """Script entry point: unexpected errors exit with :attr:`ExitCode.FATAL`."""
    try:
        cli(standalone_mode=True)
    except SystemExit:
        raise
    except Exception:  # noqa: BLE001
        logger.exception("Fatal error")
        click.secho("Fatal error. See logs for details.", fg="red", err=True)
        sys.exit(ExitCode.FATAL)
