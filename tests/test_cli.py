"""
Tests for CLI commands — install, manifest commands, configuration and exit codes.
"""

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner
from loguru import logger

from conftest import write_file
from rominstaller.cli import ExitCode, cli, exit_code_for
from rominstaller.errors import (
    ConfigError,
    ConflictError,
    IOFailure,
    LaunchError,
    ResourceMissing,
    StartFailure,
    UsageError,
)


@pytest.fixture(autouse=True)
def _close_log_sinks():
    yield
    logger.remove()


@pytest.fixture
def data_dir(tmp_path: Path, emulation_root: Path) -> Path:
    """Data folder whose settings point at the test emulation root."""
    folder = tmp_path / "appdata"
    folder.mkdir()
    (folder / "settings.json").write_text(json.dumps({
        "emulationRoot": str(emulation_root),
        "defaultEmulatorPerGroup": {"ps1": "duckstation", "snes": "snes9x"},
        "registeredExtensions": [".cue", ".bin", ".sfc"],
    }), encoding="utf-8")
    return folder


@pytest.fixture
def run(data_dir: Path):
    runner = CliRunner()

    def invoke(*args):
        return runner.invoke(cli, ["--data-dir", str(data_dir), *args])

    return invoke


def _manifest_id(output: str) -> str:
    for line in output.splitlines():
        if line.startswith("ManifestId: "):
            return line.split(": ", 1)[1].strip()
    raise AssertionError(f"no ManifestId in output:\n{output}")


class TestCLIGlobal:

    def test_help(self):
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "install" in result.output

    def test_version_option(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "1.0.0" in result.output

    def test_version_json(self, run, data_dir: Path, emulation_root: Path):
        result = run("version", "--json")
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["version"] == "1.0.0"
        assert data["dataDir"] == str(data_dir)
        assert data["emulationRoot"] == str(emulation_root)
        assert all(info["present"] for info in data["files"].values())


class TestExitCodes:

    @pytest.mark.parametrize("error, code", [
        (UsageError("x"), ExitCode.USAGE_ERROR),
        (ConflictError("x"), ExitCode.USAGE_ERROR),
        (ConfigError("x"), ExitCode.USAGE_ERROR),
        (ResourceMissing("x"), ExitCode.NOT_FOUND),
        (StartFailure("x"), ExitCode.START_FAILURE),
        (LaunchError("x"), ExitCode.LAUNCH_ERROR),
        (IOFailure("x"), ExitCode.FATAL),
        (RuntimeError("x"), ExitCode.FATAL),
    ])
    def test_mapping(self, error, code):
        assert exit_code_for(error) == code


class TestInstallCommand:

    def test_dry_run_prints_plan(self, run, incoming: Path, emulation_root: Path):
        rom = write_file(incoming / "F-Zero.sfc")
        result = run("install", str(rom))

        assert result.exit_code == 0
        plan = json.loads(result.stdout)
        assert plan["resolvedGroup"] == "snes"
        assert plan["emulatorId"] == "snes9x"
        assert plan["needsPrompt"] is False
        assert plan["destinationFilePath"] == str(
            emulation_root / "SNES" / "ROMs" / "F-Zero" / "F-Zero.sfc"
        )
        assert not (emulation_root / "SNES").exists()

    def test_ambiguous_extension_needs_prompt(self, run, incoming: Path):
        rom = write_file(incoming / "Sonic CD.bin")
        result = run("install", str(rom))

        assert result.exit_code == ExitCode.NEEDS_PROMPT
        plan = json.loads(result.stdout)
        assert plan["needsPrompt"] is True
        assert plan["resolvedGroup"] == "unknown"
        assert "--group" in result.stderr

    def test_apply_without_choice_installs_nothing(self, run, incoming: Path, emulation_root: Path):
        rom = write_file(incoming / "Sonic CD.bin")
        result = run("install", str(rom), "--apply")
        assert result.exit_code == ExitCode.NEEDS_PROMPT
        assert list(emulation_root.iterdir()) == []

    def test_group_override(self, run, incoming: Path):
        rom = write_file(incoming / "Crash.bin")
        result = run("install", str(rom), "--console", "PlayStation")
        assert result.exit_code == 0
        plan = json.loads(result.stdout)
        assert plan["resolvedGroup"] == "ps1"
        assert plan["emulatorId"] == "duckstation"

    def test_missing_file(self, run, tmp_path: Path):
        result = run("install", str(tmp_path / "nope.sfc"))
        assert result.exit_code == ExitCode.NOT_FOUND
        assert "not found" in result.stderr

    def test_empty_path(self, run):
        result = run("install", "")
        assert result.exit_code == ExitCode.USAGE_ERROR

    def test_apply_copies_and_records(self, run, incoming: Path, emulation_root: Path):
        rom = write_file(incoming / "F-Zero.sfc", b"rom-data")
        result = run("install", str(rom), "--apply")

        assert result.exit_code == 0, result.output
        installed = emulation_root / "SNES" / "ROMs" / "F-Zero" / "F-Zero.sfc"
        assert installed.read_bytes() == b"rom-data"
        assert rom.exists()
        entry_id = _manifest_id(result.stdout)

        listing = run("list", "--json")
        entries = json.loads(listing.stdout)
        assert [e["id"] for e in entries] == [entry_id]
        assert entries[0]["primaryFilePath"] == str(installed)

    def test_apply_move(self, run, incoming: Path):
        rom = write_file(incoming / "F-Zero.sfc")
        result = run("install", str(rom), "--apply", "--move")
        assert result.exit_code == 0
        assert not rom.exists()

    def test_second_install_conflicts(self, run, incoming: Path):
        rom = write_file(incoming / "F-Zero.sfc")
        assert run("install", str(rom), "--apply").exit_code == 0

        result = run("install", str(rom), "--apply")
        assert result.exit_code == ExitCode.USAGE_ERROR
        assert len(json.loads(run("list", "--json").stdout)) == 1

    def test_corrupt_manifest_blocks_install(self, run, data_dir: Path, incoming: Path, emulation_root: Path):
        (data_dir / "manifest.json").write_text("{ broken", encoding="utf-8")
        rom = write_file(incoming / "F-Zero.sfc")

        result = run("install", str(rom), "--apply")
        assert result.exit_code == ExitCode.USAGE_ERROR
        assert not (emulation_root / "SNES" / "ROMs" / "F-Zero" / "F-Zero.sfc").exists()
        assert (data_dir / "manifest.json").read_text(encoding="utf-8") == "{ broken"


class TestManifestCommands:

    @pytest.fixture
    def installed(self, run, incoming: Path) -> str:
        rom = write_file(incoming / "F-Zero.sfc")
        result = run("install", str(rom), "--apply")
        assert result.exit_code == 0, result.output
        return _manifest_id(result.stdout)

    def test_list_table(self, run, installed):
        result = run("list")
        assert result.exit_code == 0
        assert "F-Zero" in result.output
        assert installed in result.output

    def test_list_filters(self, run, installed):
        assert json.loads(run("list", "--group", "Super Nintendo", "--json").stdout)
        assert json.loads(run("list", "--group", "ps1", "--json").stdout) == []
        assert "No matching titles." in run("list", "--emulator", "bsnes").output

    def test_list_shortcut_filters(self, run, installed, data_dir: Path, incoming: Path):
        other = write_file(incoming / "Pilotwings.sfc")
        assert run("install", str(other), "--apply").exit_code == 0
        manifest = data_dir / "manifest.json"
        data = json.loads(manifest.read_text(encoding="utf-8"))
        for entry in data["entries"]:
            if entry["id"] == installed:
                entry["shortcutPath"] = str(incoming / "F-Zero.desktop")
        manifest.write_text(json.dumps(data), encoding="utf-8")

        with_shortcut = json.loads(run("list", "--has-shortcut", "--json").stdout)
        without = json.loads(run("list", "--no-shortcut", "--json").stdout)
        assert [e["id"] for e in with_shortcut] == [installed]
        assert [e["title"] for e in without] == ["Pilotwings"]
        assert len(json.loads(run("list", "--json").stdout)) == 2

    def test_uninstall_folder_permanent(self, run, installed, emulation_root: Path):
        result = run("uninstall", installed, "--delete", "folder", "--permanent")
        assert result.exit_code == 0
        assert "Uninstalled F-Zero." in result.output
        assert "Deleted: " in result.output
        assert not (emulation_root / "SNES" / "ROMs" / "F-Zero").exists()
        assert "No matching titles." in run("list").output

    def test_uninstall_sends_to_trash_by_default(self, run, installed, emulation_root: Path):
        folder = emulation_root / "SNES" / "ROMs" / "F-Zero"
        with patch("rominstaller.core.uninstaller.send2trash") as trash:
            result = run("uninstall", installed, "--delete", "folder")

        assert result.exit_code == 0
        trash.assert_called_once_with(str(folder))
        assert f"Trashed: {folder}" in result.output
        assert "No matching titles." in run("list").output

    def test_uninstall_keeps_files_by_default(self, run, installed, emulation_root: Path):
        assert run("uninstall", installed).exit_code == 0
        assert (emulation_root / "SNES" / "ROMs" / "F-Zero" / "F-Zero.sfc").exists()

    def test_uninstall_unknown(self, run, installed):
        result = run("uninstall", "no-such-id")
        assert result.exit_code == ExitCode.NOT_FOUND

    def test_prune(self, run, installed, emulation_root: Path):
        assert "No stale entries found." in run("prune").output

        (emulation_root / "SNES" / "ROMs" / "F-Zero" / "F-Zero.sfc").unlink()
        result = run("prune")
        assert result.exit_code == 0
        assert "Removed 1 stale manifest entry." in result.output
        assert json.loads(run("list", "--json").stdout) == []

    def test_launch(self, run, installed, emulation_root: Path):
        exe = write_file(emulation_root / "Emulators" / "Snes9x" / "snes9x")
        with patch("rominstaller.core.launcher.subprocess.run",
                   return_value=MagicMock(returncode=5)) as proc:
            result = run("launch", installed)

        assert result.exit_code == 5
        assert proc.call_args[0][0][0] == str(exe)
        entry = json.loads(run("list", "--json").stdout)[0]
        assert "lastUsedAt" in entry

    def test_launch_missing_emulator(self, run, installed):
        result = run("launch", installed)
        assert result.exit_code == ExitCode.NOT_FOUND

    def test_launch_start_failure(self, run, installed, emulation_root: Path):
        write_file(emulation_root / "Emulators" / "Snes9x" / "snes9x")
        with patch("rominstaller.core.launcher.subprocess.run",
                   side_effect=PermissionError("denied")):
            result = run("launch", installed)
        assert result.exit_code == ExitCode.START_FAILURE

    def test_launch_unknown(self, run):
        assert run("launch", "no-such-id").exit_code == ExitCode.NOT_FOUND


class TestConfigCommands:

    def test_validate_clean(self, run):
        result = run("validate-config")
        assert result.exit_code == 0
        assert "Configuration OK." in result.output

    def test_validate_reports_problems(self, run, data_dir: Path):
        (data_dir / "settings.json").write_text(json.dumps({
            "defaultEmulatorPerGroup": {"snes": "zsnes"},
            "registeredExtensions": [".xyz"],
        }), encoding="utf-8")

        result = run("validate-config", "--json")
        assert result.exit_code == ExitCode.USAGE_ERROR
        data = json.loads(result.stdout)
        assert data["ok"] is False
        assert "Registered extension '.xyz' is not in the file type catalog." in data["problems"]
        assert "Default emulator 'zsnes' for group 'snes' is not in the catalog." in data["problems"]

    def test_validate_reports_load_errors(self, run, data_dir: Path):
        (data_dir / "filetypes.json").write_text("{ broken", encoding="utf-8")
        result = run("validate-config", "--json")
        assert result.exit_code == ExitCode.USAGE_ERROR
        assert json.loads(result.stdout)["problems"]

    def test_formats_json(self, run):
        result = run("formats", "--json")
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["groups"]["snes"] == ["sfc", "smc"]
        assert set(data["ambiguous"]["bin"]) == {"ps1", "segacd", "genesis"}

    def test_formats_single_group(self, run):
        result = run("formats", "--group", "psx")
        assert result.exit_code == 0
        assert result.stdout.startswith("ps1")
        assert "Ambiguous" not in result.output
