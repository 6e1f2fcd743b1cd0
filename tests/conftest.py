"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from rominstaller.config import Config
from rominstaller.core.extension_index import ExtensionIndex
from rominstaller.core.installer import InstallExecutor
from rominstaller.core.manifest_store import ManifestStore
from rominstaller.core.planner import Planner
from rominstaller.models.emulator import EmulatorCatalog
from rominstaller.models.filetypes import ExtensionCatalog
from rominstaller.models.settings import Settings

FILETYPES = {
    "schemaVersion": 1,
    "globalPriority": ["iso", "cue", "bin", "sfc", "smc", "gba"],
    "perGroup": {
        "ps1": ["cue", "bin", "iso"],
        "segacd": ["bin", "cue"],
        "snes": ["sfc", "smc"],
        "gba": ["gba"],
    },
    "multiMap": {"bin": ["ps1", "segacd"]},
}

EMULATORS = {
    "schemaVersion": 1,
    "emulators": [
        {
            "id": "duckstation",
            "name": "DuckStation",
            "groups": ["ps1"],
            "argTemplate": '"{EMULATOR}" -batch "{ROM}"',
            "executablePath": "%EMULATION%/Emulators/DuckStation/duckstation",
            "biosRequired": True,
            "biosExpected": ["scph5501.bin"],
        },
        {
            "id": "snes9x",
            "name": "Snes9x",
            "groups": ["snes"],
            "argTemplate": '"{EMULATOR}" "{ROM}"',
            "executablePath": "%EMULATION%/Emulators/Snes9x/snes9x",
        },
        {
            "id": "bsnes",
            "name": "bsnes",
            "groups": ["snes"],
            "argTemplate": '"{ROM}"',
            "executablePath": "%EMULATION%/Emulators/bsnes/bsnes",
        },
        {
            "id": "genesis_plus_gx",
            "name": "Genesis Plus GX",
            "groups": ["segacd", "genesis"],
            "executablePath": "%EMULATION%/Emulators/RetroArch/retroarch",
        },
    ],
}


@pytest.fixture(autouse=True)
def _reset_config():
    """Every test starts without a cached Config singleton."""
    Config.reset()
    yield
    Config.reset()


@pytest.fixture
def emulation_root(tmp_path: Path) -> Path:
    root = tmp_path / "Emulation"
    root.mkdir()
    return root


@pytest.fixture
def incoming(tmp_path: Path) -> Path:
    """Folder the user's downloads live in."""
    folder = tmp_path / "incoming"
    folder.mkdir()
    return folder


@pytest.fixture
def settings(emulation_root: Path) -> Settings:
    return Settings(
        emulation_root=str(emulation_root),
        default_emulator_per_group={"psx": "duckstation"},
    )


@pytest.fixture
def emulator_catalog() -> EmulatorCatalog:
    return EmulatorCatalog.from_dict(EMULATORS)


@pytest.fixture
def extension_catalog() -> ExtensionCatalog:
    return ExtensionCatalog.from_dict(FILETYPES)


@pytest.fixture
def index(extension_catalog: ExtensionCatalog) -> ExtensionIndex:
    return ExtensionIndex(extension_catalog)


@pytest.fixture
def planner(settings, emulator_catalog, index) -> Planner:
    return Planner(settings, emulator_catalog, index)


@pytest.fixture
def manifest_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "manifest.json"


@pytest.fixture
def store(manifest_path: Path) -> ManifestStore:
    return ManifestStore(manifest_path)


@pytest.fixture
def executor(store: ManifestStore) -> InstallExecutor:
    return InstallExecutor(store)


def write_file(path: Path, content: bytes = b"\x00" * 64) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    return path


def snapshot(folder: Path) -> dict[str, bytes]:
    """Relative path → content for every file under *folder*."""
    return {
        str(p.relative_to(folder)): p.read_bytes()
        for p in sorted(folder.rglob("*"))
        if p.is_file()
    }


def dirs(folder: Path) -> list[str]:
    return sorted(str(p.relative_to(folder)) for p in folder.rglob("*") if p.is_dir())
