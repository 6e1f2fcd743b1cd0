"""Application configuration management."""

import os
import platform
import shutil
from pathlib import Path
from typing import Optional

from loguru import logger

from rominstaller.core.extension_index import ExtensionIndex
from rominstaller.core.json_io import load_json
from rominstaller.errors import ConfigError
from rominstaller.models.emulator import EmulatorCatalog
from rominstaller.models.filetypes import ExtensionCatalog
from rominstaller.models.settings import Settings

APP_NAME = "RomInstaller"
ENV_DATA_DIR = "ROMINSTALLER_HOME"

SETTINGS_FILE = "settings.json"
EMULATORS_FILE = "emulators.json"
FILETYPES_FILE = "filetypes.json"
MANIFEST_FILE = "manifest.json"

SEED_FILES = (SETTINGS_FILE, EMULATORS_FILE, FILETYPES_FILE)

_seed_dir = Path(__file__).parent / "seed"


def _default_data_dir() -> Path:
    """Return the default data directory for the application."""
    env = os.environ.get(ENV_DATA_DIR, "").strip()
    if env:
        return Path(env).expanduser()
    if platform.system() == "Windows":
        appdata = os.environ.get("APPDATA")
        base = Path(appdata) if appdata else Path.home() / "AppData" / "Roaming"
        return base / APP_NAME
    elif platform.system() == "Darwin":
        return Path.home() / "Library" / "Application Support" / APP_NAME
    else:
        return Path.home() / ".config" / APP_NAME


class Config:
    """Singleton application configuration.

    Owns the data directory and the three user-editable JSON files in it.
    Missing files are seeded from the packaged defaults; a file that
    cannot be parsed is reported in :attr:`load_errors` and replaced by an
    empty model so read-only commands keep working.
    """

    _instance: Optional["Config"] = None

    def __new__(cls, data_dir: Optional[Path] = None) -> "Config":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, data_dir: Optional[Path] = None) -> None:
        if self._initialized:  # type: ignore[has-type]
            return
        self._initialized = True
        self._data_dir = Path(data_dir) if data_dir else _default_data_dir()
        self._data_dir.mkdir(parents=True, exist_ok=True)
        self.load_errors: list[str] = []
        self._seed()
        self._settings = self._load_model(SETTINGS_FILE, Settings)
        self._emulators = self._load_model(EMULATORS_FILE, EmulatorCatalog)
        self._filetypes = self._load_model(FILETYPES_FILE, ExtensionCatalog)
        self._index: Optional[ExtensionIndex] = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    @property
    def logs_dir(self) -> Path:
        return self._data_dir / "logs"

    @property
    def manifest_path(self) -> Path:
        return self._data_dir / MANIFEST_FILE

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def emulator_catalog(self) -> EmulatorCatalog:
        return self._emulators

    @property
    def extension_catalog(self) -> ExtensionCatalog:
        return self._filetypes

    @property
    def extension_index(self) -> ExtensionIndex:
        if self._index is None:
            self._index = ExtensionIndex(self._filetypes)
        return self._index

    @property
    def language(self) -> str:
        return self._settings.language

    def file_path(self, name: str) -> Path:
        return self._data_dir / name

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _seed(self) -> None:
        for name in SEED_FILES:
            target = self._data_dir / name
            if target.exists():
                continue
            source = _seed_dir / name
            if not source.is_file():
                logger.warning("Packaged default {} is missing", source)
                continue
            try:
                shutil.copyfile(source, target)
                logger.info("Seeded {} from packaged defaults", target)
            except OSError as e:
                logger.warning("Failed to seed {}: {}", target, e)

    def _load_model(self, name: str, model):  # noqa: ANN001
        path = self._data_dir / name
        try:
            data = load_json(path)
        except ConfigError as e:
            self.load_errors.append(str(e))
            logger.warning("Failed to load {}, using defaults: {}", path, e)
            return model()
        if data is not None and not isinstance(data, dict):
            message = f"{path} does not contain a JSON object"
            self.load_errors.append(message)
            logger.warning("{}, using defaults", message)
            return model()
        logger.debug("Configuration loaded from {}", path)
        return model.from_dict(data)

    @classmethod
    def reset(cls) -> None:
        """Reset the singleton (for testing)."""
        cls._instance = None
