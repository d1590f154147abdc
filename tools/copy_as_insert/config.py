"""User settings stored as TOML."""

import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Optional

import toml

from shared.logger import get_logger

from .classifier import DateCulture
from .generator import GeneratorOptions
from .inference import InferenceOptions

logger = get_logger(__name__)

CONFIG_ENV_VAR = "COPY_AS_INSERT_CONFIG"
DEFAULT_CONFIG_PATH = Path.home() / ".copy_as_insert" / "settings.toml"


@dataclass
class Settings:
    """Defaults for table placement and inference switches."""

    default_schema: str = "dbo"
    temporal_by_default: bool = False
    temporary_by_default: bool = False
    append_temporal_suffix: bool = False
    detect_bit: bool = False
    detect_primary_key: bool = False
    identity_primary_key: bool = False
    date_culture: str = DateCulture.EUROPEAN.value
    history_limit: int = 10

    @property
    def culture(self) -> DateCulture:
        return DateCulture(self.date_culture)

    def inference_options(self) -> InferenceOptions:
        return InferenceOptions(
            detect_bit=self.detect_bit,
            detect_primary_key=self.detect_primary_key,
            culture=self.culture,
        )

    def generator_options(self) -> GeneratorOptions:
        return GeneratorOptions(
            identity_primary_key=self.identity_primary_key,
            culture=self.culture,
        )


def default_config_path() -> Path:
    """Settings path, honouring the COPY_AS_INSERT_CONFIG variable."""
    override = os.environ.get(CONFIG_ENV_VAR)
    return Path(override) if override else DEFAULT_CONFIG_PATH


def load_settings(path: Optional[Path] = None) -> Settings:
    """
    Load settings from a TOML file.

    A missing file gives defaults. A broken file is logged and also gives
    defaults, so a bad config never blocks a conversion.

    Args:
        path: Settings file (default: :func:`default_config_path`)

    Returns:
        Settings
    """
    path = path or default_config_path()
    if not path.exists():
        logger.debug(f"No settings file at {path}, using defaults")
        return Settings()

    try:
        data = toml.load(path)
    except (OSError, toml.TomlDecodeError) as e:
        logger.warning(f"Failed to load settings from {path}: {e}")
        return Settings()

    known = {f.name for f in fields(Settings)}
    unknown = sorted(set(data) - known)
    if unknown:
        logger.warning(f"Ignoring unknown settings: {', '.join(unknown)}")

    settings = Settings(**{k: v for k, v in data.items() if k in known})

    try:
        settings.culture
    except ValueError:
        logger.warning(f"Unknown date_culture {settings.date_culture!r}, using {DateCulture.EUROPEAN.value}")
        settings.date_culture = DateCulture.EUROPEAN.value

    logger.debug(f"Settings loaded from {path}")
    return settings


def save_settings(settings: Settings, path: Optional[Path] = None) -> Path:
    """Write settings as TOML, creating the parent directory."""
    path = path or default_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        toml.dump(asdict(settings), f)

    logger.debug(f"Settings saved to {path}")
    return path
