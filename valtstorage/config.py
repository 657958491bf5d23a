"""Configuration for the ValtStorage CLI.

Settings are resolved once at start-up from three layers, lowest first:
built-in defaults, the user's JSON file (``~/.valtstorage/config.json``) and
``VALTSTORAGE_*`` environment variables. Demo mode always wins over any API URL.
"""

import json
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from rich.color import Color, ColorParseError

from valtstorage.log import get_logger

logger = get_logger(__name__)

PRODUCTION_API_URL = "https://valtstorage.cloud/api/public"
DEVELOPMENT_API_URL = "http://localhost:8080/api/public"
MOCK_API_URL = "mock"

DEMO_ENVIRONMENT = "demo"

ENVIRONMENT_URLS = {
    "production": PRODUCTION_API_URL,
    "development": DEVELOPMENT_API_URL,
    DEMO_ENVIRONMENT: MOCK_API_URL,
}

CONFIG_DIR = Path.home() / ".valtstorage"
CONFIG_FILE = CONFIG_DIR / "config.json"

THEMES: Dict[str, Dict[str, str]] = {
    "default": {
        "primary": "cyan",
        "secondary": "blue",
        "success": "green",
        "error": "red",
        "warning": "yellow",
        "info": "white",
        "border": "cyan",
    },
    "dark": {
        "primary": "blue",
        "secondary": "cyan",
        "success": "green",
        "error": "red",
        "warning": "yellow",
        "info": "grey50",
        "border": "blue",
    },
    "light": {
        "primary": "cyan",
        "secondary": "blue",
        "success": "green",
        "error": "red",
        "warning": "yellow",
        "info": "black",
        "border": "cyan",
    },
    "blue": {
        "primary": "blue",
        "secondary": "cyan",
        "success": "green",
        "error": "red",
        "warning": "yellow",
        "info": "white",
        "border": "blue",
    },
    "green": {
        "primary": "green",
        "secondary": "cyan",
        "success": "blue",
        "error": "red",
        "warning": "yellow",
        "info": "white",
        "border": "green",
    },
}

_TRUE_WORDS = {"true", "yes", "on", "1"}
_FALSE_WORDS = {"false", "no", "off", "0"}
_POSITIVE_KEYS = ("timeout", "progress_update_interval")


def default_config_path() -> Path:
    """Config file location, honouring VALTSTORAGE_CONFIG."""
    override = os.environ.get("VALTSTORAGE_CONFIG")
    return Path(override).expanduser() if override else CONFIG_FILE


@dataclass
class Settings:
    """Effective CLI settings.

    Build with :meth:`load` to get the layered resolution; the plain
    constructor gives the built-in defaults.
    """

    api_url: str = PRODUCTION_API_URL
    environment: str = "production"
    timeout: float = 60
    progress_update_interval: float = 0.5

    # Terminal window settings
    use_dedicated_window: bool = True
    window_title: str = "ValStorage CLI"
    interactive_mode: bool = True
    terminal_theme: str = "default"
    terminal_colors: Dict[str, str] = field(
        default_factory=lambda: dict(THEMES["default"])
    )

    path: Path = field(default_factory=default_config_path, repr=False, compare=False)

    @classmethod
    def keys(cls) -> tuple:
        """Names of the persisted settings."""
        return tuple(f.name for f in fields(cls) if f.name != "path")

    @classmethod
    def load(
        cls,
        path: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "Settings":
        """Resolve settings from defaults, the config file and the environment.

        A missing file is normal. An unreadable or malformed file is logged
        and ignored so the CLI still starts on defaults.
        """
        settings = cls(path=Path(path) if path else default_config_path())
        settings._merge_file()
        settings._apply_env(os.environ if environ is None else environ)

        if settings.environment == DEMO_ENVIRONMENT:
            settings.api_url = MOCK_API_URL

        settings.apply_theme(settings.terminal_theme)
        return settings

    def _merge_file(self) -> None:
        if not self.path.exists():
            return
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Error loading configuration from {self.path}: {e}")
            return
        if not isinstance(data, dict):
            logger.warning(
                f"Ignoring configuration in {self.path}: expected a JSON object"
            )
            return

        defaults = Settings()
        for key in self.keys():
            if key not in data:
                continue
            value = data[key]
            if not _same_kind(getattr(defaults, key), value):
                logger.warning(f"Ignoring config key '{key}': unexpected value {value!r}")
                continue
            if key in _POSITIVE_KEYS and value <= 0:
                logger.warning(f"Ignoring config key '{key}': must be greater than 0, got {value!r}")
                continue
            if key == "terminal_colors" and not _valid_colors(value):
                logger.warning(f"Ignoring terminal_colors in {self.path}: invalid color value, using the default palette")
                self.terminal_colors = dict(THEMES["default"])
                continue
            setattr(self, key, dict(value) if isinstance(value, dict) else value)

    def _apply_env(self, environ: Mapping[str, str]) -> None:
        if environ.get("VALTSTORAGE_ENV"):
            self.environment = environ["VALTSTORAGE_ENV"]
        if environ.get("VALTSTORAGE_API_URL"):
            self.api_url = environ["VALTSTORAGE_API_URL"]
        if environ.get("VALTSTORAGE_WINDOW_TITLE"):
            self.window_title = environ["VALTSTORAGE_WINDOW_TITLE"]

        interactive = environ.get("VALTSTORAGE_INTERACTIVE")
        if interactive == "true":
            self.interactive_mode = True
        elif interactive == "false":
            self.interactive_mode = False

    def apply_theme(self, name: str) -> bool:
        """Swap in a named palette. Unknown names leave the colors as they are."""
        theme = THEMES.get(name)
        if theme is None:
            return False
        self.terminal_colors = dict(theme)
        return True

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data.pop("path")
        return data

    def save(self) -> bool:
        """Write settings to disk. Returns False instead of raising."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(self.to_dict(), indent=2), encoding="utf-8")
        except OSError as e:
            logger.error(f"Error saving configuration to {self.path}: {e}")
            return False
        logger.debug(f"Configuration saved to {self.path}")
        return True

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self.keys():
            return default
        return getattr(self, key)

    def set(self, key: str, value: Any, persist: bool = False) -> bool:
        """Update one setting, optionally writing the file.

        Raises:
            KeyError: If ``key`` is not a known setting.
        """
        if key not in self.keys():
            raise KeyError(key)
        setattr(self, key, value)

        if key == "terminal_theme":
            self.apply_theme(value)

        if persist:
            return self.save()
        return True

    def set_environment(self, env: str, persist: bool = False) -> bool:
        """Switch environment and point api_url at that environment's server."""
        if env not in ENVIRONMENT_URLS:
            logger.error(
                f"Invalid environment: {env}. Must be one of: {', '.join(ENVIRONMENT_URLS)}"
            )
            return False

        self.environment = env
        self.api_url = ENVIRONMENT_URLS[env]

        if persist:
            return self.save()
        return True

    def reset(self, persist: bool = False) -> bool:
        defaults = Settings(path=self.path)
        for key in self.keys():
            setattr(self, key, getattr(defaults, key))
        if persist:
            return self.save()
        return True

    @property
    def is_demo(self) -> bool:
        return self.environment == DEMO_ENVIRONMENT

    @property
    def api_base_url(self) -> str:
        if self.is_demo:
            return MOCK_API_URL
        return self.api_url

    def color(self, role: str) -> str:
        return self.terminal_colors.get(role, "white")


def coerce_value(key: str, raw: str) -> Any:
    """Convert a command-line string to the type of setting ``key``.

    Raises:
        KeyError: Unknown setting.
        ValueError: The string does not fit the setting's type.
    """
    if key not in Settings.keys():
        raise KeyError(key)
    current = getattr(Settings(), key)

    if isinstance(current, bool):
        lowered = raw.strip().lower()
        if lowered in _TRUE_WORDS:
            return True
        if lowered in _FALSE_WORDS:
            return False
        raise ValueError(f"'{raw}' is not a boolean")
    if isinstance(current, (int, float)):
        value = float(raw) if "." in raw else int(raw)
        if key in _POSITIVE_KEYS and value <= 0:
            raise ValueError(f"'{key}' must be greater than 0")
        return value
    if isinstance(current, dict):
        raise ValueError(f"'{key}' cannot be set directly; set terminal_theme instead")
    return raw


def _same_kind(default: Any, value: Any) -> bool:
    if isinstance(default, bool):
        return isinstance(value, bool)
    if isinstance(default, (int, float)):
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    return isinstance(value, type(default))


def _valid_colors(colors: Dict[str, Any]) -> bool:
    for value in colors.values():
        if not isinstance(value, str):
            return False
        try:
            Color.parse(value)
        except ColorParseError:
            return False
    return True


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Process-wide settings, loaded on first use."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def set_settings(settings: Optional[Settings]) -> None:
    """Replace the process-wide settings (None forces a reload on next use)."""
    global _settings
    _settings = settings
