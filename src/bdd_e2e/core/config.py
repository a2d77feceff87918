import os
import yaml
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from dotenv import find_dotenv, load_dotenv

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

SUPPORTED_BROWSERS = ("chromium", "firefox", "webkit")

_TRUE_VALUES = {"true", "1", "yes", "on"}
_FALSE_VALUES = {"false", "0", "no", "off"}


def parse_bool(value: Optional[str], default: bool) -> bool:
    """Parse a boolean environment flag, falling back to default when unset"""
    if value is None or not value.strip():
        return default

    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False

    raise ConfigurationError(f"Invalid boolean value: {value!r}")


def load_environment(dotenv_path: Optional[Path] = None) -> bool:
    """Load variables from a .env file without overriding the process environment"""
    dotenv_path = dotenv_path or find_dotenv(usecwd=True)
    loaded = load_dotenv(dotenv_path=dotenv_path, override=False)
    if loaded:
        logger.debug(f"Loaded environment from {dotenv_path or '.env'}")
    return loaded


@dataclass
class BrowserSettings:
    """
    Browser selection for the scenario lifecycle.

    Resolved once per scenario setup, either injected or read from the
    process environment with ``from_env``. Headless unless ``HEADLESS`` is
    explicitly set to a false value.
    """
    browser: str = "chromium"
    headless: bool = True
    base_url: str = ""
    environment: str = "dev"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "BrowserSettings":
        environ = os.environ if environ is None else environ
        defaults = cls()

        return cls(
            browser=(environ.get("BROWSER") or "").strip().lower() or defaults.browser,
            headless=parse_bool(environ.get("HEADLESS"), defaults.headless),
            base_url=environ.get("BASE_URL") or defaults.base_url,
            environment=environ.get("ENV") or defaults.environment,
        )

    def validate(self) -> None:
        if self.browser not in SUPPORTED_BROWSERS:
            raise ConfigurationError(
                f"Unsupported browser: {self.browser!r} "
                f"(expected one of {', '.join(SUPPORTED_BROWSERS)})"
            )


class ConfigManager:
    """Manages the runner profile for bdd-e2e"""

    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = config_path or self._get_default_config_path()
        self._config = self._load_config()

    def _get_default_config_path(self) -> Path:
        """Get default configuration path"""
        # Check environment variable first
        if env_path := os.getenv("BDD_E2E_CONFIG"):
            return Path(env_path)

        locations = [
            Path.cwd() / "bdd-e2e.yaml",
            Path.cwd() / ".bdd-e2e" / "config.yaml",
        ]

        for location in locations:
            if location.exists():
                return location

        return Path.cwd() / "bdd-e2e.yaml"

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from file, layered over the defaults"""
        config = self._get_default_config()
        if not self.config_path.exists():
            return config

        with open(self.config_path, 'r') as f:
            if self.config_path.suffix in ('.yaml', '.yml'):
                loaded = yaml.safe_load(f) or {}
            elif self.config_path.suffix == '.json':
                loaded = json.load(f)
            else:
                raise ConfigurationError(f"Unsupported config format: {self.config_path.suffix}")

        if not isinstance(loaded, dict):
            raise ConfigurationError(f"Config file must contain a mapping: {self.config_path}")

        logger.info(f"Loaded profile from {self.config_path}")
        return _merge(config, loaded)

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration"""
        return {
            "general": {
                "log_level": "INFO",
            },
            "runner": {
                "parallel": 2,
                "formats": [
                    "html:reports/cucumber-report.html",
                    "json:reports/cucumber-report.json",
                    "junit:reports/cucumber-report.xml",
                ],
                "paths": ["features/**/*.feature"],
                "require": [
                    "features/support/**/*.py",
                    "features/steps/**/*.py",
                ],
                "retry": 0,
                "timeout": 30000,
                "names": [],
                "tags": None,
                "fail_fast": False,
            },
        }

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value using dot notation"""
        keys = key.split('.')
        value = self._config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def set(self, key: str, value: Any) -> None:
        """Set configuration value using dot notation"""
        keys = key.split('.')
        config = self._config

        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value

    def save(self) -> None:
        """Save configuration to file"""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(self.config_path, 'w') as f:
            if self.config_path.suffix == '.json':
                json.dump(self._config, f, indent=2)
            else:
                yaml.dump(self._config, f, default_flow_style=False)

    def get_module_config(self, module_name: str) -> Dict[str, Any]:
        """Get configuration for a specific section"""
        return self.get(module_name, {})


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged
