"""Configuration loader for cotate

Values are resolved with the following priority:
1. Environment variables (highest priority)
2. .env file (current directory, then the Codex home directory)
3. Hardcoded defaults (lowest priority)
"""

import logging
import os
from pathlib import Path
from typing import Any, List, Optional
from dotenv import load_dotenv

logger = logging.getLogger(__name__)


class ConfigLoader:
    """Resolves typed configuration values from the environment"""

    def __init__(self, env_paths: Optional[List[str]] = None):
        """Initialize the config loader

        Args:
            env_paths: Optional list of .env files to load, first match wins
                       per variable. Defaults to './.env' and '~/.codex/cotate.env'.
        """
        if env_paths is None:
            env_paths = [".env", str(Path.home() / ".codex" / "cotate.env")]
        self.env_paths = [Path(p).expanduser() for p in env_paths]
        self._load_env_files()

    def _load_env_files(self):
        """Load every existing .env file without overriding real env vars"""
        for path in self.env_paths:
            if path.exists():
                load_dotenv(dotenv_path=path, override=False)
                logger.debug(f"Loaded environment variables from {path}")

    def get(self, env_var: str, default: Any) -> Any:
        """Get a configuration value, coerced to the type of the default

        Args:
            env_var: Environment variable name to check
            default: Default value if not set (also decides the type)

        Returns:
            The configuration value from the environment or the default
        """
        env_value = os.getenv(env_var)
        if env_value is None or env_value == "":
            if isinstance(default, str) and default.startswith("~"):
                return str(Path(default).expanduser())
            return default

        if isinstance(default, bool):
            return env_value.lower() in ("true", "1", "yes")
        if isinstance(default, int):
            try:
                return int(env_value)
            except ValueError:
                logger.warning(f"Failed to parse {env_var}={env_value} as int, using default: {default}")
                return default
        if isinstance(default, float):
            try:
                return float(env_value)
            except ValueError:
                logger.warning(f"Failed to parse {env_var}={env_value} as float, using default: {default}")
                return default
        if isinstance(default, str) and env_value.startswith("~"):
            return str(Path(env_value).expanduser())
        return env_value


_config_loader = None


def get_config_loader() -> ConfigLoader:
    """Get or create the global ConfigLoader instance"""
    global _config_loader
    if _config_loader is None:
        _config_loader = ConfigLoader()
    return _config_loader
