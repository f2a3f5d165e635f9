"""
Configuration and Feature Flags for the Factorio blueprint server

Settings are read from environment variables so the server can be pointed
at a different blueprint file without code changes.

Usage:
    from factorio_mcp.config.settings import Settings, is_enabled

    settings = Settings.from_env()
    path = settings.blueprint_path

    if is_enabled('strict_startup'):
        # Undecodable blueprint file aborts startup
        ...

Environment Variables:
    FACTORIO_MCP_BLUEPRINT_DIR=path      - Directory holding the blueprint file
    FACTORIO_MCP_BLUEPRINT_FILE=name     - Blueprint file name
    FACTORIO_MCP_LOG_LEVEL=INFO          - Root log level
    FACTORIO_MCP_STRICT_STARTUP=true/false - Fail on an undecodable blueprint file
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict


DEFAULT_BLUEPRINT_DIR = "blueprints"
DEFAULT_BLUEPRINT_FILE = "blueprint.txt"


# Feature flags with environment variable overrides
FEATURE_FLAGS: Dict[str, bool] = {
    # Undecodable blueprint file at startup is fatal (false: start empty)
    'strict_startup': os.getenv('FACTORIO_MCP_STRICT_STARTUP', 'true').lower() == 'true',
}


@dataclass
class Settings:
    """Runtime settings for the blueprint server.

    Attributes:
        blueprint_dir: Directory holding the persisted blueprint
        blueprint_file: File name of the persisted blueprint
        log_level: Root logging level name
    """
    blueprint_dir: Path
    blueprint_file: str = DEFAULT_BLUEPRINT_FILE
    log_level: str = "INFO"

    @property
    def blueprint_path(self) -> Path:
        """Full path of the persisted blueprint file."""
        return self.blueprint_dir / self.blueprint_file

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables.

        Returns:
            Settings with defaults applied for unset variables
        """
        return cls(
            blueprint_dir=Path(os.getenv('FACTORIO_MCP_BLUEPRINT_DIR', DEFAULT_BLUEPRINT_DIR)),
            blueprint_file=os.getenv('FACTORIO_MCP_BLUEPRINT_FILE', DEFAULT_BLUEPRINT_FILE),
            log_level=os.getenv('FACTORIO_MCP_LOG_LEVEL', 'INFO').upper(),
        )


def _require_flag(flag: str) -> None:
    if flag not in FEATURE_FLAGS:
        raise KeyError(
            f"Unknown feature flag: '{flag}'. "
            f"Available flags: {', '.join(FEATURE_FLAGS)}"
        )


def is_enabled(flag: str) -> bool:
    """
    Check if a feature flag is enabled.

    Raises:
        KeyError: If flag name is not recognized
    """
    _require_flag(flag)
    return FEATURE_FLAGS[flag]


def get_all_flags() -> Dict[str, bool]:
    return FEATURE_FLAGS.copy()


def set_flag(flag: str, enabled: bool) -> None:
    """Override a feature flag at runtime (tests flip strict_startup this way)."""
    _require_flag(flag)
    FEATURE_FLAGS[flag] = enabled
