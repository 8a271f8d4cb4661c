from __future__ import annotations

from pathlib import Path

EXCLUDED_CONFIG_FILE_PARAMS = (
    "config_path",
    "no_config_file",
    "version",
    "help",
)

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3000
DEFAULT_TOKEN_REFRESH_INTERVAL = 60
DEFAULT_CONFIG_PATH = Path.home() / ".canvify" / "config.json"

ROUTE_PREFIXES = ("", "/spotify")
