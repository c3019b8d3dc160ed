"""campusgate constants: filesystem layout, exit codes, and timings."""

from __future__ import annotations

import os
import sys
from enum import IntEnum
from pathlib import Path

# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------


class ExitCode(IntEnum):
    SUCCESS = 0
    ERROR = 1
    CONFIG_ERROR = 2
    STORE_ERROR = 3
    PERMISSION_ERROR = 5


# ---------------------------------------------------------------------------
# Platform-specific config directory
# ---------------------------------------------------------------------------


def _default_data_dir() -> Path:
    """
    Return the platform-appropriate campusgate data directory.

    macOS : ~/Library/Application Support/campusgate
    Linux : ~/.config/campusgate
    Other : ~/.campusgate
    """
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "campusgate"
    if sys.platform.startswith("linux"):
        xdg = Path(os.environ.get("XDG_CONFIG_HOME", str(Path.home() / ".config")))
        return xdg / "campusgate"
    return Path.home() / ".campusgate"


# ---------------------------------------------------------------------------
# Filesystem layout
# ---------------------------------------------------------------------------

CONFIG_FILENAME = "config.toml"
OVERRIDES_FILENAME = "role_features.yaml"

# ---------------------------------------------------------------------------
# Timings
# ---------------------------------------------------------------------------

SIMULATED_REMOTE_DELAY_S = 0.1  # update_role_feature stands in for a backend call
