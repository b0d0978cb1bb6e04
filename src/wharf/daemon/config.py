# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Wharf configuration loading.

Configuration is read from (lowest to highest priority):
  1. /usr/lib/wharf/wharf.conf   (package defaults)
  2. /etc/wharf/wharf.conf       (system)
  3. ~/.config/wharf/wharf.conf  (user, honours XDG_CONFIG_HOME)

Example::

    [engine]
    socket_path = /var/run/docker.sock
    api_version = v1.43
    request_timeout = 100

    [daemon]
    permission = execute
    log_level = INFO
"""

from __future__ import annotations

import configparser
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from .engine_client import DEFAULT_API_VERSION, DEFAULT_SOCKET_PATH
from .permissions import Permission
from .scope import DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)

PACKAGE_CONFIG = Path("/usr/lib/wharf/wharf.conf")
SYSTEM_CONFIG = Path("/etc/wharf/wharf.conf")

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class WharfConfig:
    socket_path: str = DEFAULT_SOCKET_PATH
    api_version: str = DEFAULT_API_VERSION
    request_timeout: float = DEFAULT_TIMEOUT
    permission: Permission = Permission.EXECUTE
    log_level: str = "INFO"


def user_config_path(home_dir: str | None = None) -> Path:
    """Path of the per-user config file."""
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg and home_dir is None:
        return Path(xdg) / "wharf" / "wharf.conf"
    home = Path(home_dir) if home_dir else Path.home()
    return home / ".config" / "wharf" / "wharf.conf"


def config_paths(home_dir: str | None = None) -> list[Path]:
    """Config files in ascending priority order."""
    return [PACKAGE_CONFIG, SYSTEM_CONFIG, user_config_path(home_dir)]


def load_config(
    home_dir: str | None = None,
    paths: list[Path] | None = None,
) -> WharfConfig:
    """Load and merge every config file that exists.

    Args:
        home_dir: Home directory used to locate the user config.
        paths: Explicit files to read instead of the default locations.

    Raises:
        ValueError: A value is present but invalid.
    """
    parser = configparser.ConfigParser()
    read = parser.read([str(p) for p in (paths if paths is not None else config_paths(home_dir))])
    if read:
        logger.debug("Loaded config from %s", ", ".join(read))

    defaults = WharfConfig()

    try:
        timeout = parser.getfloat("engine", "request_timeout", fallback=defaults.request_timeout)
    except ValueError:
        raise ValueError("engine.request_timeout must be a number of seconds") from None
    if timeout <= 0:
        raise ValueError("engine.request_timeout must be positive")

    permission = defaults.permission
    raw_permission = parser.get("daemon", "permission", fallback=None)
    if raw_permission is not None:
        try:
            permission = Permission.parse(raw_permission)
        except ValueError as e:
            raise ValueError(f"daemon.permission: {e}") from None

    log_level = parser.get("daemon", "log_level", fallback=defaults.log_level).upper()
    if log_level not in _LOG_LEVELS:
        raise ValueError(f"daemon.log_level must be one of {', '.join(_LOG_LEVELS)}")

    return WharfConfig(
        socket_path=parser.get("engine", "socket_path", fallback=defaults.socket_path),
        api_version=parser.get("engine", "api_version", fallback=defaults.api_version),
        request_timeout=timeout,
        permission=permission,
        log_level=log_level,
    )
