"""In-process access to the request layer for CLI commands."""

from __future__ import annotations

import getpass

from ..daemon.api import WharfAPI
from ..daemon.config import WharfConfig, load_config
from ..daemon.engine_client import EngineClient
from ..daemon.permissions import Principal

_config: WharfConfig | None = None
_engine: EngineClient | None = None


def get_config() -> WharfConfig:
    global _config
    if _config is None:
        _config = load_config()
    return _config


def get_client() -> EngineClient:
    """Get the shared engine client, creating it on first use."""
    global _engine
    if _engine is None:
        config = get_config()
        _engine = EngineClient(socket_path=config.socket_path, api_version=config.api_version)
    return _engine


async def close_client() -> None:
    global _engine
    if _engine is not None:
        await _engine.close()
        _engine = None


def get_api() -> WharfAPI:
    return WharfAPI(get_client(), timeout=get_config().request_timeout)


def get_principal() -> Principal:
    """The local user, at the configured permission level."""
    return Principal(name=getpass.getuser(), permission=get_config().permission)
