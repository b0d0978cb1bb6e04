# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""D-Bus service implementation for Wharf.

Uses dbus-fast for async D-Bus communication.  Every method takes its
arguments as JSON strings and returns an ``(is)`` struct of
``(status, json_body)`` straight from the request layer.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from dbus_fast.aio import MessageBus
from dbus_fast.service import ServiceInterface, method, dbus_property, PropertyAccess
from dbus_fast import BusType

from . import __version__
from .api import Response, WharfAPI
from .config import WharfConfig, load_config
from .engine_client import EngineClient
from .permissions import Principal

logger = logging.getLogger(__name__)

BUS_NAME = "org.wharf"
OBJECT_PATH = "/org/wharf"


def _loads(payload: str) -> dict[str, Any]:
    """Decode an optional JSON object argument."""
    if not payload:
        return {}
    data = json.loads(payload)
    if not isinstance(data, dict):
        raise ValueError("expected a JSON object")
    return data


def _reply(response: Response) -> list[Any]:
    return [response.status, response.to_json()]


def _bad_request(error: ValueError) -> list[Any]:
    return [400, json.dumps({"error": f"Invalid JSON argument: {error}"})]


class WharfManagerInterface(ServiceInterface):
    """org.wharf.Manager D-Bus interface.

    Provides image and network management over D-Bus.  Bus callers act
    with the principal the daemon was configured with.
    """

    def __init__(self, api: WharfAPI, engine: EngineClient, principal: Principal):
        super().__init__("org.wharf.Manager")
        self._api = api
        self._engine = engine
        self._principal = principal
        self._version = __version__

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @dbus_property(access=PropertyAccess.READ)
    def Version(self) -> "s":
        """Daemon version."""
        return self._version

    # -------------------------------------------------------------------------
    # Methods
    # -------------------------------------------------------------------------

    @method()
    async def IsEngineAvailable(self) -> "b":
        """Check whether the container engine is reachable."""
        return await self._engine.is_available()

    @method()
    async def ListImages(self, query: "s") -> "(is)":
        """List images.  ``query`` may set ``dangling`` and ``all``."""
        try:
            args = _loads(query)
        except ValueError as e:
            return _bad_request(e)
        return _reply(await self._api.list_images(self._principal, args))

    @method()
    async def PruneImages(self) -> "(is)":
        return _reply(await self._api.prune_images(self._principal))

    @method()
    async def RemoveImage(self, image_id: "s", body: "s") -> "(is)":
        try:
            args = _loads(body)
        except ValueError as e:
            return _bad_request(e)
        return _reply(await self._api.remove_image(self._principal, image_id, args))

    @method()
    async def TagImage(self, image_id: "s", body: "s") -> "(is)":
        try:
            args = _loads(body)
        except ValueError as e:
            return _bad_request(e)
        return _reply(await self._api.tag_image(self._principal, image_id, args))

    @method()
    async def ListNetworks(self, query: "s") -> "(is)":
        try:
            args = _loads(query)
        except ValueError as e:
            return _bad_request(e)
        return _reply(await self._api.list_networks(self._principal, args))

    @method()
    async def PruneNetworks(self) -> "(is)":
        return _reply(await self._api.prune_networks(self._principal))

    @method()
    async def RemoveNetwork(self, network_id: "s") -> "(is)":
        return _reply(await self._api.remove_network(self._principal, network_id))

    @method()
    async def ConnectNetwork(self, network_id: "s", body: "s") -> "(is)":
        try:
            args = _loads(body)
        except ValueError as e:
            return _bad_request(e)
        return _reply(await self._api.connect_network(self._principal, network_id, args))

    @method()
    async def DisconnectNetwork(self, network_id: "s", body: "s") -> "(is)":
        try:
            args = _loads(body)
        except ValueError as e:
            return _bad_request(e)
        return _reply(await self._api.disconnect_network(self._principal, network_id, args))

    @method()
    async def CreateNetwork(self, body: "s") -> "(is)":
        try:
            args = _loads(body)
        except ValueError as e:
            return _bad_request(e)
        return _reply(await self._api.create_network(self._principal, args))


class WharfService:
    """Main D-Bus service manager."""

    def __init__(self, bus_type: str = "session", config: WharfConfig | None = None):
        """Initialize the service.

        Args:
            bus_type: "session" or "system" bus.
            config: Loaded configuration; read from disk when omitted.
        """
        self._config = config or load_config()
        self._bus_type = BusType.SYSTEM if bus_type == "system" else BusType.SESSION
        self._bus: MessageBus | None = None
        self._engine = EngineClient(
            socket_path=self._config.socket_path,
            api_version=self._config.api_version,
        )
        self._interface: WharfManagerInterface | None = None

    async def start(self) -> None:
        """Start the D-Bus service."""
        self._bus = await MessageBus(bus_type=self._bus_type).connect()

        api = WharfAPI(self._engine, timeout=self._config.request_timeout)
        principal = Principal(name="dbus", permission=self._config.permission)
        self._interface = WharfManagerInterface(api, self._engine, principal)

        self._bus.export(OBJECT_PATH, self._interface)
        await self._bus.request_name(BUS_NAME)

        bus_name = "system" if self._bus_type == BusType.SYSTEM else "session"
        logger.info("Wharf daemon v%s running on %s bus", __version__, bus_name)
        logger.info("Service: %s  Object: %s  Permission: %s",
                    BUS_NAME, OBJECT_PATH, principal.permission.name.lower())

    async def run(self) -> None:
        """Run the service until disconnected."""
        if self._bus is None:
            raise RuntimeError("Service not started")
        await self._bus.wait_for_disconnect()

    async def stop(self) -> None:
        """Stop the D-Bus service."""
        await self._engine.close()
        if self._bus:
            self._bus.disconnect()
            self._bus = None
