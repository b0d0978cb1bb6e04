# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Request handling in front of the enumeration and mutation core.

Each handler gates on the caller's permission, validates the request
body, opens a fresh :class:`~.scope.ExecutionScope`, calls the core, and
renders the outcome as a :class:`Response`.  The layer knows nothing
about the transport; the D-Bus service and the CLI both sit on top of it.

Status codes:

=================== ======
Outcome             Status
=================== ======
success             200
permission denied   400
invalid body        400
NotFound            404
Rejected            403
DeadlineExceeded    403
EnumerationError    500
=================== ======
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from functools import partial, wraps
from typing import Any, TypeVar

import pydantic

from .engine_client import EngineClient
from .enumerator import ResourceFilter, collect, enumerate_resources
from .errors import (
    DeadlineExceeded,
    NotFound,
    PermissionDenied,
    Rejected,
    ValidationFailed,
    WharfError,
)
from .gateway import MutationGateway
from .models import (
    ConnectNetworkRequest,
    CreateNetworkRequest,
    DisconnectNetworkRequest,
    ImageRemoveRequest,
    ImageTagRequest,
    RequestModel,
)
from .permissions import Operation, Principal, is_allowed
from .scope import DEFAULT_TIMEOUT, ExecutionScope

logger = logging.getLogger(__name__)

_M = TypeVar("_M", bound=RequestModel)

_Handler = Callable[..., Awaitable[Any]]


@dataclass(frozen=True)
class Response:
    status: int
    body: Any

    @property
    def ok(self) -> bool:
        return self.status == 200

    def to_json(self) -> str:
        return json.dumps(self.body)


def status_for(error: WharfError) -> int:
    if isinstance(error, (PermissionDenied, ValidationFailed)):
        return 400
    if isinstance(error, NotFound):
        return 404
    if isinstance(error, (Rejected, DeadlineExceeded)):
        return 403
    # EnumerationError and anything unclassified
    return 500


def handler(operation: Operation) -> Callable[[_Handler], Callable[..., Awaitable[Response]]]:
    """Wrap an API method with the permission check and error rendering.

    The wrapped method takes the :class:`Principal` as its first
    argument; the undecorated body never sees it.
    """
    def decorator(func: _Handler) -> Callable[..., Awaitable[Response]]:
        @wraps(func)
        async def wrapper(self: WharfAPI, principal: Principal, *args: Any, **kwargs: Any) -> Response:
            try:
                if not is_allowed(principal, operation):
                    raise PermissionDenied("Invalid permissions")
                body = await func(self, *args, **kwargs)
            except PermissionDenied as e:
                logger.info("%s denied for %s", operation.value, principal.name)
                return Response(status_for(e), {"error": e.message})
            except WharfError as e:
                logger.error("%s failed: %s", operation.value, e.message)
                return Response(status_for(e), {"error": e.message})
            return Response(200, body)
        return wrapper
    return decorator


def _parse(model: type[_M], body: Mapping[str, Any] | None) -> _M:
    try:
        return model.model_validate(dict(body or {}))
    except pydantic.ValidationError as e:
        raise ValidationFailed(str(e)) from None


def _flag(query: Mapping[str, Any] | None, key: str) -> bool:
    return str((query or {}).get(key, "")).lower() in ("1", "true", "yes")


class WharfAPI:
    """Image and network handlers bound to one engine."""

    def __init__(self, engine: EngineClient, timeout: float = DEFAULT_TIMEOUT):
        self._engine = engine
        self._gateway = MutationGateway(engine)
        self._timeout = timeout

    def _scope(self, name: str) -> ExecutionScope:
        return ExecutionScope(timeout=self._timeout, name=name)

    async def _enumerate(self, name: str, lister: Callable[[ResourceFilter], Any], filters: ResourceFilter) -> list[Any]:
        async with self._scope(name) as scope:
            items = await collect(enumerate_resources(scope, lister, filters))
        return [item.to_json_dict() for item in items]

    # -------------------------------------------------------------------------
    # Images
    # -------------------------------------------------------------------------

    @handler(Operation.LIST_IMAGES)
    async def list_images(self, query: Mapping[str, str] | None = None) -> list[Any]:
        """List images.

        Query keys: ``dangling=true`` restricts to untagged images,
        ``all=true`` includes intermediate layers.
        """
        filters: ResourceFilter = {"dangling": ["true"]} if _flag(query, "dangling") else {}
        lister = partial(self._engine.list_images, all_images=_flag(query, "all"))
        return await self._enumerate("list-images", lister, filters)

    @handler(Operation.PRUNE_IMAGES)
    async def prune_images(self) -> Any:
        async with self._scope("prune-images") as scope:
            report = await self._gateway.prune_images(scope)
        return report.to_json_dict()

    @handler(Operation.REMOVE_IMAGE)
    async def remove_image(self, image_id: str, body: Mapping[str, Any] | None = None) -> Any:
        req = _parse(ImageRemoveRequest, body)
        async with self._scope("remove-image") as scope:
            items = await self._gateway.remove_image(
                scope,
                image_id,
                force=bool(req.force),
                prune_children=bool(req.prune_children),
            )
        return [item.to_json_dict() for item in items]

    @handler(Operation.TAG_IMAGE)
    async def tag_image(self, image_id: str, body: Mapping[str, Any] | None = None) -> Any:
        req = _parse(ImageTagRequest, body)
        async with self._scope("tag-image") as scope:
            await self._gateway.tag_image(scope, image_id, req.tag)
        return f"{image_id} tagged successfully"

    # -------------------------------------------------------------------------
    # Networks
    # -------------------------------------------------------------------------

    @handler(Operation.LIST_NETWORKS)
    async def list_networks(self, query: Mapping[str, str] | None = None) -> list[Any]:
        filters: ResourceFilter = {"dangling": ["true"]} if _flag(query, "dangling") else {}
        return await self._enumerate("list-networks", self._engine.list_networks, filters)

    @handler(Operation.PRUNE_NETWORKS)
    async def prune_networks(self) -> Any:
        async with self._scope("prune-networks") as scope:
            report = await self._gateway.prune_networks(scope)
        return report.to_json_dict()

    @handler(Operation.REMOVE_NETWORK)
    async def remove_network(self, network_id: str) -> Any:
        async with self._scope("remove-network") as scope:
            await self._gateway.remove_network(scope, network_id)
        return {"message": f"{network_id} network removed"}

    @handler(Operation.CONNECT_NETWORK)
    async def connect_network(self, network_id: str, body: Mapping[str, Any] | None = None) -> Any:
        req = _parse(ConnectNetworkRequest, body)
        async with self._scope("connect-network") as scope:
            await self._gateway.connect_network(scope, network_id, req.container_id)
        return {"message": f"{req.container_id} connection created with {network_id}"}

    @handler(Operation.DISCONNECT_NETWORK)
    async def disconnect_network(self, network_id: str, body: Mapping[str, Any] | None = None) -> Any:
        req = _parse(DisconnectNetworkRequest, body)
        async with self._scope("disconnect-network") as scope:
            await self._gateway.disconnect_network(
                scope, network_id, req.container_id, force=bool(req.force),
            )
        return {"message": f"{req.container_id} connection lost with {network_id}"}

    @handler(Operation.CREATE_NETWORK)
    async def create_network(self, body: Mapping[str, Any] | None = None) -> Any:
        req = _parse(CreateNetworkRequest, body)
        async with self._scope("create-network") as scope:
            created = await self._gateway.create_network(scope, req.name, req.driver)
        return created.to_json_dict()
