# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Single-resource mutations against the engine.

Every operation is one engine call awaited under the caller's
:class:`~.scope.ExecutionScope`.  Engine failures are translated into
:class:`~.errors.NotFound`, :class:`~.errors.Rejected` or
:class:`~.errors.DeadlineExceeded`; nothing is retried.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from typing import TypeVar

import pydantic

from .engine_client import EngineClient, EngineError
from .errors import DeadlineExceeded, NotFound, Rejected
from .models import (
    ImageDeleteResponseItem,
    ImagePruneReport,
    NetworkCreate,
    NetworkCreateResponse,
    NetworkPruneReport,
)
from .scope import ExecutionScope

logger = logging.getLogger(__name__)

T = TypeVar("T")


class MutationGateway:
    """State-changing image and network operations."""

    def __init__(self, engine: EngineClient):
        self._engine = engine

    async def _call(
        self,
        scope: ExecutionScope,
        operation: str,
        target: str | None,
        aw: Awaitable[T],
    ) -> T:
        """Await one engine call under *scope* and translate its failure."""
        label = f"{operation} {target}" if target else operation
        try:
            return await scope.run(aw)
        except EngineError as e:
            if e.not_found:
                logger.info("%s: not found: %s", label, e)
                raise NotFound(str(e)) from e
            logger.warning("%s rejected by engine (%s): %s", label, e.code, e)
            raise Rejected(str(e), e.code) from e
        except pydantic.ValidationError as e:
            logger.warning("%s: unexpected engine response: %s", label, e)
            raise Rejected(f"Unexpected engine response: {e}") from e
        except DeadlineExceeded as e:
            logger.warning("%s abandoned: %s", label, e)
            raise

    # -------------------------------------------------------------------------
    # Images
    # -------------------------------------------------------------------------

    async def remove_image(
        self,
        scope: ExecutionScope,
        image_id: str,
        *,
        force: bool = False,
        prune_children: bool = False,
    ) -> list[ImageDeleteResponseItem]:
        return await self._call(
            scope, "remove image", image_id,
            self._engine.remove_image(image_id, force=force, prune_children=prune_children),
        )

    async def tag_image(self, scope: ExecutionScope, image_id: str, tag: str) -> None:
        await self._call(scope, "tag image", image_id, self._engine.tag_image(image_id, tag))

    async def prune_images(
        self, scope: ExecutionScope, *, dangling_only: bool = True
    ) -> ImagePruneReport:
        """Remove unused images.

        With ``dangling_only=False`` every image not used by a container
        is removed, not just untagged ones.
        """
        filters = {"dangling": ["true" if dangling_only else "false"]}
        return await self._call(scope, "prune images", None, self._engine.prune_images(filters))

    # -------------------------------------------------------------------------
    # Networks
    # -------------------------------------------------------------------------

    async def remove_network(self, scope: ExecutionScope, network_id: str) -> None:
        await self._call(scope, "remove network", network_id, self._engine.remove_network(network_id))

    async def prune_networks(self, scope: ExecutionScope) -> NetworkPruneReport:
        return await self._call(scope, "prune networks", None, self._engine.prune_networks())

    async def connect_network(
        self, scope: ExecutionScope, network_id: str, container_id: str
    ) -> None:
        await self._call(
            scope, "connect network", network_id,
            self._engine.connect_network(network_id, container_id),
        )

    async def disconnect_network(
        self,
        scope: ExecutionScope,
        network_id: str,
        container_id: str,
        *,
        force: bool = False,
    ) -> None:
        await self._call(
            scope, "disconnect network", network_id,
            self._engine.disconnect_network(network_id, container_id, force=force),
        )

    async def create_network(
        self, scope: ExecutionScope, name: str, driver: str
    ) -> NetworkCreateResponse:
        """Create an internal, locally scoped network.

        The engine is asked to refuse duplicate names.
        """
        options = NetworkCreate(name=name, driver=driver)
        return await self._call(scope, "create network", name, self._engine.create_network(options))
