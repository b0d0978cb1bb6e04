# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Async client for the container engine's REST API.

This module provides a typed async client for the Docker Engine API,
communicating over the Unix socket at /var/run/docker.sock.  It is the
resource source behind both the enumerator and the mutation gateway.
"""

from __future__ import annotations

import json
from typing import Any

import httpx

from .enumerator import ResourceFilter
from .models import (
    ImageDeleteResponseItem,
    ImagePruneReport,
    ImageSummary,
    NetworkCreate,
    NetworkCreateResponse,
    NetworkPruneReport,
    NetworkResource,
)

DEFAULT_SOCKET_PATH = "/var/run/docker.sock"
DEFAULT_API_VERSION = "v1.43"


class EngineError(Exception):
    """Error from the engine API."""

    def __init__(self, message: str, code: int | None = None):
        super().__init__(message)
        self.code = code

    @property
    def not_found(self) -> bool:
        return self.code == 404


def split_reference(reference: str) -> tuple[str, str]:
    """Split ``repo[:tag]`` into repository and tag.

    The tag separator is the last colon after the last slash, so a
    registry port (``host:5000/app``) is not mistaken for a tag.
    """
    slash = reference.rfind("/")
    colon = reference.rfind(":")
    if colon > slash:
        return reference[:colon], reference[colon + 1:]
    return reference, "latest"


def _encode_filters(filters: ResourceFilter | None) -> dict[str, str]:
    if not filters:
        return {}
    return {"filters": json.dumps({k: list(v) for k, v in filters.items()})}


class EngineClient:
    """Async client for the engine REST API over its Unix socket."""

    def __init__(
        self,
        socket_path: str = DEFAULT_SOCKET_PATH,
        api_version: str = DEFAULT_API_VERSION,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._socket_path = socket_path
        self._prefix = f"/{api_version.strip('/')}" if api_version else ""
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            transport = self._transport or httpx.AsyncHTTPTransport(uds=self._socket_path)
            # Deadlines are enforced by the caller's execution scope.
            self._client = httpx.AsyncClient(
                transport=transport,
                base_url="http://docker",
                timeout=None,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        """Make request and handle the engine's error format.

        Failed requests carry a body of the form ``{"message": "..."}``;
        successful ones are JSON or empty.
        """
        client = await self._get_client()
        try:
            response = await client.request(method, self._prefix + path, **kwargs)
        except httpx.HTTPError as e:
            raise EngineError(f"Cannot reach engine: {e}") from e

        if response.is_error:
            try:
                message = response.json().get("message", response.text)
            except (ValueError, AttributeError):
                message = response.text or response.reason_phrase
            raise EngineError(message, response.status_code)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """GET request."""
        return await self._request("GET", path, params=params)

    async def post(
        self,
        path: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """POST request."""
        return await self._request("POST", path, json=json, params=params)

    async def delete(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """DELETE request."""
        return await self._request("DELETE", path, params=params)

    # -------------------------------------------------------------------------
    # Images
    # -------------------------------------------------------------------------

    async def list_images(
        self, filters: ResourceFilter | None = None, all_images: bool = False
    ) -> list[ImageSummary]:
        """List images.

        Args:
            filters: Engine filters, e.g. ``{"dangling": ["true"]}``.
            all_images: Include intermediate layers.
        """
        params = _encode_filters(filters)
        if all_images:
            params["all"] = "true"
        data = await self.get("/images/json", params=params)
        return [ImageSummary.model_validate(item) for item in data or []]

    async def prune_images(self, filters: ResourceFilter | None = None) -> ImagePruneReport:
        data = await self.post("/images/prune", params=_encode_filters(filters))
        return ImagePruneReport.model_validate(data or {})

    async def remove_image(
        self, image_id: str, force: bool = False, prune_children: bool = False
    ) -> list[ImageDeleteResponseItem]:
        """Remove an image.

        ``prune_children`` maps onto the engine's inverted ``noprune`` flag.
        """
        params = {
            "force": str(force).lower(),
            "noprune": str(not prune_children).lower(),
        }
        data = await self.delete(f"/images/{image_id}", params=params)
        return [ImageDeleteResponseItem.model_validate(item) for item in data or []]

    async def tag_image(self, image_id: str, reference: str) -> None:
        repo, tag = split_reference(reference)
        await self.post(f"/images/{image_id}/tag", params={"repo": repo, "tag": tag})

    # -------------------------------------------------------------------------
    # Networks
    # -------------------------------------------------------------------------

    async def list_networks(self, filters: ResourceFilter | None = None) -> list[NetworkResource]:
        data = await self.get("/networks", params=_encode_filters(filters))
        return [NetworkResource.model_validate(item) for item in data or []]

    async def prune_networks(self, filters: ResourceFilter | None = None) -> NetworkPruneReport:
        data = await self.post("/networks/prune", params=_encode_filters(filters))
        return NetworkPruneReport.model_validate(data or {})

    async def remove_network(self, network_id: str) -> None:
        await self.delete(f"/networks/{network_id}")

    async def connect_network(self, network_id: str, container_id: str) -> None:
        await self.post(f"/networks/{network_id}/connect", json={"Container": container_id})

    async def disconnect_network(
        self, network_id: str, container_id: str, force: bool = False
    ) -> None:
        await self.post(
            f"/networks/{network_id}/disconnect",
            json={"Container": container_id, "Force": force},
        )

    async def create_network(self, options: NetworkCreate) -> NetworkCreateResponse:
        data = await self.post("/networks/create", json=options.model_dump(by_alias=True))
        return NetworkCreateResponse.model_validate(data)

    # -------------------------------------------------------------------------
    # Health
    # -------------------------------------------------------------------------

    async def is_available(self) -> bool:
        """Check if the engine is available and responding.

        Returns:
            True if the engine answered the ping.
        """
        try:
            await self.get("/_ping")
            return True
        except EngineError:
            return False
