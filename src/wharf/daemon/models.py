# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Pydantic models for engine payloads and request bodies.

Engine models mirror the subset of the Docker Engine API schema that
Wharf relays.  Field names follow the engine's PascalCase keys through
aliases; unknown keys are kept so summaries round-trip unchanged.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class EngineModel(BaseModel):
    """Base for models parsed from engine responses."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    def to_json_dict(self) -> dict[str, Any]:
        """Dump using the engine's own key names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# -----------------------------------------------------------------------------
# Images
# -----------------------------------------------------------------------------


class ImageSummary(EngineModel):
    id: str = Field(alias="Id")
    parent_id: Optional[str] = Field(default=None, alias="ParentId")
    repo_tags: Optional[list[str]] = Field(default=None, alias="RepoTags")
    repo_digests: Optional[list[str]] = Field(default=None, alias="RepoDigests")
    created: Optional[int] = Field(default=None, alias="Created")
    size: Optional[int] = Field(default=None, alias="Size")
    shared_size: Optional[int] = Field(default=None, alias="SharedSize")
    labels: Optional[dict[str, str]] = Field(default=None, alias="Labels")
    containers: Optional[int] = Field(default=None, alias="Containers")


class ImageDeleteResponseItem(EngineModel):
    untagged: Optional[str] = Field(default=None, alias="Untagged")
    deleted: Optional[str] = Field(default=None, alias="Deleted")


class ImagePruneReport(EngineModel):
    images_deleted: Optional[list[ImageDeleteResponseItem]] = Field(default=None, alias="ImagesDeleted")
    space_reclaimed: int = Field(default=0, alias="SpaceReclaimed")


# -----------------------------------------------------------------------------
# Networks
# -----------------------------------------------------------------------------


class NetworkResource(EngineModel):
    id: str = Field(alias="Id")
    name: str = Field(alias="Name")
    created: Optional[str] = Field(default=None, alias="Created")
    scope: Optional[str] = Field(default=None, alias="Scope")
    driver: Optional[str] = Field(default=None, alias="Driver")
    internal: Optional[bool] = Field(default=None, alias="Internal")
    attachable: Optional[bool] = Field(default=None, alias="Attachable")
    containers: Optional[dict[str, Any]] = Field(default=None, alias="Containers")
    options: Optional[dict[str, str]] = Field(default=None, alias="Options")
    labels: Optional[dict[str, str]] = Field(default=None, alias="Labels")


class NetworkPruneReport(EngineModel):
    networks_deleted: Optional[list[str]] = Field(default=None, alias="NetworksDeleted")


class NetworkCreate(EngineModel):
    """Body of ``POST /networks/create``."""

    name: str = Field(alias="Name")
    driver: str = Field(alias="Driver")
    scope: str = Field(default="local", alias="Scope")
    internal: bool = Field(default=True, alias="Internal")
    check_duplicate: bool = Field(default=True, alias="CheckDuplicate")


class NetworkCreateResponse(EngineModel):
    id: str = Field(alias="Id")
    warning: Optional[str] = Field(default=None, alias="Warning")


# -----------------------------------------------------------------------------
# Request bodies
# -----------------------------------------------------------------------------


class RequestModel(BaseModel):
    """Base for request bodies accepted by the API layer."""

    model_config = ConfigDict(extra="forbid")


class ImageRemoveRequest(RequestModel):
    force: Optional[bool] = None
    prune_children: Optional[bool] = None


class ImageTagRequest(RequestModel):
    tag: str = Field(min_length=1)


class ConnectNetworkRequest(RequestModel):
    container_id: str = Field(min_length=1)


class DisconnectNetworkRequest(RequestModel):
    container_id: str = Field(min_length=1)
    force: Optional[bool] = None


class CreateNetworkRequest(RequestModel):
    name: str = Field(min_length=1)
    driver: str = Field(min_length=1)
