# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Permission levels and the operation policy.

The core never looks at who is calling.  The request layer asks
:func:`is_allowed` before dispatching, so the policy lives in one table
instead of being repeated in every handler.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass


class Permission(enum.IntEnum):
    """Ordered permission levels."""

    READ = 0
    WRITE = 1
    EXECUTE = 2

    @classmethod
    def parse(cls, value: str) -> Permission:
        try:
            return cls[value.strip().upper()]
        except KeyError:
            valid = ", ".join(p.name.lower() for p in cls)
            raise ValueError(f"Unknown permission {value!r} (expected one of: {valid})") from None


class Operation(enum.Enum):
    LIST_IMAGES = "list_images"
    PRUNE_IMAGES = "prune_images"
    REMOVE_IMAGE = "remove_image"
    TAG_IMAGE = "tag_image"
    LIST_NETWORKS = "list_networks"
    PRUNE_NETWORKS = "prune_networks"
    REMOVE_NETWORK = "remove_network"
    CONNECT_NETWORK = "connect_network"
    DISCONNECT_NETWORK = "disconnect_network"
    CREATE_NETWORK = "create_network"


# Minimum permission for each operation.  Destructive removals and
# network pruning need EXECUTE; anything else that changes state needs
# at least WRITE.
REQUIRED_PERMISSION: dict[Operation, Permission] = {
    Operation.LIST_IMAGES: Permission.READ,
    Operation.PRUNE_IMAGES: Permission.WRITE,
    Operation.REMOVE_IMAGE: Permission.EXECUTE,
    Operation.TAG_IMAGE: Permission.WRITE,
    Operation.LIST_NETWORKS: Permission.READ,
    Operation.PRUNE_NETWORKS: Permission.EXECUTE,
    Operation.REMOVE_NETWORK: Permission.EXECUTE,
    Operation.CONNECT_NETWORK: Permission.WRITE,
    Operation.DISCONNECT_NETWORK: Permission.WRITE,
    Operation.CREATE_NETWORK: Permission.WRITE,
}


@dataclass(frozen=True)
class Principal:
    """A caller identity and its permission level."""

    name: str
    permission: Permission


def is_allowed(principal: Principal, operation: Operation) -> bool:
    return principal.permission >= REQUIRED_PERMISSION[operation]
