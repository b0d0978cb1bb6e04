# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Wharf daemon: engine client, enumeration core and D-Bus service."""

from .. import __version__

__all__ = ["__version__"]
