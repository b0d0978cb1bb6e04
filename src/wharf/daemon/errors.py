# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Error taxonomy surfaced by the enumeration and mutation core.

Engine-level failures never leave the core as :class:`EngineError`;
they are translated into one of the classes below so callers can
branch on a small, stable set of outcomes.
"""

from __future__ import annotations


class WharfError(Exception):
    """Base class for every error the core reports."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class DeadlineExceeded(WharfError):
    """The execution scope's deadline elapsed, or the scope was cancelled."""


class NotFound(WharfError):
    """The mutation target does not exist in the engine."""


class Rejected(WharfError):
    """The engine refused the operation (conflict, invalid state, failure)."""

    def __init__(self, message: str, code: int | None = None):
        super().__init__(message)
        self.code = code


class EnumerationError(WharfError):
    """A listing run failed; partial results must not be used."""

    def __init__(self, detail: str, cause: BaseException | None = None):
        super().__init__(detail)
        self.detail = detail
        self.cause = cause

    @property
    def deadline_exceeded(self) -> bool:
        return isinstance(self.cause, DeadlineExceeded)


class PermissionDenied(WharfError):
    """The principal's permission level does not allow the operation."""


class ValidationFailed(WharfError):
    """A request body failed structural validation."""
