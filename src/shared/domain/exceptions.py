"""Base exception taxonomy shared by every bounded context.

Module-level exceptions (``modules.<ctx>.exceptions``) extend these so
the API layer can translate whole families into HTTP status codes.
Infrastructure failures (``django.db.DatabaseError`` and friends) are
deliberately **not** part of this hierarchy.
"""

from __future__ import annotations


class DomainError(Exception):
    """Root of every business-rule violation."""


class NotFound(DomainError):
    """A referenced entity does not exist."""


class InvalidInput(DomainError):
    """The request is well-formed but violates a business precondition."""


class Conflict(DomainError):
    """The operation clashes with existing state (e.g. a duplicate code)."""


class Unauthorized(DomainError):
    """The actor lacks the role or ownership required for the operation."""
