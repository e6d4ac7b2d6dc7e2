"""Exception hierarchy for the SARFI engine.

Whole-operation preconditions (missing profile, unreadable import header)
are raised to the caller.  Row- and entry-level problems are never raised
past the component that found them: they are collected into the result
objects in :mod:`src.contracts.results`.
"""

from __future__ import annotations


class SarfiError(Exception):
    """Base class for every error raised by the engine."""


class NotFoundError(SarfiError):
    """A referenced profile, weight entry or meter does not exist."""

    def __init__(self, kind: str, ident: str) -> None:
        super().__init__(f"{kind} not found: {ident}")
        self.kind = kind
        self.ident = ident


class PersistenceError(SarfiError):
    """The store failed to write one unit (a row or a weight entry)."""


class ImportFormatError(SarfiError):
    """Import text has no header or lacks a required column."""


class ValidationError(SarfiError):
    """Row-scoped validation failure.

    Only used internally by the importer to carry a message; it is converted
    into an :class:`~src.contracts.results.ImportRowError` and never escapes.
    """
