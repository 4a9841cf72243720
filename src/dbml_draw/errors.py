from __future__ import annotations

# ============================================================================
# Error kinds
#
# Local inconsistencies inside a diagram (dangling references, unknown
# column names, a full layout grid) are recovered from and never raised.
# Only failures at the boundary of the core surface as exceptions.
# ============================================================================


class DbmlDrawError(Exception):
    """Base class for errors raised by dbml-draw."""


class ParseError(DbmlDrawError, ValueError):
    """The diagram source could not be turned into a Diagram."""


class LayoutFileError(DbmlDrawError, OSError):
    """A layout file could not be read, decoded or written."""
