"""Error types raised across ``qnets``.

All of them are fatal contract violations: nothing in the package retries
or auto-corrects after raising one.
"""

from __future__ import annotations


class QNetsError(Exception):
    """Base class for every error raised by ``qnets``."""


class PreconditionError(QNetsError, RuntimeError):
    """An operation was called in the wrong lifecycle state.

    Examples: ``forward`` on a layer whose views were never built with
    ``reset()``, or ``backward`` without a preceding ``forward``.
    """


class ShapeMismatchError(QNetsError, ValueError):
    """An array does not have the shape an operation requires."""


class SerializationError(QNetsError, ValueError):
    """Persisted state is missing or inconsistent with its declared sizes."""
