"""
_errors.py
==========
Exception types raised by splitmatch.

Both classes derive from ``ValueError`` so callers that already guard
against bad arguments keep working.  They are raised synchronously, before
any computation starts; nothing in the package retries or returns partial
results.
"""


class SizeMismatchError(ValueError):
    """Two operands declare different tip counts (or different tip sets)."""


class InvalidInputError(ValueError):
    """A cost matrix or bit-vector has malformed dimensions or dtype."""
