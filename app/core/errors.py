# File: /app/core/errors.py | Version: 1.0 | Title: Domain error taxonomy (not found / invalid input / conflict)
from __future__ import annotations


class DomainError(Exception):
    """Base for errors raised by the crud layer and surfaced to API callers."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(DomainError):
    """An ownership or existence check failed."""

    status_code = 404


class InvalidInputError(DomainError):
    """Malformed input: bad number, blank name, reorder payload mismatch, ..."""

    status_code = 400


class ConflictError(DomainError):
    """Duplicate name on create or rename."""

    status_code = 409
