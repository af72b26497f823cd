"""Typed failures raised by the taxman services.

Nothing below the HTTP layer catches these; :mod:`taxman.api` maps each class
to a status code and a JSON body.
"""
from __future__ import annotations

from typing import Optional


class TaxmanError(Exception):
    """Base class for business-rule failures."""

    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def as_payload(self) -> dict[str, object]:
        return {"message": self.message}


class NotFoundError(TaxmanError):
    status_code = 404

    def __init__(self, entity: str, entity_id: str) -> None:
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class ConflictError(TaxmanError):
    """A write would break a uniqueness or non-overlap rule."""

    status_code = 409


class IntegrityGuardError(TaxmanError):
    """A delete was refused because dependent records still exist."""

    status_code = 409


class InvalidInputError(TaxmanError):
    """Input passed the request model but fails a cross-field rule."""

    status_code = 422


class UnknownReferenceError(TaxmanError):
    """A payload refers to a client, employee or GST code that does not exist.

    ``line_index`` is the zero-based position of the offending invoice line,
    when there is one.
    """

    status_code = 422

    def __init__(self, message: str, line_index: Optional[int] = None) -> None:
        super().__init__(message)
        self.line_index = line_index

    def as_payload(self) -> dict[str, object]:
        payload = super().as_payload()
        if self.line_index is not None:
            payload["lineIndex"] = self.line_index
        return payload


class UnresolvableRateError(UnknownReferenceError):
    """No override, client rate or employee base rate applies to a line."""
