"""Effective-dated billing rate resolution and overlap detection."""
from __future__ import annotations

from datetime import date
from typing import Optional

from .database import SQLiteRepository
from .models import RateRecord

# Stand-in for an open-ended ``effective_to``.
OPEN_END = date.max


def resolve_rate(repository: SQLiteRepository, client_id: str, employee_id: str, issue_date: date) -> Optional[int]:
    """Return the rate in cents that applies to the employee's work for a client.

    A client-specific :class:`RateRecord` covering ``issue_date`` wins over the
    employee's base rate.  ``None`` means the employee does not exist and the
    caller has to treat the rate as unresolvable.
    """

    matched = repository.find_effective_rate(client_id, employee_id, issue_date)
    if matched is not None:
        return matched.rate_cents

    employee = repository.get_employee(employee_id)
    if employee is None:
        return None
    return employee.base_rate_cents


def normalise_range(start: date, end: Optional[date]) -> tuple[date, date]:
    return start, end if end is not None else OPEN_END


def ranges_overlap(a: tuple[date, date], b: tuple[date, date]) -> bool:
    """Closed-interval test: ranges sharing a single day overlap."""

    return a[0] <= b[1] and b[0] <= a[1]


def find_overlap(
    repository: SQLiteRepository,
    client_id: str,
    employee_id: str,
    effective_from: date,
    effective_to: Optional[date],
) -> Optional[RateRecord]:
    """Return a stored rate for the pair whose range overlaps the candidate.

    ``None`` means the candidate range may be inserted.  Call inside
    :meth:`SQLiteRepository.transaction` together with the insert.
    """

    candidate = normalise_range(effective_from, effective_to)
    for record in repository.list_rates_for_pair(client_id, employee_id):
        if ranges_overlap(candidate, normalise_range(record.effective_from, record.effective_to)):
            return record
    return None


def describe_range(record: RateRecord) -> str:
    end = record.effective_to.isoformat() if record.effective_to else "open-ended"
    return f"{record.effective_from.isoformat()} to {end}"
