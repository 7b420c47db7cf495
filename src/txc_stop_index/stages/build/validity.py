from __future__ import annotations

from datetime import date

from .models import DateRange, ServiceFact, TxcDocument


def effective_range(service: ServiceFact, doc: TxcDocument) -> DateRange:
    """
    First present (start, end) pair wins: the service's own operating
    period, then the document's ValidBetween, then its OperatingPeriod.
    An empty range means "always valid".
    """
    for candidate in (service.operating_period, doc.valid_between, doc.operating_period):
        if candidate.is_present():
            return candidate
    return DateRange()


def is_active(service: ServiceFact, doc: TxcDocument, today: date) -> bool:
    return effective_range(service, doc).contains(today)
