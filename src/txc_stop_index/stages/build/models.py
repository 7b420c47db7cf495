from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from txc_stop_index.core import EPOCH


@dataclass(frozen=True, slots=True)
class DateRange:
    """
    Inclusive calendar range; a missing side is unbounded.
    """

    start: date | None = None
    end: date | None = None

    def is_present(self) -> bool:
        return self.start is not None or self.end is not None

    def contains(self, day: date) -> bool:
        if self.start is not None and day < self.start:
            return False
        if self.end is not None and day > self.end:
            return False
        return True


@dataclass(frozen=True, slots=True)
class OperatorDecl:
    """An Operator/LicensedOperator declared inside one document."""

    element_id: str
    code: str
    name: str


@dataclass(frozen=True, slots=True)
class ServiceFact:
    service_code: str
    ref: str
    display_line: str
    raw_operator_code: str
    document_operator_name: str
    revision: int = 0
    publication_timestamp: datetime = EPOCH
    valid_from: date | None = None
    valid_to: date | None = None

    @property
    def name(self) -> str:
        return self.display_line or self.ref

    @property
    def operating_period(self) -> DateRange:
        return DateRange(start=self.valid_from, end=self.valid_to)


@dataclass(frozen=True, slots=True)
class TxcDocument:
    """
    Everything the consolidation loop needs from one TransXChange file.
    The element tree itself is not kept.
    """

    services: tuple[ServiceFact, ...] = ()
    stop_refs: tuple[str, ...] = ()
    vehicle_journey_service_refs: frozenset[str] = frozenset()
    operators: tuple[OperatorDecl, ...] = ()
    valid_between: DateRange = DateRange()
    operating_period: DateRange = DateRange()

    def services_in_use(self) -> list[ServiceFact]:
        """
        Services that the document's vehicle journeys actually run. With no
        vehicle journeys at all, every declared service counts.
        """
        refs = self.vehicle_journey_service_refs
        if not refs:
            return list(self.services)
        return [s for s in self.services if not s.service_code or s.service_code in refs]


@dataclass(frozen=True, slots=True)
class ResolvedService:
    ref: str
    name: str
    operator: str
    operator_code: str
    service_code: str

    def to_json(self) -> dict[str, str]:
        return {
            "ref": self.ref,
            "name": self.name,
            "operator": self.operator,
            "operatorCode": self.operator_code,
            "serviceCode": self.service_code,
        }


@dataclass(slots=True)
class BuildStats:
    archives_processed: int = 0
    archives_failed: int = 0
    documents_processed: int = 0
    documents_failed: int = 0
    entries_failed: int = 0
    services_seen: int = 0
    services_kept: int = 0
    services_expired: int = 0
    services_superseded: int = 0

    def as_dict(self) -> dict[str, int]:
        return {
            "archives_processed": self.archives_processed,
            "archives_failed": self.archives_failed,
            "documents_processed": self.documents_processed,
            "documents_failed": self.documents_failed,
            "entries_failed": self.entries_failed,
            "services_seen": self.services_seen,
            "services_kept": self.services_kept,
            "services_expired": self.services_expired,
            "services_superseded": self.services_superseded,
        }


class InputArchive(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str
    sha256: str | None = Field(default=None, pattern=r"^[a-fA-F0-9]{64}$")
    bytes: int | None = Field(default=None, ge=0)
    status: str = "ok"


class BuildMetadata(BaseModel):
    model_config = ConfigDict(extra="forbid")

    run_id: str
    generated_at_utc: str
    reference_date: str
    timezone: str
    output: str
    stops: int = Field(ge=0)
    input_archives: list[InputArchive]
    stats: dict[str, int]
    warnings: list[str] = []
