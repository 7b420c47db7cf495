from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from txc_stop_index.core import EPOCH

from .models import ServiceFact


@dataclass(frozen=True, slots=True, order=True)
class VersionKey:
    """
    Ordered by revision first, then publication timestamp.
    """

    revision: int = 0
    publication_timestamp: datetime = EPOCH

    @classmethod
    def of(cls, service: ServiceFact) -> "VersionKey":
        return cls(
            revision=service.revision,
            publication_timestamp=service.publication_timestamp,
        )


@dataclass(slots=True)
class VersionRegistry:
    """
    Newest VersionKey seen per service code over the whole run.
    """

    _current: dict[str, VersionKey] = field(default_factory=dict)

    def offer(self, service_code: str, key: VersionKey) -> bool:
        """
        Record `key` if it strictly supersedes the retained one. Returns
        whether the occurrence should be merged.
        """
        prev = self._current.get(service_code)
        if prev is not None and not key > prev:
            return False
        self._current[service_code] = key
        return True

    def current(self, service_code: str) -> VersionKey | None:
        return self._current.get(service_code)

    def __len__(self) -> int:
        return len(self._current)
