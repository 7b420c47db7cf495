from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator

from txc_stop_index.core import stable_json_dumps

from .models import ResolvedService


def identity_key(svc: ResolvedService) -> str:
    """
    ref, else name, else service code, else the whole record.
    """
    return (
        svc.ref
        or svc.name
        or svc.service_code
        or stable_json_dumps(svc.to_json(), indent=None)
    )


@dataclass(slots=True)
class StopServiceIndex:
    """
    stop id -> {identity key -> service}. Only grows during a run.
    """

    _stops: dict[str, dict[str, ResolvedService]] = field(default_factory=dict)

    def add(self, stop_id: str, svc: ResolvedService) -> bool:
        if not stop_id:
            return False
        bucket = self._stops.setdefault(stop_id, {})
        key = identity_key(svc)
        if key in bucket:
            return False
        bucket[key] = svc
        return True

    def services(self, stop_id: str) -> list[ResolvedService]:
        return list(self._stops.get(stop_id, {}).values())

    def stops(self) -> Iterator[str]:
        return iter(self._stops)

    def __contains__(self, stop_id: object) -> bool:
        return stop_id in self._stops

    def __len__(self) -> int:
        return len(self._stops)
