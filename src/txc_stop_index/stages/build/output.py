from __future__ import annotations

import re
from pathlib import Path
from typing import Any

from txc_stop_index.core import atomic_write_json

from .index import StopServiceIndex, identity_key
from .models import ResolvedService

_LEADING_DIGITS = re.compile(r"^([0-9]+)")
_DIGIT_RUNS = re.compile(r"([0-9]+)")

StopToServices = dict[str, list[dict[str, str]]]


def leading_number(ref: str) -> int | None:
    m = _LEADING_DIGITS.match(ref or "")
    return int(m.group(1)) if m else None


def natural_key(s: str) -> tuple[tuple[int, int, str], ...]:
    """
    Case-insensitive key that compares digit runs by value, so "X2" sorts
    before "X10". Digit runs sort ahead of letters.
    """
    parts: list[tuple[int, int, str]] = []
    for chunk in _DIGIT_RUNS.split(s):
        if not chunk:
            continue
        if chunk[0] in "0123456789":
            parts.append((0, int(chunk), ""))
        else:
            parts.append((1, 0, chunk.casefold()))
    return tuple(parts)


def service_sort_key(svc: ResolvedService) -> tuple[Any, ...]:
    num = leading_number(svc.ref)
    return (
        num is None,
        num if num is not None else 0,
        natural_key(svc.ref or svc.name),
        svc.service_code,
        identity_key(svc),
    )


def build_output(index: StopServiceIndex) -> StopToServices:
    out: StopToServices = {}
    for stop_id in sorted(index.stops()):
        services = sorted(index.services(stop_id), key=service_sort_key)
        out[stop_id] = [s.to_json() for s in services]
    return out


def write_output(path: Path, output: StopToServices) -> None:
    atomic_write_json(path, output, indent=None)
