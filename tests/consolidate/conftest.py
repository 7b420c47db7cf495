from __future__ import annotations

import io
import zipfile
from pathlib import Path
from typing import Callable, Iterable

import pytest

TXC_NS = "http://www.transxchange.org.uk/"


def txc_xml(
    *,
    services: Iterable[str] = (),
    stops: Iterable[str] = (),
    vehicle_journey_refs: Iterable[str] = (),
    operators: str = "",
    root_attrs: str = "",
    extra: str = "",
    namespaced: bool = True,
) -> str:
    """
    Build a small TransXChange document. `services` are raw <Service>
    bodies; each stop becomes one timing link to the next stop.
    """
    stop_list = list(stops)
    links = "".join(
        f"<JourneyPatternTimingLink><From><StopPointRef>{a}</StopPointRef></From>"
        f"<To><StopPointRef>{b}</StopPointRef></To></JourneyPatternTimingLink>"
        for a, b in zip(stop_list, stop_list[1:] or stop_list)
    )
    vjs = "".join(
        f"<VehicleJourney><ServiceRef>{r}</ServiceRef></VehicleJourney>"
        for r in vehicle_journey_refs
    )
    svc = "".join(f"<Service>{s}</Service>" for s in services)
    ns = f' xmlns="{TXC_NS}"' if namespaced else ""
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f"<TransXChange{ns} {root_attrs}>"
        f"<Operators>{operators}</Operators>"
        f"<Services>{svc}</Services>"
        f"<JourneyPatternSections><JourneyPatternSection id=\"JPS1\">{links}"
        "</JourneyPatternSection></JourneyPatternSections>"
        f"<VehicleJourneys>{vjs}</VehicleJourneys>"
        f"{extra}"
        "</TransXChange>"
    )


def service_body(
    code: str,
    *,
    line: str = "",
    revision: int | None = None,
    operator_ref: str = "",
    period: tuple[str | None, str | None] | None = None,
) -> str:
    parts = [f"<ServiceCode>{code}</ServiceCode>"]
    if line:
        parts.append(f"<Lines><Line id=\"L1\"><LineName>{line}</LineName></Line></Lines>")
    if revision is not None:
        parts.append(f"<RevisionNumber>{revision}</RevisionNumber>")
    if operator_ref:
        parts.append(f"<RegisteredOperatorRef>{operator_ref}</RegisteredOperatorRef>")
    if period is not None:
        start, end = period
        body = ""
        if start:
            body += f"<StartDate>{start}</StartDate>"
        if end:
            body += f"<EndDate>{end}</EndDate>"
        parts.append(f"<OperatingPeriod>{body}</OperatingPeriod>")
    return "".join(parts)


def write_zip(path: Path, members: dict[str, bytes | str]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, data in members.items():
            zf.writestr(name, data)
    return path


def zip_bytes(members: dict[str, bytes | str]) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, data in members.items():
            zf.writestr(name, data)
    return buf.getvalue()


@pytest.fixture
def make_txc() -> Callable[..., str]:
    return txc_xml


@pytest.fixture
def make_service() -> Callable[..., str]:
    return service_body


@pytest.fixture
def make_zip() -> Callable[[Path, dict[str, bytes | str]], Path]:
    return write_zip


@pytest.fixture
def make_zip_bytes() -> Callable[[dict[str, bytes | str]], bytes]:
    return zip_bytes
