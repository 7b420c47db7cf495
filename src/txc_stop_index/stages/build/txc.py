"""
TransXChange document parser.

Reads one XML document into a TxcDocument. Namespaces are dropped and
elements are matched by local name, so both namespaced and bare files
parse the same way. Every field is read through a fixed fallback chain;
nothing downstream inspects the element tree.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from datetime import datetime
from typing import Iterable

from txc_stop_index.core import EPOCH, DocumentParseError, parse_iso_date, parse_iso_datetime

from .models import DateRange, OperatorDecl, ServiceFact, TxcDocument

ROOT_TAG = "TransXChange"

_OPERATOR_PATHS = ("Operators/Operator", "Operators/LicensedOperator")
_OPERATOR_CODE_FIELDS = ("NationalOperatorCode", "OperatorCode")
_OPERATOR_NAME_FIELDS = ("OperatorNameOnLicence", "TradingName", "OperatorShortName")

_START_FIELDS = ("StartDate", "Start")
_END_FIELDS = ("EndDate", "End")
_VB_START_FIELDS = ("FromDate", "StartDate", "Start")
_VB_END_FIELDS = ("ToDate", "EndDate", "End")


def parse_document(raw: bytes | str) -> TxcDocument | None:
    """
    Returns None when the root is not TransXChange.
    Raises DocumentParseError on malformed XML.
    """
    try:
        root = ET.fromstring(raw)
    except ET.ParseError as e:
        raise DocumentParseError(f"XML parse error: {e}") from e

    _strip_namespaces(root)
    if root.tag != ROOT_TAG:
        return None

    operators = _parse_operators(root)
    by_id = _operators_by_id(operators)
    doc_revision = _field(root, "RevisionNumber")
    published = parse_iso_datetime(
        _field(root, "PublicationTimestamp") or _field(root, "CreationDateTime")
    )

    services = tuple(
        _parse_service(
            s,
            operators=operators,
            by_id=by_id,
            doc_revision=doc_revision,
            published=published or EPOCH,
        )
        for s in root.findall("Services/Service")
    )

    return TxcDocument(
        services=services,
        stop_refs=_section_stop_refs(root),
        vehicle_journey_service_refs=_vehicle_journey_service_refs(root),
        operators=operators,
        valid_between=_date_range(root.find("ValidBetween"), _VB_START_FIELDS, _VB_END_FIELDS),
        operating_period=_date_range(root.find("OperatingPeriod"), _START_FIELDS, _END_FIELDS),
    )


def _strip_namespaces(root: ET.Element) -> None:
    for el in root.iter():
        if isinstance(el.tag, str) and "}" in el.tag:
            el.tag = el.tag.rsplit("}", 1)[1]


def _text(el: ET.Element | None, path: str) -> str:
    if el is None:
        return ""
    node = el.find(path)
    if node is None or node.text is None:
        return ""
    return node.text.strip()


def _first_text(el: ET.Element | None, paths: Iterable[str]) -> str:
    for p in paths:
        v = _text(el, p)
        if v:
            return v
    return ""


def _field(el: ET.Element, name: str) -> str:
    """TXC carries some values as attributes and some as child elements."""
    return (el.get(name) or "").strip() or _text(el, name)


def _as_int(raw: str) -> int:
    try:
        return int(raw)
    except ValueError:
        try:
            return int(float(raw))
        except (ValueError, OverflowError):
            return 0


def _date_range(
    el: ET.Element | None, start_fields: Iterable[str], end_fields: Iterable[str]
) -> DateRange:
    if el is None:
        return DateRange()
    return DateRange(
        start=parse_iso_date(_first_text(el, start_fields)),
        end=parse_iso_date(_first_text(el, end_fields)),
    )


def _section_stop_refs(root: ET.Element) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for link in root.iterfind(
        "JourneyPatternSections/JourneyPatternSection/JourneyPatternTimingLink"
    ):
        for side in ("From", "To"):
            ref = _text(link, f"{side}/StopPointRef")
            if ref:
                seen.setdefault(ref, None)
    return tuple(seen)


def _vehicle_journey_service_refs(root: ET.Element) -> frozenset[str]:
    out: set[str] = set()
    for vj in root.iterfind("VehicleJourneys/VehicleJourney"):
        code = _first_text(vj, ("ServiceRef", "ServiceCode"))
        if code:
            out.add(code)
    return frozenset(out)


def _parse_operators(root: ET.Element) -> tuple[OperatorDecl, ...]:
    out: list[OperatorDecl] = []
    for path in _OPERATOR_PATHS:
        for op in root.iterfind(path):
            element_id = (op.get("id") or "").strip()
            decl = OperatorDecl(
                element_id=element_id,
                code=_first_text(op, _OPERATOR_CODE_FIELDS) or element_id,
                name=_first_text(op, _OPERATOR_NAME_FIELDS),
            )
            out.append(decl)
    return tuple(out)


def _operators_by_id(operators: tuple[OperatorDecl, ...]) -> dict[str, OperatorDecl]:
    by_id: dict[str, OperatorDecl] = {}
    for decl in operators:
        if decl.element_id:
            by_id.setdefault(decl.element_id, decl)
    return by_id


def _service_operator(
    service: ET.Element,
    operators: tuple[OperatorDecl, ...],
    by_id: dict[str, OperatorDecl],
) -> tuple[str, str]:
    """
    (raw_operator_code, document_operator_name) for one service, looked up
    in the document's own operator declarations only.
    """
    ref = _text(service, "RegisteredOperatorRef")
    if ref and ref in by_id:
        op = by_id[ref]
        return op.code, op.name
    if len(operators) == 1:
        op = operators[0]
        return op.code, op.name

    names = [
        _first_text(op, _OPERATOR_NAME_FIELDS)
        for op in service.iterfind("Operators/Operator")
    ]
    name = next((n for n in names if n), "")
    return ref or name, name


def _parse_service(
    service: ET.Element,
    *,
    operators: tuple[OperatorDecl, ...],
    by_id: dict[str, OperatorDecl],
    doc_revision: str,
    published: datetime,
) -> ServiceFact:
    line = _first_text(service, ("Lines/Line/LineName", "LineName", "Description"))
    ref = _first_text(service, ("ServiceRef", "LineName")) or line
    code, op_name = _service_operator(service, operators, by_id)
    period = _date_range(service.find("OperatingPeriod"), _START_FIELDS, _END_FIELDS)

    return ServiceFact(
        service_code=_text(service, "ServiceCode"),
        ref=ref,
        display_line=line,
        raw_operator_code=code,
        document_operator_name=op_name,
        revision=_as_int(_field(service, "RevisionNumber") or doc_revision or "0"),
        publication_timestamp=published,
        valid_from=period.start,
        valid_to=period.end,
    )
