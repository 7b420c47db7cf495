import time
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

UK_TZ = ZoneInfo("Europe/London")

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def today_in(tz_name: str | None = None) -> date:
    """
    Civil date "now" in a fixed zone, so the reference date does not drift
    with the host's local time.
    """
    tz = ZoneInfo(tz_name) if tz_name else UK_TZ
    return datetime.now(tz).date()


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def monotonic_ms() -> int:
    return int(time.monotonic() * 1000)


def parse_iso_datetime(raw: str | None) -> datetime | None:
    """
    Lenient ISO-8601 parse. Naive values are taken as UTC; garbage is None.
    """
    if raw is None:
        return None
    s = raw.strip()
    if not s:
        return None
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(s)
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def parse_iso_date(raw: str | None) -> date | None:
    if raw is None:
        return None
    s = raw.strip()
    if not s:
        return None
    try:
        return date.fromisoformat(s[:10])
    except ValueError:
        dt = parse_iso_datetime(s)
        return dt.date() if dt is not None else None
