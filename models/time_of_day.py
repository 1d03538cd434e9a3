"""Uhrzeit-Hilfsfunktionen: "HH:MM" ↔ Minuten, UTC-Zeitpunkte.

Alle Tageszeiten der Planung sind "HH:MM"-Strings (24h). Alles, was die
Engine verlässt, ist ein ISO-8601-UTC-Zeitpunkt. Datum + Uhrzeit werden
ohne Zeitzonen-Umrechnung als UTC interpretiert.
"""

import re
from datetime import datetime, timedelta, timezone

_HHMM = re.compile(r"^(\d{1,2}):(\d{2})$")


def time_to_minutes(time: str) -> int:
    """Wandelt "HH:MM" in Minuten seit Mitternacht um.

    Raises:
        ValueError: Bei ungültigem Format oder Minuten ≥ 60.
    """
    match = _HHMM.match(time or "")
    if not match:
        raise ValueError(f"Ungültige Uhrzeit '{time}' (erwartet HH:MM)")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if minutes >= 60:
        raise ValueError(f"Ungültige Minutenangabe in '{time}'")
    return hours * 60 + minutes


def minutes_to_time(minutes: int) -> str:
    """Wandelt Minuten seit Mitternacht in "HH:MM" um.

    Werte ab 24:00 werden nicht umgebrochen ("24:30"), negative Werte
    sind ungültig.
    """
    if minutes < 0:
        raise ValueError(f"Negative Uhrzeit: {minutes} Minuten")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def add_minutes_to_time(time: str, minutes: int) -> str:
    """Addiert Minuten zu einer Uhrzeit (mit Umbruch nach 24h)."""
    total = (time_to_minutes(time) + minutes) % (24 * 60)
    return minutes_to_time(total)


def is_valid_time(time: str) -> bool:
    """True wenn time ein gültiger "HH:MM"-String ist."""
    try:
        time_to_minutes(time)
    except ValueError:
        return False
    return True


# ─── UTC ──────────────────────────────────────────────────────────────────────

def create_utc_datetime(date: str, time: str) -> datetime:
    """Setzt Datum ("YYYY-MM-DD") und Uhrzeit ("HH:MM") zu einem UTC-Zeitpunkt zusammen."""
    day = datetime.strptime(date[:10], "%Y-%m-%d").replace(tzinfo=timezone.utc)
    return day + timedelta(minutes=time_to_minutes(time))


def to_utc_string(value: datetime) -> str:
    """Formatiert einen Zeitpunkt als ISO-UTC-String ("...T09:30:00.000Z")."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def parse_utc(value: str | datetime) -> datetime:
    """Liest einen ISO-Zeitpunkt; ohne Zeitzone wird UTC angenommen."""
    if isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def extract_time_from_utc(value: str | datetime) -> str:
    """Gibt die UTC-Uhrzeit eines Zeitpunkts als "HH:MM" zurück."""
    dt = parse_utc(value)
    return f"{dt.hour:02d}:{dt.minute:02d}"


def extract_date_from_utc(value: str | datetime) -> str:
    """Gibt das UTC-Datum eines Zeitpunkts als "YYYY-MM-DD" zurück."""
    return parse_utc(value).strftime("%Y-%m-%d")


def is_same_utc_date(a: str | datetime, b: str | datetime) -> bool:
    """True wenn beide Zeitpunkte auf denselben UTC-Tag fallen."""
    return extract_date_from_utc(a) == extract_date_from_utc(b)


def format_duration(minutes: int) -> str:
    """Formatiert eine Dauer als "2:00hrs" bzw. "1:30hrs"."""
    return f"{minutes // 60}:{minutes % 60:02d}hrs"
