"""
Utilidades de zona horaria para Sydney (Australia/Sydney).

La base de datos guarda siempre UTC (datetime naive).
La UI muestra siempre hora local de Sydney (AEST/AEDT).
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo
import os

ACADEMY_TIMEZONE = ZoneInfo(os.getenv("ACADEMY_TIMEZONE", "Australia/Sydney"))


def utcnow() -> datetime:
    """Hora actual en UTC, naive, igual que los valores guardados en la BD."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_naive(value: datetime) -> datetime:
    """
    Normaliza un datetime a UTC naive.
    Los datetimes sin zona se asumen ya en UTC.
    """
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def parse_time24(time_str: str) -> Optional[time]:
    """
    Convierte "HH:MM" a un objeto time.

    Returns:
        time o None si el formato es inválido
    """
    try:
        hours, minutes = time_str.split(":")
        return time(int(hours), int(minutes))
    except (ValueError, AttributeError):
        return None


def local_datetime_to_utc(local_date: date, local_time: time) -> datetime:
    """Convierte una fecha y hora local de Sydney a UTC naive."""
    local_dt = datetime.combine(local_date, local_time, tzinfo=ACADEMY_TIMEZONE)
    return to_utc_naive(local_dt)


def local_date_to_utc_range(local_date: date):
    """
    Rango UTC [inicio, fin) que cubre un día local completo.

    Returns:
        Tuple[datetime, datetime]
    """
    start = local_datetime_to_utc(local_date, time(0, 0))
    end = local_datetime_to_utc(local_date + timedelta(days=1), time(0, 0))
    return start, end


def utc_to_local(value: datetime) -> datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(ACADEMY_TIMEZONE)


def format_local_time(value: datetime) -> str:
    """Hora local para mostrar, e.g. "9:00 AM"."""
    local = utc_to_local(value)
    return local.strftime("%I:%M %p").lstrip("0")


def local_today() -> date:
    return utc_to_local(utcnow()).date()
