"""
Utilidades para manejo de fechas y horas.

IMS devuelve fechas en formatos heterogeneos (ISO, SAP "YYYYMMDD",
"DD.MM.YYYY", fechas nulas "0000-00-00"). El parseo es tolerante:
cualquier valor no reconocible se convierte en None.
"""
from datetime import date, datetime, timezone
from typing import Any, Optional


_DATETIME_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%dT%H:%M:%S",
    "%Y%m%d%H%M%S",
    "%d.%m.%Y %H:%M:%S",
    "%d/%m/%Y %H:%M:%S",
)

_DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y%m%d",
    "%d.%m.%Y",
    "%d/%m/%Y",
    "%d-%m-%Y",
)


class DateTimeUtils:
    """Clase de utilidades para operaciones con fechas y horas."""

    @staticmethod
    def now_utc() -> datetime:
        """
        Obtiene la fecha y hora actual en UTC.

        Returns:
            datetime: Fecha y hora actual en UTC
        """
        return datetime.now(timezone.utc)

    @staticmethod
    def today() -> date:
        """Fecha local actual."""
        return date.today()

    @staticmethod
    def from_iso_string(iso_string: str) -> Optional[datetime]:
        """
        Convierte un string ISO 8601 a datetime.

        Args:
            iso_string: String en formato ISO 8601

        Returns:
            Optional[datetime]: Objeto datetime o None si hay error
        """
        try:
            return datetime.fromisoformat(iso_string.replace("Z", "+00:00"))
        except (ValueError, TypeError, AttributeError):
            return None


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    if not text or text.startswith("0000") or text == "00000000":
        return None
    return text


def parse_datetime(value: Any) -> Optional[datetime]:
    """
    Parsea un valor de IMS a datetime (naive, tal cual lo reporta IMS).

    Acepta datetime/date ya construidos, ISO 8601 y los formatos SAP
    habituales. Retorna None si no se reconoce.
    """
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)

    text = _clean(value)
    if text is None:
        return None

    parsed = DateTimeUtils.from_iso_string(text)
    if parsed is not None:
        return parsed.replace(tzinfo=None)

    for fmt in _DATETIME_FORMATS + _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def parse_date(value: Any) -> Optional[date]:
    """Parsea un valor de IMS a date. Retorna None si no se reconoce."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    parsed = parse_datetime(value)
    return parsed.date() if parsed else None
