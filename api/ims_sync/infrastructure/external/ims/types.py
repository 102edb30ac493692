"""
Tipos y utilidades puras para el pipeline IMS -> base local.

Se mantienen libres de I/O para poder testearlos facilmente.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence

from ims_sync.shared.constants.sync_constants import TRUTHY_FLAG_VALUES

RawItem = Mapping[str, Any]
Transform = Callable[[Any], Any]


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def to_str(value: Any) -> Optional[str]:
    """Normaliza a string sin espacios extremos; vacio -> None."""
    if is_blank(value):
        return None
    return str(value).strip()


def to_decimal(value: Any) -> Optional[float]:
    """
    Convierte cantidades de IMS a float.

    IMS envia numeros como string con separador de miles ("1,234.50");
    las comas se eliminan antes de convertir. Valores no numericos -> None.
    """
    if is_blank(value) or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).replace(",", "").strip())
    except ValueError:
        return None


def to_int_flag(value: Any) -> int:
    """Convierte un indicador a 0/1."""
    if isinstance(value, bool):
        return int(value)
    number = to_decimal(value)
    if number is not None:
        return 1 if number else 0
    return 1 if is_flag_set(value) else 0


def is_flag_set(value: Any) -> bool:
    """Indicador SAP activo: "X", "1", true, "yes"..."""
    if isinstance(value, bool):
        return value
    if is_blank(value):
        return False
    return str(value).strip().lower() in TRUTHY_FLAG_VALUES


@dataclass(frozen=True)
class FieldMapping:
    """
    Define el mapeo de un campo normalizado a sus alias en IMS.

    - target: nombre de la columna local
    - sources: alias en orden de prioridad (gana el primero con valor)
    - transform: funcion opcional para transformar el valor antes de persistir
    """

    target: str
    sources: tuple[str, ...]
    transform: Optional[Transform] = to_str


def resolve_field(item: RawItem, sources: Iterable[str]) -> Any:
    """Valor del primer alias presente y no vacio; None si ninguno lo trae."""
    for source in sources:
        value = item.get(source)
        if not is_blank(value):
            return value
    return None


def map_item(item: RawItem, mappings: Sequence[FieldMapping]) -> dict[str, Any]:
    """Aplica una tabla de mapeos a un item crudo de IMS."""
    row: dict[str, Any] = {}
    for m in mappings:
        raw = resolve_field(item, m.sources)
        row[m.target] = m.transform(raw) if m.transform else raw
    return row


def has_excluded_prefix(material_number: Optional[str], prefixes: Iterable[str]) -> bool:
    """True si el numero de material empieza con alguno de los prefijos excluidos."""
    if not material_number:
        return False
    return any(material_number.startswith(prefix) for prefix in prefixes)
