"""
Escrituras masivas por llave natural (UPSERT / DELETE / lookups).

- UPSERT con ON CONFLICT (...) DO UPDATE sobre la restriccion unica de la entidad.
- Cada sentencia respeta el limite de parametros del dialecto:
  filas_por_sentencia = limite // columnas.
- Filas duplicadas por llave dentro de un mismo lote se colapsan (gana la ultima);
  PostgreSQL rechaza un ON CONFLICT que toque la misma fila dos veces.
"""

from __future__ import annotations

from typing import Any, Iterable, Iterator, Sequence, TypeVar

from sqlalchemy import and_, delete, or_, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from ims_sync.shared.constants.sync_constants import DEFAULT_MAX_BIND_PARAMS, MAX_BIND_PARAMS

T = TypeVar("T")

# Lotes para sentencias IN (...) y DELETE por llaves compuestas
LOOKUP_BATCH_SIZE = 500
DELETE_BATCH_SIZE = 200


def chunked(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    """Particiona una secuencia en bloques de a lo sumo `size` elementos."""
    if size < 1:
        raise ValueError("size debe ser >= 1")
    for start in range(0, len(items), size):
        yield items[start:start + size]


def max_bind_params(session: AsyncSession) -> int:
    return MAX_BIND_PARAMS.get(session.get_bind().dialect.name, DEFAULT_MAX_BIND_PARAMS)


def rows_per_statement(column_count: int, bind_limit: int) -> int:
    """Filas por sentencia para no superar el limite de parametros."""
    if column_count < 1:
        raise ValueError("column_count debe ser >= 1")
    return max(1, bind_limit // column_count)


def dedupe_by_key(rows: Iterable[dict[str, Any]], key_columns: Sequence[str]) -> list[dict[str, Any]]:
    """
    Colapsa filas con la misma llave natural; gana la ultima ocurrencia
    pero conserva la posicion de la primera.
    """
    by_key: dict[tuple, dict[str, Any]] = {}
    for row in rows:
        by_key[tuple(row[c] for c in key_columns)] = row
    return list(by_key.values())


def _dialect_insert(session: AsyncSession):
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return pg_insert
    if dialect == "sqlite":
        return sqlite_insert
    raise NotImplementedError(f"UPSERT no soportado para el dialecto '{dialect}'")


async def bulk_upsert(
    session: AsyncSession,
    model,
    rows: Sequence[dict[str, Any]],
    *,
    key_columns: Sequence[str],
    update_columns: Sequence[str],
) -> int:
    """
    UPSERT masivo por llave natural. No hace commit: el caller controla la transaccion.

    Todas las filas deben traer el mismo conjunto de columnas.

    Returns:
        Cantidad de filas distintas escritas (tras colapsar duplicados).
    """
    if not rows:
        return 0

    columns = list(rows[0].keys())
    missing_keys = [c for c in key_columns if c not in columns]
    if missing_keys:
        raise ValueError(f"Faltan columnas de llave para UPSERT: {missing_keys}")

    unique_rows = dedupe_by_key(rows, key_columns)

    insert = _dialect_insert(session)
    per_statement = rows_per_statement(len(columns), max_bind_params(session))

    for batch in chunked(unique_rows, per_statement):
        stmt = insert(model).values(list(batch))
        stmt = stmt.on_conflict_do_update(
            index_elements=list(key_columns),
            set_={column: stmt.excluded[column] for column in update_columns},
        )
        await session.execute(stmt)

    return len(unique_rows)


async def insert_ignore(
    session: AsyncSession,
    model,
    rows: Sequence[dict[str, Any]],
    *,
    key_columns: Sequence[str],
) -> None:
    """INSERT ... ON CONFLICT DO NOTHING (p.ej. grupos de equipos nuevos)."""
    unique_rows = dedupe_by_key(rows, key_columns)
    if not unique_rows:
        return

    insert = _dialect_insert(session)
    per_statement = rows_per_statement(len(unique_rows[0]), max_bind_params(session))
    for batch in chunked(unique_rows, per_statement):
        stmt = insert(model).values(list(batch)).on_conflict_do_nothing(index_elements=list(key_columns))
        await session.execute(stmt)


async def delete_by_keys(
    session: AsyncSession,
    model,
    keys: Iterable[tuple],
    *,
    key_columns: Sequence[str],
) -> int:
    """Borra filas por llave natural compuesta. Retorna filas afectadas."""
    unique_keys = list(dict.fromkeys(keys))
    if not unique_keys:
        return 0

    columns = [getattr(model, c) for c in key_columns]
    deleted = 0
    for batch in chunked(unique_keys, DELETE_BATCH_SIZE):
        condition = or_(*[
            and_(*[column == value for column, value in zip(columns, key)])
            for key in batch
        ])
        result = await session.execute(delete(model).where(condition))
        deleted += result.rowcount or 0
    return deleted


async def select_existing(session: AsyncSession, column, values: Iterable[Any]) -> set[Any]:
    """Retorna el subconjunto de `values` que existe en `column`."""
    distinct_values = [v for v in dict.fromkeys(values) if v is not None]
    found: set[Any] = set()
    for batch in chunked(distinct_values, LOOKUP_BATCH_SIZE):
        result = await session.execute(select(column).where(column.in_(list(batch))))
        found.update(result.scalars().all())
    return found
