"""
Unidad de trabajo asincrona para persistir un chunk de forma atomica.

Cada chunk abre su propia sesion y transaccion: o se confirma completo o se
revierte completo. El resultado se expresa con un ChunkOutcome tipado en vez
de propagar la excepcion, para que el procesador decida como reportarla.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Optional, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

T = TypeVar("T")

ChunkWork = Callable[[AsyncSession], Awaitable[T]]


@dataclass(frozen=True)
class ChunkOutcome(Generic[T]):
    """Resultado de una unidad de trabajo: confirmada con valor o revertida con error."""

    committed: bool
    value: Optional[T] = None
    error: Optional[BaseException] = None


class UnitOfWork:
    """
    Ejecuta una funcion de persistencia dentro de una transaccion.

    Uso:
        uow = UnitOfWork(AsyncSessionLocal)
        outcome = await uow.run(lambda session: write_chunk(session, rows))
        if not outcome.committed:
            ...
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def run(self, work: ChunkWork[T]) -> ChunkOutcome[T]:
        async with self._session_factory() as session:
            try:
                value = await work(session)
                await session.commit()
                return ChunkOutcome(committed=True, value=value)
            except Exception as e:
                # Si el rollback tambien falla, se reporta el error original.
                try:
                    await session.rollback()
                except Exception as rollback_error:
                    logger.error(f"Rollback fallido: {rollback_error}")
                return ChunkOutcome(committed=False, error=e)
