"""
Configuracion de fixtures para pytest.

Los tests de persistencia usan SQLite en archivo temporal (aiosqlite): cada
unidad de trabajo abre su propia sesion, asi que la base debe sobrevivir
entre conexiones.
"""
import pytest
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession, AsyncEngine, create_async_engine, async_sessionmaker

from ims_sync.infrastructure.database.session import Base
from ims_sync.infrastructure.database.models import PlantModel, StationModel
from ims_sync.shared.utils.audit_logger import SyncAuditLogger


@pytest.fixture(scope="function")
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Engine SQLite con todas las tablas creadas."""
    test_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'ims_sync_test.db'}", echo=False)

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Sesion para preparar datos y verificar resultados."""
    async with session_factory() as session:
        yield session


@pytest.fixture(scope="function")
async def plants(session_factory) -> dict[str, int]:
    """
    Catalogo de plantas de prueba:
    - A01 y B02 activas
    - Z99 inactiva
    - A01 tiene la estacion con centro de costo CC-A01
    """
    async with session_factory() as session:
        a01 = PlantModel(plant_code="A01", name="Pabrik A01", is_active=True)
        b02 = PlantModel(plant_code="B02", name="Pabrik B02", is_active=True)
        z99 = PlantModel(plant_code="Z99", name="Pabrik Z99", is_active=False)
        session.add_all([a01, b02, z99])
        await session.flush()
        session.add(StationModel(plant_id=a01.id, cost_center="CC-A01", description="Stasiun A01"))
        await session.commit()
        return {"A01": a01.id, "B02": b02.id, "Z99": z99.id}


@pytest.fixture(autouse=True)
def reset_audit_logger():
    """Evita que un sink de auditoria de un test quede activo en el siguiente."""
    yield
    SyncAuditLogger.shutdown()
