"""
Configuracion central de la aplicacion.
Gestiona variables de entorno y configuraciones globales del pipeline
de sincronizacion IMS.
"""
from typing import List
from pydantic_settings import BaseSettings
from pydantic import Field, computed_field


class Settings(BaseSettings):
    """
    Clase de configuracion de la aplicacion.
    Lee variables de entorno y proporciona valores por defecto.

    - DATABASE_URL se puede especificar completa o por componentes
    - IMS_BASE_URL es obligatoria para ejecutar la sincronizacion
    - Las listas (regionales, prefijos excluidos) se leen separadas por coma
    """

    # Configuracion de la aplicacion
    APP_NAME: str = Field(default="IMS Sync Service")
    APP_VERSION: str = Field(default="1.0.0")
    DEBUG: bool = Field(default=False)
    ENVIRONMENT: str = Field(default="production")

    # Configuracion del servidor
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8000)

    # Base de datos - Componentes separados
    DATABASE_HOST: str = Field(default="localhost")
    DATABASE_PORT: int = Field(default=5432)
    DATABASE_USER: str = Field(default="ims_user")
    DATABASE_PASSWORD: str = Field(default="ims_pass")
    DATABASE_NAME: str = Field(default="ims_db")

    # Base de datos - URL completa (override de componentes si se proporciona)
    DATABASE_URL: str = Field(default="")
    DB_POOL_SIZE: int = Field(default=5)
    DB_MAX_OVERFLOW: int = Field(default=10)

    # IMS API
    IMS_BASE_URL: str = Field(default="")
    IMS_TOKEN: str = Field(default="")
    IMS_TIMEOUT: float = Field(default=300.0)  # por request, en segundos
    IMS_FETCH_TIMEOUT: float = Field(default=900.0)  # por tipo de dominio completo
    IMS_DAILY_PLANT_URL: str = Field(default="https://api-ims.ptpn4.co.id/api/pica-api/rekapitulasi")
    IMS_REGIONAL_CODES: str = Field(default="1,2,3,4,5,6,M,7,8,K,9,J,N")
    IMS_PLANT_BATCH_SIZE: int = Field(default=5)
    IMS_MAX_CONCURRENCY: int = Field(default=4)
    IMS_MAX_RETRIES: int = Field(default=3)

    # Sincronizacion
    SYNC_CHUNK_SIZE: int = Field(default=1000, ge=1)
    EXCLUDED_MATERIAL_PREFIXES: str = Field(default="11,12,31")
    SYNC_LOCK_WINDOW_MINUTES: int = Field(default=30)

    # Seguridad del webhook
    WEBHOOK_API_KEY: str = Field(default="")

    # CORS (acepta lista separada por comas o "*" para todos los origenes)
    CORS_ORIGINS: str = Field(default="*")

    # Logging
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FILE: str = Field(default="logs/app.log")

    @computed_field
    @property
    def effective_database_url(self) -> str:
        """
        Retorna la URL de base de datos efectiva.
        Si DATABASE_URL esta definida, la usa directamente.
        Si no, construye la URL desde los componentes individuales.
        """
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.DATABASE_USER}:{self.DATABASE_PASSWORD}"
            f"@{self.DATABASE_HOST}:{self.DATABASE_PORT}/{self.DATABASE_NAME}"
        )

    @property
    def regional_codes(self) -> List[str]:
        """Codigos regionales para el endpoint de datos diarios de planta."""
        return split_csv(self.IMS_REGIONAL_CODES)

    @property
    def excluded_material_prefixes(self) -> tuple[str, ...]:
        """Prefijos de material que nunca se persisten."""
        return tuple(split_csv(self.EXCLUDED_MATERIAL_PREFIXES))

    class Config:
        """Configuracion de Pydantic."""
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignorar campos extra del .env


def split_csv(raw: str) -> List[str]:
    """Parsea una lista separada por comas, ignorando vacios."""
    return [part.strip() for part in (raw or "").split(",") if part.strip()]


def get_cors_origins(cors_string: str) -> List[str]:
    """
    Parsea la configuracion de CORS.
    Acepta "*" para todos los origenes o una lista separada por comas.
    """
    if cors_string == "*":
        return ["*"]
    return split_csv(cors_string)


# Instancia global de configuracion
settings = Settings()
