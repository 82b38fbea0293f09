"""
===============================================================================
TARJETA CRC — crosscutting/config.py (Settings)
===============================================================================

Responsabilidades:
  - Configuración tipada desde variables de entorno (pydantic-settings).
  - Validar al arrancar: límites de bulk/pool/retry, DATABASE_URL fuera de
    test y un JWT_SECRET fuerte en producción.

Colaboradores:
  - api/main.py (pool, CORS, owner inicial)
  - container.py (adapters según APP_ENV, límites de bulk)
  - identity/actor.py (JWT_SECRET / JWT_ALGORITHM)
  - infrastructure/services/retry.py (RETRY_*)

Notas:
  - get_settings() cachea la instancia; los tests limpian el cache tras
    ajustar el entorno.
===============================================================================
"""

from functools import lru_cache
from uuid import UUID

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_TEST_ENVS = frozenset({"test", "testing", "ci"})
_WEAK_SECRETS = frozenset({"dev-secret", "changeme", "change-me", "secret", "password"})
_MIN_SECRET_LEN = 32


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_env: str = "development"
    database_url: str = ""

    log_level: str = "INFO"
    log_json: bool = True

    # Orígenes CORS separados por coma
    allowed_origins: str = "http://localhost:3000"

    # El token solo identifica al actor; el rol sale siempre del store.
    jwt_secret: str = "dev-secret"
    jwt_algorithm: str = "HS256"

    db_pool_min_size: int = Field(2, ge=1)
    db_pool_max_size: int = Field(10, ge=1)
    db_statement_timeout_ms: int = Field(30_000, ge=0)

    retry_max_attempts: int = Field(3, ge=1)
    retry_base_delay_seconds: float = Field(0.2, ge=0)
    retry_max_delay_seconds: float = Field(5.0, ge=0)

    bulk_max_targets: int = Field(500, ge=1)
    bulk_max_concurrency: int = Field(8, ge=1)

    bootstrap_owner_user_id: UUID | None = None

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        level = (value or "INFO").strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"LOG_LEVEL inválido: {value!r}")
        return level

    @model_validator(mode="after")
    def _check_pool_bounds(self) -> "Settings":
        if self.db_pool_min_size > self.db_pool_max_size:
            raise ValueError(
                f"DB_POOL_MIN_SIZE ({self.db_pool_min_size}) > "
                f"DB_POOL_MAX_SIZE ({self.db_pool_max_size})"
            )
        return self

    @model_validator(mode="after")
    def _check_database_url(self) -> "Settings":
        if not self.is_test_env() and not self.database_url.strip():
            raise ValueError("DATABASE_URL es obligatorio fuera de test")
        return self

    @model_validator(mode="after")
    def _check_production_secret(self) -> "Settings":
        if not self.is_production():
            return self
        secret = self.jwt_secret.strip()
        if secret in _WEAK_SECRETS or len(secret) < _MIN_SECRET_LEN:
            raise ValueError(
                f"JWT_SECRET debe tener al menos {_MIN_SECRET_LEN} caracteres "
                "y no ser un valor por defecto en producción"
            )
        return self

    def get_allowed_origins_list(self) -> list[str]:
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    def is_production(self) -> bool:
        return self.app_env.strip().lower() == "production"

    def is_test_env(self) -> bool:
        return self.app_env.strip().lower() in _TEST_ENVS


@lru_cache
def get_settings() -> Settings:
    """Settings del proceso (lanza ValidationError si el entorno es inválido)."""
    return Settings()
