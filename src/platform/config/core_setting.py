from typing import List, Literal, Optional

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.platform.constant.path import BASE_DIR


_ENV_PATH = BASE_DIR / '.env'
_ENV_FILE = _ENV_PATH if _ENV_PATH.exists() else (BASE_DIR / '.env.example')


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_ignore_empty=True,
        extra='ignore',
    )

    PROJECT_NAME: str = 'Ferry Booking System'
    VERSION: str = '0.1.0'
    DEBUG: bool = False

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = []

    @field_validator('BACKEND_CORS_ORIGINS', mode='before')
    @classmethod
    def assemble_cors_origins(cls, v: str | List[str]) -> List[str]:
        if isinstance(v, str) and not v.startswith('['):
            return [i.strip() for i in v.split(',') if i.strip()]
        elif isinstance(v, list):
            return v
        return []

    # Holds
    DEFAULT_HOLD_TTL_SECONDS: int = 600  # 10 minute payment window
    MAX_HOLD_TTL_SECONDS: int = 3600
    MAX_SEATS_PER_HOLD: int = 50

    # Expiry sweeper
    EXPIRE_SWEEP_ENABLED: bool = True
    EXPIRE_SWEEP_INTERVAL_SECONDS: float = 5.0

    # Seat inventory
    LEG_LEDGER_BACKEND: Literal['array', 'segment_tree'] = 'array'
    RESERVATION_STORE: Literal['memory', 'sql'] = 'memory'

    # Route and trip reference data loaded at startup
    SEED_DATA_FILE: Optional[str] = None

    # Database (used when RESERVATION_STORE=sql)
    DATABASE_URL: str = 'sqlite:///./ferry_booking.db'
    DB_ECHO: bool = False
    DB_POOL_PRE_PING: bool = True

    # Kvrocks (Redis protocol): cross-process trip locks when RESERVATION_STORE=sql
    KVROCKS_HOST: str = 'localhost'
    KVROCKS_PORT: int = 6666
    KVROCKS_DB: int = 0
    KVROCKS_PASSWORD: str = ''
    REDIS_DECODE_RESPONSES: bool = True

    # Kvrocks connection pool
    KVROCKS_POOL_MAX_CONNECTIONS: int = 50
    KVROCKS_POOL_SOCKET_TIMEOUT: int = 5  # seconds
    KVROCKS_POOL_SOCKET_CONNECT_TIMEOUT: int = 5  # seconds
    KVROCKS_POOL_SOCKET_KEEPALIVE: bool = True
    KVROCKS_POOL_HEALTH_CHECK_INTERVAL: int = 30  # seconds

    # Distributed lock lease: far above one ledger operation, short enough to recover a crash
    LOCK_TTL_SECONDS: float = 10.0
    LOCK_WAIT_TIMEOUT_SECONDS: float = 5.0
    LOCK_RETRY_INTERVAL_SECONDS: float = 0.01

    @field_validator('DEFAULT_HOLD_TTL_SECONDS', 'MAX_HOLD_TTL_SECONDS', 'MAX_SEATS_PER_HOLD')
    @classmethod
    def must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError('must be a positive integer')
        return v

    @model_validator(mode='after')
    def default_ttl_within_max(self) -> 'Settings':
        if self.DEFAULT_HOLD_TTL_SECONDS > self.MAX_HOLD_TTL_SECONDS:
            raise ValueError('DEFAULT_HOLD_TTL_SECONDS cannot exceed MAX_HOLD_TTL_SECONDS')
        return self


settings = Settings()  # type: ignore
