"""
Application configuration using Pydantic Settings
"""

from pydantic import Field, validator
from pydantic_settings import BaseSettings
from typing import List, Optional

from schemas.catalog import Locale


# Game Pass collection lists ("sigls") harvested by default. Deliberately
# narrower than every list the catalog publishes: day-one, cloud, Ubisoft+,
# EA Play trial and the Standard-tier lists are added through COLLECTION_IDS.
DEFAULT_COLLECTION_IDS = (
    "f6f1f99f-9b49-4ccd-b3bf-4d9767a77f5e",  # console: all games
    "fdd9e2a7-0fee-49f6-ad69-4354098401ff",  # pc: all games
    "34031711-5a70-4196-bab7-45757dc2294e",  # core
    "eab7757c-ff70-45af-bfa6-79d1cfb2bf81",  # console: most popular
    "a884932a-f02b-40c8-a903-a008c23b1df1",  # pc: most popular
    "f13cf6b4-57e6-4459-89df-6aec18cf0538",  # console: recently added
    "095bda36-f5cd-43f2-9ee1-0a72f371fb96",  # console: coming to
    "393f05bf-e596-4ef6-9487-6d4fa0eab987",  # console: leaving soon
    "b8900d09-a491-44cc-916e-32b5acae621b",  # ea play: console
    "1d33fbb9-b895-4732-a8ca-a55c8b99fa2c",  # ea play: pc
)

DEFAULT_LOCALES = (
    "en-US", "en-GB", "en-CA", "en-AU", "de-DE", "fr-FR",
    "es-ES", "it-IT", "pt-BR", "ja-JP", "ko-KR", "nl-NL",
)

FAILURE_POLICIES = ("skip", "abort")


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # Database
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_USER: str = "harvester"
    DB_PASSWORD: str = "harvester"
    DB_NAME: str = "gamepass"
    DATABASE_URL: Optional[str] = None  # Overrides the DB_* parts when set

    # Environment
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Retry discipline
    RETRY_ATTEMPTS: int = Field(10, ge=1)
    RETRY_DELAY_SECONDS: int = Field(10, ge=0)

    # Harvest
    DETAIL_CHUNK_SIZE: int = Field(20, gt=0)
    MAX_CONCURRENCY: int = Field(8, gt=0)
    AVAILABILITY_FAILURE_POLICY: str = "skip"
    LOCALES: str = ",".join(DEFAULT_LOCALES)
    COLLECTION_IDS: str = ",".join(DEFAULT_COLLECTION_IDS)

    # Catalog client
    CATALOG_TIMEOUT: float = Field(30.0, gt=0)

    # Scheduler
    HARVEST_INTERVAL_MINUTES: int = Field(24 * 60, gt=0)

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"

    @validator("AVAILABILITY_FAILURE_POLICY")
    def check_failure_policy(cls, v):
        v = v.strip().lower()
        if v not in FAILURE_POLICIES:
            raise ValueError(f"must be one of {', '.join(FAILURE_POLICIES)}")
        return v

    @validator("LOCALES")
    def check_locales(cls, v):
        codes = _split(v)
        if not codes:
            raise ValueError("at least one locale is required")
        for code in codes:
            Locale.parse(code)
        return v

    @validator("COLLECTION_IDS")
    def check_collection_ids(cls, v):
        if not _split(v):
            raise ValueError("at least one collection id is required")
        return v

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )

    @property
    def locales(self) -> List[Locale]:
        return [Locale.parse(code) for code in _split(self.LOCALES)]

    @property
    def collection_ids(self) -> List[str]:
        return _split(self.COLLECTION_IDS)


def _split(raw: str) -> List[str]:
    """Split a comma-separated setting, dropping blanks and duplicates"""
    values = []
    for part in raw.split(","):
        part = part.strip()
        if part and part not in values:
            values.append(part)
    return values


settings = Settings()
