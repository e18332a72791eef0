from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Dict, Optional

from plenario.core.timeouts import TIMEOUTS

DAY = 60 * 60 * 24
HOUR = 60 * 60


class Settings(BaseSettings):
    """Application settings using Pydantic BaseSettings for validation"""

    # Application
    app_name: str = "Plenario Legislative Data API"
    version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # Upstream open-data APIs
    camara_base_url: str = "https://dadosabertos.camara.leg.br/api/v2"
    senado_base_url: str = "https://legis.senado.leg.br/dadosabertos"

    # Resilient fetch (seconds)
    fetch_max_retries: int = 3
    fetch_timeout: float = TIMEOUTS.http_request
    fetch_initial_delay: float = 1.0

    # Durable local cache
    cache_enabled: bool = True
    cache_prefix: str = "plenario:v1:"
    cache_max_items: int = 5000
    cache_max_memory_mb: int = 200
    redis_url: Optional[str] = None  # Use Redis if available
    duckdb_path: Optional[str] = None  # Otherwise a local DuckDB file

    # TTLs in seconds, 0 means never expires
    ttl_static: int = 30 * DAY
    ttl_dynamic: int = 4 * HOUR
    ttl_profile: int = DAY
    ttl_permanent: int = 0

    # Remote durable cache (GitHub contents API)
    remote_cache_enabled: bool = True
    github_api_url: str = "https://api.github.com"
    github_owner: str = "plenario-data"
    github_repo: str = "plenario-cache"
    github_branch: Optional[str] = None
    github_token: Optional[str] = None
    remote_base_path: str = "data"

    # Domain
    mandate_start_year: int = 2023
    feed_max_items: int = 30
    # Data-quality patch: upstream sex field lags for these ids
    identity_overrides: Dict[int, str] = {220560: "F", 220608: "F"}
    simulated_presence_enabled: bool = True
    fidelity_sample_size: int = 10

    # Content generation
    openai_api_key: Optional[str] = None
    openai_base_url: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    ttl_content: int = 4 * HOUR

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    return Settings()
