"""
SpawnPool service configuration
"""
from typing import Dict, List
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache

class Settings(BaseSettings):
    """SpawnPool service settings"""

    # Application
    app_name: str = "SpawnPool Service"
    app_version: str = "0.1.0"
    debug: bool = False

    # Server
    host: str = "127.0.0.1"
    port: int = 8003
    # Pool state is per process, so this must stay 1
    workers: int = Field(default=1, ge=1, le=1)

    # Security
    api_key: str = "spawnpool-api-key-change-in-production"
    allowed_origins: List[str] = ["http://localhost:3000"]

    # Pools registered at startup (command -> capacity),
    # e.g. SPAWNPOOL_POOLS='{"urxvt": 3}'
    pools: Dict[str, int] = {}
    default_capacity: int = 1

    # Reconciler
    reconciler_enabled: bool = False
    reconciler_interval: float = 30.0  # seconds

    # Launching
    launch_shell: bool = False
    launch_cwd: str = ""

    # Placement tags applied to resources by default handling
    default_tags: List[str] = ["1"]

    # Monitoring
    enable_metrics: bool = True

    model_config = SettingsConfigDict(
        env_prefix="SPAWNPOOL_",
        env_file=".env",
        case_sensitive=False,
    )

@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
