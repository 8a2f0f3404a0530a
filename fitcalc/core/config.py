"""Runtime settings for the fit calculator.

Values come from the environment (or an optional ``.env`` file); paths are
resolved against the repository root when relative.
"""

from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings

REPO_ROOT = Path(__file__).resolve().parents[2]


class Settings(BaseSettings):
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    WORKERS: int = 1
    LOG_LEVEL: str = "INFO"

    # Web settings
    CORS_ORIGINS: list[str] = ["*"]

    # Reference data. A prebuilt index is preferred; without one the raw
    # dataset is reconciled once at startup.
    REFERENCE_INDEX_PATH: Optional[str] = None
    REFERENCE_RAW_PATH: str = "data/knowledge/iso286_reference_raw.json"

    # Reconciliation policy
    RECONCILE_DROP_EMPTY: bool = True
    RECONCILE_TIE_BREAK: str = "first"  # first|last|strict
    RECONCILE_SIGN_PATTERNS: str = "reference"  # reference|iso

    # Option discovery listing order
    ZONE_SORT_MODE: str = "upper_first"  # upper_first|lexical

    model_config = {
        "env_file": ".env",
        "case_sensitive": False,
        "extra": "ignore",
    }

    def resolve_path(self, value: Optional[str]) -> Optional[Path]:
        if not value:
            return None
        path = Path(value)
        if not path.is_absolute():
            path = REPO_ROOT / path
        return path


_settings_cache: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings_cache
    if _settings_cache is None:
        _settings_cache = Settings()
    return _settings_cache


def reset_settings() -> None:
    """Drop the cached settings (tests change the environment between runs)."""
    global _settings_cache
    _settings_cache = None
