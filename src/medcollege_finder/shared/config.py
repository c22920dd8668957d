"""
Configuration Module - Load and validate application settings.
==============================================================

Loads configuration from:
1. config/settings.yaml (defaults)
2. Environment variables from .env file
3. Environment variables from system

Environment variables override YAML defaults.
"""

from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file early
load_dotenv()


def _find_project_root() -> Path:
    """Find the project root directory by looking for pyproject.toml."""
    current = Path(__file__).resolve()
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            return parent
    return Path.cwd()


PROJECT_ROOT = _find_project_root()
CONFIG_DIR = PROJECT_ROOT / "config"
DEFAULT_CONFIG_FILE = CONFIG_DIR / "settings.yaml"


# ─────────────────────────────────────────────────────────────────────────────
# Nested Configuration Models
# ─────────────────────────────────────────────────────────────────────────────


class SearchConfig(BaseModel):
    """Search pipeline settings."""

    default_limit: int = 50
    max_workers: int = 8
    time_budget_seconds: float = 5.0
    short_circuit: bool = True

    # Per-query row caps, per strategy
    exact_row_cap: int = 50
    fuzzy_row_cap: int = 20
    semantic_row_cap: int = 20
    abbreviation_row_cap: int = 20

    # Broad-search ceilings for compound queries ("DNB in Karnataka")
    broad_search_limit: int = 500
    dnb_search_limit: int = 1250

    @field_validator("max_workers", "default_limit")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Worker counts and limits must be at least 1."""
        if v < 1:
            raise ValueError("must be >= 1")
        return v


class ScoringConfig(BaseModel):
    """Relevance scoring weights."""

    strategy_weights: dict[str, int] = Field(
        default_factory=lambda: {
            "exact": 1000,
            "compound": 900,
            "abbreviation": 800,
            "fuzzy": 700,
            "semantic": 600,
        }
    )
    default_strategy_weight: int = 500

    exact_name_bonus: int = 1000
    name_prefix_bonus: int = 800
    query_prefix_bonus: int = 700
    name_contains_bonus: int = 500
    word_match_bonus: int = 200

    state_bonus: int = 300
    course_bonus: int = 250
    management_bonus: int = 200
    city_bonus: int = 150

    seats_divisor: int = 10
    seats_bonus_cap: int = 100


class SuggestConfig(BaseModel):
    """Auto-complete settings."""

    default_limit: int = 10
    min_query_length: int = 2
    category_order: list[str] = Field(
        default_factory=lambda: ["college", "hospital", "course", "city", "state"]
    )


class CacheConfig(BaseModel):
    """Reference-list cache settings."""

    ttl_seconds: float = 300.0
    max_entries: int = 64


class CatalogPathsConfig(BaseModel):
    """Catalog database locations (relative to project root)."""

    medical_db: str = "data/medical_seats.db"
    dental_db: str = "data/dental_seats.db"
    dnb_db: str = "data/dnb_seats.db"
    colleges_db: str = "data/colleges.db"

    def resolve(self, base_path: Path) -> dict[str, Path]:
        """Resolve database paths relative to a base path."""
        return {
            "medical": base_path / self.medical_db,
            "dental": base_path / self.dental_db,
            "dnb": base_path / self.dnb_db,
            "colleges": base_path / self.colleges_db,
        }


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: str = "INFO"
    format: str = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
    rich_console: bool = True
    file: str = ""


# ─────────────────────────────────────────────────────────────────────────────
# Main Settings Class
# ─────────────────────────────────────────────────────────────────────────────


class Settings(BaseSettings):
    """
    Main application settings.

    Loads from:
    1. config/settings.yaml (defaults)
    2. Environment variables

    Environment variables override YAML settings.
    """

    model_config = SettingsConfigDict(
        env_prefix="",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    # Top-level environment overrides
    default_limit: Optional[int] = Field(default=None, validation_alias="DEFAULT_LIMIT")
    log_level: Optional[str] = Field(default=None, validation_alias="LOG_LEVEL")

    # Nested configurations (from YAML)
    search: SearchConfig = Field(default_factory=SearchConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    suggest: SuggestConfig = Field(default_factory=SuggestConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    catalog: CatalogPathsConfig = Field(default_factory=CatalogPathsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    _project_root: Path = PROJECT_ROOT

    @property
    def project_root(self) -> Path:
        """Get the project root directory."""
        return self._project_root

    @property
    def catalog_paths(self) -> dict[str, Path]:
        """Get resolved absolute catalog database paths."""
        return self.catalog.resolve(self._project_root)

    def get_effective_limit(self) -> int:
        """Get the effective default result limit (env override or config)."""
        if self.default_limit is not None:
            return self.default_limit
        return self.search.default_limit

    def get_effective_log_level(self) -> str:
        """Get the effective log level (env override or config)."""
        if self.log_level:
            return self.log_level.upper()
        return self.logging.level.upper()


def _load_yaml_config(config_path: Path) -> dict[str, Any]:
    """Load configuration from YAML file."""
    if not config_path.exists():
        return {}

    with open(config_path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
        return data if data else {}


def _create_settings(config_path: Optional[Path] = None) -> Settings:
    """Create settings instance by merging YAML defaults with environment."""
    if config_path is None:
        config_path = DEFAULT_CONFIG_FILE

    yaml_config = _load_yaml_config(config_path)

    return Settings(**yaml_config)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get the singleton settings instance.

    Returns:
        Settings instance with merged configuration

    Example:
        >>> settings = get_settings()
        >>> print(settings.search.default_limit)
        50
    """
    return _create_settings()


def reload_settings() -> Settings:
    """
    Force reload of settings (clears cache).

    Returns:
        Fresh Settings instance
    """
    get_settings.cache_clear()
    return get_settings()
