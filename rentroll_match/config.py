"""Configuration management using Pydantic BaseSettings."""
from pathlib import Path
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable overrides."""
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True
    )
    
    # Data paths
    data_dir: Path = Field(default_factory=lambda: Path("./data"), alias="DATA_DIR")
    out_dir: Path = Field(default_factory=lambda: Path("./out"), alias="OUT_DIR")
    log_dir: Path = Field(default_factory=lambda: Path("./logs"), alias="LOG_DIR")
    
    # Database
    db_path: Path = Field(default_factory=lambda: Path("./data/rentroll.duckdb"), alias="DB_PATH")
    units_table: str = Field(default="rent_roll_units", alias="UNITS_TABLE")
    
    # Matching
    min_confidence: float = Field(default=0.7, ge=0.0, le=1.0, alias="MATCH_MIN_CONFIDENCE")
    
    # Fuzzy header mapping for tabular rent rolls (0-100)
    header_similarity_min: float = Field(default=80.0, alias="HEADER_SIMILARITY_MIN")
    
    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        # Ensure directories exist
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.out_dir.mkdir(parents=True, exist_ok=True)
    
    @property
    def duckdb_path(self) -> str:
        """Return DuckDB path as string."""
        return str(self.db_path)


# Global settings instance
settings = Settings()
