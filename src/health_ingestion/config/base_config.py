# ============================================================================
# src/health_ingestion/config/base_config.py
# ============================================================================
"""
Base Configuration
- Data directories (WHOOP store, uploads)
- Job store database
"""

from pathlib import Path
from pydantic import Field
from pydantic_settings import BaseSettings

class BaseSettingsConfig(BaseSettings):
    DATA_DIR: Path = Field(
        default=Path("data"),
        description="Base directory for persisted data"
    )

    # Per-type JSON files plus metadata.json live here
    WHOOP_DATA_DIR: Path = Field(
        default=Path("data/whoop"),
        description="Directory holding sleep/strain/recovery JSON files"
    )

    UPLOADS_DIR: Path = Field(
        default=Path("data/uploads"),
        description="Uploaded PDFs awaiting extraction"
    )

    JOBS_DB_PATH: Path = Field(
        default=Path("data/jobs.db"),
        description="SQLite database for extraction job state"
    )

    def create_directories(self):
        """Create all necessary directories if they don't exist"""
        dirs = [
            self.DATA_DIR,
            self.WHOOP_DATA_DIR,
            self.UPLOADS_DIR,
            self.JOBS_DB_PATH.parent
        ]
        for directory in dirs:
            directory.mkdir(parents=True, exist_ok=True)

# Global instance
base_settings = BaseSettingsConfig()
