# ============================================================================
# src/health_ingestion/config/extraction_config.py
# ============================================================================
"""
Lab Report Extraction Settings
- Reference-range search window
- Scanned-page detection
- Section markers
"""

from pydantic import Field
from pydantic_settings import BaseSettings

class ExtractionSettings(BaseSettings):
    REFERENCE_WINDOW_CHARS: int = Field(
        default=200,
        ge=1,
        description="Characters after a biomarker match searched for a 'Normal: ...' reference"
    )
    MIN_PAGE_CHARS: int = Field(
        default=50,
        ge=0,
        description="Pages with less text than this are logged as possibly scanned"
    )
    BACTERIAL_LIST_MARKER: str = Field(
        default="LISTA DE BACTERIAS",
        description="Heading that starts the line-per-organism bacterial list"
    )

extraction_settings = ExtractionSettings()
