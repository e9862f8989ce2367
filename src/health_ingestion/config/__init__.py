# ============================================================================
# src/health_ingestion/config/__init__.py
# ============================================================================
"""
Convenient imports for all settings
"""

from dotenv import load_dotenv

# .env values become visible to every BaseSettings below
load_dotenv()

from .base_config import base_settings, BaseSettingsConfig
from .extraction_config import extraction_settings, ExtractionSettings
from .sync_config import sync_settings, SyncSettings
from .logging_config import logging_settings, LoggingSettings
