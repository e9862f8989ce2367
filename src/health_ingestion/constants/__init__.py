# ============================================================================
# src/health_ingestion/constants/__init__.py
# ============================================================================
"""
Convenient imports for all constants
"""

from .content_types import ContentType, CLASSIFICATION_PATTERNS, TAXONOMY_TYPES
from .data_types import WhoopDataType, SYNC_ORDER, METADATA_FILE_NAME
from .taxonomy import (
    PHYLA,
    CLASSES,
    ORDERS,
    FAMILY_SUFFIXES,
    GENUS_SUFFIXES,
    FUNGAL_GENERA,
    PHYLUM_DESCRIPTIONS,
    PROTECTIVE_SPECIES,
    PATHOGENIC_SPECIES,
    ATYPICAL_SPECIES,
    match_longest_prefix,
)
