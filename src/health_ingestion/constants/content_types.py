# ============================================================================
# src/health_ingestion/constants/content_types.py
# ============================================================================
"""
Page Content Types
- Tags a lab-report page can carry (multi-label)
- Ordered detection patterns, one per tag
"""

import re
from enum import Enum
from typing import Pattern, Tuple


class ContentType(str, Enum):
    """
    Content categories detected on a single report page.
    A page may carry several; UNKNOWN only when nothing else matched.
    """
    PATIENT_INFO = "patient_info"
    FUNCTIONAL_TESTS = "functional_tests"
    BIOMARKERS = "biomarkers"
    MICROBIOTA_OVERVIEW = "microbiota_overview"
    BACTERIAL_TAXONOMY = "bacterial_taxonomy"
    FUNGAL_ANALYSIS = "fungal_analysis"
    RESULTS_TABLE = "results_table"
    UNKNOWN = "unknown"


# Evaluation order is the order below. Portuguese-first, English synonyms where
# the reports mix languages.
CLASSIFICATION_PATTERNS: Tuple[Tuple[ContentType, Pattern[str]], ...] = (
    (ContentType.PATIENT_INFO, re.compile(
        r"paciente|patient|protocolo|data de nascimento", re.IGNORECASE)),
    (ContentType.FUNCTIONAL_TESTS, re.compile(
        r"prova coprol[óo]gica|consist[êe]ncia|\bph\b|gorduras", re.IGNORECASE)),
    (ContentType.BIOMARKERS, re.compile(
        r"biomarcadores|calprotectina|zonulina|elastase", re.IGNORECASE)),
    (ContentType.MICROBIOTA_OVERVIEW, re.compile(
        r"sequenciamento|diversidade|riqueza|abund[âa]ncia", re.IGNORECASE)),
    (ContentType.BACTERIAL_TAXONOMY, re.compile(
        r"reino\s+filo\s+classe\s+ordem\s+fam[íi]lia", re.IGNORECASE)),
    (ContentType.FUNGAL_ANALYSIS, re.compile(
        r"an[áa]lise f[úu]ngica|candida|malassezia|saccharomyces", re.IGNORECASE)),
    (ContentType.RESULTS_TABLE, re.compile(
        r"\b(?:bacteria|archaea)\s+(?:\S+\s+){4,7}\d+\s*\d*[.,]\d+%", re.IGNORECASE)),
)

# Types whose presence triggers the bacterial table parser
TAXONOMY_TYPES = frozenset({ContentType.BACTERIAL_TAXONOMY, ContentType.RESULTS_TABLE})
