# ============================================================================
# src/health_ingestion/extractors/__init__.py
# ============================================================================
"""
Text and section extraction for lab reports.
"""

from .page_text_extractor import PageTextExtractor, PageText, PageTextResult, flatten_text
from .bacterial_table_parser import (
    BacterialTableParser,
    CandidateParser,
    RegexCandidate,
    PositionalLineCandidate,
    parse_bacterial_line,
    smart_separate_taxonomy,
    split_quantity_percentage,
)
from .section_extractors import (
    SectionExtractors,
    normalize_decimal,
    extract_patient_info,
    extract_functional_tests,
    extract_biomarkers,
    extract_microbiota_overview,
    extract_fungal_entries,
)
from .comprehensive_extractor import ComprehensiveExtractor, detect_language

__all__ = [
    "PageTextExtractor",
    "PageText",
    "PageTextResult",
    "flatten_text",
    "BacterialTableParser",
    "CandidateParser",
    "RegexCandidate",
    "PositionalLineCandidate",
    "parse_bacterial_line",
    "smart_separate_taxonomy",
    "split_quantity_percentage",
    "SectionExtractors",
    "normalize_decimal",
    "extract_patient_info",
    "extract_functional_tests",
    "extract_biomarkers",
    "extract_microbiota_overview",
    "extract_fungal_entries",
    "ComprehensiveExtractor",
    "detect_language",
]
