# ============================================================================
# src/health_ingestion/extractors/comprehensive_extractor.py
# ============================================================================
"""
Comprehensive (whole-document) extraction.

Works on the full report text instead of page by page. On top of the
section extractors it reports:
- phylum percentages (Bacteroidetes, Firmicutes, ...)
- protective / pathogenic marker species
- atypical findings
- the complete "LISTA DE BACTERIAS" taxonomy, row by row
- report language and a completeness summary
"""

import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Pattern

from ..config import extraction_settings
from ..constants.taxonomy import (
    ATYPICAL_SPECIES,
    PATHOGENIC_SPECIES,
    PHYLUM_DESCRIPTIONS,
    PROTECTIVE_SPECIES,
)
from ..core.models import BacterialEntry, dedupe_by_key, sort_by_percentage
from .bacterial_table_parser import PositionalLineCandidate, parse_bacterial_line
from .section_extractors import (
    extract_biomarkers,
    extract_fungal_entries,
    extract_functional_tests,
    extract_microbiota_overview,
    extract_patient_info,
    normalize_decimal,
)

logger = logging.getLogger(__name__)

PORTUGUESE_MARKERS = (
    "prova", "coprológica", "biomarcadores", "ausente", "presente",
    "calprotectina", "zonulina", "paciente",
)
ENGLISH_MARKERS = ("test", "biomarkers", "absent", "present")


def detect_language(text: str) -> str:
    """'portuguese' when more Portuguese marker words occur than English ones."""
    lowered = (text or "").lower()
    pt_count = sum(1 for word in PORTUGUESE_MARKERS if word in lowered)
    en_count = sum(1 for word in ENGLISH_MARKERS if word in lowered)
    return "portuguese" if pt_count > en_count else "english"


def _percent_pattern(name: str) -> Pattern[str]:
    return re.compile(re.escape(name) + r"\s*(\d+(?:[.,]\d+)?)%", re.IGNORECASE)


def _find_percentage(text: str, name: str) -> Optional[float]:
    match = _percent_pattern(name).search(text)
    return normalize_decimal(match.group(1)) if match else None


def extract_phylum_analysis(text: str) -> Dict[str, Any]:
    phylum_data = []
    for phylum, description in PHYLUM_DESCRIPTIONS.items():
        percentage = _find_percentage(text, phylum)
        if percentage is not None:
            phylum_data.append({
                "phylum": phylum,
                "percentage": percentage,
                "description": description,
            })
    return {"phylumData": phylum_data}


def extract_species_analysis(text: str) -> Dict[str, List[Dict[str, Any]]]:
    protective = []
    for name, role in PROTECTIVE_SPECIES.items():
        percentage = _find_percentage(text, name)
        if percentage is not None:
            protective.append({"name": name, "percentage": percentage, "role": role, "type": "Protective"})

    pathogenic = []
    for name in PATHOGENIC_SPECIES:
        percentage = _find_percentage(text, name)
        if percentage is not None:
            pathogenic.append({"name": name, "percentage": percentage, "type": "Pathogenic"})

    return {"protectiveBacteria": protective, "pathogenicBacteria": pathogenic}


def extract_atypical_findings(text: str) -> List[Dict[str, Any]]:
    findings = []
    for name in ATYPICAL_SPECIES:
        percentage = _find_percentage(text, name)
        if percentage is not None:
            findings.append({"name": name, "percentage": percentage, "status": "Atypical"})
    return findings


def parse_complete_bacterial_list(
    text: str,
    marker: Optional[str] = None
) -> List[BacterialEntry]:
    """
    Parse every taxonomy row after the bacterial list heading.

    Rows are kingdom-prefixed segments ending in a percentage, whether the
    text kept its line breaks or was flattened. No heading -> [].
    """
    marker = marker or extraction_settings.BACTERIAL_LIST_MARKER
    start = text.find(marker)
    if start == -1:
        logger.debug(f"'{marker}' section not found")
        return []

    entries = []
    for match in PositionalLineCandidate.SEGMENT.finditer(text, start + len(marker)):
        entry = parse_bacterial_line(match.group(0))
        if entry is not None:
            entries.append(entry)

    return sort_by_percentage(dedupe_by_key(entries))


class ComprehensiveExtractor:
    """
    Whole-document extraction returning one JSON-ready dict.
    """

    def __init__(self, marker: Optional[str] = None):
        self.logger = logging.getLogger(__name__)
        self.marker = marker or extraction_settings.BACTERIAL_LIST_MARKER

    def extract(self, text: str) -> Dict[str, Any]:
        text = text or ""

        functional_tests = {k: v for k, v in extract_functional_tests(text).items() if v is not None}
        biomarkers = extract_biomarkers(text)
        taxonomy = parse_complete_bacterial_list(text, self.marker)
        fungi = sort_by_percentage(dedupe_by_key(extract_fungal_entries(text)))

        result = {
            "reportMetadata": {
                "extractionTimestamp": datetime.now(timezone.utc).isoformat(),
                "extractionMethod": "comprehensive_text",
                "textLength": len(text),
                "language": detect_language(text),
            },
            "patientInformation": extract_patient_info(text),
            "functionalTests": functional_tests,
            "biomarkers": {name: b.to_dict() for name, b in biomarkers.items()},
            "microbiotaSummary": {
                k: v for k, v in extract_microbiota_overview(text).items() if v is not None
            },
            "phylumAnalysis": extract_phylum_analysis(text),
            "speciesAnalysis": extract_species_analysis(text),
            "atypicalFindings": extract_atypical_findings(text),
            "fungalAnalysis": [f.to_dict() for f in fungi],
            "completeBacterialTaxonomy": [e.to_dict() for e in taxonomy],
        }
        result["completenessCheck"] = {
            "bacterialEntriesCount": len(taxonomy),
            "biomarkersCount": len(biomarkers),
            "functionalTestsCount": len(functional_tests),
            "fungalEntriesCount": len(fungi),
            "extractionCompleteness": f"{len(taxonomy)} bacteria found across all sections",
        }

        self.logger.info(
            f"Comprehensive extraction: {len(taxonomy)} bacterial entries, "
            f"{len(biomarkers)} biomarkers, {len(fungi)} fungi"
        )
        return result
