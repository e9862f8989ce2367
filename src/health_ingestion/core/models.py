# ============================================================================
# src/health_ingestion/core/models.py
# ============================================================================
"""
Extraction Data Model
- Per-page extraction results
- Taxonomy / fungal / biomarker entries
- Document-level consolidated report

Python attributes are snake_case; to_dict() emits the camelCase JSON shape
consumed by dashboards and downstream prompt building.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple

from ..constants.content_types import ContentType

UNKNOWN = "Unknown"

TaxonomyKey = Tuple[str, str, str, str, str, str, str]


@dataclass(frozen=True)
class BacterialEntry:
    """One taxonomy row: kingdom through species plus abundance."""
    kingdom: str = UNKNOWN
    phylum: str = UNKNOWN
    class_name: str = UNKNOWN
    order: str = UNKNOWN
    family: str = UNKNOWN
    genus: str = UNKNOWN
    species: str = UNKNOWN
    quantity: int = 0
    percentage: float = 0.0

    # Provenance (not part of the identity)
    raw_match: Optional[str] = field(default=None, compare=False)
    pattern_used: Optional[str] = field(default=None, compare=False)

    @property
    def key(self) -> TaxonomyKey:
        return (
            self.kingdom, self.phylum, self.class_name, self.order,
            self.family, self.genus, self.species,
        )

    @property
    def full_name(self) -> str:
        return f"{self.genus} {self.species}"

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "kingdom": self.kingdom,
            "phylum": self.phylum,
            "class": self.class_name,
            "order": self.order,
            "family": self.family,
            "genus": self.genus,
            "species": self.species,
            "quantity": self.quantity,
            "percentage": self.percentage,
        }
        if self.pattern_used:
            data["patternUsed"] = self.pattern_used
        return data


@dataclass(frozen=True)
class FungalEntry:
    genus: str
    species: str
    quantity: int = 0
    percentage: float = 0.0

    @property
    def full_name(self) -> str:
        return f"{self.genus} {self.species}"

    @property
    def key(self) -> str:
        return self.full_name

    def to_dict(self) -> Dict[str, Any]:
        return {
            "genus": self.genus,
            "species": self.species,
            "quantity": self.quantity,
            "percentage": self.percentage,
            "fullName": self.full_name,
        }


@dataclass(frozen=True)
class Biomarker:
    value: str  # dot-decimal, may keep a leading ">" / "<"
    unit: str = ""
    reference: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"value": self.value, "unit": self.unit, "reference": self.reference}


@dataclass(frozen=True)
class PageExtraction:
    """
    Result for a single page of a report.

    extracted_data maps a section key (see SECTION_KEYS) to that section's
    structured output; sections that found nothing are left out.
    """
    page_number: int
    raw_text: str
    detected_types: FrozenSet[ContentType] = frozenset({ContentType.UNKNOWN})
    extracted_data: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.page_number < 1:
            raise ValueError(f"page_number must be 1-indexed, got {self.page_number}")
        if not self.detected_types:
            object.__setattr__(self, "detected_types", frozenset({ContentType.UNKNOWN}))

    @property
    def section_count(self) -> int:
        return len(self.extracted_data)

    def sorted_types(self) -> List[str]:
        return sorted(t.value for t in self.detected_types)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pageNumber": self.page_number,
            "detectedTypes": self.sorted_types(),
            "extractedData": _section_data_to_dict(self.extracted_data),
            "textLength": len(self.raw_text),
        }


# Section keys used in PageExtraction.extracted_data
PATIENT_INFO = "patientInfo"
FUNCTIONAL_TESTS = "functionalTests"
BIOMARKERS = "biomarkers"
MICROBIOTA_OVERVIEW = "microbiotaOverview"
BACTERIAL_TAXONOMY = "bacterialTaxonomy"
FUNGAL_ANALYSIS = "fungalAnalysis"

SCALAR_SECTIONS = (PATIENT_INFO, FUNCTIONAL_TESTS, BIOMARKERS, MICROBIOTA_OVERVIEW)
LIST_SECTIONS = (BACTERIAL_TAXONOMY, FUNGAL_ANALYSIS)
SECTION_KEYS = SCALAR_SECTIONS + LIST_SECTIONS


@dataclass
class ConsolidatedReport:
    """Document-level merge of every page's extraction."""
    patient_info: Dict[str, Any] = field(default_factory=dict)
    functional_tests: Dict[str, Any] = field(default_factory=dict)
    biomarkers: Dict[str, Biomarker] = field(default_factory=dict)
    microbiota_overview: Dict[str, Any] = field(default_factory=dict)
    bacterial_taxonomy: List[BacterialEntry] = field(default_factory=list)
    fungal_analysis: List[FungalEntry] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "patientInfo": dict(self.patient_info),
            "functionalTests": dict(self.functional_tests),
            "biomarkers": {name: b.to_dict() for name, b in self.biomarkers.items()},
            "microbiotaOverview": dict(self.microbiota_overview),
            "bacterialTaxonomy": [e.to_dict() for e in self.bacterial_taxonomy],
            "fungalAnalysis": [e.to_dict() for e in self.fungal_analysis],
            "metadata": self.metadata,
        }


def _section_data_to_dict(extracted_data: Dict[str, Any]) -> Dict[str, Any]:
    out = {}
    for key, value in extracted_data.items():
        if isinstance(value, list):
            out[key] = [item.to_dict() for item in value]
        elif key == BIOMARKERS:
            out[key] = {name: b.to_dict() for name, b in value.items()}
        else:
            out[key] = dict(value)
    return out


def dedupe_by_key(entries: Iterable[Any]) -> List[Any]:
    """Keep the first entry for each ``.key``; later duplicates are dropped."""
    seen = set()
    unique = []
    for entry in entries:
        if entry.key in seen:
            continue
        seen.add(entry.key)
        unique.append(entry)
    return unique


def sort_by_percentage(entries: Iterable[Any]) -> List[Any]:
    """Stable sort, highest percentage first."""
    return sorted(entries, key=lambda e: e.percentage, reverse=True)
