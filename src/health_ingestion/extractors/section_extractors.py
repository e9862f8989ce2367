# ============================================================================
# src/health_ingestion/extractors/section_extractors.py
# ============================================================================
"""
Section Extractors

One pure function per page content type. Each applies "Label: value" style
regexes to the flattened page text; a regex miss gives None for that field,
never an exception. Numeric values are normalized from decimal comma to dot.

SectionExtractors dispatches the right functions for a page's detected types
and returns the page's extracted_data mapping.
"""

import logging
import re
from typing import Any, Callable, Dict, Iterable, List, Optional, Pattern, Tuple

from ..config import extraction_settings
from ..constants.content_types import ContentType, TAXONOMY_TYPES
from ..constants.taxonomy import FUNGAL_GENERA
from ..core.models import (
    Biomarker,
    FungalEntry,
    PATIENT_INFO,
    FUNCTIONAL_TESTS,
    BIOMARKERS,
    MICROBIOTA_OVERVIEW,
    BACTERIAL_TAXONOMY,
    FUNGAL_ANALYSIS,
)
from .bacterial_table_parser import BacterialTableParser

logger = logging.getLogger(__name__)

_DECIMAL_COMMA = re.compile(r"(\d),(\d)")
_NUMBER = re.compile(r"[-+]?\d+(?:[.,]\d+)?")


# ============================================================================
# NUMERIC HELPERS
# ============================================================================

def normalize_decimal(value: Any, default: Optional[float] = None) -> Optional[float]:
    """
    Parse a decimal that may use comma or dot as separator.

        normalize_decimal("17,50")  -> 17.5
        normalize_decimal("6.87")   -> 6.87
        normalize_decimal("12,5%")  -> 12.5
        normalize_decimal("> 200")  -> 200.0

    Returns ``default`` when no number can be read.
    """
    if value is None:
        return default
    if isinstance(value, (int, float)):
        return float(value)

    match = _NUMBER.search(str(value))
    if not match:
        return default

    try:
        return float(match.group(0).replace(",", "."))
    except ValueError:
        return default


def dot_decimal(text: Optional[str]) -> Optional[str]:
    """Rewrite decimal commas inside a value string: "< 1,0 g" -> "< 1.0 g"."""
    if text is None:
        return None
    return _DECIMAL_COMMA.sub(r"\1.\2", text)


def extract_field(text: str, pattern: Pattern[str], numeric: bool = False) -> Optional[str]:
    """First capture group of ``pattern`` (trimmed), or None."""
    match = pattern.search(text)
    if not match:
        return None
    value = match.group(1).strip()
    return dot_decimal(value) if numeric else value


# ============================================================================
# PATIENT INFO
# ============================================================================

# Name capture stops before the next header label
_NEXT_LABEL = r"(?=\s+(?:Protocolo|Data|Idade|Peso|Altura|Tipo|Prescritor|Sexo|M[ée]dico)\b|\s+[^\s:]+:|\s*$)"

PATIENT_PATTERNS: Tuple[Tuple[str, Pattern[str], bool], ...] = (
    ("fullName", re.compile(r"Paciente:\s*([A-ZÀ-Ý][A-Za-zÀ-ÿ\s]+?)" + _NEXT_LABEL, re.IGNORECASE), False),
    ("protocol", re.compile(r"Protocolo:\s*(\d+)", re.IGNORECASE), False),
    ("birthDate", re.compile(r"Data de nascimento:\s*(\d{2}/\d{2}/\d{4})", re.IGNORECASE), False),
    ("collectionDate", re.compile(r"Data da coleta:\s*(\d{2}/\d{2}/\d{4})", re.IGNORECASE), False),
    ("prescriber", re.compile(r"Prescritor:\s*([A-ZÀ-Ý][A-Za-zÀ-ÿ.\s]+?)" + _NEXT_LABEL, re.IGNORECASE), False),
    ("age", re.compile(r"Idade:\s*(\d+\s*anos)", re.IGNORECASE), False),
    ("weight", re.compile(r"Peso:\s*([\d,.]+\s*Kg)", re.IGNORECASE), True),
    ("height", re.compile(r"Altura:\s*(\d+)", re.IGNORECASE), False),
    ("sampleType", re.compile(r"Tipo de amostra:\s*(\w+)", re.IGNORECASE), False),
)


def extract_patient_info(text: str) -> Dict[str, Optional[str]]:
    return {
        name: extract_field(text, pattern, numeric)
        for name, pattern, numeric in PATIENT_PATTERNS
    }


# ============================================================================
# FUNCTIONAL TESTS (prova coprológica)
# ============================================================================

FUNCTIONAL_PATTERNS: Tuple[Tuple[str, Pattern[str]], ...] = (
    ("consistency", re.compile(r"Consist[êe]ncia:\s*(Tipo\s*\d+)", re.IGNORECASE)),
    ("ph", re.compile(r"\bpH:\s*(\d+[.,]\d+)", re.IGNORECASE)),
    ("fats", re.compile(r"Gorduras:\s*([<>]?\s*\d+[.,]?\d*\s*g/100g)", re.IGNORECASE)),
    ("proteins", re.compile(r"Prote[íi]nas:\s*([<>]?\s*\d+[.,]?\d*)", re.IGNORECASE)),
    ("carbohydrates", re.compile(r"Carboidratos:\s*([<>]?\s*\d+[.,]?\d*)", re.IGNORECASE)),
)


def extract_functional_tests(text: str) -> Dict[str, Optional[str]]:
    return {
        name: extract_field(text, pattern, numeric=True)
        for name, pattern in FUNCTIONAL_PATTERNS
    }


# ============================================================================
# BIOMARKERS
# ============================================================================

BIOMARKER_PATTERNS: Tuple[Tuple[str, Pattern[str]], ...] = (
    ("calprotectin", re.compile(r"Calprotectina:\s*(\d+[.,]?\d*)\s*(\w+/\w+)", re.IGNORECASE)),
    ("zonulin", re.compile(r"Zonulina:\s*(\d+[.,]?\d*)\s*(\w+/\w+)", re.IGNORECASE)),
    ("elastase", re.compile(r"Elastase:\s*([>]?\s*\d+[.,]?\d*)\s*(\w+/\w+)", re.IGNORECASE)),
    ("alphaAntitrypsin", re.compile(r"α-1-Antitripsin[a]?:\s*(\d+[.,]?\d*)\s*(\w+/\w+)", re.IGNORECASE)),
)

REFERENCE_PATTERN = re.compile(r"Normal:\s*([^)]+)", re.IGNORECASE)


def extract_reference(text: str, start: int, window: Optional[int] = None) -> Optional[str]:
    """
    Find a "Normal: ..." reference in the window starting at ``start``.

    The window is REFERENCE_WINDOW_CHARS (200) long by default.
    """
    window = window if window is not None else extraction_settings.REFERENCE_WINDOW_CHARS
    context = text[start:start + window]
    match = REFERENCE_PATTERN.search(context)
    if not match:
        return None
    reference = match.group(1).strip()
    return reference or None


def extract_biomarker(text: str, pattern: Pattern[str]) -> Optional[Biomarker]:
    match = pattern.search(text)
    if not match:
        return None
    return Biomarker(
        value=dot_decimal(re.sub(r"\s+", "", match.group(1))),
        unit=match.group(2) or "",
        reference=extract_reference(text, match.start()),
    )


def extract_biomarkers(text: str) -> Dict[str, Biomarker]:
    """Biomarkers found on the page; absent ones are left out of the map."""
    biomarkers = {}
    for name, pattern in BIOMARKER_PATTERNS:
        biomarker = extract_biomarker(text, pattern)
        if biomarker is not None:
            biomarkers[name] = biomarker
    return biomarkers


# ============================================================================
# MICROBIOTA OVERVIEW
# ============================================================================

MICROBIOTA_PATTERNS: Tuple[Tuple[str, Pattern[str]], ...] = (
    ("fbAbundance", re.compile(r"Abund[âa]ncia.*?F\+B\s*(\d+[.,]\d+%)", re.IGNORECASE)),
    ("fbProportion", re.compile(r"Propor[çc][ãa]o.*?F/B\s*(\d+[.,]\d+)", re.IGNORECASE)),
    ("diversity", re.compile(r"DIVERSIDADE\s*(\d+[.,]\d+)", re.IGNORECASE)),
    ("richness", re.compile(r"RIQUEZA\s*(\d+)", re.IGNORECASE)),
    ("distribution", re.compile(r"DISTRIBUI[ÇC][ÃA]O\s*(\w+)", re.IGNORECASE)),
)


def extract_microbiota_overview(text: str) -> Dict[str, Optional[str]]:
    return {
        name: extract_field(text, pattern, numeric=True)
        for name, pattern in MICROBIOTA_PATTERNS
    }


# ============================================================================
# FUNGI
# ============================================================================

FUNGAL_PATTERN = re.compile(
    r"\b(" + "|".join(FUNGAL_GENERA) + r")\s+([^\s(]+)\s+(\d+)\s*\((\d+[.,]\d+)%\)",
    re.IGNORECASE
)


def extract_fungal_entries(text: str) -> List[FungalEntry]:
    """Fungal rows of the form "Candida albicans 120 (2,50%)"."""
    entries = []
    for match in FUNGAL_PATTERN.finditer(text):
        entries.append(FungalEntry(
            genus=match.group(1).capitalize(),
            species=match.group(2),
            quantity=int(match.group(3)),
            percentage=normalize_decimal(match.group(4), 0.0),
        ))
    return entries


# ============================================================================
# DISPATCH
# ============================================================================

SectionFunction = Callable[[str], Any]


class SectionExtractors:
    """
    Runs the extractors whose content type was detected on a page.

    Scalar sections where every field missed and list sections with no
    entries are left out of the returned mapping.
    """

    def __init__(self, bacterial_parser: Optional[BacterialTableParser] = None):
        self.logger = logging.getLogger(__name__)
        self.bacterial_parser = bacterial_parser or BacterialTableParser()

        self.registry: Tuple[Tuple[str, Callable[[ContentType], bool], SectionFunction], ...] = (
            (PATIENT_INFO, lambda t: t is ContentType.PATIENT_INFO, extract_patient_info),
            (FUNCTIONAL_TESTS, lambda t: t is ContentType.FUNCTIONAL_TESTS, extract_functional_tests),
            (BIOMARKERS, lambda t: t is ContentType.BIOMARKERS, extract_biomarkers),
            (MICROBIOTA_OVERVIEW, lambda t: t is ContentType.MICROBIOTA_OVERVIEW, extract_microbiota_overview),
            (BACTERIAL_TAXONOMY, lambda t: t in TAXONOMY_TYPES, self.bacterial_parser.parse),
            (FUNGAL_ANALYSIS, lambda t: t is ContentType.FUNGAL_ANALYSIS, extract_fungal_entries),
        )

    def extract(self, raw_text: str, detected_types: Iterable[ContentType]) -> Dict[str, Any]:
        """
        Extract every section triggered by ``detected_types``.

        Args:
            raw_text: Flattened page text
            detected_types: Output of PageClassifier.classify

        Returns:
            Mapping of section key to structured data
        """
        detected_types = set(detected_types)
        extracted: Dict[str, Any] = {}

        for section, wanted, function in self.registry:
            if not any(wanted(t) for t in detected_types):
                continue

            data = function(raw_text)
            if _has_content(data):
                extracted[section] = data

        return extracted


def _has_content(data: Any) -> bool:
    if isinstance(data, dict):
        return any(value is not None for value in data.values())
    return bool(data)
