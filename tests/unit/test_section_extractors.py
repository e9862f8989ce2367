# ============================================================================
# FILE: tests/unit/test_section_extractors.py
# ============================================================================
"""
Unit tests for section extractors
"""

import pytest

from src.health_ingestion.constants import ContentType
from src.health_ingestion.core.models import Biomarker, FungalEntry
from src.health_ingestion.extractors import (
    SectionExtractors,
    normalize_decimal,
    extract_patient_info,
    extract_functional_tests,
    extract_biomarkers,
    extract_microbiota_overview,
    extract_fungal_entries,
)
from src.health_ingestion.extractors.section_extractors import extract_reference


# ============================================================================
# NUMERIC HELPERS
# ============================================================================

@pytest.mark.parametrize("raw,expected", [
    ("17,50", 17.50),
    ("6.87", 6.87),
    ("12,5%", 12.5),
    ("> 200", 200.0),
    (42, 42.0),
])
def test_normalize_decimal(raw, expected):
    """Test comma and dot decimals parse the same"""
    assert normalize_decimal(raw) == expected


def test_normalize_decimal_comma_equals_dot():
    """Test both separators give identical values"""
    assert normalize_decimal("17,50") == normalize_decimal("17.50")


def test_normalize_decimal_default():
    """Test unreadable input returns the default"""
    assert normalize_decimal("n/a") is None
    assert normalize_decimal(None, 0.0) == 0.0


# ============================================================================
# PATIENT / FUNCTIONAL
# ============================================================================

def test_extract_patient_info(patient_page_text):
    """Test header fields"""
    info = extract_patient_info(patient_page_text)

    assert info["fullName"] == "Maria Silva Santos"
    assert info["protocol"] == "123456"
    assert info["birthDate"] == "15/03/1985"
    assert info["collectionDate"] == "10/01/2024"
    assert info["prescriber"] == "Dr. João Pereira"
    assert info["age"] == "38 anos"
    assert info["weight"] == "65.5 Kg"
    assert info["height"] == "168"
    assert info["sampleType"] == "Fezes"


def test_extract_patient_info_missing_fields():
    """Test regex misses give None, not errors"""
    info = extract_patient_info("Paciente: Ana Costa")
    assert info["fullName"] == "Ana Costa"
    assert info["protocol"] is None
    assert info["weight"] is None


def test_extract_functional_tests(patient_page_text):
    """Test stool test values with decimal commas normalized"""
    tests = extract_functional_tests(patient_page_text)

    assert tests["consistency"] == "Tipo 4"
    assert tests["ph"] == "6.87"
    assert tests["fats"] == "< 1.0 g/100g"
    assert tests["proteins"] == "2.5"
    assert tests["carbohydrates"] == "1.2"


# ============================================================================
# BIOMARKERS
# ============================================================================

def test_calprotectin_with_reference():
    """Test biomarker value, unit and reference range"""
    biomarkers = extract_biomarkers("Calprotectina: 45,00 μg/g (Normal: <50 μg/g)")

    assert biomarkers["calprotectin"] == Biomarker(value="45.00", unit="μg/g", reference="<50 μg/g")
    assert biomarkers["calprotectin"].to_dict() == {
        "value": "45.00",
        "unit": "μg/g",
        "reference": "<50 μg/g",
    }


def test_biomarkers_absent_are_omitted(biomarker_page_text):
    """Test only found biomarkers appear"""
    biomarkers = extract_biomarkers(biomarker_page_text)

    assert set(biomarkers) == {"calprotectin", "zonulin", "elastase"}
    assert biomarkers["zonulin"].value == "80.5"
    assert biomarkers["zonulin"].reference == "<107 ng/mL"
    assert biomarkers["elastase"].value == ">500"
    assert biomarkers["elastase"].reference == ">200 μg/g"


def test_biomarker_without_reference():
    """Test missing 'Normal:' gives a None reference"""
    biomarkers = extract_biomarkers("Zonulina: 30 ng/mL")
    assert biomarkers["zonulin"].reference is None


def test_reference_outside_window():
    """Test a reference past the window is ignored"""
    text = "Zonulina: 30 ng/mL" + " x" * 150 + " (Normal: <107 ng/mL)"
    assert extract_reference(text, 0) is None
    assert extract_reference(text, 0, window=len(text)) == "<107 ng/mL"


# ============================================================================
# MICROBIOTA / FUNGI
# ============================================================================

def test_extract_microbiota_overview():
    """Test overview indices"""
    text = (
        "Abundância relativa F+B 85,30% Proporção F/B 1,45 "
        "DIVERSIDADE 3,21 RIQUEZA 245 DISTRIBUIÇÃO Equilibrada"
    )
    overview = extract_microbiota_overview(text)

    assert overview["fbAbundance"] == "85.30%"
    assert overview["fbProportion"] == "1.45"
    assert overview["diversity"] == "3.21"
    assert overview["richness"] == "245"
    assert overview["distribution"] == "Equilibrada"


def test_extract_fungal_entries():
    """Test fungal rows"""
    entries = extract_fungal_entries(
        "ANÁLISE FÚNGICA Candida albicans 120 (2,50%) saccharomyces cerevisiae 40 (0,80%)"
    )

    assert entries == [
        FungalEntry(genus="Candida", species="albicans", quantity=120, percentage=2.5),
        FungalEntry(genus="Saccharomyces", species="cerevisiae", quantity=40, percentage=0.8),
    ]
    assert entries[0].to_dict()["fullName"] == "Candida albicans"


# ============================================================================
# DISPATCH
# ============================================================================

def test_section_extractors_runs_only_detected_types(patient_page_text):
    """Test extractors run only for detected types"""
    sections = SectionExtractors()

    data = sections.extract(patient_page_text, {ContentType.PATIENT_INFO})

    assert set(data) == {"patientInfo"}
    assert data["patientInfo"]["fullName"] == "Maria Silva Santos"


def test_section_extractors_omit_empty_sections():
    """Test a triggered section that found nothing is left out"""
    sections = SectionExtractors()

    data = sections.extract(
        "Biomarcadores: nenhum resultado",
        {ContentType.BIOMARKERS, ContentType.FUNGAL_ANALYSIS},
    )

    assert data == {}


def test_section_extractors_results_table_triggers_taxonomy():
    """Test results_table alone triggers the bacterial parser"""
    sections = SectionExtractors()
    text = "Bacteria Firmicutes Clostridia Clostridiales Lachnospiraceae Blautia obeum 488917,50%"

    data = sections.extract(text, {ContentType.RESULTS_TABLE})

    assert len(data["bacterialTaxonomy"]) == 1
    assert data["bacterialTaxonomy"][0].genus == "Blautia"


def test_section_extractors_unknown_extracts_nothing():
    """Test unknown pages produce no data"""
    assert SectionExtractors().extract("anything", {ContentType.UNKNOWN}) == {}
