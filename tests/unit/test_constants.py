# ============================================================================
# FILE: tests/unit/test_constants.py
# ============================================================================
"""
Unit tests for taxonomy vocabularies and enums
"""

import pytest

from src.health_ingestion.constants import (
    PHYLA,
    CLASSES,
    ORDERS,
    ContentType,
    WhoopDataType,
    SYNC_ORDER,
    match_longest_prefix,
)
from src.health_ingestion.constants.taxonomy import _load_vocabulary
from src.utils.exceptions import ConfigurationError


def test_vocabularies_sorted_longest_first():
    """Test vocabularies are ordered for longest-prefix matching"""
    for vocabulary in (PHYLA, CLASSES, ORDERS):
        lengths = [len(name) for name in vocabulary]
        assert lengths == sorted(lengths, reverse=True)
        assert len(set(vocabulary)) == len(vocabulary)


def test_vocabularies_contain_common_taxa():
    """Test well-known gut taxa are present"""
    assert "Firmicutes" in PHYLA
    assert "Bacteroidetes" in PHYLA
    assert "Clostridia" in CLASSES
    assert "Clostridiales" in ORDERS


def test_match_longest_prefix():
    """Test longest entry wins over a shorter shared prefix"""
    vocabulary = ("Acidobacteria_Gp15", "Acidobacteria_Gp1", "Acidobacteria")
    assert match_longest_prefix("Acidobacteria_Gp15Rest", vocabulary) == "Acidobacteria_Gp15"
    assert match_longest_prefix("AcidobacteriaRest", vocabulary) == "Acidobacteria"
    assert match_longest_prefix("Firmicutes", vocabulary) is None


def test_match_longest_prefix_real_classes():
    """Test the loaded class list resolves its longer Acidobacteria entries"""
    assert match_longest_prefix("Acidobacteria_Gp15Xyz", CLASSES) == "Acidobacteria_Gp15"


def test_content_type_values():
    """Test content type tags"""
    assert ContentType.RESULTS_TABLE.value == "results_table"
    assert ContentType("unknown") is ContentType.UNKNOWN


def test_whoop_data_types():
    """Test endpoints, id fields and file names per data type"""
    assert WhoopDataType.SLEEP.endpoint == "activity/sleep"
    assert WhoopDataType.STRAIN.endpoint == "activity/workout"
    assert WhoopDataType.RECOVERY.endpoint == "recovery"

    assert WhoopDataType.RECOVERY.id_field == "cycle_id"
    assert WhoopDataType.SLEEP.id_field == "id"

    assert WhoopDataType.SLEEP.file_name == "sleep-data.json"
    assert SYNC_ORDER == (WhoopDataType.SLEEP, WhoopDataType.STRAIN, WhoopDataType.RECOVERY)


def test_vocabulary_file_missing(tmp_path):
    """Test an unreadable vocabulary file is a configuration error"""
    with pytest.raises(ConfigurationError):
        _load_vocabulary(tmp_path / "missing.json")

    broken = tmp_path / "broken.json"
    broken.write_text("{", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        _load_vocabulary(broken)
