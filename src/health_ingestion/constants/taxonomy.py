# ============================================================================
# src/health_ingestion/constants/taxonomy.py
# ============================================================================
"""
Taxonomic Vocabularies
- Known phylum / class / order names used to split run-together taxonomy strings
- Morphological suffixes for family and genus boundaries
- Marker species reported by the comprehensive extractor

The word lists live in data/taxonomy_vocabulary.json; extend them there.
"""

import json
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from src.utils.exceptions import ConfigurationError

VOCABULARY_PATH = Path(__file__).parent / "data" / "taxonomy_vocabulary.json"


def _load_vocabulary(path: Path = VOCABULARY_PATH) -> dict:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Cannot load taxonomy vocabulary {path}: {e}") from e


def _longest_first(names) -> Tuple[str, ...]:
    # Stable: ties keep file order
    return tuple(sorted(dict.fromkeys(names), key=len, reverse=True))


_VOCAB = _load_vocabulary()

PHYLA: Tuple[str, ...] = _longest_first(_VOCAB["phyla"])
CLASSES: Tuple[str, ...] = _longest_first(_VOCAB["classes"])
ORDERS: Tuple[str, ...] = _longest_first(_VOCAB["orders"])

FAMILY_SUFFIXES: Tuple[str, ...] = tuple(_VOCAB["family_suffixes"])
GENUS_SUFFIXES: Tuple[str, ...] = tuple(_VOCAB["genus_suffixes"])
FUNGAL_GENERA: Tuple[str, ...] = tuple(_VOCAB["fungal_genera"])

PHYLUM_DESCRIPTIONS: Mapping[str, str] = MappingProxyType(dict(_VOCAB["phylum_descriptions"]))
PROTECTIVE_SPECIES: Mapping[str, str] = MappingProxyType(dict(_VOCAB["protective_species"]))
PATHOGENIC_SPECIES: Tuple[str, ...] = tuple(_VOCAB["pathogenic_species"])
ATYPICAL_SPECIES: Tuple[str, ...] = tuple(_VOCAB["atypical_species"])


def match_longest_prefix(text: str, vocabulary: Tuple[str, ...]) -> Optional[str]:
    """
    Return the longest vocabulary entry that ``text`` starts with.

    Vocabularies are pre-sorted longest-first, so the first hit wins.
    """
    for name in vocabulary:
        if text.startswith(name):
            return name
    return None
